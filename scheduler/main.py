"""
Zero-Cost AI Scheduler API

FastAPI application entry point that ties all components together.
"""

import logging
import time
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from scheduler.config import settings
from scheduler.api.routes import chat, health
from scheduler.errors import SchedulerError
from scheduler.infra.inference import close_inference_gateway
from scheduler.infra.redis import RedisClient


def setup_logging() -> None:
    """Configure logging based on environment."""
    log_level = logging.DEBUG if settings.debug else logging.INFO
    log_format = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    logging.basicConfig(
        level=log_level,
        format=log_format,
    )

    # Reduce noise from third-party libraries
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)


logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Application lifespan manager.

    Handles startup and shutdown events.
    """
    # === STARTUP ===
    setup_logging()
    logger.info(f"Starting {settings.app_name} in {settings.app_env} mode")

    # Probe Redis; chat requests fail with 503 while it is down
    redis = await RedisClient.get_client()
    if redis:
        logger.info("Redis connection established")
    else:
        logger.warning("Redis unavailable - chat requests will fail until it recovers")

    if not settings.groq_api_key:
        logger.warning("GROQ_API_KEY not set - primary inference provider disabled")

    logger.info(f"Application ready at http://{settings.host}:{settings.port}")

    yield

    # === SHUTDOWN ===
    logger.info("Shutting down application...")

    await close_inference_gateway()
    logger.info("Inference providers closed")

    await RedisClient.close()
    logger.info("Redis connection closed")

    logger.info("Shutdown complete")


app = FastAPI(
    title="Zero-Cost AI Scheduler API",
    description="""
    Conversational scheduling assistant.

    ## Features
    - Per-session conversation history (24h retention)
    - Current time injected in UTC and the user's time zone
    - Structured check_availability / book_meeting actions
    - Inference provider fallback (Groq, then Mistral or Anthropic)
    """,
    version=health.VERSION,
    docs_url="/docs" if settings.is_development else None,
    redoc_url="/redoc" if settings.is_development else None,
    openapi_url="/openapi.json" if settings.is_development else None,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(SchedulerError)
async def scheduler_exception_handler(
    request: Request,
    exc: SchedulerError,
) -> JSONResponse:
    """Render domain errors with their fixed public message."""
    if exc.status_code >= 500:
        logger.error(f"{type(exc).__name__} on {request.url.path}: {exc}")
    else:
        logger.info(f"{type(exc).__name__} on {request.url.path}: {exc}")

    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.public_message},
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(
    request: Request,
    exc: RequestValidationError,
) -> JSONResponse:
    """Handle Pydantic validation errors."""
    logger.warning(f"Validation error: {exc.errors()}")
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={
            "error": "Invalid request",
            "detail": jsonable_errors(exc),
        },
    )


def jsonable_errors(exc: RequestValidationError) -> list[dict]:
    """Strip non-serializable context from validation errors."""
    return [
        {"loc": list(err.get("loc", ())), "msg": err.get("msg", ""), "type": err.get("type", "")}
        for err in exc.errors()
    ]


@app.exception_handler(Exception)
async def generic_exception_handler(
    request: Request,
    exc: Exception,
) -> JSONResponse:
    """Handle uncaught exceptions."""
    logger.exception(f"Unhandled exception: {exc}")

    # Don't expose internal errors in production
    detail = str(exc) if settings.is_development else "Internal server error"

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "error": "Internal server error",
            "detail": detail,
        },
    )


@app.middleware("http")
async def request_timing_middleware(request: Request, call_next):
    """Log request duration in debug mode."""
    start_time = time.time()

    try:
        return await call_next(request)
    finally:
        if settings.debug:
            duration = time.time() - start_time
            logger.debug(
                f"{request.method} {request.url.path} "
                f"completed in {duration:.3f}s"
            )


app.include_router(health.router)
app.include_router(chat.router)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "scheduler.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.is_development,
        log_level="debug" if settings.debug else "info",
    )
