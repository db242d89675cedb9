"""
Chat API Endpoint.

Handles conversational messages for the scheduling assistant. Errors from
the turn (invalid input, store or inference failure) propagate to the
application's exception handlers, which render them as {"error": ...}.
"""

import logging
from typing import Any, Optional

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, ConfigDict, Field, field_validator

from scheduler.core.conversation.processor import TurnProcessor, get_turn_processor

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/chat", tags=["Chat"])


class ChatRequest(BaseModel):
    """Chat message request."""

    model_config = ConfigDict(populate_by_name=True)

    # Left untyped so a missing or non-text message is answered with the
    # fixed 400 message rather than a schema error
    message: Any = Field(
        default=None,
        description="User's message (required, non-empty text)",
        examples=["What's available tomorrow at 2pm?"],
    )
    session_id: Optional[str] = Field(
        default=None,
        alias="sessionId",
        description="Session ID for conversation continuity (default: \"default\")",
        examples=["user-42"],
    )
    # Untyped for the same reason: an unusable zone falls back to UTC
    user_timezone: Any = Field(
        default=None,
        alias="userTimezone",
        description="IANA time zone of the user (default: UTC, also used when invalid)",
        examples=["America/New_York"],
    )

    @field_validator("session_id", mode="before")
    @classmethod
    def _stringify_session_id(cls, value: Any) -> Optional[str]:
        """Numeric IDs key the same record as their text form (5 -> chat:5)."""
        if value is None or isinstance(value, str):
            return value
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return str(value)
        # Anything else is unusable as a key and falls back to the default session
        return None


class ChatResponse(BaseModel):
    """Chat response."""

    model_config = ConfigDict(populate_by_name=True)

    response: str = Field(
        ...,
        description="Assistant reply, verbatim (may be a structured action)",
    )
    session_id: str = Field(
        ...,
        alias="sessionId",
        description="Session ID for continuing conversation",
    )


class ErrorResponse(BaseModel):
    """Error response."""

    error: str


@router.post(
    "",
    response_model=ChatResponse,
    status_code=status.HTTP_200_OK,
    summary="Send a chat message",
    description="Send a message to the scheduling assistant and get a response.",
    responses={
        200: {"description": "Successful response"},
        400: {"model": ErrorResponse, "description": "Message is required"},
        500: {"model": ErrorResponse, "description": "Inference failed"},
        503: {"model": ErrorResponse, "description": "Session store unavailable"},
    },
)
async def chat(
    request: ChatRequest,
    processor: TurnProcessor = Depends(get_turn_processor),
) -> ChatResponse:
    """
    Process a chat message.

    Loads the session history, injects the current time in the user's zone,
    asks the model for a reply and stores the exchange. The sessionId
    should be preserved across requests to keep conversation context.
    """
    result = await processor.handle_turn(
        session_id=request.session_id,
        user_timezone=request.user_timezone,
        message=request.message,
    )

    return ChatResponse(response=result.reply, session_id=result.session_id)
