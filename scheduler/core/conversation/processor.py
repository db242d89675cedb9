"""
Turn Processor.

Runs one chat turn end to end:

    load history -> build time context -> compose prompt -> infer -> save history

Stages run strictly in sequence. History is written only after a reply was
obtained, so a failed inference leaves the stored session untouched.
"""

import logging
from typing import Any, Optional, Protocol, Sequence

from scheduler.config import get_settings
from scheduler.errors import InvalidInput
from scheduler.infra.inference import InferenceGateway, get_inference_gateway
from scheduler.infra.redis import get_history_store

from .models import History, Role, Turn, TurnResult
from .prompt import PromptComposer
from .time_context import TimeContextBuilder

logger = logging.getLogger(__name__)


class HistoryRepository(Protocol):
    """Keyed history storage with whole-record replacement."""

    async def get(self, session_id: str) -> History:
        ...

    async def put(self, session_id: str, history: History) -> None:
        ...


class CompletionGateway(Protocol):
    """Anything that turns a message sequence into assistant text."""

    async def complete(self, messages: Sequence[Turn]) -> str:
        ...


class TurnProcessor:
    """
    Orchestrates a single conversational turn.

    Holds no per-session state; everything durable goes through the
    history store. Two concurrent turns on one session both read the same
    prior history and the later write wins.
    """

    def __init__(
        self,
        history_store: HistoryRepository,
        gateway: CompletionGateway,
        composer: Optional[PromptComposer] = None,
        time_builder: Optional[TimeContextBuilder] = None,
        default_session_id: str = "default",
        default_timezone: str = "UTC",
    ):
        self.history_store = history_store
        self.gateway = gateway
        self.composer = composer or PromptComposer()
        self.time_builder = time_builder or TimeContextBuilder()
        self.default_session_id = default_session_id
        self.default_timezone = default_timezone

    async def handle_turn(
        self,
        session_id: Optional[str],
        user_timezone: Optional[str],
        message: Any,
    ) -> TurnResult:
        """
        Process one user message.

        Args:
            session_id: Conversation identifier (defaulted when empty)
            user_timezone: IANA zone for local-time context (defaulted when empty)
            message: User message; must be non-empty text

        Returns:
            TurnResult with the raw assistant reply and the session ID

        Raises:
            InvalidInput: Message missing or not text (before any I/O)
            UpstreamUnavailable: History store read or write failed
            InferenceUnavailable: All inference providers failed
        """
        if not isinstance(message, str) or not message:
            raise InvalidInput("Message is required")

        session_id = session_id or self.default_session_id
        user_timezone = user_timezone or self.default_timezone

        history = await self.history_store.get(session_id)

        time_context = self.time_builder.build(user_timezone)
        messages = self.composer.compose(time_context, history, message)

        # On failure nothing below runs, so history is left as it was
        reply = await self.gateway.complete(messages)

        updated = [
            *history,
            Turn(role=Role.USER, content=message),
            Turn(role=Role.ASSISTANT, content=reply),
        ]
        await self.history_store.put(session_id, updated)

        logger.debug(f"Turn completed: session={session_id} history={len(updated)}")

        return TurnResult(reply=reply, session_id=session_id)


async def get_turn_processor() -> TurnProcessor:
    """
    FastAPI dependency that provides a TurnProcessor.

    The history store is created per request on the shared Redis
    connection; the inference gateway is a process-wide singleton.
    """
    settings = get_settings()
    store = await get_history_store()
    gateway: InferenceGateway = get_inference_gateway()

    return TurnProcessor(
        history_store=store,
        gateway=gateway,
        composer=PromptComposer(window_messages=settings.history_window_messages),
        default_session_id=settings.default_session_id,
        default_timezone=settings.default_timezone,
    )
