"""Compose the message sequence sent to the inference provider."""

import logging

from .models import History, Role, TimeContext, Turn

logger = logging.getLogger(__name__)


ACTION_SCHEMA = """Available actions:
- check_availability: { "startWindow": string (ISO 8601 date-time), "endWindow": string (ISO 8601 date-time) }
- book_meeting: { "start": string (ISO 8601 date-time), "end": string (ISO 8601 date-time), "name": string, "email": string, "title"?: string (optional) }"""


SYSTEM_PROMPT_TEMPLATE = """You are a helpful scheduling assistant.
Current UTC time: {utc_time}
User timezone: {zone_id}
User local time: {local_time}

You can check availability and book meetings using Cal.com.
Respond naturally, but when an action is ready to execute, output structured JSON only, in the form:
{{"action": "<action name>", <action fields>}}

{action_schema}

If you need more info from the user, ask conversationally."""


def build_system_prompt(time_context: TimeContext) -> str:
    """Render the system instructions for one request."""
    return SYSTEM_PROMPT_TEMPLATE.format(
        utc_time=time_context.utc_iso,
        zone_id=time_context.zone_id,
        local_time=time_context.local_rendering,
        action_schema=ACTION_SCHEMA,
    )


class PromptComposer:
    """
    Builds the ordered messages for one model call:
    system turn, prior history, then the new user turn.

    Stateless between calls.
    """

    def __init__(self, window_messages: int = 0):
        """Initialize composer.

        Args:
            window_messages: Most recent history messages to replay
                (0 replays all of them)
        """
        self.window_messages = window_messages

    def compose(
        self,
        time_context: TimeContext,
        history: History,
        message: str,
    ) -> list[Turn]:
        """
        Compose the message sequence.

        Args:
            time_context: Snapshot of now for the user's zone
            history: Stored turns, oldest first
            message: New user message text

        Returns:
            Turns to send, starting with the system turn
        """
        system_turn = Turn(role=Role.SYSTEM, content=build_system_prompt(time_context))

        return [
            system_turn,
            *self._window(history),
            Turn(role=Role.USER, content=message),
        ]

    def _window(self, history: History) -> History:
        """Apply the history window, if any."""
        if self.window_messages <= 0 or len(history) <= self.window_messages:
            return list(history)

        recent = list(history[-self.window_messages:])
        # Never open the replayed window mid-exchange
        while recent and recent[0].role == Role.ASSISTANT:
            recent.pop(0)

        logger.debug(f"History windowed: {len(history)} -> {len(recent)} messages")
        return recent
