"""
Conversation data models.

A session's history is a plain list of Turn values, oldest first. It is
stored in Redis as a JSON array of {"role", "content"} objects.
"""

import json
from dataclasses import dataclass
from datetime import datetime
from enum import Enum


class Role(str, Enum):
    """Speaker of a turn."""

    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"


@dataclass(frozen=True)
class Turn:
    """One message in a conversation. Immutable once written."""

    role: Role
    content: str

    def to_dict(self) -> dict:
        """Convert to the wire/storage shape."""
        return {"role": self.role.value, "content": self.content}

    @classmethod
    def from_dict(cls, data: dict) -> "Turn":
        """Create from a stored or wire dict.

        Raises:
            ValueError: If the role is unknown or content is not text
        """
        if not isinstance(data, dict):
            raise ValueError(f"Turn must be an object, got {type(data).__name__}")
        content = data.get("content")
        if not isinstance(content, str):
            raise ValueError(f"Turn content must be text, got {type(content).__name__}")
        return cls(role=Role(data.get("role")), content=content)


History = list[Turn]


def history_to_json(history: History) -> str:
    """Serialize a history to the stored JSON array."""
    return json.dumps([turn.to_dict() for turn in history])


def history_from_json(raw: str) -> History:
    """Parse a stored JSON array back into turns.

    Raises:
        ValueError: If the payload is not a JSON array of turns
    """
    data = json.loads(raw)
    if not isinstance(data, list):
        raise ValueError("Stored history is not a JSON array")
    return [Turn.from_dict(item) for item in data]


@dataclass(frozen=True)
class TimeContext:
    """Snapshot of "now", in UTC and in the user's zone.

    Built fresh for every turn and never persisted.
    """

    utc_instant: datetime
    zone_id: str
    local_rendering: str

    @property
    def utc_iso(self) -> str:
        """UTC instant as ISO-8601 with millisecond precision and a Z suffix."""
        return self.utc_instant.isoformat(timespec="milliseconds").replace("+00:00", "Z")


@dataclass(frozen=True)
class TurnResult:
    """What a handled turn returns to the caller."""

    reply: str
    session_id: str
