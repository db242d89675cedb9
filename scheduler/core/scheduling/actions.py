"""
Structured actions the assistant may emit instead of conversational text.

The assistant reply is stored and returned verbatim; this module only
interprets it for callers that want to execute the action.
"""

import json
import logging
import re
from datetime import datetime
from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError, model_validator

logger = logging.getLogger(__name__)

_FENCED_JSON = re.compile(r"```(?:json)?\s*(\{.*?\})\s*```", re.DOTALL | re.IGNORECASE)


def _comparable(a: datetime, b: datetime) -> bool:
    """Naive and aware datetimes cannot be ordered against each other."""
    return (a.tzinfo is None) == (b.tzinfo is None)


class CheckAvailability(BaseModel):
    """Look up free slots inside a window."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    action: Literal["check_availability"] = "check_availability"
    start_window: datetime = Field(..., alias="startWindow")
    end_window: datetime = Field(..., alias="endWindow")

    @model_validator(mode="after")
    def _window_order(self) -> "CheckAvailability":
        if _comparable(self.start_window, self.end_window) and self.end_window < self.start_window:
            raise ValueError("endWindow must not precede startWindow")
        return self


class BookMeeting(BaseModel):
    """Book a meeting for an attendee."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    action: Literal["book_meeting"] = "book_meeting"
    start: datetime
    end: datetime
    name: str = Field(..., min_length=1)
    email: str = Field(..., min_length=3)
    title: Optional[str] = None

    @model_validator(mode="after")
    def _check_fields(self) -> "BookMeeting":
        if _comparable(self.start, self.end) and self.end <= self.start:
            raise ValueError("end must be after start")
        if "@" not in self.email:
            raise ValueError("email must be an email address")
        return self


ActionRequest = Annotated[
    Union[CheckAvailability, BookMeeting],
    Field(discriminator="action"),
]

_action_adapter: TypeAdapter = TypeAdapter(ActionRequest)


def _extract_json_object(text: str) -> Optional[dict]:
    """Find the JSON object in a reply: fenced, bare, or embedded in prose."""
    candidates = [m.group(1) for m in _FENCED_JSON.finditer(text)]

    stripped = text.strip()
    if stripped.startswith("{"):
        candidates.append(stripped)

    first, last = text.find("{"), text.rfind("}")
    if first != -1 and last > first:
        candidates.append(text[first:last + 1])

    for candidate in candidates:
        try:
            data = json.loads(candidate)
        except ValueError:
            continue
        if isinstance(data, dict):
            return data

    return None


def parse_action(reply: str) -> Optional[Union[CheckAvailability, BookMeeting]]:
    """
    Interpret an assistant reply as an action request.

    Accepts flat payloads ({"action": ..., "start": ...}) and nested ones
    ({"action": ..., "params": {...}}).

    Args:
        reply: Raw assistant text

    Returns:
        The parsed action, or None for conversational or invalid replies
    """
    if not isinstance(reply, str) or "{" not in reply:
        return None

    data = _extract_json_object(reply)
    if data is None or "action" not in data:
        return None

    for key in ("params", "parameters", "arguments"):
        nested = data.get(key)
        if isinstance(nested, dict):
            data = {"action": data["action"], **nested}
            break

    try:
        return _action_adapter.validate_python(data)
    except ValidationError as e:
        logger.debug(f"Reply carried an invalid action payload: {e.error_count()} errors")
        return None
