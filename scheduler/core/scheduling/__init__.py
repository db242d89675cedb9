"""
Scheduling Module

Interprets structured assistant replies and executes them against Cal.com.
Runs downstream of the chat turn: the turn itself never parses or executes
actions.

Usage:
    from scheduler.core.scheduling import parse_action, ActionExecutor, CalComClient

    action = parse_action(reply_text)
    if action is not None:
        result = await ActionExecutor(CalComClient()).execute(action, "America/New_York")
"""

from scheduler.core.scheduling.actions import (
    ActionRequest,
    BookMeeting,
    CheckAvailability,
    parse_action,
)
from scheduler.core.scheduling.calendar_client import (
    BookingResult,
    CalComClient,
    TimeSlot,
)
from scheduler.core.scheduling.executor import ActionExecutor, ActionResult

__all__ = [
    # Actions
    "ActionRequest",
    "BookMeeting",
    "CheckAvailability",
    "parse_action",
    # Calendar
    "BookingResult",
    "CalComClient",
    "TimeSlot",
    # Execution
    "ActionExecutor",
    "ActionResult",
]
