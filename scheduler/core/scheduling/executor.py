"""Execute parsed actions against the calendar provider."""

import logging
from dataclasses import dataclass, field
from typing import Optional, Union

from .actions import BookMeeting, CheckAvailability
from .calendar_client import BookingResult, CalComClient, TimeSlot

logger = logging.getLogger(__name__)


@dataclass
class ActionResult:
    """Outcome of one executed action."""

    action: str
    success: bool
    slots: list[TimeSlot] = field(default_factory=list)
    booking: Optional[BookingResult] = None


class ActionExecutor:
    """Runs check_availability / book_meeting against a calendar client."""

    def __init__(self, calendar: CalComClient):
        self.calendar = calendar

    async def execute(
        self,
        action: Union[CheckAvailability, BookMeeting],
        time_zone: str = "UTC",
    ) -> ActionResult:
        """
        Execute an action.

        Args:
            action: Parsed action request
            time_zone: User time zone forwarded to the calendar

        Returns:
            ActionResult describing slots found or the booking outcome
        """
        if isinstance(action, CheckAvailability):
            slots = await self.calendar.check_availability(action, time_zone)
            logger.info(f"Availability check returned {len(slots)} slots")
            return ActionResult(action=action.action, success=True, slots=slots)

        if isinstance(action, BookMeeting):
            booking = await self.calendar.book_meeting(action, time_zone)
            logger.info(f"Booking attempt success={booking.success}")
            return ActionResult(action=action.action, success=booking.success, booking=booking)

        raise TypeError(f"Unsupported action: {type(action).__name__}")
