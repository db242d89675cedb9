"""
HTTP client for Cal.com.

Cal.com v1 exposes:
- GET /slots - Free slots for an event type within a window
- POST /bookings - Create a booking

Authentication is the apiKey query parameter. The service is treated as
opaque: slot granularity and time-zone handling are Cal.com's.
"""

import logging
from dataclasses import dataclass
from typing import Optional

import httpx

from scheduler.config import get_settings

from .actions import BookMeeting, CheckAvailability

logger = logging.getLogger(__name__)


@dataclass
class TimeSlot:
    """Available slot returned by Cal.com."""

    start_time: str  # ISO format
    end_time: Optional[str] = None

    @classmethod
    def from_dict(cls, data: dict) -> "TimeSlot":
        """Create from API response dict."""
        return cls(
            start_time=data.get("time", data.get("start", "")),
            end_time=data.get("end"),
        )

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {"start_time": self.start_time, "end_time": self.end_time}


@dataclass
class BookingResult:
    """Result of a booking attempt."""

    success: bool
    booking_id: Optional[str] = None
    status: Optional[str] = None
    message: Optional[str] = None


class CalComClient:
    """HTTP client for the Cal.com v1 API."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        event_type_id: Optional[int] = None,
        base_url: Optional[str] = None,
        timeout: float = 30.0,
    ):
        """Initialize client.

        Args:
            api_key: Cal.com API key (defaults to settings)
            event_type_id: Event type to book/query (defaults to settings)
            base_url: API root (defaults to settings)
            timeout: Request timeout in seconds
        """
        settings = get_settings()
        self.api_key = api_key or settings.cal_api_key
        if not self.api_key:
            raise ValueError("Cal.com API key is required")

        self.event_type_id = event_type_id or settings.cal_event_type_id
        self.base_url = base_url or settings.cal_base_url
        self.timeout = timeout
        self._client: Optional[httpx.AsyncClient] = None

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self.timeout,
                params={"apiKey": self.api_key},
            )
        return self._client

    async def close(self) -> None:
        """Close HTTP client."""
        if self._client:
            await self._client.aclose()
            self._client = None

    # === Availability ===

    async def check_availability(
        self,
        request: CheckAvailability,
        time_zone: str = "UTC",
    ) -> list[TimeSlot]:
        """Find free slots in a window.

        Args:
            request: Parsed check_availability action
            time_zone: Zone Cal.com should render slots in

        Returns:
            Slots in chronological order (empty on failure)
        """
        client = await self._get_client()

        params = {
            "startTime": request.start_window.isoformat(),
            "endTime": request.end_window.isoformat(),
            "timeZone": time_zone,
        }
        if self.event_type_id is not None:
            params["eventTypeId"] = self.event_type_id

        try:
            response = await client.get("/slots", params=params)
            response.raise_for_status()

            data = response.json()
            by_day = data.get("slots", {}) if isinstance(data, dict) else {}
            if not isinstance(by_day, dict):
                raise ValueError(f"Unexpected slots payload: {type(by_day).__name__}")

            slots = []
            for day in sorted(by_day):
                slots.extend(TimeSlot.from_dict(s) for s in by_day[day])
            return slots

        except (httpx.HTTPError, ValueError) as e:
            logger.error(f"Failed to check availability: {e}")
            return []

    # === Bookings ===

    async def book_meeting(
        self,
        request: BookMeeting,
        time_zone: str = "UTC",
    ) -> BookingResult:
        """Create a booking.

        Args:
            request: Parsed book_meeting action
            time_zone: Attendee time zone

        Returns:
            BookingResult; failures are reported, not raised
        """
        client = await self._get_client()

        payload = {
            "eventTypeId": self.event_type_id,
            "start": request.start.isoformat(),
            "end": request.end.isoformat(),
            "responses": {"name": request.name, "email": request.email},
            "timeZone": time_zone,
            "language": "en",
            "metadata": {},
        }
        if request.title:
            payload["title"] = request.title

        try:
            response = await client.post("/bookings", json=payload)

            if response.status_code >= 400:
                detail = response.text[:200]
                logger.warning(f"Booking rejected ({response.status_code}): {detail}")
                return BookingResult(
                    success=False,
                    message=f"Booking rejected with HTTP {response.status_code}",
                )

            data = response.json()
            if not isinstance(data, dict):
                raise ValueError(f"Unexpected booking response: {type(data).__name__}")

            booking_id = data.get("uid") or data.get("id")
            return BookingResult(
                success=True,
                booking_id=str(booking_id) if booking_id is not None else None,
                status=data.get("status"),
                message="Booking created",
            )

        except (httpx.HTTPError, ValueError) as e:
            logger.error(f"Failed to create booking: {e}")
            return BookingResult(success=False, message="Calendar service unavailable")
