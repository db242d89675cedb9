"""Current-time context injected into every model request."""

import logging
from datetime import datetime, timezone
from typing import Callable, Optional

import pytz

from .models import TimeContext

logger = logging.getLogger(__name__)

FALLBACK_ZONE = "UTC"


def _utcnow() -> datetime:
    """Get current UTC time as timezone-aware datetime."""
    return datetime.now(timezone.utc)


def resolve_zone(zone_id: Optional[str]) -> pytz.BaseTzInfo:
    """Look up an IANA zone, falling back to UTC for anything unrecognized."""
    if not isinstance(zone_id, str) or not zone_id.strip():
        return pytz.utc

    try:
        return pytz.timezone(zone_id.strip())
    except pytz.UnknownTimeZoneError:
        logger.warning(f"Unknown timezone {zone_id!r}, rendering in {FALLBACK_ZONE}")
        return pytz.utc


def render_local(instant: datetime, tz: pytz.BaseTzInfo) -> str:
    """Render an instant in a zone as en-US civil time, e.g. 10/18/2026, 2:05:03 PM."""
    local = instant.astimezone(tz)
    hour = local.hour % 12 or 12
    meridiem = "AM" if local.hour < 12 else "PM"
    return (
        f"{local.month}/{local.day}/{local.year}, "
        f"{hour}:{local.minute:02d}:{local.second:02d} {meridiem}"
    )


class TimeContextBuilder:
    """
    Builds TimeContext snapshots.

    Pure apart from reading the clock; the clock is injectable so tests can
    pin "now".
    """

    def __init__(self, clock: Callable[[], datetime] = _utcnow):
        self._clock = clock

    def build(self, zone_id: Optional[str] = None) -> TimeContext:
        """
        Snapshot the current instant for a user time zone.

        Args:
            zone_id: IANA zone identifier (UTC if absent or unrecognized)

        Returns:
            TimeContext with the UTC instant and its local rendering
        """
        now = self._clock().astimezone(timezone.utc)
        tz = resolve_zone(zone_id)

        return TimeContext(
            utc_instant=now,
            zone_id=tz.zone,
            local_rendering=render_local(now, tz),
        )
