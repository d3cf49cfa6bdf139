"""Utility functions for working with event dates and times.

All comparisons happen on timezone-aware UTC datetimes. Naive ISO strings
returned by the backend are read as UTC. Unparseable strings never raise;
they simply yield ``None`` / "not past" / no status.
"""

from __future__ import annotations

import calendar
from datetime import date, datetime, timedelta, timezone
from enum import Enum
from typing import Optional

from ..config import PAST_GRACE_PERIOD, UPCOMING_SOON_WINDOW

__all__ = [
    "EventStatus",
    "get_current_timestamp",
    "parse_iso_datetime",
    "window_end",
    "is_past",
    "classify_status",
]


class EventStatus(str, Enum):
    LIVE = "live"
    UPCOMING_SOON = "upcoming-soon"
    PASSED = "passed"


def get_current_timestamp() -> datetime:
    """Return the current UTC datetime with micro-second precision."""
    return datetime.now(tz=timezone.utc)


def parse_iso_datetime(value: Optional[str]) -> Optional[datetime]:
    """Parse an ISO-8601 string into an aware UTC datetime.

    Accepts a trailing ``Z`` and date-only values (midnight UTC). Returns
    ``None`` for anything that does not parse.
    """
    if not value or not isinstance(value, str):
        return None
    text = value.strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
        if parsed.tzinfo is None:
            return parsed.replace(tzinfo=timezone.utc)
        # Offsets near year 1 or 9999 fall outside the datetime range.
        return parsed.astimezone(timezone.utc)
    except (ValueError, OverflowError):
        return None


def window_end(anchor: date, months_ahead: int) -> date:
    """Last calendar day of the month *months_ahead* after *anchor*'s month."""
    month_index = anchor.month - 1 + months_ahead
    year = anchor.year + month_index // 12
    month = month_index % 12 + 1
    return date(year, month, calendar.monthrange(year, month)[1])


def is_past(
    iso_date: Optional[str],
    grace: timedelta = PAST_GRACE_PERIOD,
    now: Optional[datetime] = None,
) -> bool:
    """``True`` when the event started more than *grace* before *now*."""
    instant = parse_iso_datetime(iso_date)
    if instant is None:
        return False
    now = now or get_current_timestamp()
    return now - instant > grace


def classify_status(
    iso_date: Optional[str],
    now: Optional[datetime] = None,
    grace: timedelta = PAST_GRACE_PERIOD,
    soon: timedelta = UPCOMING_SOON_WINDOW,
) -> Optional[EventStatus]:
    """Badge for an event: live, starting soon, passed, or nothing."""
    instant = parse_iso_datetime(iso_date)
    if instant is None:
        return None
    now = now or get_current_timestamp()
    delta = instant - now
    if -grace <= delta <= timedelta(0):
        return EventStatus.LIVE
    if timedelta(0) < delta <= soon:
        return EventStatus.UPCOMING_SOON
    if delta < -grace:
        return EventStatus.PASSED
    return None
