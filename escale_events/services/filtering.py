"""Filter/sort engine producing the display list.

Everything here is pure: the output depends only on the arguments, and
``now`` is injectable so results are reproducible.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, timezone
from typing import Callable, Dict, Iterable, List, Optional, Sequence, Tuple

from ..config import PAST_GRACE_PERIOD
from ..models.event import EventItem
from ..utils.datetime_utils import get_current_timestamp, is_past, parse_iso_datetime

ALL_CATEGORIES = "All"
SUBURBS_CATEGORY = "Suburbs"

# Paris outer-ring departments (91-95) use postal codes starting with 9.
_OUTER_POSTAL_CODE = re.compile(r"\b9\d{4}\b")

CategoryPredicate = Callable[[EventItem], bool]


def _mentions(event: EventItem, needle: str) -> bool:
    needle = needle.lower()
    return needle in event.category.lower() or needle in event.description.lower()


def matches_text(tag: str) -> CategoryPredicate:
    """Case-insensitive substring match on category or description."""
    return lambda event: _mentions(event, tag)


def _is_suburb(event: EventItem) -> bool:
    location = event.location.lower()
    return bool(_OUTER_POSTAL_CODE.search(event.location)) or "suburb" in location


def _suburbs(event: EventItem) -> bool:
    return _mentions(event, SUBURBS_CATEGORY) or _is_suburb(event)


CATEGORY_PREDICATES: Dict[str, CategoryPredicate] = {
    ALL_CATEGORIES: lambda event: True,
    "Party": matches_text("Party"),
    "Culture": matches_text("Culture"),
    "Networking": matches_text("Networking"),
    "Food": matches_text("Food"),
    "Music": matches_text("Music"),
    "Sport": matches_text("Sport"),
    SUBURBS_CATEGORY: _suburbs,
}


def category_predicate(category: Optional[str]) -> CategoryPredicate:
    """Look up *category* (case-insensitive); unknown tags match as text."""
    if not category:
        return CATEGORY_PREDICATES[ALL_CATEGORIES]
    for tag, predicate in CATEGORY_PREDICATES.items():
        if tag.lower() == category.lower():
            return predicate
    return matches_text(category)


@dataclass(frozen=True)
class FilterOptions:
    """Active filters. ``favorites_only`` switches the data source."""

    favorites_only: bool = False
    hide_outdated: bool = True
    date_start: Optional[date] = None
    date_end: Optional[date] = None
    accessible_only: bool = False
    category: str = ALL_CATEGORIES


def _in_range(event: EventItem, start: Optional[date], end: Optional[date]) -> bool:
    if start is None and end is None:
        return True
    instant = parse_iso_datetime(event.iso_date)
    if instant is None:
        return False
    if start is not None and instant < datetime.combine(start, time.min, tzinfo=timezone.utc):
        return False
    # End bound covers the whole calendar day.
    if end is not None and end < date.max and instant >= datetime.combine(
        end + timedelta(days=1), time.min, tzinfo=timezone.utc
    ):
        return False
    return True


def sort_key(event: EventItem) -> Tuple[int, datetime]:
    """Chronological key; unparseable dates sort after every real date."""
    instant = parse_iso_datetime(event.iso_date)
    if instant is None:
        return (1, datetime.min.replace(tzinfo=timezone.utc))
    return (0, instant)


def sort_events(events: Iterable[EventItem]) -> List[EventItem]:
    return sorted(events, key=sort_key)


def compute_display_list(
    events: Sequence[EventItem],
    favorites: Iterable[EventItem],
    options: FilterOptions = FilterOptions(),
    now: Optional[datetime] = None,
    grace: timedelta = PAST_GRACE_PERIOD,
) -> List[EventItem]:
    """Apply *options* to the selected source and sort chronologically."""
    source: Iterable[EventItem] = favorites if options.favorites_only else events
    now = now or get_current_timestamp()
    matches_category = category_predicate(options.category)

    selected = [
        event
        for event in source
        if not (options.hide_outdated and is_past(event.iso_date, grace=grace, now=now))
        and _in_range(event, options.date_start, options.date_end)
        and not (options.accessible_only and event.is_accessible is not True)
        and matches_category(event)
    ]
    return sort_events(selected)


__all__ = [
    "ALL_CATEGORIES",
    "CATEGORY_PREDICATES",
    "SUBURBS_CATEGORY",
    "FilterOptions",
    "category_predicate",
    "compute_display_list",
    "matches_text",
    "sort_events",
    "sort_key",
]
