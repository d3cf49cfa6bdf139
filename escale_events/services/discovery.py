"""Event discovery: prompt assembly, backend call, and reply normalisation."""

from __future__ import annotations

import logging
from dataclasses import replace
from datetime import date, datetime
from typing import Any, Dict, Iterable, List, Optional

from ..config import DEFAULT_DISCOVERY_QUERY, DISCOVERY_WINDOW_MONTHS_AHEAD
from ..models.event import DEFAULT_SOURCE_TITLE, DiscoveryResult, EventItem, GroundingSource
from ..utils.datetime_utils import get_current_timestamp, window_end
from ..utils.llm_parsing import extract_structured_json
from ..utils.text_cleaning import sanitize_llm_text
from .backends import DiscoveryBackend, SearchWindow, get_backend

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Structured-output schema requested from the backend
# ---------------------------------------------------------------------------
EVENT_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "properties": {
        "events": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {
                    "id": {"type": "string"},
                    "title": {"type": "string"},
                    "category": {"type": "string"},
                    "date": {
                        "type": "string",
                        "description": "Human readable date e.g. 'Tonight at 10 PM'",
                    },
                    "isoDate": {
                        "type": "string",
                        "description": "ISO 8601 date-time of the event start",
                    },
                    "startTime": {"type": "string"},
                    "endTime": {"type": "string"},
                    "location": {"type": "string"},
                    "description": {"type": "string"},
                    "vibe": {
                        "type": "string",
                        "description": "A short vibe check like 'Techno Vibe' or 'Chic & Classy'",
                    },
                    "isAccessible": {
                        "type": "boolean",
                        "description": "True when a newcomer with little French can enjoy it",
                    },
                    "accessibilityReason": {"type": "string"},
                },
                "required": [
                    "id",
                    "title",
                    "category",
                    "date",
                    "isoDate",
                    "location",
                    "description",
                    "vibe",
                ],
            },
        }
    },
    "required": ["events"],
}


def build_search_window(now: Optional[datetime] = None) -> SearchWindow:
    """Today through the end of the configured following calendar month."""
    today: date = (now or get_current_timestamp()).date()
    return SearchWindow(start=today, end=window_end(today, DISCOVERY_WINDOW_MONTHS_AHEAD))


def build_discovery_prompt(query: str, window: SearchWindow) -> str:
    """Natural-language instruction sent to the backend."""
    return (
        f"Today is {window.start.isoformat()}. Find real upcoming events in Paris for"
        f" international students between {window.start.isoformat()} and"
        f" {window.end.isoformat()} matching: {query}.\n"
        "Search scope, cover BOTH:\n"
        "1) Mainstream and international events: student and Erasmus parties, club"
        " nights, English-friendly meetups, big cultural venues.\n"
        "2) Niche and local events announced only in French: neighbourhood"
        " associations, banlieue venues, small concerts, local festivals.\n"
        "Curation rules:\n"
        "- Translate every non-English title and description into English.\n"
        "- Verify each event is still upcoming; drop events that already passed.\n"
        "- Set isAccessible to true when a newcomer with little French can enjoy it"
        " (Safe Bet) and false when it needs local fluency or connections (Deep"
        " Local); explain the choice in accessibilityReason.\n"
        "- isoDate must be the ISO 8601 start date-time; date is a human readable"
        " version of it.\n"
        "- Give every event a short unique id.\n"
        "Return an object with an array named 'events'."
    )


def _to_event(record: Any) -> Optional[EventItem]:
    try:
        event = EventItem.from_dict(record)
    except ValueError as exc:
        logger.warning("Skipping invalid event record: %s", exc)
        return None
    reason = event.accessibility_reason
    return replace(
        event,
        description=sanitize_llm_text(event.description) or event.description,
        accessibility_reason=sanitize_llm_text(reason) or None,
    )


def parse_discovery_reply(text: str) -> List[EventItem]:
    """Parse a backend reply into events.

    Tries strict decoding of the whole reply first, then recovers the payload
    from a fenced block or from prose (see
    :func:`~escale_events.utils.llm_parsing.extract_structured_json`). Returns
    an empty list when nothing usable is found.
    """
    try:
        payload = extract_structured_json(text)
    except ValueError as exc:
        logger.warning("Discovery reply is not structured data: %s", exc)
        return []

    records = payload.get("events")
    if not isinstance(records, list):
        logger.warning("Discovery reply has no 'events' array")
        return []

    events = [event for event in map(_to_event, records) if event is not None]
    logger.info("Parsed %d of %d event records", len(events), len(records))
    return events


def map_grounding_sources(citations: Iterable[Dict[str, Any]]) -> List[GroundingSource]:
    """Keep citations with an http(s) link; default missing titles."""
    sources: List[GroundingSource] = []
    seen = set()
    for citation in citations:
        if not isinstance(citation, dict):
            continue
        uri = citation.get("url") or citation.get("uri")
        if not isinstance(uri, str):
            continue
        uri = uri.strip()
        if not uri.startswith(("http://", "https://")) or uri in seen:
            continue
        seen.add(uri)
        title = citation.get("title")
        title = (title.strip() if isinstance(title, str) else "") or DEFAULT_SOURCE_TITLE
        sources.append(GroundingSource(title=title, uri=uri))
    return sources


class DiscoveryGateway:
    """Builds discovery requests and degrades every failure to an empty result."""

    def __init__(self, backend: Optional[DiscoveryBackend] = None) -> None:
        self._backend = backend

    @property
    def backend(self) -> DiscoveryBackend:
        if self._backend is None:
            self._backend = get_backend()
        return self._backend

    def discover(self, query: str = "", now: Optional[datetime] = None) -> DiscoveryResult:
        query = query.strip() if query else ""
        if not query:
            query = DEFAULT_DISCOVERY_QUERY

        window = build_search_window(now)
        prompt = build_discovery_prompt(query, window)
        logger.info("Discovering events until %s for query: %s", window.end, query)

        try:
            reply = self.backend.generate_structured_content(prompt, EVENT_SCHEMA, window)
        except Exception as exc:  # network, auth, SDK errors
            logger.error("Discovery call failed: %s", exc)
            return DiscoveryResult.empty()

        events = parse_discovery_reply(reply.text)
        if not events:
            return DiscoveryResult.empty()

        sources = map_grounding_sources(reply.citations)
        logger.info("Found %d events with %d sources", len(events), len(sources))
        return DiscoveryResult(events=tuple(events), sources=tuple(sources))


def discover_events(query: str = "") -> DiscoveryResult:
    """Module-level shortcut using the configured backend."""
    return DiscoveryGateway().discover(query)


__all__ = [
    "EVENT_SCHEMA",
    "DiscoveryGateway",
    "build_discovery_prompt",
    "build_search_window",
    "discover_events",
    "map_grounding_sources",
    "parse_discovery_reply",
]
