"""Definition of the event records produced by a discovery call."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional, Tuple

# Wire (camelCase) name -> attribute name for the required text fields.
_REQUIRED_FIELDS: Tuple[Tuple[str, str], ...] = (
    ("id", "id"),
    ("title", "title"),
    ("category", "category"),
    ("date", "date"),
    ("isoDate", "iso_date"),
    ("location", "location"),
    ("description", "description"),
    ("vibe", "vibe"),
)

_OPTIONAL_TEXT_FIELDS: Tuple[Tuple[str, str], ...] = (
    ("startTime", "start_time"),
    ("endTime", "end_time"),
    ("accessibilityReason", "accessibility_reason"),
)

DEFAULT_SOURCE_TITLE = "View Source"


def _coerce_bool(value: Any) -> Optional[bool]:
    if value is None or isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in {"true", "yes", "1"}:
            return True
        if lowered in {"false", "no", "0"}:
            return False
        return None
    if isinstance(value, (int, float)):
        return bool(value)
    return None


@dataclass(frozen=True, slots=True)
class EventItem:
    """One event discovered by the AI backend.

    Instances are immutable; favouriting stores the record itself as a
    snapshot. ``iso_date`` is the only field used for time computations,
    ``date`` / ``start_time`` / ``end_time`` are for display.
    """

    id: str
    title: str
    category: str
    date: str
    iso_date: str
    location: str
    description: str
    vibe: str
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    is_accessible: Optional[bool] = None
    accessibility_reason: Optional[str] = None

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "EventItem":
        """Build an :class:`EventItem` from its camelCase wire form.

        Raises
        ------
        ValueError
            If *payload* is not a mapping or a required field is missing.
        """
        if not isinstance(payload, Mapping):
            raise ValueError(f"event record must be an object, got {type(payload).__name__}")

        values: Dict[str, Any] = {}
        for wire_name, attr in _REQUIRED_FIELDS:
            raw = payload.get(wire_name)
            if raw is None or (isinstance(raw, str) and not raw.strip()):
                raise ValueError(f"event record is missing '{wire_name}'")
            values[attr] = str(raw).strip()

        for wire_name, attr in _OPTIONAL_TEXT_FIELDS:
            raw = payload.get(wire_name)
            if raw is not None and str(raw).strip():
                values[attr] = str(raw).strip()

        values["is_accessible"] = _coerce_bool(payload.get("isAccessible"))
        return cls(**values)

    def to_dict(self) -> Dict[str, Any]:
        """Return the camelCase wire form, omitting unset optional fields."""
        data: Dict[str, Any] = {
            wire_name: getattr(self, attr) for wire_name, attr in _REQUIRED_FIELDS
        }
        for wire_name, attr in _OPTIONAL_TEXT_FIELDS:
            value = getattr(self, attr)
            if value is not None:
                data[wire_name] = value
        if self.is_accessible is not None:
            data["isAccessible"] = self.is_accessible
        return data

    @property
    def accessibility_label(self) -> Optional[str]:
        if self.is_accessible is None:
            return None
        return "Safe Bet" if self.is_accessible else "Deep Local"


@dataclass(frozen=True, slots=True)
class GroundingSource:
    """A citation the backend attached to a discovery answer."""

    title: str
    uri: str


@dataclass(frozen=True, slots=True)
class DiscoveryResult:
    """Events and citations returned by one discovery call."""

    events: Tuple[EventItem, ...] = field(default_factory=tuple)
    sources: Tuple[GroundingSource, ...] = field(default_factory=tuple)

    @classmethod
    def empty(cls) -> "DiscoveryResult":
        return cls()

    def __bool__(self) -> bool:
        return bool(self.events)


__all__ = ["EventItem", "GroundingSource", "DiscoveryResult", "DEFAULT_SOURCE_TITLE"]
