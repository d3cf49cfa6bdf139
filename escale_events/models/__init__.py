"""Domain models used across the project."""

from .event import DEFAULT_SOURCE_TITLE, DiscoveryResult, EventItem, GroundingSource  # noqa: F401

__all__ = ["EventItem", "GroundingSource", "DiscoveryResult", "DEFAULT_SOURCE_TITLE"]
