"""Top-level package for the escale-events project.

Exposes the feed controller and the one-shot discovery helper so callers can
do `from escale_events import EventFeed` or `escale_events.discover_events("jazz")`.
"""

from importlib import metadata as _metadata

try:
    __version__: str = _metadata.version("escale-events")
except _metadata.PackageNotFoundError:  # pragma: no cover - running from source
    __version__ = "0.0.0"

from .services.discovery import discover_events  # convenience re-export
from .workflows.event_feed import EventFeed  # convenience re-export

__all__ = ["EventFeed", "discover_events", "__version__"]
