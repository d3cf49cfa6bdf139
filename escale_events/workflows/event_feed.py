"""Event feed state: discovery calls, favourites, and the derived display list.

The feed runs on one asyncio loop. Discovery calls are the only suspension
point; each call takes a generation token and a result is applied only if no
newer call started meanwhile (last request wins).
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import replace
from datetime import datetime
from typing import List, Optional, Tuple

from ..logging_config import logging as _  # noqa: F401  # ensure config applied early
from ..config import AUTO_REFRESH_INTERVAL
from ..models.event import DiscoveryResult, EventItem, GroundingSource
from ..services.discovery import DiscoveryGateway
from ..services.favorites import Favorites, FavoritesStore
from ..services.filtering import FilterOptions, compute_display_list

logger = logging.getLogger(__name__)


class EventFeed:
    """Owns the discovered events, the favourites and the active filters."""

    def __init__(
        self,
        gateway: Optional[DiscoveryGateway] = None,
        store: Optional[FavoritesStore] = None,
    ) -> None:
        self.gateway = gateway or DiscoveryGateway()
        self.store = store or FavoritesStore()
        self.favorites = Favorites(tuple(self.store.load()))
        self.filters = FilterOptions()
        self.events: Tuple[EventItem, ...] = ()
        self.sources: Tuple[GroundingSource, ...] = ()
        self.loading = False
        self.refreshing = False
        self.last_query = ""
        self._generation = 0

    async def _discover(self, query: str, background: bool) -> bool:
        self._generation += 1
        token = self._generation
        self.loading, self.refreshing = not background, background

        try:
            result: DiscoveryResult = await asyncio.to_thread(self.gateway.discover, query)
        except Exception as exc:  # unexpected gateway error
            logger.error("Discovery call #%d failed: %s", token, exc)
            result = DiscoveryResult.empty()
        finally:
            if token == self._generation:
                self.loading = self.refreshing = False

        if token != self._generation:
            logger.debug("Discarding stale discovery result #%d (latest #%d)", token, self._generation)
            return False

        self.events = result.events
        self.sources = result.sources
        logger.info("Feed updated with %d events", len(self.events))
        return True

    async def search(self, query: str = "") -> bool:
        """User-initiated discovery. Returns ``False`` if superseded."""
        self.last_query = query
        if self.filters.favorites_only:
            self.filters = replace(self.filters, favorites_only=False)
        return await self._discover(query, background=False)

    async def refresh(self) -> bool:
        """Background re-run of the last query."""
        return await self._discover(self.last_query, background=True)

    async def run_auto_refresh(self, interval: float = AUTO_REFRESH_INTERVAL) -> None:
        """Refresh every *interval* seconds until cancelled."""
        while True:
            await asyncio.sleep(interval)
            await self.refresh()

    def toggle_favorite(self, event: EventItem) -> bool:
        """Flip *event*'s favourite state and persist; returns the new state."""
        self.favorites = self.favorites.toggle(event)
        try:
            self.store.save(self.favorites.items)
        except Exception as exc:  # storage unreachable
            logger.error("Failed to persist favourites: %s", exc)
        return self.favorites.contains(event.id)

    def is_favorited(self, event_id: str) -> bool:
        return self.favorites.contains(event_id)

    def set_filters(self, **changes) -> FilterOptions:
        self.filters = replace(self.filters, **changes)
        return self.filters

    def display_list(self, now: Optional[datetime] = None) -> List[EventItem]:
        return compute_display_list(self.events, self.favorites.items, self.filters, now=now)


__all__ = ["EventFeed"]
