"""Favourites: an immutable snapshot value plus its persistent store."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Iterable, Iterator, List, Optional, Tuple

from ..config import FAVORITES_STORAGE_KEY
from ..models.event import EventItem
from .storage import KeyValueStorage, get_storage

logger = logging.getLogger(__name__)


def _dedupe(items: Tuple[EventItem, ...]) -> Tuple[EventItem, ...]:
    # Last snapshot wins, position of the first occurrence is kept.
    latest = {item.id: item for item in items}
    return tuple(latest.values())


@dataclass(frozen=True)
class Favorites:
    """Saved events, keyed by id. Every transition returns a new value."""

    items: Tuple[EventItem, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "items", _dedupe(tuple(self.items)))

    def __iter__(self) -> Iterator[EventItem]:
        return iter(self.items)

    def __len__(self) -> int:
        return len(self.items)

    def contains(self, event_id: str) -> bool:
        return any(item.id == event_id for item in self.items)

    def toggle(self, event: EventItem) -> "Favorites":
        """Remove every entry with ``event.id`` or append the snapshot."""
        if self.contains(event.id):
            return Favorites(tuple(item for item in self.items if item.id != event.id))
        return Favorites(self.items + (event,))

    def ids(self) -> List[str]:
        return [item.id for item in self.items]


def is_favorited(favorites: Favorites, event_id: str) -> bool:
    return favorites.contains(event_id)


class FavoritesStore:
    """Reads and writes the whole favourites list under one storage key."""

    def __init__(
        self,
        storage: Optional[KeyValueStorage] = None,
        key: str = FAVORITES_STORAGE_KEY,
    ) -> None:
        self.storage = storage if storage is not None else get_storage()
        self.key = key

    def load(self) -> List[EventItem]:
        """Return the saved events; missing or corrupt data yields ``[]``."""
        try:
            raw = self.storage.get_item(self.key)
        except Exception as exc:  # storage unreachable
            logger.error("Failed to read favourites from storage: %s", exc)
            return []
        if raw is None:
            return []

        try:
            records = json.loads(raw)
        except ValueError as exc:
            logger.error("Failed to parse favourites, starting empty: %s", exc)
            return []
        if not isinstance(records, list):
            logger.error("Stored favourites are not a list, starting empty")
            return []

        items: List[EventItem] = []
        for record in records:
            try:
                items.append(EventItem.from_dict(record))
            except ValueError as exc:
                logger.warning("Dropping unreadable favourite: %s", exc)
        logger.info("Loaded %d favourites", len(items))
        return items

    def save(self, items: Iterable[EventItem]) -> None:
        """Write the entire favourites list (not a delta)."""
        payload = json.dumps([item.to_dict() for item in items], ensure_ascii=False)
        self.storage.set_item(self.key, payload)


__all__ = ["Favorites", "FavoritesStore", "is_favorited"]
