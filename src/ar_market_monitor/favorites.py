"""Persisted set of favorite instruments."""
from __future__ import annotations

import json
import logging
from typing import Iterator, Optional, Protocol

from .models import Favorite, InstrumentClass

LOGGER = logging.getLogger(__name__)

FAVORITES_KEY = "marketFavorites"


class BlobStoreLike(Protocol):
    def get(self, key: str) -> Optional[str]: ...

    def put(self, key: str, value: str) -> None: ...


def _decode(raw: Optional[str]) -> list[Favorite]:
    if not raw:
        return []
    try:
        items = json.loads(raw)
    except ValueError:
        LOGGER.warning("Ignoring unreadable favorites blob")
        return []
    if not isinstance(items, list):
        LOGGER.warning("Ignoring favorites blob that is not a list")
        return []

    favorites: list[Favorite] = []
    for item in items:
        try:
            favorite = Favorite(str(item["id"]), InstrumentClass(item["type"]))
        except (KeyError, TypeError, ValueError):
            LOGGER.debug("Skipping malformed favorite entry %r", item)
            continue
        if favorite not in favorites:
            favorites.append(favorite)
    return favorites


def _encode(favorites: list[Favorite]) -> str:
    return json.dumps(
        [{"id": fav.identifier, "type": fav.instrument_class.value} for fav in favorites]
    )


class FavoritesSet:
    """Set of ``(identifier, class)`` pairs, written back in full on every toggle."""

    def __init__(self, store: BlobStoreLike, key: str = FAVORITES_KEY) -> None:
        self.store = store
        self.key = key
        self._items = _decode(store.get(key))
        LOGGER.debug("Loaded %d favorites", len(self._items))

    def toggle(self, identifier: str, instrument_class: InstrumentClass) -> bool:
        """Flip membership and persist; return whether the pair is now a favorite."""

        favorite = Favorite(identifier, instrument_class)
        present = favorite not in self._items
        if present:
            items = [*self._items, favorite]
        else:
            items = [item for item in self._items if item != favorite]
        # Memory only changes once the write has gone through.
        self.store.put(self.key, _encode(items))
        self._items = items
        return present

    def is_favorite(self, identifier: str, instrument_class: InstrumentClass) -> bool:
        return Favorite(identifier, instrument_class) in self._items

    def __iter__(self) -> Iterator[Favorite]:
        return iter(list(self._items))

    def __len__(self) -> int:
        return len(self._items)


__all__ = ["FavoritesSet", "FAVORITES_KEY"]
