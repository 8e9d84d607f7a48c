"""Tests for the persisted favorites set."""
import json

import pytest

from ar_market_monitor.db import BlobStore, create_db_engine, read_blob, write_blob
from ar_market_monitor.favorites import FAVORITES_KEY, FavoritesSet
from ar_market_monitor.models import Favorite, InstrumentClass

from conftest import MemoryStore


def test_toggle_adds_then_removes(store) -> None:
    favorites = FavoritesSet(store)

    assert favorites.toggle("GGAL", InstrumentClass.EQUITY) is True
    assert favorites.is_favorite("GGAL", InstrumentClass.EQUITY)

    assert favorites.toggle("GGAL", InstrumentClass.EQUITY) is False
    assert not favorites.is_favorite("GGAL", InstrumentClass.EQUITY)


def test_toggle_twice_restores_membership(store) -> None:
    favorites = FavoritesSet(store)
    favorites.toggle("AL30", InstrumentClass.SOVEREIGN_BOND)
    before = list(favorites)

    favorites.toggle("GD30", InstrumentClass.SOVEREIGN_BOND)
    favorites.toggle("GD30", InstrumentClass.SOVEREIGN_BOND)

    assert set(favorites) == set(before)


def test_membership_matches_both_identifier_and_class(store) -> None:
    favorites = FavoritesSet(store)
    favorites.toggle("AL30", InstrumentClass.FX_MEP)

    assert favorites.is_favorite("AL30", InstrumentClass.FX_MEP)
    assert not favorites.is_favorite("AL30", InstrumentClass.SOVEREIGN_BOND)


def test_every_toggle_writes_full_set(store) -> None:
    favorites = FavoritesSet(store)
    favorites.toggle("GGAL", InstrumentClass.EQUITY)
    favorites.toggle("AL30", InstrumentClass.FX_MEP)

    assert store.writes == 2
    assert json.loads(store.data[FAVORITES_KEY]) == [
        {"id": "GGAL", "type": "equity"},
        {"id": "AL30", "type": "fx_mep"},
    ]


class FailingStore(MemoryStore):
    def put(self, key: str, value: str) -> None:
        raise OSError("disk full")


def test_failed_write_leaves_membership_unchanged() -> None:
    store = FailingStore({FAVORITES_KEY: json.dumps([{"id": "GGAL", "type": "equity"}])})
    favorites = FavoritesSet(store)

    with pytest.raises(OSError):
        favorites.toggle("AL30", InstrumentClass.SOVEREIGN_BOND)
    with pytest.raises(OSError):
        favorites.toggle("GGAL", InstrumentClass.EQUITY)

    assert list(favorites) == [Favorite("GGAL", InstrumentClass.EQUITY)]


def test_loads_persisted_favorites_once() -> None:
    store = MemoryStore(
        {
            FAVORITES_KEY: json.dumps(
                [
                    {"id": "GGAL", "type": "equity"},
                    {"id": "GGAL", "type": "equity"},
                    {"id": "X", "type": "crypto"},
                    {"type": "equity"},
                ]
            )
        }
    )

    favorites = FavoritesSet(store)
    store.data[FAVORITES_KEY] = "[]"

    assert list(favorites) == [Favorite("GGAL", InstrumentClass.EQUITY)]


def test_unreadable_blob_starts_empty() -> None:
    assert len(FavoritesSet(MemoryStore({FAVORITES_KEY: "{not json"}))) == 0
    assert len(FavoritesSet(MemoryStore({FAVORITES_KEY: '{"id": "GGAL"}'}))) == 0


def test_blob_store_round_trips_through_sqlite(tmp_path) -> None:
    url = f"sqlite:///{tmp_path / 'favorites.db'}"
    favorites = FavoritesSet(BlobStore.from_url(url))
    favorites.toggle("GGAL", InstrumentClass.EQUITY)
    favorites.toggle("AL30D", InstrumentClass.SOVEREIGN_BOND)

    reloaded = FavoritesSet(BlobStore.from_url(url))

    assert reloaded.is_favorite("GGAL", InstrumentClass.EQUITY)
    assert reloaded.is_favorite("AL30D", InstrumentClass.SOVEREIGN_BOND)
    assert len(reloaded) == 2


def test_write_blob_overwrites_previous_value(tmp_path) -> None:
    store = BlobStore(create_db_engine(f"sqlite:///{tmp_path / 'blobs.db'}"))

    write_blob(store.engine, "k", "first")
    write_blob(store.engine, "k", "second")

    assert read_blob(store.engine, "k") == "second"
    assert read_blob(store.engine, "missing") is None
