from __future__ import annotations

import json
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

from mememetcg.engine.types import CardCatalog, UnknownCardError
from mememetcg.paths import get_paths
from mememetcg.services.content import ContentService
from mememetcg.services.decks import DeckStore, DeckStoreError


def _load_cards() -> CardCatalog:
    paths = get_paths()
    return ContentService(paths.data_dir, paths.schema_dir).load_catalog()


class TickingClock:
    def __init__(self) -> None:
        self.now = datetime(2024, 1, 1, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        self.now += timedelta(seconds=1)
        return self.now


def _store(path: Path, clock: TickingClock | None = None) -> DeckStore:
    return DeckStore(path, _load_cards(), get_paths().schema_dir, clock=clock or TickingClock())


def _starter_text() -> str:
    return get_paths().starter_deck_file.read_text(encoding="utf-8")


def test_create_and_reload(tmp_path) -> None:
    path = tmp_path / "decks.json"
    store = _store(path)
    deck = store.create_deck("Cats", "All the cats")
    store.add_card(deck.id, "MMM-001", 3)

    again = _store(path)
    loaded = again.get_deck(deck.id)
    assert loaded is not None
    assert loaded.name == "Cats"
    assert loaded.description == "All the cats"
    assert [(e.card_no, e.quantity) for e in loaded.cards] == [("MMM-001", 3)]
    assert loaded.created_at == deck.created_at


def test_add_card_caps_at_four(tmp_path) -> None:
    store = _store(tmp_path / "decks.json")
    deck = store.create_deck("Capped")
    store.add_card(deck.id, "MMM-002", 3)
    entry = store.add_card(deck.id, "MMM-002", 3)
    assert entry.quantity == 4
    fresh = store.add_card(deck.id, "MMM-003", 9)
    assert fresh.quantity == 4
    assert store.total_cards(deck) == 8


def test_add_unknown_card_raises(tmp_path) -> None:
    store = _store(tmp_path / "decks.json")
    deck = store.create_deck("Bad")
    with pytest.raises(UnknownCardError):
        store.add_card(deck.id, "XXX-000")
    assert deck.cards == []


def test_quantity_updates_and_removal(tmp_path) -> None:
    store = _store(tmp_path / "decks.json")
    deck = store.create_deck("Edit")
    store.add_card(deck.id, "MMM-004", 2)

    assert not store.update_card_quantity(deck.id, "MMM-004", 0)
    assert not store.update_card_quantity(deck.id, "MMM-004", 5)
    assert not store.update_card_quantity(deck.id, "MMM-005", 2)
    assert store.update_card_quantity(deck.id, "MMM-004", 4)
    assert deck.cards[0].quantity == 4

    store.remove_card(deck.id, "MMM-004")
    assert deck.cards == []


def test_mutations_bump_updated_at(tmp_path) -> None:
    store = _store(tmp_path / "decks.json")
    deck = store.create_deck("Clock")
    created = deck.updated_at
    store.update_deck(deck.id, name="Renamed")
    assert deck.name == "Renamed"
    assert deck.updated_at > created
    assert deck.created_at == created


def test_delete_and_missing(tmp_path) -> None:
    store = _store(tmp_path / "decks.json")
    deck = store.create_deck("Gone")
    store.delete_deck(deck.id)
    assert store.get_deck(deck.id) is None
    assert store.list_decks() == []
    with pytest.raises(DeckStoreError):
        store.update_deck(deck.id, name="x")
    assert store.export_deck(deck.id) == ""

    result = store.validate_deck(deck.id)
    assert not result.is_valid
    assert result.errors == ["Deck not found"]


def test_import_export_round_trip(tmp_path) -> None:
    store = _store(tmp_path / "decks.json")
    deck = store.import_deck(_starter_text())
    assert deck.name == "Starter Deck"
    assert store.total_cards(deck) == 50
    assert store.validate_deck(deck.id).is_valid

    exported = json.loads(store.export_deck(deck.id))
    assert exported == json.loads(_starter_text())

    resolved = store.resolve(deck)
    assert sum(dc.quantity for dc in resolved) == 50


def test_import_rejects_bad_input(tmp_path) -> None:
    store = _store(tmp_path / "decks.json")
    with pytest.raises(DeckStoreError):
        store.import_deck("{not json")
    with pytest.raises(DeckStoreError):
        store.import_deck(json.dumps({"cards": []}))
    with pytest.raises(DeckStoreError):
        store.import_deck(json.dumps({"name": "x", "cards": [{"cardNo": "ZZZ-1", "quantity": 1}]}))
    assert store.list_decks() == []


def test_small_deck_fails_validation(tmp_path) -> None:
    store = _store(tmp_path / "decks.json")
    deck = store.create_deck("Tiny")
    store.add_card(deck.id, "MMM-001", 4)
    result = store.validate_deck(deck.id)
    assert not result.is_valid
    assert "4" in result.errors[0]
    assert result.warnings


def test_corrupt_store_raises(tmp_path) -> None:
    path = tmp_path / "decks.json"
    path.write_text(json.dumps({"version": 1, "decks": [{"id": "d"}]}), encoding="utf-8")
    with pytest.raises(DeckStoreError):
        _store(path)


def test_add_card_rejects_non_positive_quantity(tmp_path) -> None:
    path = tmp_path / "decks.json"
    store = _store(path)
    deck = store.create_deck("Guarded")
    store.add_card(deck.id, "MMM-001", 2)

    with pytest.raises(DeckStoreError):
        store.add_card(deck.id, "MMM-001", 0)
    with pytest.raises(DeckStoreError):
        store.add_card(deck.id, "MMM-001", -3)
    with pytest.raises(DeckStoreError):
        store.add_card(deck.id, "MMM-002", 0)

    loaded = _store(path).get_deck(deck.id)
    assert loaded is not None
    assert [(e.card_no, e.quantity) for e in loaded.cards] == [("MMM-001", 2)]


def test_import_merges_repeated_card_numbers(tmp_path) -> None:
    store = _store(tmp_path / "decks.json")
    data = {
        "name": "Doubled",
        "cards": [
            {"cardNo": "MMM-001", "quantity": 4},
            {"cardNo": "MMM-002", "quantity": 1},
            {"cardNo": "MMM-001", "quantity": 4},
        ],
    }
    deck = store.import_deck(json.dumps(data))
    assert [(e.card_no, e.quantity) for e in deck.cards] == [("MMM-001", 8), ("MMM-002", 1)]

    result = store.validate_deck(deck.id)
    assert not result.is_valid
    assert any("MMM-001" in e and "(currently 8)" in e for e in result.errors)
