from __future__ import annotations

import json
import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, Mapping

from mememetcg.engine.types import CardCatalog, DeckCard
from mememetcg.engine.validation import DeckRules, DeckValidation, validate_deck
from mememetcg.services.content import ContentError, load_schema, validate_json

logger = logging.getLogger(__name__)

STORE_VERSION = 1


class DeckStoreError(RuntimeError):
    pass


def _now() -> datetime:
    return datetime.now(tz=timezone.utc)


def _parse_ts(raw: object) -> datetime:
    if not isinstance(raw, str):
        raise DeckStoreError("Invalid timestamp")
    try:
        return datetime.fromisoformat(raw)
    except ValueError as e:
        raise DeckStoreError(f"Invalid timestamp: {raw}") from e


@dataclass
class DeckEntry:
    card_no: str
    quantity: int

    @staticmethod
    def from_dict(d: Mapping[str, object]) -> "DeckEntry":
        cno = d.get("card_no")
        qty = d.get("quantity")
        if not isinstance(cno, str) or not isinstance(qty, int):
            raise DeckStoreError("Invalid deck entry")
        return DeckEntry(card_no=cno, quantity=qty)

    def to_dict(self) -> dict[str, object]:
        return {"card_no": self.card_no, "quantity": self.quantity}


@dataclass
class SavedDeck:
    id: str
    name: str
    created_at: datetime
    updated_at: datetime
    description: str | None = None
    cards: list[DeckEntry] = field(default_factory=list)

    def entry(self, card_no: str) -> DeckEntry | None:
        for e in self.cards:
            if e.card_no == card_no:
                return e
        return None

    @staticmethod
    def from_dict(d: Mapping[str, object]) -> "SavedDeck":
        did = d.get("id")
        name = d.get("name")
        if not isinstance(did, str) or not isinstance(name, str):
            raise DeckStoreError("Invalid saved deck")
        desc = d.get("description")
        cards_raw = d.get("cards", [])
        cards: list[DeckEntry] = []
        if isinstance(cards_raw, list):
            for e in cards_raw:
                if isinstance(e, dict):
                    cards.append(DeckEntry.from_dict(e))
        return SavedDeck(
            id=did,
            name=name,
            description=desc if isinstance(desc, str) else None,
            cards=cards,
            created_at=_parse_ts(d.get("created_at")),
            updated_at=_parse_ts(d.get("updated_at")),
        )

    def to_dict(self) -> dict[str, object]:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "cards": [c.to_dict() for c in self.cards],
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
        }


def export_entries(raw: Mapping[str, object]) -> list[tuple[str, int]]:
    """Pull (card number, quantity) pairs out of an exported deck document."""
    cards = raw.get("cards")
    if not isinstance(cards, list):
        raise DeckStoreError("Exported deck has no card list")
    out: list[tuple[str, int]] = []
    for item in cards:
        if not isinstance(item, dict):
            raise DeckStoreError("Invalid exported deck entry")
        cno = item.get("cardNo")
        qty = item.get("quantity")
        if not isinstance(cno, str) or not isinstance(qty, int):
            raise DeckStoreError("Invalid exported deck entry")
        out.append((cno, qty))
    return out


class DeckStore:
    def __init__(
        self,
        path: Path,
        catalog: CardCatalog,
        schema_dir: Path,
        *,
        rules: DeckRules | None = None,
        clock: Callable[[], datetime] = _now,
    ) -> None:
        self._path = path
        self._schema_dir = schema_dir
        self.catalog = catalog
        self.rules = rules or DeckRules()
        self._clock = clock
        self.decks = self._load()

    def _load(self) -> list[SavedDeck]:
        if not self._path.exists():
            return []
        try:
            raw = json.loads(self._path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as e:
            raise DeckStoreError(f"Invalid JSON in {self._path}: {e}") from e
        try:
            validate_json(raw, load_schema(self._schema_dir, "decks"), context=str(self._path))
        except ContentError as e:
            raise DeckStoreError(str(e)) from e
        assert isinstance(raw, dict)
        decks = [SavedDeck.from_dict(d) for d in raw.get("decks", []) if isinstance(d, dict)]
        logger.info("loaded %d decks from %s", len(decks), self._path)
        return decks

    def save(self) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        doc = {"version": STORE_VERSION, "decks": [d.to_dict() for d in self.decks]}
        self._path.write_text(json.dumps(doc, indent=2, ensure_ascii=False), encoding="utf-8")
        logger.debug("saved %d decks to %s", len(self.decks), self._path)

    def _touch(self, deck: SavedDeck) -> None:
        deck.updated_at = self._clock()
        self.save()

    def _require(self, deck_id: str) -> SavedDeck:
        deck = self.get_deck(deck_id)
        if deck is None:
            raise DeckStoreError(f"Deck not found: {deck_id}")
        return deck

    # -------- Decks --------
    def list_decks(self) -> list[SavedDeck]:
        return list(self.decks)

    def get_deck(self, deck_id: str) -> SavedDeck | None:
        for d in self.decks:
            if d.id == deck_id:
                return d
        return None

    def create_deck(self, name: str, description: str | None = None) -> SavedDeck:
        ts = self._clock()
        deck = SavedDeck(
            id=f"deck_{uuid.uuid4().hex[:12]}",
            name=name,
            description=description,
            created_at=ts,
            updated_at=ts,
        )
        self.decks.append(deck)
        self.save()
        return deck

    def update_deck(self, deck_id: str, *, name: str | None = None, description: str | None = None) -> SavedDeck:
        deck = self._require(deck_id)
        if name is not None:
            deck.name = name
        if description is not None:
            deck.description = description
        self._touch(deck)
        return deck

    def delete_deck(self, deck_id: str) -> None:
        self.decks = [d for d in self.decks if d.id != deck_id]
        self.save()

    # -------- Cards --------
    def add_card(self, deck_id: str, card_no: str, quantity: int = 1) -> DeckEntry:
        if quantity < 1:
            raise DeckStoreError(f"Quantity must be at least 1 (got {quantity})")
        deck = self._require(deck_id)
        self.catalog.get(card_no)
        entry = deck.entry(card_no)
        if entry is None:
            entry = DeckEntry(card_no=card_no, quantity=min(quantity, self.rules.max_copies))
            deck.cards.append(entry)
        else:
            entry.quantity = min(entry.quantity + quantity, self.rules.max_copies)
        self._touch(deck)
        return entry

    def remove_card(self, deck_id: str, card_no: str) -> None:
        deck = self._require(deck_id)
        deck.cards = [e for e in deck.cards if e.card_no != card_no]
        self._touch(deck)

    def update_card_quantity(self, deck_id: str, card_no: str, quantity: int) -> bool:
        if quantity < 1 or quantity > self.rules.max_copies:
            return False
        deck = self._require(deck_id)
        entry = deck.entry(card_no)
        if entry is None:
            return False
        entry.quantity = quantity
        self._touch(deck)
        return True

    def total_cards(self, deck: SavedDeck) -> int:
        return sum(e.quantity for e in deck.cards)

    def resolve(self, deck: SavedDeck) -> list[DeckCard]:
        return self.catalog.resolve([(e.card_no, e.quantity) for e in deck.cards])

    def validate_deck(self, deck_id: str) -> DeckValidation:
        deck = self.get_deck(deck_id)
        if deck is None:
            return DeckValidation(is_valid=False, errors=["Deck not found"])
        return validate_deck(self.resolve(deck), self.rules)

    # -------- Import / export --------
    def export_deck(self, deck_id: str) -> str:
        deck = self.get_deck(deck_id)
        if deck is None:
            return ""
        data = {
            "name": deck.name,
            "description": deck.description,
            "cards": [{"cardNo": e.card_no, "quantity": e.quantity} for e in deck.cards],
        }
        return json.dumps(data, indent=2, ensure_ascii=False)

    def import_deck(self, deck_data: str) -> SavedDeck:
        try:
            raw = json.loads(deck_data)
        except json.JSONDecodeError as e:
            raise DeckStoreError(f"Invalid deck data: {e}") from e
        try:
            validate_json(raw, load_schema(self._schema_dir, "deck_export"), context="imported deck")
        except ContentError as e:
            raise DeckStoreError(str(e)) from e
        merged: dict[str, int] = {}
        for card_no, qty in export_entries(raw):
            if self.catalog.definition_for(card_no) is None:
                raise DeckStoreError(f"Unknown card number: {card_no}")
            merged[card_no] = merged.get(card_no, 0) + qty

        desc = raw.get("description")
        deck = self.create_deck(str(raw["name"]), desc if isinstance(desc, str) else None)
        deck.cards = [DeckEntry(card_no=c, quantity=q) for c, q in merged.items()]
        self._touch(deck)
        return deck

