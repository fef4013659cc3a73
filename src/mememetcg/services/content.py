from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Mapping

from jsonschema import Draft202012Validator

from mememetcg.engine.types import CardCatalog, CardDefinition

logger = logging.getLogger(__name__)


class ContentError(RuntimeError):
    pass


def _load_json(path: Path) -> object:
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError as e:
        raise ContentError(f"Missing content file: {path}") from e
    except json.JSONDecodeError as e:
        raise ContentError(f"Invalid JSON in {path}: {e}") from e


def load_schema(schema_dir: Path, name: str) -> object:
    return _load_json(schema_dir / f"{name}.schema.json")


def validate_json(instance: object, schema: object, *, context: str) -> None:
    validator = Draft202012Validator(schema)
    errors = sorted(validator.iter_errors(instance), key=lambda e: [str(p) for p in e.path])
    if errors:
        lines = [f"Schema validation failed for {context}:"]
        for err in errors[:10]:
            loc = "/".join(str(p) for p in err.absolute_path)
            lines.append(f"- {loc}: {err.message}")
        raise ContentError("\n".join(lines))


def _require_str(obj: Mapping[str, object], key: str) -> str:
    v = obj.get(key)
    if not isinstance(v, str):
        raise ContentError(f"Expected string for {key}")
    return v


def _optional_int(obj: Mapping[str, object], key: str) -> int | None:
    v = obj.get(key)
    if v is None:
        return None
    if not isinstance(v, int):
        raise ContentError(f"Expected int for {key}")
    return v


def _optional_str(obj: Mapping[str, object], key: str) -> str | None:
    v = obj.get(key)
    if v is None:
        return None
    if not isinstance(v, str):
        raise ContentError(f"Expected string for {key}")
    return v


def _parse_abilities(raw: object) -> tuple[str, ...]:
    if not isinstance(raw, list):
        raise ContentError("abilities must be a list")
    return tuple(item for item in raw if isinstance(item, str))


def parse_card(item: Mapping[str, object]) -> CardDefinition:
    return CardDefinition(
        card_no=_require_str(item, "card_no"),
        name=_require_str(item, "name"),
        type=_require_str(item, "type"),  # type: ignore[arg-type]
        color=_require_str(item, "color"),  # type: ignore[arg-type]
        rarity=_require_str(item, "rarity"),  # type: ignore[arg-type]
        level=_optional_int(item, "level"),
        cost=_optional_int(item, "cost"),
        power=_optional_int(item, "power"),
        abilities=_parse_abilities(item.get("abilities", [])),
        flavor_text=_optional_str(item, "flavor_text"),
    )


class ContentService:
    def __init__(self, data_dir: Path, schema_dir: Path) -> None:
        self._data_dir = data_dir
        self._schema_dir = schema_dir

    def load_catalog(self) -> CardCatalog:
        cards_path = self._data_dir / "cards.json"
        raw = _load_json(cards_path)
        validate_json(raw, load_schema(self._schema_dir, "cards"), context=str(cards_path))

        if not isinstance(raw, dict):
            raise ContentError("cards.json must be an object")
        raw_cards = raw.get("cards")
        if not isinstance(raw_cards, list):
            raise ContentError("cards.json.cards must be a list")

        cards: dict[str, CardDefinition] = {}
        for item in raw_cards:
            if not isinstance(item, dict):
                continue
            card = parse_card(item)
            if card.card_no in cards:
                raise ContentError(f"Duplicate card number: {card.card_no}")
            cards[card.card_no] = card
        logger.info("loaded %d cards from %s", len(cards), cards_path)
        return CardCatalog(cards=cards)

    def load_deck_export(self, path: Path) -> dict[str, object]:
        """Read a deck file in the export format and check its shape."""
        raw = _load_json(path)
        validate_json(raw, load_schema(self._schema_dir, "deck_export"), context=str(path))
        if not isinstance(raw, dict):
            raise ContentError(f"{path} must be an object")
        return raw

    def load_starter_deck(self) -> dict[str, object]:
        return self.load_deck_export(self._data_dir / "starter_deck.json")

    def validate_all(self) -> None:
        # Load is validation (schema + parse)
        _ = self.load_catalog()
        _ = self.load_starter_deck()
