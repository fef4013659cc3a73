from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field

from .types import DeckCard


@dataclass(frozen=True)
class DeckRules:
    deck_size: int = 50
    max_copies: int = 4
    min_friend_cards: int = 10


@dataclass(frozen=True)
class DeckValidation:
    is_valid: bool
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, object]:
        return {"isValid": self.is_valid, "errors": list(self.errors), "warnings": list(self.warnings)}


def total_cards(deck: Sequence[DeckCard]) -> int:
    return sum(dc.quantity for dc in deck)


def validate_deck(deck: Sequence[DeckCard], rules: DeckRules | None = None) -> DeckValidation:
    """Check a deck list against the construction rules.

    Every applicable error and warning is collected; warnings never make a
    deck invalid.
    """
    r = rules or DeckRules()
    errors: list[str] = []
    warnings: list[str] = []

    total = total_cards(deck)
    if total != r.deck_size:
        errors.append(f"Deck must contain exactly {r.deck_size} cards (currently {total}).")

    # a card number listed more than once counts once, with the combined quantity
    copies: dict[str, int] = {}
    names: dict[str, str] = {}
    for dc in deck:
        copies[dc.card.card_no] = copies.get(dc.card.card_no, 0) + dc.quantity
        names.setdefault(dc.card.card_no, dc.card.name)
    for card_no, qty in copies.items():
        if qty > r.max_copies:
            errors.append(
                f'"{names[card_no]}" ({card_no}) is limited to {r.max_copies} copies '
                f"(currently {qty})."
            )

    by_type: dict[str, int] = {}
    for dc in deck:
        by_type[dc.card.type] = by_type.get(dc.card.type, 0) + dc.quantity
    if by_type.get("friend", 0) < r.min_friend_cards:
        warnings.append("There may be too few friend cards in this deck.")

    return DeckValidation(is_valid=not errors, errors=errors, warnings=warnings)
