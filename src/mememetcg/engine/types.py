from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Literal

CardType = Literal["friend", "support", "field"]
Color = Literal["red", "blue", "green", "yellow", "purple", "colorless"]
Rarity = Literal["common", "uncommon", "rare", "super_rare"]

Phase = Literal["start", "draw", "energy", "main", "end"]
PlayerId = Literal["player1", "player2"]
Zone = Literal["deck", "hand", "field", "energy_area", "negative_energy_area", "trash"]

PHASE_ORDER: tuple[Phase, ...] = ("start", "draw", "energy", "main", "end")
PLAYER_IDS: tuple[PlayerId, ...] = ("player1", "player2")
ZONES: tuple[Zone, ...] = ("deck", "hand", "field", "energy_area", "negative_energy_area", "trash")


class UnknownCardError(KeyError):
    """Raised when a card number has no definition in the catalog."""


@dataclass(frozen=True)
class CardDefinition:
    card_no: str
    name: str
    type: CardType
    color: Color
    rarity: Rarity
    level: int | None = None
    cost: int | None = None
    power: int | None = None
    abilities: tuple[str, ...] = ()
    flavor_text: str | None = None


@dataclass(frozen=True)
class DeckCard:
    """One deck-list line: a definition and how many copies of it."""

    card: CardDefinition
    quantity: int


@dataclass(frozen=True)
class CardCatalog:
    """Immutable card catalog used by the engine."""

    cards: dict[str, CardDefinition]

    def definition_for(self, card_no: str) -> CardDefinition | None:
        return self.cards.get(card_no)

    def get(self, card_no: str) -> CardDefinition:
        card = self.cards.get(card_no)
        if card is None:
            raise UnknownCardError(card_no)
        return card

    def all_numbers(self) -> Sequence[str]:
        return sorted(self.cards.keys())

    def resolve(self, entries: Sequence[tuple[str, int]]) -> list[DeckCard]:
        """Attach definitions to (card number, quantity) pairs."""
        return [DeckCard(card=self.get(card_no), quantity=qty) for card_no, qty in entries]

    def search(
        self,
        term: str = "",
        *,
        type: CardType | None = None,
        color: Color | None = None,
        rarity: Rarity | None = None,
    ) -> list[CardDefinition]:
        needle = term.lower()
        out: list[CardDefinition] = []
        for card_no in self.all_numbers():
            card = self.cards[card_no]
            if needle and needle not in card.name.lower() and needle not in card.card_no.lower():
                continue
            if type is not None and card.type != type:
                continue
            if color is not None and card.color != color:
                continue
            if rarity is not None and card.rarity != rarity:
                continue
            out.append(card)
        return out
