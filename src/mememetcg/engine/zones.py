from __future__ import annotations

from dataclasses import dataclass, field

from .types import ZONES, CardDefinition, PlayerId, Zone


@dataclass
class CardInstance:
    id: str
    card: CardDefinition
    owner: PlayerId
    location: Zone
    is_rest: bool = False
    attached: list["CardInstance"] = field(default_factory=list)
    modified_power: int | None = None

    @property
    def name(self) -> str:
        return self.card.name

    @property
    def power(self) -> int | None:
        if self.modified_power is not None:
            return self.modified_power
        return self.card.power


def _empty_zones() -> dict[Zone, list[CardInstance]]:
    return {z: [] for z in ZONES}


@dataclass
class PlayerState:
    id: PlayerId
    name: str
    zones: dict[Zone, list[CardInstance]] = field(default_factory=_empty_zones)
    life: int = 0  # reserved; no win condition reads it yet

    def zone(self, zone: Zone) -> list[CardInstance]:
        return self.zones[zone]

    @property
    def deck(self) -> list[CardInstance]:
        return self.zones["deck"]

    @property
    def hand(self) -> list[CardInstance]:
        return self.zones["hand"]

    @property
    def field(self) -> list[CardInstance]:
        return self.zones["field"]

    @property
    def energy_area(self) -> list[CardInstance]:
        return self.zones["energy_area"]

    @property
    def negative_energy_area(self) -> list[CardInstance]:
        return self.zones["negative_energy_area"]

    @property
    def trash(self) -> list[CardInstance]:
        return self.zones["trash"]

    def card_count(self) -> int:
        return sum(len(cards) for cards in self.zones.values())
