from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Literal

from .types import PlayerId, Zone

ActionType = Literal[
    "START_GAME",
    "DRAW_CARD",
    "PLAY_CARD",
    "ATTACK",
    "ACTIVATE_ABILITY",
    "REST_CARD",
    "ACTIVE_CARD",
    "MOVE_CARD",
    "END_TURN",
    "SURRENDER",
]


@dataclass(frozen=True)
class GameAction:
    type: ActionType
    player: PlayerId
    card_id: str | None = None
    target_id: str | None = None
    source_zone: Zone | None = None
    target_zone: Zone | None = None
    metadata: dict[str, object] = field(default_factory=dict)


class Outcome(str, Enum):
    ACCEPTED = "accepted"
    REJECTED_NOT_FOUND = "rejected_not_found"
    REJECTED_WRONG_PHASE = "rejected_wrong_phase"
    REJECTED_NOT_YOUR_TURN = "rejected_not_your_turn"
    REJECTED_GAME_OVER = "rejected_game_over"
    REJECTED_UNSUPPORTED = "rejected_unsupported"


@dataclass(frozen=True)
class CommandResult:
    outcome: Outcome
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.outcome is Outcome.ACCEPTED

    @staticmethod
    def accepted() -> "CommandResult":
        return CommandResult(outcome=Outcome.ACCEPTED)

    @staticmethod
    def rejected(outcome: Outcome, error: str) -> "CommandResult":
        return CommandResult(outcome=outcome, error=error)
