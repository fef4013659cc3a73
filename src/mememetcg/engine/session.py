from __future__ import annotations

import random
from typing import Sequence

from . import match as rules
from .actions import CommandResult
from .match import Clock, CombatResolver, LogEntry, MatchConfig, MatchState, MoveRule
from .serialize import snapshot
from .types import DeckCard, PlayerId, Zone
from .zones import CardInstance, PlayerState


class MatchNotInitializedError(RuntimeError):
    pass


class MatchSession:
    """Owns at most one match and is the only writer of its state.

    Callers that share a session across threads must serialize access
    themselves; separate sessions share nothing.
    """

    def __init__(
        self,
        config: MatchConfig | None = None,
        *,
        combat: CombatResolver | None = None,
        move_rule: MoveRule | None = None,
        clock: Clock | None = None,
    ) -> None:
        self.config = config or MatchConfig()
        self.combat = combat
        self.move_rule = move_rule
        self._clock = clock
        self._state: MatchState | None = None

    @property
    def state(self) -> MatchState:
        if self._state is None:
            raise MatchNotInitializedError("No match in progress.")
        return self._state

    @property
    def has_match(self) -> bool:
        return self._state is not None

    # -------- Commands --------
    def initialize_match(
        self,
        deck1: Sequence[DeckCard],
        deck2: Sequence[DeckCard],
        *,
        seed: int | None = None,
        rng: random.Random | None = None,
        match_id: str | None = None,
    ) -> MatchState:
        self._state = rules.initialize_match(
            deck1,
            deck2,
            seed=seed,
            rng=rng,
            config=self.config,
            clock=self._clock,
            match_id=match_id,
        )
        return self._state

    def start_match(self) -> CommandResult:
        return rules.start_match(self.state)

    def advance_phase(self) -> CommandResult:
        return rules.advance_phase(self.state)

    def end_turn(self) -> CommandResult:
        return rules.end_turn(self.state)

    def draw_card(self, player: PlayerId, count: int = 1) -> CommandResult:
        return rules.draw_card(self.state, player, count)

    def play_card(self, player: PlayerId, card_id: str) -> CommandResult:
        return rules.play_card(self.state, player, card_id)

    def rest_card(self, card_id: str) -> CommandResult:
        return rules.rest_card(self.state, card_id)

    def active_card(self, card_id: str) -> CommandResult:
        return rules.active_card(self.state, card_id)

    def attack(self, attacker_id: str, defender_id: str | None = None) -> CommandResult:
        return rules.attack(self.state, attacker_id, defender_id, resolver=self.combat)

    def move_card(self, card_id: str, source: Zone, target: Zone) -> CommandResult:
        return rules.move_card(self.state, card_id, source, target, rule=self.move_rule)

    def end_match(self, winner: PlayerId) -> CommandResult:
        return rules.end_match(self.state, winner)

    def reset_match(self) -> None:
        self._state = None

    # -------- Queries --------
    def snapshot(self) -> dict[str, object]:
        return snapshot(self.state)

    def get_player_state(self, player: PlayerId) -> PlayerState:
        return rules.get_player_state(self.state, player)

    def get_card_by_id(self, card_id: str) -> CardInstance | None:
        return rules.get_card_by_id(self.state, card_id)

    def check_win_condition(self) -> PlayerId | None:
        return rules.check_win_condition(self.state)

    def recent_log(self, n: int = 10) -> list[LogEntry]:
        return rules.recent_log(self.state, n)
