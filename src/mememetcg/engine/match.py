from __future__ import annotations

import logging
import random
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable, Protocol, Sequence

from .actions import CommandResult, GameAction, Outcome
from .types import PHASE_ORDER, PLAYER_IDS, DeckCard, Phase, PlayerId, Zone
from .validation import DeckRules
from .zones import CardInstance, PlayerState

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def _utc_now() -> datetime:
    return datetime.now(tz=timezone.utc)


@dataclass(frozen=True)
class MatchConfig:
    deck_size: int = 50
    max_copies: int = 4
    opening_hand: int = 7
    negative_energy_limit: int = 7
    min_friend_cards: int = 10
    starting_life: int = 0

    @property
    def deck_rules(self) -> DeckRules:
        return DeckRules(
            deck_size=self.deck_size,
            max_copies=self.max_copies,
            min_friend_cards=self.min_friend_cards,
        )


@dataclass(frozen=True)
class LogEntry:
    timestamp: datetime
    action: GameAction
    message: str
    phase: Phase
    turn: int


@dataclass
class MatchState:
    id: str
    config: MatchConfig
    seed: int | None
    rng: random.Random
    players: dict[PlayerId, PlayerState]
    phase: Phase = "start"
    turn: int = 1
    current_player: PlayerId = "player1"
    winner: PlayerId | None = None
    started: bool = False
    last_action: GameAction | None = None
    log: list[LogEntry] = field(default_factory=list)
    # id -> instance; the instance's location tag names the zone holding it
    instances: dict[str, CardInstance] = field(default_factory=dict)
    clock: Clock = field(default=_utc_now, repr=False)

    @property
    def is_game_over(self) -> bool:
        return self.winner is not None

    def opponent(self, player: PlayerId) -> PlayerId:
        return "player2" if player == "player1" else "player1"


class CombatResolver(Protocol):
    """Battle rules plug in here; none ship with the engine."""

    def resolve_attack(
        self, state: MatchState, attacker: CardInstance, defender: CardInstance | None
    ) -> CommandResult: ...


class MoveRule(Protocol):
    """Decides whether a generic zone-to-zone move is legal."""

    def allows(self, state: MatchState, card: CardInstance, source: Zone, target: Zone) -> bool: ...


def _reject(outcome: Outcome, error: str) -> CommandResult:
    logger.debug("command rejected: %s (%s)", outcome.value, error)
    return CommandResult.rejected(outcome, error)


def _game_over(state: MatchState) -> CommandResult | None:
    if state.is_game_over:
        return _reject(Outcome.REJECTED_GAME_OVER, "Match already ended.")
    return None


def _name(state: MatchState, player: PlayerId) -> str:
    return state.players[player].name


def _log(state: MatchState, action: GameAction, message: str) -> None:
    state.log.append(
        LogEntry(
            timestamp=state.clock(),
            action=action,
            message=message,
            phase=state.phase,
            turn=state.turn,
        )
    )
    state.last_action = action


def _move(state: MatchState, card: CardInstance, target: Zone) -> None:
    ps = state.players[card.owner]
    source = ps.zone(card.location)
    for i, c in enumerate(source):
        if c is card:
            del source[i]
            break
    else:
        raise RuntimeError(f"{card.id} is not in its {card.location} zone")
    ps.zone(target).append(card)
    card.location = target


# ---------------------------------------------------------------------------
# win conditions
# ---------------------------------------------------------------------------
def check_win_condition(state: MatchState) -> PlayerId | None:
    """Return the winner implied by the current zones, or None.

    Negative-energy overflow is checked before deck-out, player1 before
    player2; the first condition that holds decides.
    """
    limit = state.config.negative_energy_limit
    p1 = state.players["player1"]
    p2 = state.players["player2"]
    if len(p1.negative_energy_area) >= limit:
        return "player2"
    if len(p2.negative_energy_area) >= limit:
        return "player1"
    if not p1.deck:
        return "player2"
    if not p2.deck:
        return "player1"
    return None


def _finish(state: MatchState, winner: PlayerId) -> None:
    state.winner = winner
    _log(state, GameAction(type="SURRENDER", player=winner), f"{_name(state, winner)} wins!")
    logger.info("match %s ended on turn %d: %s wins", state.id, state.turn, winner)


def _resolve_winner(state: MatchState) -> None:
    if state.winner is not None:
        return
    winner = check_win_condition(state)
    if winner is not None:
        _finish(state, winner)


def end_match(state: MatchState, winner: PlayerId) -> CommandResult:
    err = _game_over(state)
    if err:
        return err
    _finish(state, winner)
    return CommandResult.accepted()


# ---------------------------------------------------------------------------
# card actions
# ---------------------------------------------------------------------------
def _draw(state: MatchState, player: PlayerId, count: int) -> list[CardInstance]:
    ps = state.players[player]
    count = max(0, count)
    drawn = ps.deck[:count]
    del ps.deck[: len(drawn)]
    for card in drawn:
        card.location = "hand"
    ps.hand.extend(drawn)
    _log(
        state,
        GameAction(type="DRAW_CARD", player=player, metadata={"count": count, "drawn": len(drawn)}),
        f"{_name(state, player)} drew {count} card(s)",
    )
    # an emptied deck can end the match
    _resolve_winner(state)
    return drawn


def draw_card(state: MatchState, player: PlayerId, count: int = 1) -> CommandResult:
    err = _game_over(state)
    if err:
        return err
    _draw(state, player, count)
    return CommandResult.accepted()


def play_card(state: MatchState, player: PlayerId, card_id: str) -> CommandResult:
    err = _game_over(state)
    if err:
        return err
    card = state.instances.get(card_id)
    if card is None or card.owner != player or card.location != "hand":
        return _reject(Outcome.REJECTED_NOT_FOUND, f"{card_id} is not in {player}'s hand.")
    if player != state.current_player:
        return _reject(Outcome.REJECTED_NOT_YOUR_TURN, "Not your turn.")
    if state.phase != "main":
        return _reject(Outcome.REJECTED_WRONG_PHASE, "Cards can only be played in the main phase.")

    _move(state, card, "field")
    _log(
        state,
        GameAction(type="PLAY_CARD", player=player, card_id=card_id, source_zone="hand", target_zone="field"),
        f'{_name(state, player)} played "{card.name}"',
    )
    return CommandResult.accepted()


def _set_rest(state: MatchState, card_id: str, rest: bool) -> CommandResult:
    err = _game_over(state)
    if err:
        return err
    card = state.instances.get(card_id)
    if card is None or card.location != "field":
        return _reject(Outcome.REJECTED_NOT_FOUND, f"{card_id} is not on the field.")
    card.is_rest = rest
    return CommandResult.accepted()


def rest_card(state: MatchState, card_id: str) -> CommandResult:
    return _set_rest(state, card_id, True)


def active_card(state: MatchState, card_id: str) -> CommandResult:
    return _set_rest(state, card_id, False)


def attack(
    state: MatchState,
    attacker_id: str,
    defender_id: str | None = None,
    resolver: CombatResolver | None = None,
) -> CommandResult:
    err = _game_over(state)
    if err:
        return err
    if resolver is None:
        return _reject(Outcome.REJECTED_UNSUPPORTED, "No combat rules are installed.")
    attacker = state.instances.get(attacker_id)
    if attacker is None or attacker.location != "field":
        return _reject(Outcome.REJECTED_NOT_FOUND, f"{attacker_id} is not on the field.")
    defender: CardInstance | None = None
    if defender_id is not None:
        defender = state.instances.get(defender_id)
        if defender is None or defender.location != "field":
            return _reject(Outcome.REJECTED_NOT_FOUND, f"{defender_id} is not on the field.")
    if attacker.owner != state.current_player:
        return _reject(Outcome.REJECTED_NOT_YOUR_TURN, "Not your turn.")

    result = resolver.resolve_attack(state, attacker, defender)
    if result.ok:
        _log(
            state,
            GameAction(type="ATTACK", player=attacker.owner, card_id=attacker_id, target_id=defender_id),
            f'{_name(state, attacker.owner)} attacked with "{attacker.name}"',
        )
        _resolve_winner(state)
    return result


def move_card(
    state: MatchState,
    card_id: str,
    source: Zone,
    target: Zone,
    rule: MoveRule | None = None,
) -> CommandResult:
    err = _game_over(state)
    if err:
        return err
    if rule is None:
        return _reject(Outcome.REJECTED_UNSUPPORTED, "No move rules are installed.")
    card = state.instances.get(card_id)
    if card is None or card.location != source:
        return _reject(Outcome.REJECTED_NOT_FOUND, f"{card_id} is not in {source}.")
    if not rule.allows(state, card, source, target):
        return _reject(Outcome.REJECTED_WRONG_PHASE, f"Moving {card_id} to {target} is not allowed now.")

    _move(state, card, target)
    _log(
        state,
        GameAction(type="MOVE_CARD", player=card.owner, card_id=card_id, source_zone=source, target_zone=target),
        f'"{card.name}" moved from {source} to {target}',
    )
    _resolve_winner(state)
    return CommandResult.accepted()


# ---------------------------------------------------------------------------
# phases and turns
# ---------------------------------------------------------------------------
def _enter_phase(state: MatchState, phase: Phase) -> None:
    state.phase = phase
    if phase == "start":
        for card in state.players[state.current_player].field:
            card.is_rest = False
    elif phase == "draw":
        # the opening hand covers turn 1
        if state.turn > 1:
            _draw(state, state.current_player, 1)
    elif phase == "energy":
        # player-chosen energy placement is not wired up yet
        pass


def _not_running(state: MatchState) -> CommandResult | None:
    err = _game_over(state)
    if err:
        return err
    if not state.started:
        return _reject(Outcome.REJECTED_WRONG_PHASE, "Match has not started.")
    return None


def start_match(state: MatchState) -> CommandResult:
    err = _game_over(state)
    if err:
        return err
    if state.started:
        return _reject(Outcome.REJECTED_WRONG_PHASE, "Match already started.")
    state.started = True
    state.phase = "draw"
    _log(state, GameAction(type="START_GAME", player="player1"), "Game start!")
    return CommandResult.accepted()


def end_turn(state: MatchState) -> CommandResult:
    err = _not_running(state)
    if err:
        return err
    state.turn += 1
    state.current_player = state.opponent(state.current_player)
    _enter_phase(state, "start")
    _log(
        state,
        GameAction(type="END_TURN", player=state.current_player),
        f"Turn {state.turn} start - {_name(state, state.current_player)}'s turn",
    )
    _resolve_winner(state)
    return CommandResult.accepted()


def advance_phase(state: MatchState) -> CommandResult:
    err = _not_running(state)
    if err:
        return err
    if state.phase == "end":
        return end_turn(state)
    nxt = PHASE_ORDER[PHASE_ORDER.index(state.phase) + 1]
    _enter_phase(state, nxt)
    return CommandResult.accepted()


# ---------------------------------------------------------------------------
# setup and queries
# ---------------------------------------------------------------------------
def _shuffle(rng: random.Random, items: list[CardInstance]) -> None:
    rng.shuffle(items)


def _instantiate(
    state: MatchState, owner: PlayerId, deck: Sequence[DeckCard], nonce: int
) -> tuple[list[CardInstance], int]:
    out: list[CardInstance] = []
    for dc in deck:
        for _ in range(dc.quantity):
            nonce += 1
            card = CardInstance(
                id=f"{owner}_{dc.card.card_no}_{nonce:04d}",
                card=dc.card,
                owner=owner,
                location="deck",
            )
            state.instances[card.id] = card
            out.append(card)
    return out, nonce


def initialize_match(
    deck1: Sequence[DeckCard],
    deck2: Sequence[DeckCard],
    *,
    seed: int | None = None,
    rng: random.Random | None = None,
    config: MatchConfig | None = None,
    clock: Clock | None = None,
    match_id: str | None = None,
) -> MatchState:
    """Build a fresh match: expand and shuffle both decks, deal opening hands.

    The returned state sits in the `start` phase; call `start_match` before
    advancing phases.
    """
    cfg = config or MatchConfig()
    rng = rng or random.Random(seed)
    players: dict[PlayerId, PlayerState] = {
        "player1": PlayerState(id="player1", name="Player 1", life=cfg.starting_life),
        "player2": PlayerState(id="player2", name="Player 2", life=cfg.starting_life),
    }
    state = MatchState(
        id=match_id or f"match_{uuid.uuid4().hex[:12]}",
        config=cfg,
        seed=seed,
        rng=rng,
        players=players,
        clock=clock or _utc_now,
    )

    nonce = 0
    for player, deck in zip(PLAYER_IDS, (deck1, deck2)):
        cards, nonce = _instantiate(state, player, deck, nonce)
        _shuffle(rng, cards)
        players[player].deck.extend(cards)

    _draw(state, "player1", cfg.opening_hand)
    _draw(state, "player2", cfg.opening_hand)
    logger.debug("initialized match %s (seed=%s)", state.id, seed)
    return state


def get_player_state(state: MatchState, player: PlayerId) -> PlayerState:
    return state.players[player]


def get_card_by_id(state: MatchState, card_id: str) -> CardInstance | None:
    return state.instances.get(card_id)


def recent_log(state: MatchState, n: int) -> list[LogEntry]:
    if n <= 0:
        return []
    return list(state.log[-n:])
