from __future__ import annotations

import json

import pytest

from mememetcg.engine.actions import CommandResult, Outcome
from mememetcg.engine.match import MatchState
from mememetcg.engine.session import MatchNotInitializedError, MatchSession
from mememetcg.engine.types import DeckCard
from mememetcg.engine.zones import CardInstance
from mememetcg.paths import get_paths
from mememetcg.services.content import ContentService
from mememetcg.services.decks import export_entries


def _load_deck() -> list[DeckCard]:
    paths = get_paths()
    content = ContentService(paths.data_dir, paths.schema_dir)
    catalog = content.load_catalog()
    return catalog.resolve(export_entries(content.load_starter_deck()))


class Fizzle:
    def resolve_attack(
        self, state: MatchState, attacker: CardInstance, defender: CardInstance | None
    ) -> CommandResult:
        return CommandResult.rejected(Outcome.REJECTED_WRONG_PHASE, "No attacks this turn.")


def test_commands_require_a_match() -> None:
    session = MatchSession()
    assert not session.has_match
    with pytest.raises(MatchNotInitializedError):
        session.start_match()


def test_session_queries() -> None:
    deck = _load_deck()
    session = MatchSession()
    state = session.initialize_match(deck, deck, seed=11)
    session.start_match()

    p1 = session.get_player_state("player1")
    assert p1 is state.players["player1"]
    card = p1.hand[0]
    assert session.get_card_by_id(card.id) is card
    assert session.get_card_by_id("nope") is None
    assert session.check_win_condition() is None
    assert [e.message for e in session.recent_log(1)] == ["Game start!"]


def test_snapshot_is_json_serializable() -> None:
    deck = _load_deck()
    session = MatchSession()
    session.initialize_match(deck, deck, seed=11, match_id="m1")
    session.start_match()

    snap = session.snapshot()
    text = json.dumps(snap)
    assert json.loads(text) == snap
    assert snap["id"] == "m1"
    assert snap["phase"] == "draw"
    players = snap["players"]
    assert isinstance(players, dict)
    assert len(players["player1"]["hand"]) == 7
    assert snap["last_action"]["type"] == "START_GAME"


def test_reset_discards_state() -> None:
    deck = _load_deck()
    session = MatchSession()
    session.initialize_match(deck, deck, seed=11)
    session.reset_match()
    assert not session.has_match
    with pytest.raises(MatchNotInitializedError):
        _ = session.state


def test_installed_combat_resolver_decides() -> None:
    deck = _load_deck()
    session = MatchSession(combat=Fizzle())
    state = session.initialize_match(deck, deck, seed=11)
    session.start_match()
    for _ in range(2):
        session.advance_phase()
    card = state.players["player1"].hand[0]
    session.play_card("player1", card.id)
    log_len = len(state.log)

    res = session.attack(card.id)
    assert res.outcome is Outcome.REJECTED_WRONG_PHASE
    assert len(state.log) == log_len


def test_concession_ends_match() -> None:
    deck = _load_deck()
    session = MatchSession()
    session.initialize_match(deck, deck, seed=11)
    session.start_match()
    assert session.end_match("player2").ok
    assert session.state.winner == "player2"
    assert session.advance_phase().outcome is Outcome.REJECTED_GAME_OVER
