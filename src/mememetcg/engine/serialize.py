from __future__ import annotations


from .actions import GameAction
from .match import LogEntry, MatchState
from .zones import CardInstance, PlayerState


def action_to_dict(a: GameAction) -> dict[str, object]:
    return {
        "type": a.type,
        "player": a.player,
        "card_id": a.card_id,
        "target_id": a.target_id,
        "source_zone": a.source_zone,
        "target_zone": a.target_zone,
        "metadata": dict(a.metadata),
    }


def log_entry_to_dict(e: LogEntry) -> dict[str, object]:
    return {
        "timestamp": e.timestamp.isoformat(),
        "action": action_to_dict(e.action),
        "message": e.message,
        "phase": e.phase,
        "turn": e.turn,
    }


def _card_to_dict(c: CardInstance) -> dict[str, object]:
    return {
        "id": c.id,
        "card_no": c.card.card_no,
        "owner": c.owner,
        "location": c.location,
        "is_rest": c.is_rest,
        "attached": [_card_to_dict(a) for a in c.attached],
        "modified_power": c.modified_power,
    }


def _player_to_dict(p: PlayerState) -> dict[str, object]:
    out: dict[str, object] = {"id": p.id, "name": p.name, "life": p.life}
    for zone, cards in p.zones.items():
        out[zone] = [_card_to_dict(c) for c in cards]
    return out


def snapshot(state: MatchState) -> dict[str, object]:
    """Return a JSON-serializable canonical snapshot of the current match state."""
    return {
        "id": state.id,
        "seed": state.seed,
        "phase": state.phase,
        "turn": state.turn,
        "current_player": state.current_player,
        "winner": state.winner,
        "is_game_over": state.is_game_over,
        "started": state.started,
        "last_action": action_to_dict(state.last_action) if state.last_action else None,
        "players": {pid: _player_to_dict(p) for pid, p in state.players.items()},
        "log": [log_entry_to_dict(e) for e in state.log],
    }
