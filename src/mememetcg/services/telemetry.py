from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Mapping

from mememetcg.engine.match import MatchState

logger = logging.getLogger(__name__)


@dataclass
class TelemetryService:
    """Append-only JSONL record of match lifecycle events."""

    path: Path

    def log(self, event_type: str, payload: Mapping[str, object]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        rec = {
            "ts": datetime.now(tz=timezone.utc).isoformat(),
            "type": event_type,
            "payload": dict(payload),
        }
        with self.path.open("a", encoding="utf-8") as f:
            f.write(json.dumps(rec, ensure_ascii=False) + "\n")
        logger.debug("telemetry %s -> %s", event_type, self.path)

    def match_started(self, state: MatchState) -> None:
        self.log(
            "match_started",
            {
                "match_id": state.id,
                "seed": state.seed,
                "deck_sizes": {pid: len(ps.deck) + len(ps.hand) for pid, ps in state.players.items()},
            },
        )

    def match_ended(self, state: MatchState) -> None:
        self.log(
            "match_ended",
            {
                "match_id": state.id,
                "winner": state.winner,
                "turn": state.turn,
                "log_entries": len(state.log),
            },
        )

    def read(self) -> list[dict[str, object]]:
        if not self.path.exists():
            return []
        return [json.loads(line) for line in self.path.read_text(encoding="utf-8").splitlines() if line.strip()]
