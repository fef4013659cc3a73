from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

HOME_ENV = "MEMEME_TCG_HOME"


@dataclass(frozen=True)
class Paths:
    repo_root: Path
    data_dir: Path
    schema_dir: Path
    userdata_dir: Path

    @property
    def decks_file(self) -> Path:
        return self.userdata_dir / "decks.json"

    @property
    def telemetry_file(self) -> Path:
        return self.userdata_dir / "telemetry.jsonl"

    @property
    def starter_deck_file(self) -> Path:
        return self.data_dir / "starter_deck.json"


def get_paths() -> Paths:
    # src/mememetcg/paths.py -> parents: [mememetcg, src, repo_root]
    repo_root = Path(__file__).resolve().parents[2]
    data_dir = Path(__file__).resolve().parent / "data"
    schema_dir = data_dir / "schemas"
    home = os.environ.get(HOME_ENV)
    userdata_dir = Path(home) if home else repo_root / "userdata"
    return Paths(
        repo_root=repo_root,
        data_dir=data_dir,
        schema_dir=schema_dir,
        userdata_dir=userdata_dir,
    )
