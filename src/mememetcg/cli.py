from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Sequence

from mememetcg.engine.match import MatchConfig
from mememetcg.engine.session import MatchSession
from mememetcg.engine.types import CardCatalog, DeckCard, UnknownCardError
from mememetcg.engine.validation import validate_deck
from mememetcg.paths import Paths, get_paths
from mememetcg.services.content import ContentError, ContentService
from mememetcg.services.decks import DeckStoreError, export_entries
from mememetcg.services.telemetry import TelemetryService

logger = logging.getLogger(__name__)


def _load_deck(content: ContentService, catalog: CardCatalog, path: Path | None) -> list[DeckCard]:
    raw = content.load_starter_deck() if path is None else content.load_deck_export(path)
    return catalog.resolve(export_entries(raw))


def _cmd_cards(args: argparse.Namespace, catalog: CardCatalog) -> int:
    for card in catalog.search(args.search, type=args.type, color=args.color, rarity=args.rarity):
        power = "" if card.power is None else f" {card.power}"
        print(f"{card.card_no}  {card.name} [{card.type}/{card.color}/{card.rarity}]{power}")
    return 0


def _cmd_validate(args: argparse.Namespace, content: ContentService, catalog: CardCatalog) -> int:
    deck = _load_deck(content, catalog, Path(args.deck))
    result = validate_deck(deck, MatchConfig().deck_rules)
    for err in result.errors:
        print(f"error: {err}")
    for warn in result.warnings:
        print(f"warning: {warn}")
    print("valid" if result.is_valid else "invalid")
    return 0 if result.is_valid else 1


def _cmd_simulate(
    args: argparse.Namespace, paths: Paths, content: ContentService, catalog: CardCatalog
) -> int:
    deck1 = _load_deck(content, catalog, Path(args.deck1) if args.deck1 else None)
    deck2 = _load_deck(content, catalog, Path(args.deck2) if args.deck2 else None)
    telemetry = TelemetryService(paths.telemetry_file)

    session = MatchSession()
    state = session.initialize_match(deck1, deck2, seed=args.seed)
    session.start_match()
    telemetry.match_started(state)

    # no decisions are made for the players; only automatic phase effects run
    while not state.is_game_over and state.turn <= args.max_turns:
        session.advance_phase()

    for entry in session.recent_log(args.tail):
        print(f"[T{entry.turn} {entry.phase}] {entry.message}")
    if state.winner is None:
        print(f"No winner after {args.max_turns} turns.")
    else:
        print(f"Winner: {state.players[state.winner].name} on turn {state.turn}")
    telemetry.match_ended(state)
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="mememe-tcg")
    parser.add_argument("-v", "--verbose", action="store_true", help="enable debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    cards = sub.add_parser("cards", help="list the card catalog")
    cards.add_argument("--search", default="")
    cards.add_argument("--type", choices=["friend", "support", "field"])
    cards.add_argument("--color", choices=["red", "blue", "green", "yellow", "purple", "colorless"])
    cards.add_argument("--rarity", choices=["common", "uncommon", "rare", "super_rare"])

    validate = sub.add_parser("validate", help="check an exported deck file")
    validate.add_argument("deck")

    sim = sub.add_parser("simulate", help="run phases of a match until someone wins")
    sim.add_argument("--seed", type=int, default=0)
    sim.add_argument("--deck1")
    sim.add_argument("--deck2")
    sim.add_argument("--max-turns", type=int, default=200)
    sim.add_argument("--tail", type=int, default=10)
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    paths = get_paths()
    content = ContentService(paths.data_dir, paths.schema_dir)
    try:
        catalog = content.load_catalog()
        if args.command == "cards":
            return _cmd_cards(args, catalog)
        if args.command == "validate":
            return _cmd_validate(args, content, catalog)
        return _cmd_simulate(args, paths, content, catalog)
    except (ContentError, DeckStoreError) as e:
        logger.debug("%s failed", args.command, exc_info=True)
        print(str(e), file=sys.stderr)
        return 2
    except UnknownCardError as e:
        print(f"Unknown card number: {e.args[0]}", file=sys.stderr)
        return 2


if __name__ == "__main__":
    raise SystemExit(main())
