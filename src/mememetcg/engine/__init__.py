"""Deterministic, headless rules engine for Mememe TCG.

IMPORTANT: This package must never perform file or network I/O.
"""

from .actions import CommandResult, GameAction, Outcome
from .match import MatchConfig, MatchState, initialize_match
from .session import MatchSession
from .types import CardCatalog, CardDefinition, CardType, DeckCard, Phase, PlayerId, UnknownCardError, Zone
from .validation import DeckValidation, validate_deck

__all__ = [
    "CardCatalog",
    "CardDefinition",
    "CardType",
    "CommandResult",
    "DeckCard",
    "DeckValidation",
    "GameAction",
    "MatchConfig",
    "MatchSession",
    "MatchState",
    "Outcome",
    "Phase",
    "PlayerId",
    "UnknownCardError",
    "Zone",
    "initialize_match",
    "validate_deck",
]
