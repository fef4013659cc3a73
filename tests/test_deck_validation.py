from __future__ import annotations

from mememetcg.engine.types import CardDefinition, DeckCard
from mememetcg.engine.validation import validate_deck
from mememetcg.paths import get_paths
from mememetcg.services.content import ContentService
from mememetcg.services.decks import export_entries


def _starter_deck() -> list[DeckCard]:
    paths = get_paths()
    content = ContentService(paths.data_dir, paths.schema_dir)
    catalog = content.load_catalog()
    return catalog.resolve(export_entries(content.load_starter_deck()))


def _bump(deck: list[DeckCard], card_no: str, delta: int) -> list[DeckCard]:
    return [
        DeckCard(card=dc.card, quantity=dc.quantity + delta) if dc.card.card_no == card_no else dc
        for dc in deck
    ]


def test_starter_deck_is_valid() -> None:
    deck = _starter_deck()
    result = validate_deck(deck)
    assert result.is_valid
    assert result.errors == []
    assert result.warnings == []


def test_fifty_one_cards_is_invalid() -> None:
    deck = _bump(_starter_deck(), "MMM-009", 1)  # 3 -> 4 copies, 51 total
    result = validate_deck(deck)
    assert not result.is_valid
    assert len(result.errors) == 1
    assert "51" in result.errors[0]


def test_five_copies_is_invalid() -> None:
    deck = _bump(_bump(_starter_deck(), "MMM-001", 1), "MMM-009", -1)  # still 50 total
    result = validate_deck(deck)
    assert not result.is_valid
    assert len(result.errors) == 1
    assert "Sleepy Cat" in result.errors[0]
    assert "MMM-001" in result.errors[0]
    assert "5" in result.errors[0]


def test_all_errors_are_collected() -> None:
    deck = _bump(_bump(_starter_deck(), "MMM-001", 2), "MMM-002", 1)  # 53 total, two cards over
    result = validate_deck(deck)
    assert not result.is_valid
    assert len(result.errors) == 3
    assert "53" in result.errors[0]


def test_few_friends_warns_but_stays_valid() -> None:
    supports = [
        DeckCard(
            card=CardDefinition(card_no=f"S-{i:02d}", name=f"Support {i}", type="support", color="colorless", rarity="common"),
            quantity=4,
        )
        for i in range(12)
    ]
    friend = DeckCard(
        card=CardDefinition(card_no="F-01", name="Lonely Friend", type="friend", color="red", rarity="common"),
        quantity=2,
    )
    result = validate_deck(supports + [friend])
    assert result.is_valid
    assert result.errors == []
    assert len(result.warnings) == 1
    assert result.to_dict() == {"isValid": True, "errors": [], "warnings": result.warnings}


def test_empty_deck_reports_count_and_warning() -> None:
    result = validate_deck([])
    assert not result.is_valid
    assert "0" in result.errors[0]
    assert len(result.warnings) == 1


def test_repeated_card_number_counts_combined_copies() -> None:
    deck = _starter_deck()
    sleepy = next(dc for dc in deck if dc.card.card_no == "MMM-001")
    for card_no in ("MMM-009", "MMM-010", "MMM-011", "MMM-012"):
        deck = _bump(deck, card_no, -1)
    deck.append(DeckCard(card=sleepy.card, quantity=4))  # 50 total, 8 copies of MMM-001

    result = validate_deck(deck)
    assert not result.is_valid
    assert len(result.errors) == 1
    assert "MMM-001" in result.errors[0]
    assert "(currently 8)" in result.errors[0]
