from datetime import date
from decimal import Decimal

import pytest

from transaction_advisor.manager import ClassificationEngine
from transaction_advisor.models import Category, TransactionRecord
from transaction_advisor.services.suggestions import suggest_categories


def _tx(tx_id: str, description: str, category: str | None = None) -> TransactionRecord:
    return TransactionRecord(
        id=tx_id,
        description=description,
        amount=Decimal("25.00"),
        date=date(2024, 3, 1),
        account_id="A",
        category_id=category,
    )


@pytest.fixture
def engine(categories: list[Category]) -> ClassificationEngine:
    return ClassificationEngine(categories)


def test_suggestions_for_uncategorized_only(engine: ClassificationEngine) -> None:
    transactions = [
        _tx("1", "Uber *trip"),
        _tx("2", "Farmacia Sao Joao", category="health"),
        _tx("3", "Transferencia recebida"),
        _tx("4", "Netflix"),
    ]

    suggestions = suggest_categories(engine, transactions, limit=20, min_confidence=0.6)

    assert [(s.transaction_id, s.suggestion.category_id) for s in suggestions] == [
        ("1", "transport"),
        ("4", "fun"),
    ]


def test_suggestions_respect_limit_and_confidence(engine: ClassificationEngine) -> None:
    transactions = [_tx("1", "Netflix"), _tx("2", "Uber")]

    assert len(suggest_categories(engine, transactions, limit=1, min_confidence=0.6)) == 1
    # Netflix scores 0.9, Uber 1.0 (keyword equals the whole description)
    only_strong = suggest_categories(engine, transactions, limit=20, min_confidence=0.95)
    assert [s.transaction_id for s in only_strong] == ["2"]


def test_suggestion_defaults_come_from_environment(
    engine: ClassificationEngine, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.setenv("SUGGESTION_BATCH_LIMIT", "1")
    transactions = [_tx("1", "Netflix"), _tx("2", "Uber")]
    assert [s.transaction_id for s in suggest_categories(engine, transactions)] == ["1"]


def test_suggestions_do_not_teach_the_engine(engine: ClassificationEngine) -> None:
    suggest_categories(engine, [_tx("1", "Uber")], limit=20, min_confidence=0.6)
    assert engine.get_categorization_stats()["learning_entries"] == 0
