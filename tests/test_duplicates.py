from datetime import date
from decimal import Decimal
from unittest.mock import patch

import pytest
from pydantic import ValidationError

from transaction_advisor.duplicates.detection import (
    DuplicateDetectionEngine,
    apply_duplicate_action,
)
from transaction_advisor.duplicates.scoring import describe_match, pair_score, suggest_action
from transaction_advisor.models import DuplicateDetectionSettings, DuplicateGroup, TransactionRecord


def _tx(
    tx_id: str,
    description: str = "Supermercado Pao de Acucar",
    amount: str = "150.00",
    day: int = 1,
    account: str = "A",
    category: str | None = None,
) -> TransactionRecord:
    return TransactionRecord(
        id=tx_id,
        description=description,
        amount=Decimal(amount),
        date=date(2024, 3, day),
        account_id=account,
        category_id=category,
    )


@pytest.fixture
def scenario() -> list[TransactionRecord]:
    return [
        _tx("1", "Supermercado Pao de Acucar", day=1),
        _tx("2", "Supermercado Pão de Açúcar", day=2),
    ]


def test_identical_copy_scores_one() -> None:
    settings = DuplicateDetectionSettings(consider_category=True)
    original = _tx("1", category="food")
    copy = original.model_copy(update={"id": "2"})
    assert pair_score(original, copy, settings) == pytest.approx(1.0)


def test_pair_score_bounds_on_degenerate_inputs() -> None:
    settings = DuplicateDetectionSettings()
    pairs = [
        (_tx("1", "", "0"), _tx("2", "", "0")),
        (_tx("1", "", "0"), _tx("2", "abc", "-5", day=30, account="B")),
        (_tx("1", "!!!", "-10"), _tx("2", "???", "10")),
        (_tx("1", "a", "1000000"), _tx("2", "b", "0.01", day=28)),
    ]
    for first, second in pairs:
        assert 0.0 <= pair_score(first, second, settings) <= 1.0


def test_disabled_account_factor_does_not_penalize() -> None:
    first = _tx("1", account="A")
    second = _tx("2", account="B")

    assert pair_score(first, second, DuplicateDetectionSettings()) == pytest.approx(0.9)
    assert pair_score(
        first, second, DuplicateDetectionSettings(consider_account=False)
    ) == pytest.approx(1.0)


def test_category_factor_only_when_both_have_one() -> None:
    settings = DuplicateDetectionSettings(consider_category=True)

    assert pair_score(
        _tx("1", category="food"), _tx("2", category="fun"), settings
    ) == pytest.approx(1.0 / 1.05)
    assert pair_score(_tx("1", category="food"), _tx("2"), settings) == pytest.approx(1.0)


def test_suggest_action_thresholds() -> None:
    assert suggest_action(0.97) == "remove_duplicates"
    assert suggest_action(0.95) == "merge"
    assert suggest_action(0.85) == "merge"
    assert suggest_action(0.8) == "keep_all"
    assert suggest_action(0.5) == "keep_all"


def test_describe_match() -> None:
    settings = DuplicateDetectionSettings()
    assert describe_match(_tx("1"), _tx("2", day=2), settings) == (
        "valor idêntico, descrição similar, datas próximas, mesma conta"
    )
    assert describe_match(
        _tx("1", amount="150.00"), _tx("2", amount="150.01", day=5, account="B"), settings
    ) == "valor similar, descrição similar"
    assert describe_match(
        _tx("1", "Conta luz", "100.00"),
        _tx("2", "Pagamento boleto", "200.00", day=9, account="B"),
        settings,
    ) == "múltiplos critérios"


def test_scenario_groups_accented_copies(scenario: list[TransactionRecord]) -> None:
    groups = DuplicateDetectionEngine().detect_duplicates(scenario)

    assert len(groups) == 1
    group = groups[0]
    assert [t.id for t in group.transactions] == ["1", "2"]
    assert group.id == "group_1"
    # (0.40 + 0.35 + 0.15 * 6/7 + 0.10) / 1.0
    assert group.confidence == pytest.approx(0.9785714, abs=1e-6)
    assert group.suggested_action in ("merge", "remove_duplicates")
    assert group.reason == "valor idêntico, descrição similar, datas próximas, mesma conta"


def test_exact_match_required_drops_amount_evidence(scenario: list[TransactionRecord]) -> None:
    pair = [scenario[0], _tx("2", "Supermercado Pão de Açúcar", "150.01", day=2)]
    strict = DuplicateDetectionSettings(exact_match_required=True)

    # (0 + 0.35 + 0.15 * 6/7 + 0.10) / 1.0
    assert pair_score(pair[0], pair[1], strict) == pytest.approx(0.5785714, abs=1e-6)
    assert DuplicateDetectionEngine(strict).detect_duplicates(pair) == []

    # With tolerance the cent difference still counts as the same amount
    groups = DuplicateDetectionEngine().detect_duplicates(pair)
    assert len(groups) == 1
    assert groups[0].reason.startswith("valor similar")


def test_threshold_is_inclusive(scenario: list[TransactionRecord]) -> None:
    engine = DuplicateDetectionEngine()

    with patch("transaction_advisor.duplicates.detection.pair_score", return_value=0.7):
        groups = engine.detect_duplicates(scenario)
    assert len(groups) == 1
    assert groups[0].confidence == pytest.approx(0.7)
    assert groups[0].suggested_action == "keep_all"

    with patch("transaction_advisor.duplicates.detection.pair_score", return_value=0.6999):
        assert engine.detect_duplicates(scenario) == []


def test_small_amounts_are_ignored() -> None:
    pair = [_tx("1", "Cafe", "9.99"), _tx("2", "Cafe", "9.99")]

    assert DuplicateDetectionEngine().detect_duplicates(pair) == []
    groups = DuplicateDetectionEngine(ignore_small_amounts=False).detect_duplicates(pair)
    assert len(groups) == 1


def test_small_amounts_never_join_a_group() -> None:
    transactions = [_tx("1", "Cafe", "10.00"), _tx("2", "Cafe", "9.99"), _tx("3", "Cafe", "10.00")]
    groups = DuplicateDetectionEngine().detect_duplicates(transactions)
    assert [[t.id for t in g.transactions] for g in groups] == [["1", "3"]]


def test_groups_do_not_overlap() -> None:
    transactions = [
        _tx("1"),
        _tx("2", day=2),
        _tx("3", "Netflix assinatura", "39.90", day=10),
        _tx("4", day=3),
        _tx("5", "Netflix assinatura", "39.90", day=10),
        _tx("6", "Conta de luz Enel", "210.00", day=20),
    ]
    groups = DuplicateDetectionEngine().detect_duplicates(transactions)

    ids = [t.id for group in groups for t in group.transactions]
    assert len(ids) == len(set(ids))
    assert sorted(ids) == ["1", "2", "3", "4", "5"]
    assert all(len(group.transactions) >= 2 for group in groups)


def test_groups_sorted_by_confidence() -> None:
    transactions = [
        _tx("a1", "Conta de luz Enel", "210.00", day=1),
        _tx("b1", "Netflix assinatura", "39.90", day=5),
        _tx("a2", "Conta de luz Enel", "210.00", day=4),
        _tx("b2", "Netflix assinatura", "39.90", day=5),
    ]
    groups = DuplicateDetectionEngine().detect_duplicates(transactions)

    assert [group.id for group in groups] == ["group_b1", "group_a1"]
    assert groups[0].confidence == pytest.approx(1.0)
    assert groups[0].suggested_action == "remove_duplicates"
    # Three days apart: (0.40 + 0.35 + 0.15 * 4/7 + 0.10)
    assert groups[1].confidence == pytest.approx(0.9357143, abs=1e-6)
    assert groups[1].suggested_action == "merge"


def test_candidates_ordered_by_score() -> None:
    transactions = [_tx("1", day=1), _tx("2", day=4), _tx("3", day=1)]
    groups = DuplicateDetectionEngine().detect_duplicates(transactions)
    assert [t.id for t in groups[0].transactions] == ["1", "3", "2"]


def _scores_by_id(scores: dict[frozenset[str], float]):
    def score(first: TransactionRecord, second: TransactionRecord, settings) -> float:
        return scores[frozenset((first.id, second.id))]
    return score


def test_anchor_relative_and_mutual_grouping() -> None:
    transactions = [_tx("a"), _tx("b"), _tx("c")]
    scores = _scores_by_id({
        frozenset(("a", "b")): 0.9,
        frozenset(("a", "c")): 0.8,
        frozenset(("b", "c")): 0.5,
    })

    with patch("transaction_advisor.duplicates.detection.pair_score", side_effect=scores):
        loose = DuplicateDetectionEngine().detect_duplicates(transactions)
        strict = DuplicateDetectionEngine(require_mutual_match=True).detect_duplicates(transactions)

    assert [[t.id for t in g.transactions] for g in loose] == [["a", "b", "c"]]
    assert loose[0].confidence == pytest.approx((0.9 + 0.8 + 0.5) / 3)
    assert [[t.id for t in g.transactions] for g in strict] == [["a", "b"]]


def test_empty_input() -> None:
    assert DuplicateDetectionEngine().detect_duplicates([]) == []


def test_settings_update_and_copy() -> None:
    engine = DuplicateDetectionEngine(days_tolerance=3)
    assert engine.get_settings().days_tolerance == 3

    updated = engine.update_settings(amount_tolerance=0.05, consider_account=False)
    assert updated.amount_tolerance == 0.05
    assert updated.days_tolerance == 3
    assert engine.get_settings() == updated

    # No range validation: callers own sane values
    engine.update_settings(amount_tolerance=-1)
    assert engine.get_settings().amount_tolerance == -1


@pytest.fixture
def group() -> DuplicateGroup:
    return DuplicateGroup(
        id="group_1",
        transactions=[_tx("1", day=1), _tx("2", day=5), _tx("3", day=3)],
        confidence=0.9,
        reason="valor idêntico",
        suggested_action="merge",
    )


def test_apply_remove_and_keep_first(group: DuplicateGroup) -> None:
    for action in ("remove_duplicates", "keep_first"):
        result = apply_duplicate_action(group, action)
        assert result.to_delete == ["2", "3"]
        assert result.to_update is None
        assert result.message


def test_apply_keep_latest(group: DuplicateGroup) -> None:
    result = apply_duplicate_action(group, "keep_latest")
    assert result.to_delete == ["3", "1"]


def test_apply_merge(group: DuplicateGroup) -> None:
    result = DuplicateDetectionEngine.apply_duplicate_action(group, "merge")
    assert result.to_delete == ["2", "3"]
    assert result.to_update is not None
    assert result.to_update.id == "1"
    assert result.to_update.updates == {"description": "Supermercado Pao de Acucar (merged)"}
    # The group itself is left untouched
    assert group.transactions[0].description == "Supermercado Pao de Acucar"


def test_apply_keep_all(group: DuplicateGroup) -> None:
    result = apply_duplicate_action(group, "keep_all")
    assert result.to_delete == []
    assert result.to_update is None


def test_apply_unknown_action(group: DuplicateGroup) -> None:
    with pytest.raises(ValueError):
        apply_duplicate_action(group, "shred")  # type: ignore[arg-type]


def test_settings_reject_unknown_fields() -> None:
    engine = DuplicateDetectionEngine()
    with pytest.raises(ValidationError):
        engine.update_settings(days_tolerence=3)
    with pytest.raises(ValidationError):
        DuplicateDetectionEngine(amount_tolerence=0.1)
    assert engine.get_settings() == DuplicateDetectionSettings()


@pytest.mark.parametrize("size", [0, 1])
def test_group_needs_two_transactions(size: int) -> None:
    with pytest.raises(ValidationError):
        DuplicateGroup(
            id="group_1",
            transactions=[_tx(str(i)) for i in range(size)],
            confidence=0.9,
            reason="valor idêntico",
            suggested_action="merge",
        )
