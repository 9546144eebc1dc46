from transaction_advisor.domain.similarity import (
    amount_similarity,
    date_similarity,
    description_similarity,
)
from transaction_advisor.models import (
    DuplicateDetectionSettings,
    SuggestedAction,
    TransactionRecord,
)

AMOUNT_WEIGHT = 0.40
DESCRIPTION_WEIGHT = 0.35
DATE_WEIGHT = 0.15
ACCOUNT_WEIGHT = 0.10
CATEGORY_WEIGHT = 0.05

REMOVE_ABOVE = 0.95
MERGE_ABOVE = 0.8

REASON_SAME_AMOUNT = "valor idêntico"
REASON_SIMILAR_AMOUNT = "valor similar"
REASON_SIMILAR_DESCRIPTION = "descrição similar"
REASON_CLOSE_DATES = "datas próximas"
REASON_SAME_ACCOUNT = "mesma conta"
REASON_FALLBACK = "múltiplos critérios"


def pair_score(
    first: TransactionRecord,
    second: TransactionRecord,
    settings: DuplicateDetectionSettings,
) -> float:
    """
    Weighted likelihood in [0, 1] that two records are the same event.

    The sum is divided by the weights actually applied, so disabling the
    account or category factor removes evidence without lowering the score.
    """
    score = 0.0
    applied = 0.0

    score += AMOUNT_WEIGHT * amount_similarity(
        first.amount,
        second.amount,
        settings.amount_tolerance,
        exact=settings.exact_match_required,
    )
    applied += AMOUNT_WEIGHT

    score += DESCRIPTION_WEIGHT * description_similarity(first.description, second.description)
    applied += DESCRIPTION_WEIGHT

    score += DATE_WEIGHT * date_similarity(first.date, second.date, settings.days_tolerance)
    applied += DATE_WEIGHT

    if settings.consider_account:
        score += ACCOUNT_WEIGHT * (1.0 if first.account_id == second.account_id else 0.0)
        applied += ACCOUNT_WEIGHT

    if settings.consider_category and first.category_id and second.category_id:
        score += CATEGORY_WEIGHT * (1.0 if first.category_id == second.category_id else 0.0)
        applied += CATEGORY_WEIGHT

    return score / applied if applied > 0 else 0.0


def describe_match(
    first: TransactionRecord,
    second: TransactionRecord,
    settings: DuplicateDetectionSettings,
) -> str:
    reasons: list[str] = []

    if first.amount == second.amount:
        reasons.append(REASON_SAME_AMOUNT)
    elif amount_similarity(
        first.amount,
        second.amount,
        settings.amount_tolerance,
        exact=settings.exact_match_required,
    ) > 0.9:
        reasons.append(REASON_SIMILAR_AMOUNT)

    if description_similarity(first.description, second.description) > 0.9:
        reasons.append(REASON_SIMILAR_DESCRIPTION)

    if abs((first.date - second.date).days) <= 1:
        reasons.append(REASON_CLOSE_DATES)

    if settings.consider_account and first.account_id == second.account_id:
        reasons.append(REASON_SAME_ACCOUNT)

    return ", ".join(reasons) if reasons else REASON_FALLBACK


def suggest_action(confidence: float) -> SuggestedAction:
    if confidence > REMOVE_ABOVE:
        return "remove_duplicates"
    if confidence > MERGE_ABOVE:
        return "merge"
    return "keep_all"
