from datetime import date
from decimal import Decimal

from rapidfuzz.distance import LCSseq

from transaction_advisor.domain.text import normalize_description, significant_words


def _as_decimal(value: Decimal | float | int) -> Decimal:
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def amount_similarity(
    first: Decimal | float,
    second: Decimal | float,
    tolerance: float,
    exact: bool = False,
) -> float:
    """
    Score two amounts in [0, 1].

    ``tolerance`` is a fraction of the average absolute amount; a difference
    at the tolerance edge scores 0, identical amounts score 1.
    """
    a = _as_decimal(first)
    b = _as_decimal(second)
    if exact:
        return 1.0 if a == b else 0.0

    difference = abs(a - b)
    if difference == 0:
        return 1.0

    allowed = (abs(a) + abs(b)) / 2 * _as_decimal(tolerance)
    if difference <= allowed:
        return float(1 - difference / allowed)
    return 0.0


def date_similarity(first: date, second: date, days_tolerance: int) -> float:
    day_diff = abs((first - second).days)
    if day_diff == 0:
        return 1.0
    if day_diff <= days_tolerance:
        return 1 - day_diff / days_tolerance
    return 0.0


def jaccard(first: set[str], second: set[str]) -> float:
    union = first | second
    if not union:
        return 0.0
    return len(first & second) / len(union)


def lcs_ratio(first: str, second: str) -> float:
    total = len(first) + len(second)
    if total == 0:
        return 0.0
    return 2 * LCSseq.similarity(first, second) / total


def description_similarity(first: str, second: str) -> float:
    normalized_first = normalize_description(first)
    normalized_second = normalize_description(second)
    if normalized_first == normalized_second:
        return 1.0

    words_first = significant_words(normalized_first)
    words_second = significant_words(normalized_second)
    # No significant words on either side means there is nothing to compare
    if not words_first and not words_second:
        return 0.0

    return max(
        jaccard(words_first, words_second),
        lcs_ratio(normalized_first, normalized_second),
    )
