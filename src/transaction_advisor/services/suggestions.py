from pydantic import BaseModel

from transaction_advisor.core import settings
from transaction_advisor.logger import get_logger
from transaction_advisor.manager import ClassificationEngine
from transaction_advisor.models import CategorizationResult, TransactionRecord

logger = get_logger(__name__)


class CategorySuggestion(BaseModel):
    transaction_id: str
    description: str
    suggestion: CategorizationResult


def suggest_categories(
    engine: ClassificationEngine,
    transactions: list[TransactionRecord],
    *,
    limit: int | None = None,
    min_confidence: float | None = None,
) -> list[CategorySuggestion]:
    """
    Suggest categories for the uncategorized transactions of a batch.

    Only the first ``limit`` uncategorized transactions are analysed and only
    suggestions above ``min_confidence`` are returned.
    """
    if limit is None:
        limit = settings.get_env_int(
            "SUGGESTION_BATCH_LIMIT",
            settings.DEFAULT_SUGGESTION_BATCH_LIMIT,
            min_value=1,
        )
    if min_confidence is None:
        min_confidence = settings.get_env_float(
            "SUGGESTION_MIN_CONFIDENCE",
            settings.DEFAULT_SUGGESTION_MIN_CONFIDENCE,
        )

    uncategorized = [t for t in transactions if not t.category_id]
    suggestions: list[CategorySuggestion] = []
    for transaction in uncategorized[:limit]:
        result = engine.categorize_transaction(transaction.description, transaction.amount)
        if result.category_id and result.confidence > min_confidence:
            suggestions.append(CategorySuggestion(
                transaction_id=transaction.id,
                description=transaction.description,
                suggestion=result,
            ))

    logger.info(
        "[SUGGEST] %d suggestions for %d uncategorized transactions (analysed %d).",
        len(suggestions),
        len(uncategorized),
        min(len(uncategorized), limit),
    )
    return suggestions
