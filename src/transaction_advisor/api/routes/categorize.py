from typing import Annotated

from fastapi import APIRouter, Depends

from transaction_advisor.api.dependencies import get_classifier, get_store_optional
from transaction_advisor.api.schemas import CategorizeRequest, SuggestionsRequest
from transaction_advisor.logger import get_logger
from transaction_advisor.manager import ClassificationEngine
from transaction_advisor.models import CategorizationResult, Category
from transaction_advisor.services.state_store import StateStore
from transaction_advisor.services.suggestions import CategorySuggestion, suggest_categories

logger = get_logger(__name__)

router = APIRouter()


@router.get("/categories")
async def get_categories(
    classifier: Annotated[ClassificationEngine, Depends(get_classifier)],
) -> list[Category]:
    return classifier.categories


@router.put("/categories")
async def replace_categories(
    categories: list[Category],
    classifier: Annotated[ClassificationEngine, Depends(get_classifier)],
    store: Annotated[StateStore | None, Depends(get_store_optional)],
) -> dict[str, int | str]:
    classifier.replace_categories(categories)
    if store:
        store.save_categories(categories)
        store.save_rules(classifier.get_rules())
    logger.info("[CATEGORIES] Category list replaced (%d categories).", len(categories))
    return {"status": "success", "rules": len(classifier.get_rules())}


@router.post("/categorize", response_model=CategorizationResult)
async def categorize_transaction(
    req: CategorizeRequest,
    classifier: Annotated[ClassificationEngine, Depends(get_classifier)],
) -> CategorizationResult:
    return classifier.categorize_transaction(
        req.description,
        req.amount,
        existing_category_id=req.existing_category_id,
    )


@router.post("/suggestions")
async def get_suggestions(
    req: SuggestionsRequest,
    classifier: Annotated[ClassificationEngine, Depends(get_classifier)],
) -> list[CategorySuggestion]:
    return suggest_categories(
        classifier,
        req.transactions,
        limit=req.limit,
        min_confidence=req.min_confidence,
    )
