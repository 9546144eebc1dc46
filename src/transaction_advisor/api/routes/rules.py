from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException
from pydantic import ValidationError

from transaction_advisor.api.dependencies import get_classifier, get_store_optional
from transaction_advisor.api.schemas import RuleCreate, RuleUpdate
from transaction_advisor.manager import ClassificationEngine
from transaction_advisor.models import ClassificationRule
from transaction_advisor.services.state_store import StateStore

router = APIRouter(prefix="/rules")


def _persist(classifier: ClassificationEngine, store: StateStore | None) -> None:
    if store:
        store.save_rules(classifier.get_rules())


@router.get("")
async def list_rules(
    classifier: Annotated[ClassificationEngine, Depends(get_classifier)],
) -> list[ClassificationRule]:
    return classifier.get_rules()


@router.get("/stats")
async def rule_stats(
    classifier: Annotated[ClassificationEngine, Depends(get_classifier)],
) -> dict[str, int]:
    return classifier.get_categorization_stats()


@router.post("")
async def create_rule(
    req: RuleCreate,
    classifier: Annotated[ClassificationEngine, Depends(get_classifier)],
    store: Annotated[StateStore | None, Depends(get_store_optional)],
) -> ClassificationRule:
    try:
        rule = classifier.add_custom_rule(
            req.keywords,
            req.category_id,
            confidence=req.confidence,
            active=req.active,
        )
    except ValidationError as e:
        raise HTTPException(status_code=422, detail=str(e)) from e
    _persist(classifier, store)
    return rule


@router.patch("/{rule_id}")
async def update_rule(
    rule_id: str,
    req: RuleUpdate,
    classifier: Annotated[ClassificationEngine, Depends(get_classifier)],
    store: Annotated[StateStore | None, Depends(get_store_optional)],
) -> dict[str, str]:
    try:
        updated = classifier.update_rule(rule_id, **req.model_dump(exclude_unset=True))
    except ValidationError as e:
        raise HTTPException(status_code=422, detail=str(e)) from e
    if not updated:
        raise HTTPException(status_code=404, detail="Rule not found")
    _persist(classifier, store)
    return {"status": "updated", "id": rule_id}


@router.delete("/{rule_id}")
async def delete_rule(
    rule_id: str,
    classifier: Annotated[ClassificationEngine, Depends(get_classifier)],
    store: Annotated[StateStore | None, Depends(get_store_optional)],
) -> dict[str, str]:
    if not classifier.delete_rule(rule_id):
        raise HTTPException(status_code=404, detail="Rule not found")
    _persist(classifier, store)
    return {"status": "deleted", "id": rule_id}
