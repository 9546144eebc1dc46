from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException
from pydantic import ValidationError

from transaction_advisor.api.dependencies import get_detector, get_store_optional
from transaction_advisor.api.schemas import (
    ApplyActionRequest,
    DetectRequest,
    DuplicateSettingsUpdate,
)
from transaction_advisor.duplicates.detection import DuplicateDetectionEngine, apply_duplicate_action
from transaction_advisor.models import (
    DuplicateActionResult,
    DuplicateDetectionSettings,
    DuplicateGroup,
)
from transaction_advisor.services.state_store import StateStore

router = APIRouter(prefix="/duplicates")


@router.post("/detect")
async def detect_duplicates(
    req: DetectRequest,
    detector: Annotated[DuplicateDetectionEngine, Depends(get_detector)],
) -> list[DuplicateGroup]:
    return detector.detect_duplicates(req.transactions)


@router.post("/apply")
async def apply_action(req: ApplyActionRequest) -> DuplicateActionResult:
    return apply_duplicate_action(req.group, req.action)


@router.get("/settings")
async def get_settings(
    detector: Annotated[DuplicateDetectionEngine, Depends(get_detector)],
) -> DuplicateDetectionSettings:
    return detector.get_settings()


@router.patch("/settings")
async def update_settings(
    req: DuplicateSettingsUpdate,
    detector: Annotated[DuplicateDetectionEngine, Depends(get_detector)],
    store: Annotated[StateStore | None, Depends(get_store_optional)],
) -> DuplicateDetectionSettings:
    changes = req.model_dump(exclude_none=True)
    try:
        updated = detector.update_settings(**changes)
    except ValidationError as e:
        raise HTTPException(status_code=422, detail=str(e)) from e
    if store:
        store.save_duplicate_settings(updated)
    return updated
