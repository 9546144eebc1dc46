from fastapi import HTTPException, Request

from transaction_advisor.duplicates.detection import DuplicateDetectionEngine
from transaction_advisor.manager import ClassificationEngine
from transaction_advisor.services.state_store import StateStore


def get_classifier(request: Request) -> ClassificationEngine:
    classifier = getattr(request.app.state, "classifier", None)
    if not classifier:
        raise HTTPException(status_code=500, detail="Classifier not initialized")
    return classifier


def get_detector(request: Request) -> DuplicateDetectionEngine:
    detector = getattr(request.app.state, "detector", None)
    if not detector:
        raise HTTPException(status_code=500, detail="Duplicate detector not initialized")
    return detector


def get_store_optional(request: Request) -> StateStore | None:
    return getattr(request.app.state, "store", None)
