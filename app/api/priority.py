from __future__ import annotations

from fastapi import APIRouter, Depends

from app.core.contracts import PriorityRequest, PriorityVerdict
from app.services.priority import PriorityClassifier

router = APIRouter(prefix="/priority")


def get_priority_classifier() -> PriorityClassifier:
    raise RuntimeError("PriorityClassifier must be provided by app dependency override")


@router.post("", response_model=PriorityVerdict)
def classify_text(
    req: PriorityRequest,
    classifier: PriorityClassifier = Depends(get_priority_classifier),
) -> PriorityVerdict:
    return classifier.classify(req.text)
