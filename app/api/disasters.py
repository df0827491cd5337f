from __future__ import annotations

import logging
from typing import List

from fastapi import APIRouter, Depends

from app.core.contracts import ClassifiedPost, ClassifiedReport, ReportTriageRequest
from app.core.errors import bad_request
from app.services.priority import PriorityClassifier
from app.services.social import SocialMedia
from app.api.priority import get_priority_classifier

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/disasters")


def get_social_media_service() -> SocialMedia:
    raise RuntimeError("SocialMedia must be provided by app dependency override")


# ──────────────────────────────────────────────────────────────
# /disasters/{id}/social-media
# ──────────────────────────────────────────────────────────────

@router.get("/{disaster_id}/social-media", response_model=List[ClassifiedPost])
async def social_media(
    disaster_id: str,
    social: SocialMedia = Depends(get_social_media_service),
) -> List[ClassifiedPost]:
    if not disaster_id.strip():
        bad_request("bad_disaster_id", "disaster id is required")
    posts = await social.posts(disaster_id)
    return [ClassifiedPost.model_validate(p) for p in posts]


# ──────────────────────────────────────────────────────────────
# /disasters/{id}/reports/triage
# ──────────────────────────────────────────────────────────────

@router.post("/{disaster_id}/reports/triage", response_model=List[ClassifiedReport])
def reports_triage(
    disaster_id: str,
    req: ReportTriageRequest,
    classifier: PriorityClassifier = Depends(get_priority_classifier),
) -> List[ClassifiedReport]:
    # Reports come from the incident store; we only rank them, nothing is persisted.
    rows = [r.model_dump() for r in req.reports]
    classified = classifier.classify_items(rows, "content")

    logger.info(
        "reports_triage disaster_id=%s count=%d urgent=%d",
        disaster_id,
        len(classified),
        sum(1 for r in classified if r["priority"] == "urgent"),
    )
    return [ClassifiedReport.model_validate(r) for r in classified]
