"""Text analysis endpoints for the Lunavo API."""

from __future__ import annotations

from dataclasses import asdict

from fastapi import APIRouter

from lunavo.api.v1.dependencies import ClassifierDep, ExtractorDep
from lunavo.schemas.analysis import PostAnalysisRequest, PostAnalysisResponse

router = APIRouter(prefix="/analysis", tags=["analysis"])


@router.post("/posts", response_model=PostAnalysisResponse)
async def analyze_post(
    payload: PostAnalysisRequest,
    extractor: ExtractorDep,
    classifier: ClassifierDep,
) -> PostAnalysisResponse:
    """Categorize a draft post, read its sentiment and check it for risk.

    Nothing is stored; clients use this to suggest a category and tags
    before submission.
    """
    analysis = extractor.analyze(payload.title, payload.content, payload.category)
    detection = classifier.classify(payload)

    return PostAnalysisResponse.model_validate(
        {
            **asdict(analysis),
            "escalation": {
                "level": detection.level.value,
                "reason": detection.reason,
                "confidence": detection.confidence,
                "should_escalate": classifier.should_escalate(payload),
            },
        }
    )
