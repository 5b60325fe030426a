"""Responder escalation endpoints for the Lunavo API."""

from __future__ import annotations

from fastapi import APIRouter, HTTPException, Query, status

from lunavo.api.v1.dependencies import EscalationServiceDep
from lunavo.db.time import utcnow
from lunavo.schemas.analysis import EscalationDetectionResponse
from lunavo.schemas.escalation import (
    EscalationAnalyticsResponse,
    EscalationResponse,
    EscalationUpdate,
    QueuedEscalationResponse,
)
from lunavo.services.escalation import EscalationTransitionError
from lunavo.services.escalation_classifier import priority_score

router = APIRouter(prefix="/escalations", tags=["escalations"])


@router.get("/queue", response_model=list[QueuedEscalationResponse])
async def get_escalation_queue(
    service: EscalationServiceDep,
    assigned_to: str | None = Query(None),
    limit: int = Query(50, ge=1, le=200),
) -> list[QueuedEscalationResponse]:
    """Get open escalations, most urgent first."""
    now = utcnow()
    records = await service.queue(assigned_to=assigned_to, now=now)
    return [
        QueuedEscalationResponse.model_validate(
            {
                **EscalationResponse.model_validate(record).model_dump(),
                "priority_score": priority_score(record.level, record.detected_at, now),
            }
        )
        for record in records[:limit]
    ]


@router.get("/analytics", response_model=EscalationAnalyticsResponse)
async def get_escalation_analytics(service: EscalationServiceDep) -> EscalationAnalyticsResponse:
    return EscalationAnalyticsResponse.model_validate(await service.analytics())


@router.get("/{escalation_id}", response_model=EscalationResponse)
async def get_escalation(escalation_id: int, service: EscalationServiceDep) -> EscalationResponse:
    record = await service.get(escalation_id)
    if record is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Escalation not found")
    return EscalationResponse.model_validate(record)


@router.patch("/{escalation_id}", response_model=EscalationResponse)
async def update_escalation(
    escalation_id: int,
    payload: EscalationUpdate,
    service: EscalationServiceDep,
) -> EscalationResponse:
    """Assign, advance or annotate an escalation.

    Only fields present in the request body are changed.

    Raises:
        HTTPException: 404 if the escalation does not exist, 409 if the
            status change would move it backwards.
    """
    try:
        record = await service.update(escalation_id, payload.model_dump(exclude_unset=True))
    except EscalationTransitionError as err:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(err)) from err
    if record is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Escalation not found")
    return EscalationResponse.model_validate(record)


@router.post("/posts/{post_id}/detect", response_model=EscalationDetectionResponse)
async def redetect_post(post_id: int, service: EscalationServiceDep) -> EscalationDetectionResponse:
    """Re-run classification for a stored post and overwrite its level."""
    result = await service.redetect(post_id)
    if result is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Post not found")
    return EscalationDetectionResponse(
        level=result.level.value,
        reason=result.reason,
        confidence=result.confidence,
        should_escalate=result.escalated,
    )
