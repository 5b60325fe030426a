# src/lunavo/schemas/escalation.py
"""Escalation-related Pydantic schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from lunavo.core.enums import EscalationStatus


class EscalationResponse(BaseModel):
    """Escalation record returned by the API."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    post_id: int
    level: str
    reason: str
    detected_at: datetime
    assigned_to: str | None = None
    status: str
    resolved_at: datetime | None = None
    notes: str | None = None


class QueuedEscalationResponse(EscalationResponse):
    priority_score: float


class EscalationUpdate(BaseModel):
    """Partial update; only fields present in the request are applied."""

    status: EscalationStatus | None = None
    assigned_to: str | None = Field(None, max_length=64)
    resolved_at: datetime | None = None
    notes: str | None = Field(None, max_length=5000)


class EscalationAnalyticsResponse(BaseModel):
    total_escalations: int
    by_level: dict[str, int]
    by_status: dict[str, int]
    average_response_hours: float
    resolution_rate: float
    escalation_rate: float
    daily: dict[str, int]
    by_category: dict[str, int]
