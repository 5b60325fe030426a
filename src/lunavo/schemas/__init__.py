# src/lunavo/schemas/__init__.py
"""Pydantic schemas for request/response validation."""

from .analysis import PostAnalysisRequest, PostAnalysisResponse
from .escalation import (
    EscalationAnalyticsResponse,
    EscalationResponse,
    EscalationUpdate,
    QueuedEscalationResponse,
)
from .notification import DispatchResponse, NotificationResponse, PreferencesSchema
from .post import PostCreate, PostReport, PostResponse, PostSubmitResponse

__all__ = [
    "PostAnalysisRequest", "PostAnalysisResponse",
    "EscalationAnalyticsResponse", "EscalationResponse", "EscalationUpdate",
    "QueuedEscalationResponse",
    "DispatchResponse", "NotificationResponse", "PreferencesSchema",
    "PostCreate", "PostReport", "PostResponse", "PostSubmitResponse",
]
