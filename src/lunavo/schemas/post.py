# src/lunavo/schemas/post.py
"""Post-related Pydantic schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from lunavo.schemas.escalation import EscalationResponse


class PostCreate(BaseModel):
    """Schema for creating a new post."""

    author_id: str = Field(..., min_length=1, max_length=64)
    category: str = Field("general", max_length=40)
    title: str = Field("", max_length=300)
    content: str = Field(..., min_length=1, max_length=10000)


class PostReport(BaseModel):
    reporter_id: str = Field(..., min_length=1, max_length=64)


class PostResponse(BaseModel):
    """Schema for post information returned by the API."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    author_id: str
    category: str
    title: str
    content: str
    status: str
    escalation_level: str
    escalation_reason: str | None = None
    reported_count: int
    created_at: datetime


class PostSubmitResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    post: PostResponse
    escalation: EscalationResponse | None = None
