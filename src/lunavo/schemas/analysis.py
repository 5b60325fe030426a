# src/lunavo/schemas/analysis.py
"""Post analysis Pydantic schemas."""

from pydantic import BaseModel, Field


class PostAnalysisRequest(BaseModel):
    """Text to analyze before or after a post is stored."""

    title: str = Field("", max_length=300)
    content: str = Field(..., min_length=1, max_length=10000)
    category: str | None = Field(None, description="Category chosen by the author, if any")
    reported_count: int = Field(0, ge=0)


class CategoryScoreResponse(BaseModel):
    category: str
    confidence: float


class CategorizationResponse(BaseModel):
    category: str
    confidence: float
    alternatives: list[CategoryScoreResponse]
    keywords: list[str]


class SentimentResponse(BaseModel):
    sentiment: str
    score: float
    confidence: float
    emotions: list[str]


class KeywordsResponse(BaseModel):
    keywords: list[str]
    important_phrases: list[str]
    topics: list[str]


class EscalationDetectionResponse(BaseModel):
    level: str
    reason: str
    confidence: float
    should_escalate: bool


class PostAnalysisResponse(BaseModel):
    """Combined signal extraction and escalation detection."""

    categorization: CategorizationResponse
    sentiment: SentimentResponse
    keywords: KeywordsResponse
    suggested_tags: list[str]
    escalation: EscalationDetectionResponse
