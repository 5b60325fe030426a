"""Post submission endpoints for the Lunavo API."""

from __future__ import annotations

import logging

from fastapi import APIRouter, HTTPException, status

from lunavo.api.v1.dependencies import EscalationServiceDep, SessionDep
from lunavo.repositories import PostRepository
from lunavo.schemas.post import PostCreate, PostReport, PostResponse, PostSubmitResponse
from lunavo.services.ports import StoreError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/posts", tags=["posts"])


@router.post("", response_model=PostSubmitResponse, status_code=status.HTTP_201_CREATED)
async def create_post(
    payload: PostCreate,
    db: SessionDep,
    escalations: EscalationServiceDep,
) -> PostSubmitResponse:
    """Store a new post and escalate it when it shows risk indicators."""
    repo = PostRepository(db)
    try:
        post = await repo.create_post(
            author_id=payload.author_id,
            category=payload.category,
            title=payload.title,
            content=payload.content,
        )
    except StoreError as err:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Could not store post",
        ) from err

    record = await escalations.auto_escalate(post)
    db.refresh(post)
    return PostSubmitResponse.model_validate({"post": post, "escalation": record})


@router.get("/{post_id}", response_model=PostResponse)
async def get_post(post_id: int, db: SessionDep) -> PostResponse:
    post = await PostRepository(db).get_post(post_id)
    if post is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Post not found")
    return PostResponse.model_validate(post)


@router.post("/{post_id}/report", response_model=PostSubmitResponse)
async def report_post(
    post_id: int,
    payload: PostReport,
    db: SessionDep,
    escalations: EscalationServiceDep,
) -> PostSubmitResponse:
    """Count a user report; enough reports escalate the post."""
    repo = PostRepository(db)
    try:
        post = await repo.get_post(post_id)
        if post is not None:
            post = await repo.update_post(post_id, {"reported_count": post.reported_count + 1})
    except StoreError as err:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Could not record report",
        ) from err
    if post is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Post not found")

    logger.info("Post %s reported by %s", post_id, payload.reporter_id)
    record = await escalations.auto_escalate(post)
    db.refresh(post)
    return PostSubmitResponse.model_validate({"post": post, "escalation": record})
