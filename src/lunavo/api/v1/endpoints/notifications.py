"""Notification endpoints for the Lunavo API."""

from __future__ import annotations

from fastapi import APIRouter, HTTPException, Query, status

from lunavo.api.v1.dependencies import DigestServiceDep, DispatcherDep, SessionDep
from lunavo.repositories import NotificationRepository, UserRepository
from lunavo.schemas.notification import (
    DispatchResponse,
    NotificationResponse,
    PreferencesSchema,
)
from lunavo.services.ports import StoreError

router = APIRouter(prefix="/notifications", tags=["notifications"])


@router.get("/users/{user_id}", response_model=list[NotificationResponse])
async def list_notifications(
    user_id: str,
    db: SessionDep,
    unread_only: bool = Query(False),
    limit: int = Query(50, ge=1, le=200),
) -> list[NotificationResponse]:
    try:
        events = await NotificationRepository(db).list_notifications(
            user_id, unread_only=unread_only, limit=limit
        )
    except StoreError as err:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Notifications unavailable",
        ) from err
    return [NotificationResponse.model_validate(event) for event in events]


@router.post("/{notification_id}/read", status_code=status.HTTP_204_NO_CONTENT)
async def mark_notification_read(notification_id: int, db: SessionDep) -> None:
    if not await NotificationRepository(db).mark_read(notification_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Notification not found")


@router.get("/users/{user_id}/preferences", response_model=PreferencesSchema)
async def get_preferences(user_id: str, dispatcher: DispatcherDep) -> PreferencesSchema:
    """Return stored preferences, or the defaults for users who never saved any."""
    return PreferencesSchema.from_preferences(await dispatcher.preferences_for(user_id))


@router.put("/users/{user_id}/preferences", response_model=PreferencesSchema)
async def update_preferences(
    user_id: str,
    payload: PreferencesSchema,
    db: SessionDep,
    digests: DigestServiceDep,
) -> PreferencesSchema:
    """Replace a user's preferences and schedule their digest if enabled."""
    try:
        saved = await UserRepository(db).save_preferences(payload.to_preferences(user_id))
    except StoreError as err:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Could not save preferences",
        ) from err

    await digests.schedule_digest(saved)
    return PreferencesSchema.from_preferences(saved)


@router.post("/users/{user_id}/digest", response_model=DispatchResponse | None)
async def send_digest(user_id: str, digests: DigestServiceDep) -> DispatchResponse | None:
    """Build and send a digest right away; null when nothing is unread."""
    result = await digests.build_digest(user_id)
    return DispatchResponse.model_validate(result) if result is not None else None


@router.delete("/scheduled/{schedule_id}", status_code=status.HTTP_204_NO_CONTENT)
async def cancel_scheduled(schedule_id: int, dispatcher: DispatcherDep) -> None:
    """Cancel a pending delayed delivery."""
    if not await dispatcher.cancel(schedule_id):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="No pending scheduled notification with that id",
        )
