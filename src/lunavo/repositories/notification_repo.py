"""Data access helpers for notifications and scheduled deliveries."""
from __future__ import annotations

from collections.abc import Mapping
from datetime import datetime
from typing import Any

from sqlalchemy import select
from sqlalchemy.orm import Session

from lunavo.core.enums import ScheduleKind, ScheduleStatus
from lunavo.db.time import as_utc
from lunavo.models.notification import NotificationEvent, ScheduledNotification
from lunavo.repositories.base import store_errors

__all__ = ["NotificationRepository"]


class NotificationRepository:
    """Persistence for notification events and the delivery schedule."""

    def __init__(self, session: Session) -> None:
        self.session = session

    async def create_notification(
        self,
        *,
        user_id: str,
        type: str,
        title: str,
        body: str,
        data: Mapping[str, Any],
        priority: str,
        scheduled: bool,
    ) -> NotificationEvent:
        event = NotificationEvent(
            user_id=user_id,
            type=type,
            title=title,
            body=body,
            data=dict(data),
            priority=priority,
            scheduled=scheduled,
        )
        with store_errors(self.session, "create_notification"):
            self.session.add(event)
            self.session.commit()
            self.session.refresh(event)
        return event

    async def list_notifications(
        self, user_id: str, *, unread_only: bool = False, limit: int | None = None
    ) -> list[NotificationEvent]:
        """Return a user's notifications, oldest first."""
        stmt = select(NotificationEvent).where(NotificationEvent.user_id == user_id)
        if unread_only:
            stmt = stmt.where(NotificationEvent.read.is_(False))
        stmt = stmt.order_by(NotificationEvent.created_at.asc(), NotificationEvent.id.asc())
        if limit is not None:
            stmt = stmt.limit(limit)
        with store_errors(self.session, "list_notifications"):
            return list(self.session.scalars(stmt))

    async def mark_read(self, notification_id: int) -> bool:
        with store_errors(self.session, "mark_read"):
            event = self.session.get(NotificationEvent, notification_id)
            if event is None:
                return False
            event.read = True
            self.session.commit()
        return True

    async def create_scheduled(
        self,
        *,
        user_id: str,
        kind: ScheduleKind,
        due_at: datetime,
        payload: Mapping[str, Any],
        notification_id: int | None = None,
    ) -> ScheduledNotification:
        row = ScheduledNotification(
            user_id=user_id,
            kind=ScheduleKind(kind).value,
            due_at=as_utc(due_at),
            payload=dict(payload),
            notification_id=notification_id,
        )
        with store_errors(self.session, "create_scheduled"):
            self.session.add(row)
            self.session.commit()
            self.session.refresh(row)
        return row

    async def get_scheduled(self, schedule_id: int) -> ScheduledNotification | None:
        with store_errors(self.session, "get_scheduled"):
            return self.session.get(ScheduledNotification, schedule_id)

    async def list_due(self, now: datetime, limit: int) -> list[ScheduledNotification]:
        """Return pending rows due at or before ``now``, earliest first."""
        stmt = (
            select(ScheduledNotification)
            .where(
                ScheduledNotification.status == ScheduleStatus.PENDING.value,
                ScheduledNotification.due_at <= as_utc(now),
            )
            .order_by(ScheduledNotification.due_at.asc(), ScheduledNotification.id.asc())
            .limit(limit)
        )
        with store_errors(self.session, "list_due"):
            return list(self.session.scalars(stmt))

    async def pending_digest_for(self, user_id: str) -> ScheduledNotification | None:
        stmt = select(ScheduledNotification).where(
            ScheduledNotification.user_id == user_id,
            ScheduledNotification.kind == ScheduleKind.DIGEST.value,
            ScheduledNotification.status == ScheduleStatus.PENDING.value,
        )
        with store_errors(self.session, "pending_digest_for"):
            return self.session.scalars(stmt).first()

    async def update_scheduled(
        self, schedule_id: int, changes: Mapping[str, Any]
    ) -> ScheduledNotification | None:
        with store_errors(self.session, "update_scheduled"):
            row = self.session.get(ScheduledNotification, schedule_id)
            if row is None:
                return None
            for key, value in changes.items():
                if key == "due_at" and value is not None:
                    value = as_utc(value)
                setattr(row, key, value)
            self.session.commit()
            self.session.refresh(row)
        return row
