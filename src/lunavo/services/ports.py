"""Storage and delivery interfaces the services depend on.

The SQLAlchemy repositories in ``lunavo.repositories`` and the push client in
``lunavo.services.push`` implement these; tests substitute their own.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from datetime import datetime
from typing import TYPE_CHECKING, Any, Protocol

from lunavo.core.enums import Priority, ScheduleKind
from lunavo.services.notification_priority import NotificationPreferences

if TYPE_CHECKING:
    from lunavo.models import (
        EscalationRecord,
        NotificationEvent,
        Post,
        ScheduledNotification,
    )


class StoreError(RuntimeError):
    """Raised by storage adapters when a read or write cannot be completed."""


class PushDeliveryError(RuntimeError):
    """Raised by a notifier when the push provider rejects or cannot be reached."""


class PostLike(Protocol):
    """Attributes the classifier reads from a post."""

    category: str
    title: str
    content: str
    reported_count: int


@dataclass(frozen=True)
class Recipient:
    user_id: str
    role: str = "student"
    push_token: str | None = None
    preferences: NotificationPreferences | None = None


@dataclass(frozen=True)
class PushMessage:
    token: str
    title: str
    body: str
    priority: Priority
    data: dict[str, Any] = field(default_factory=dict)


class PostStore(Protocol):
    async def get_post(self, post_id: int) -> Post | None: ...

    async def update_post(self, post_id: int, changes: Mapping[str, Any]) -> Post | None: ...

    async def count_posts(self) -> int: ...

    async def categories_for(self, post_ids: Iterable[int]) -> dict[int, str]: ...


class EscalationStore(Protocol):
    async def create_escalation(
        self,
        *,
        post_id: int,
        level: str,
        reason: str,
        assigned_to: str | None = None,
        detected_at: datetime | None = None,
    ) -> EscalationRecord: ...

    async def get_escalation(self, escalation_id: int) -> EscalationRecord | None: ...

    async def get_escalation_for_post(self, post_id: int) -> EscalationRecord | None: ...

    async def update_escalation(
        self, escalation_id: int, changes: Mapping[str, Any]
    ) -> EscalationRecord | None: ...

    async def list_escalations(
        self,
        *,
        statuses: Sequence[str] | None = None,
        assigned_to: str | None = None,
        level: str | None = None,
    ) -> list[EscalationRecord]: ...


class NotificationStore(Protocol):
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
    ) -> NotificationEvent: ...

    async def list_notifications(
        self, user_id: str, *, unread_only: bool = False, limit: int | None = None
    ) -> list[NotificationEvent]: ...

    async def mark_read(self, notification_id: int) -> bool: ...

    async def create_scheduled(
        self,
        *,
        user_id: str,
        kind: ScheduleKind,
        due_at: datetime,
        payload: Mapping[str, Any],
        notification_id: int | None = None,
    ) -> ScheduledNotification: ...

    async def get_scheduled(self, schedule_id: int) -> ScheduledNotification | None: ...

    async def list_due(self, now: datetime, limit: int) -> list[ScheduledNotification]: ...

    async def pending_digest_for(self, user_id: str) -> ScheduledNotification | None: ...

    async def update_scheduled(
        self, schedule_id: int, changes: Mapping[str, Any]
    ) -> ScheduledNotification | None: ...


class RecipientDirectory(Protocol):
    async def get_recipient(self, user_id: str) -> Recipient | None: ...

    async def save_preferences(self, prefs: NotificationPreferences) -> NotificationPreferences: ...


class Notifier(Protocol):
    async def push(self, message: PushMessage) -> str | None:
        """Deliver one push message; return the provider ticket id.

        Raises:
            PushDeliveryError: If the provider rejects or cannot be reached.
        """
        ...
