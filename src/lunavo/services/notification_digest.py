"""Grouping of pending notifications and periodic digests."""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from typing import Any

from lunavo.core.enums import DigestInterval, NotificationType, Priority, ScheduleKind
from lunavo.db.time import as_utc, utcnow
from lunavo.services.failures import FailureLog
from lunavo.services.notification_dispatcher import DispatchResult, NotificationDispatcher
from lunavo.services.notification_priority import (
    NotificationPreferences,
    local_time,
    priority_for,
    type_value,
)
from lunavo.services.ports import NotificationStore, StoreError

logger = logging.getLogger(__name__)

DEFAULT_GROUP_WINDOW_MINUTES = 15
DIGEST_HOUR = 9


def _plural(count: int, singular: str, plural: str) -> str:
    return singular if count == 1 else plural


_GROUP_TITLES: dict[str, Callable[[int], str]] = {
    NotificationType.ESCALATION_ASSIGNED.value: lambda n: f"{n} new {_plural(n, 'escalation', 'escalations')}",
    NotificationType.ESCALATION_UPDATED.value: lambda n: f"{n} escalation {_plural(n, 'update', 'updates')}",
    NotificationType.NEW_REPLY.value: lambda n: f"{n} new {_plural(n, 'reply', 'replies')}",
    NotificationType.POST_UPDATED.value: lambda n: f"{n} post {_plural(n, 'update', 'updates')}",
    NotificationType.BADGE_EARNED.value: lambda n: f"{n} {_plural(n, 'badge', 'badges')} earned",
    NotificationType.STREAK_MILESTONE.value: lambda n: f"{n} streak {_plural(n, 'milestone', 'milestones')}",
    NotificationType.MEETING_REMINDER.value: lambda n: f"{n} meeting {_plural(n, 'reminder', 'reminders')}",
    NotificationType.MEETING_REMINDER_1H.value: lambda n: f"{n} {_plural(n, 'meeting', 'meetings')} starting soon",
    NotificationType.SYSTEM.value: lambda n: f"{n} system {_plural(n, 'notification', 'notifications')}",
    NotificationType.ADMIN.value: lambda n: f"{n} admin {_plural(n, 'notification', 'notifications')}",
}


def group_title(notification_type: str, count: int) -> str:
    """Return the summary line for ``count`` notifications of one type."""
    template = _GROUP_TITLES.get(notification_type)
    if template is None:
        return f"{count} {_plural(count, 'notification', 'notifications')}"
    return template(count)


@dataclass
class NotificationGroup:
    group_id: str
    type: str
    priority: Priority
    title: str = ""
    count: int = 0
    notifications: list[Any] = field(default_factory=list)
    started_at: datetime | None = None

    def add(self, notification: Any) -> None:
        self.notifications.append(notification)
        self.count += 1
        self.title = group_title(self.type, self.count)


def group_notifications(
    notifications: Iterable[Any],
    window_minutes: int | None = DEFAULT_GROUP_WINDOW_MINUTES,
) -> list[NotificationGroup]:
    """Batch notifications by ``type-priority``.

    Within one key a notification created more than ``window_minutes`` after
    the group's first notification starts a new group. Pass ``None`` to
    group regardless of time. Groups come back in order of first appearance.
    """
    window = timedelta(minutes=window_minutes) if window_minutes is not None else None
    groups: list[NotificationGroup] = []
    open_groups: dict[str, NotificationGroup] = {}
    key_counts: dict[str, int] = {}

    for notification in notifications:
        type_name = type_value(getattr(notification, "type", NotificationType.SYSTEM))
        priority = priority_for(type_name)
        key = f"{type_name}-{priority.value}"
        created_at = getattr(notification, "created_at", None)
        created_at = as_utc(created_at) if created_at is not None else None

        group = open_groups.get(key)
        if (
            group is not None
            and window is not None
            and created_at is not None
            and group.started_at is not None
            and created_at - group.started_at > window
        ):
            group = None

        if group is None:
            key_counts[key] = key_counts.get(key, 0) + 1
            group_id = key if key_counts[key] == 1 else f"{key}-{key_counts[key]}"
            group = NotificationGroup(
                group_id=group_id,
                type=type_name,
                priority=priority,
                started_at=created_at,
            )
            open_groups[key] = group
            groups.append(group)
        elif group.started_at is None:
            group.started_at = created_at

        group.add(notification)

    return groups


def next_digest_time(interval: DigestInterval | str, now: datetime) -> datetime | None:
    """Return when the next digest for ``interval`` is due, or None if unknown."""
    try:
        interval = DigestInterval(interval)
    except ValueError:
        return None

    if interval == DigestInterval.HOURLY:
        return (now + timedelta(hours=1)).replace(minute=0, second=0, microsecond=0)
    if interval == DigestInterval.DAILY:
        return (now + timedelta(days=1)).replace(hour=DIGEST_HOUR, minute=0, second=0, microsecond=0)
    return (now + timedelta(days=7)).replace(hour=DIGEST_HOUR, minute=0, second=0, microsecond=0)


class DigestService:
    """Build and schedule digest notifications for a user."""

    def __init__(
        self,
        store: NotificationStore,
        dispatcher: NotificationDispatcher,
        failures: FailureLog | None = None,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self.store = store
        self.dispatcher = dispatcher
        self.failures = failures or dispatcher.failures
        self._clock = clock

    async def build_digest(self, user_id: str, *, now: datetime | None = None) -> DispatchResult | None:
        """Summarize a user's unread notifications into one system notification.

        Returns:
            The dispatch result, or None when nothing is unread or the digest
            could not be sent.
        """
        try:
            unread = await self.store.list_notifications(user_id, unread_only=True)
        except StoreError as err:
            self.failures.record("digest.build", err, user_id=user_id)
            return None

        # Earlier digests are not summarized again.
        unread = [item for item in unread if not (getattr(item, "data", None) or {}).get("digest")]
        if not unread:
            return None

        prefs = await self.dispatcher.preferences_for(user_id)
        if prefs.grouping_enabled:
            lines = [group.title for group in group_notifications(unread, window_minutes=None)]
        else:
            lines = [str(getattr(item, "title", "")) for item in unread]
        total = len(unread)
        title = f"You have {total} new {_plural(total, 'notification', 'notifications')}"
        body = "\n".join(f"• {line}" for line in lines)

        logger.info("Sending digest of %d notifications to %s", total, user_id)
        return await self.dispatcher.send(
            user_id,
            NotificationType.SYSTEM,
            title,
            body,
            {"digest": True, "count": total},
            now=now,
        )

    async def schedule_digest(
        self,
        prefs: NotificationPreferences,
        *,
        now: datetime | None = None,
    ) -> int | None:
        """Persist the user's next digest run.

        Returns:
            The scheduled row id, or None when digests are off or a run is
            already pending.
        """
        if not prefs.digest_enabled:
            return None

        now = now or self._clock()
        # Digest hours are the recipient's wall-clock hours.
        due_at = next_digest_time(prefs.digest_interval, local_time(now, prefs.timezone))
        if due_at is None:
            return None
        if due_at.tzinfo is not None:
            due_at = due_at.astimezone(UTC)

        try:
            if await self.store.pending_digest_for(prefs.user_id) is not None:
                return None
            row = await self.store.create_scheduled(
                user_id=prefs.user_id,
                kind=ScheduleKind.DIGEST,
                due_at=due_at,
                payload={"interval": prefs.digest_interval.value},
            )
        except StoreError as err:
            self.failures.record("digest.schedule", err, user_id=prefs.user_id)
            return None

        logger.debug("Next digest for %s due at %s", prefs.user_id, due_at.isoformat())
        return row.id
