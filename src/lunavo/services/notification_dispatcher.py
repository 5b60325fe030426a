"""Dispatch a single notification: filter, delay or deliver.

The dispatcher owns the decision for one outgoing notification. It looks up
the recipient's preferences, applies the priority threshold, quiet hours and
smart timing, persists the resulting notification event and either pushes it
immediately or persists a scheduled delivery for the sweep worker.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any

from lunavo.core.enums import NotificationType, Priority, ScheduleKind, ScheduleStatus
from lunavo.db.time import utcnow
from lunavo.services.failures import FailureLog
from lunavo.services.notification_priority import (
    NotificationPreferences,
    default_preferences,
    is_quiet_hours,
    local_time,
    priority_for,
    should_send,
    smart_delay,
    type_value,
)
from lunavo.services.ports import (
    Notifier,
    NotificationStore,
    PushDeliveryError,
    PushMessage,
    Recipient,
    RecipientDirectory,
    StoreError,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DispatchResult:
    """Outcome of a dispatch that was not filtered out."""

    notification_id: int
    priority: Priority
    delay_seconds: int = 0
    schedule_id: int | None = None
    ticket_id: str | None = None
    delivered: bool = False

    @property
    def scheduled(self) -> bool:
        return self.schedule_id is not None


class NotificationDispatcher:
    """Apply recipient preferences to one notification and hand it to delivery."""

    def __init__(
        self,
        store: NotificationStore,
        recipients: RecipientDirectory,
        notifier: Notifier | None = None,
        failures: FailureLog | None = None,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self.store = store
        self.recipients = recipients
        self.notifier = notifier
        self.failures = failures or FailureLog()
        self._clock = clock

    async def _recipient(self, user_id: str) -> Recipient:
        try:
            recipient = await self.recipients.get_recipient(user_id)
        except StoreError as err:
            self.failures.record("notification.recipient_lookup", err, user_id=user_id)
            recipient = None
        return recipient or Recipient(user_id=user_id)

    async def preferences_for(self, user_id: str) -> NotificationPreferences:
        """Return stored preferences or the defaults."""
        recipient = await self._recipient(user_id)
        return recipient.preferences or default_preferences(user_id)

    async def send(
        self,
        user_id: str,
        notification_type: NotificationType | str,
        title: str,
        body: str,
        data: Mapping[str, Any] | None = None,
        *,
        now: datetime | None = None,
    ) -> DispatchResult | None:
        """Send, defer or drop a notification according to the recipient's preferences.

        Args:
            user_id: Recipient identifier.
            notification_type: Event type; determines the fixed priority.
            title: Notification title.
            body: Notification body.
            data: Extra payload delivered with the push.
            now: Decision time; defaults to the dispatcher clock.

        Returns:
            The dispatch outcome, or None when the notification was filtered by
            the priority threshold or could not be stored or pushed.
        """
        now = now or self._clock()
        recipient = await self._recipient(user_id)
        prefs = recipient.preferences or default_preferences(user_id)
        priority = priority_for(notification_type)
        type_name = type_value(notification_type)
        payload = dict(data or {})

        if not should_send(priority, prefs):
            logger.debug(
                "Notification %s for %s filtered by priority threshold %s",
                type_name,
                user_id,
                prefs.priority_threshold.value,
            )
            return None

        delay = smart_delay(priority, prefs, now)
        if delay > 0:
            if is_quiet_hours(prefs.quiet_hours, local_time(now, prefs.timezone)):
                logger.debug("Holding %s for %s until quiet hours end", type_name, user_id)
            return await self._defer(
                user_id, type_name, title, body, payload, priority, now + timedelta(seconds=delay), delay
            )

        return await self._deliver_now(recipient, type_name, title, body, payload, priority)

    async def schedule_at(
        self,
        user_id: str,
        notification_type: NotificationType | str,
        title: str,
        body: str,
        due_at: datetime,
        data: Mapping[str, Any] | None = None,
        *,
        now: datetime | None = None,
    ) -> DispatchResult | None:
        """Persist a notification for delivery at a fixed time, such as a meeting reminder."""
        now = now or self._clock()
        prefs = await self.preferences_for(user_id)
        priority = priority_for(notification_type)
        if not should_send(priority, prefs):
            return None

        delay = max(int((due_at - now).total_seconds()), 0)
        return await self._defer(
            user_id, type_value(notification_type), title, body, dict(data or {}), priority, due_at, delay
        )

    async def cancel(self, schedule_id: int) -> bool:
        """Cancel a pending scheduled delivery; False if unknown or already handled."""
        try:
            row = await self.store.get_scheduled(schedule_id)
            if row is None or row.status != ScheduleStatus.PENDING.value:
                return False
            await self.store.update_scheduled(
                schedule_id, {"status": ScheduleStatus.CANCELLED.value}
            )
        except StoreError as err:
            self.failures.record("notification.cancel", err, schedule_id=schedule_id)
            return False
        logger.info("Cancelled scheduled notification %s", schedule_id)
        return True

    async def push_to(
        self,
        user_id: str,
        title: str,
        body: str,
        priority: Priority,
        data: Mapping[str, Any] | None = None,
    ) -> str | None:
        """Push directly to a user's device.

        Returns:
            Provider ticket id, or None when the user has no push token.

        Raises:
            PushDeliveryError: If the notifier fails.
        """
        recipient = await self._recipient(user_id)
        return await self._push(recipient, title, body, priority, dict(data or {}))

    async def _push(
        self,
        recipient: Recipient,
        title: str,
        body: str,
        priority: Priority,
        data: dict[str, Any],
    ) -> str | None:
        if self.notifier is None or not recipient.push_token:
            logger.debug("No push channel for %s; stored in-app only", recipient.user_id)
            return None
        return await self.notifier.push(
            PushMessage(
                token=recipient.push_token,
                title=title,
                body=body,
                priority=priority,
                data=data,
            )
        )

    async def _defer(
        self,
        user_id: str,
        type_value: str,
        title: str,
        body: str,
        data: dict[str, Any],
        priority: Priority,
        due_at: datetime,
        delay: int,
    ) -> DispatchResult | None:
        try:
            event = await self.store.create_notification(
                user_id=user_id,
                type=type_value,
                title=title,
                body=body,
                data=data,
                priority=priority.value,
                scheduled=True,
            )
            task = await self.store.create_scheduled(
                user_id=user_id,
                kind=ScheduleKind.PUSH,
                due_at=due_at,
                payload={
                    "type": type_value,
                    "title": title,
                    "body": body,
                    "data": {**data, "type": type_value, "notification_id": event.id},
                    "priority": priority.value,
                },
                notification_id=event.id,
            )
        except StoreError as err:
            self.failures.record("notification.schedule", err, user_id=user_id, type=type_value)
            return None

        logger.info(
            "Scheduled %s notification %s for %s in %d seconds",
            type_value,
            event.id,
            user_id,
            delay,
        )
        return DispatchResult(
            notification_id=event.id,
            priority=priority,
            delay_seconds=delay,
            schedule_id=task.id,
        )

    async def _deliver_now(
        self,
        recipient: Recipient,
        type_value: str,
        title: str,
        body: str,
        data: dict[str, Any],
        priority: Priority,
    ) -> DispatchResult | None:
        try:
            event = await self.store.create_notification(
                user_id=recipient.user_id,
                type=type_value,
                title=title,
                body=body,
                data=data,
                priority=priority.value,
                scheduled=False,
            )
        except StoreError as err:
            self.failures.record(
                "notification.create", err, user_id=recipient.user_id, type=type_value
            )
            return None

        try:
            ticket = await self._push(
                recipient,
                title,
                body,
                priority,
                {**data, "type": type_value, "notification_id": event.id},
            )
        except PushDeliveryError as err:
            self.failures.record(
                "notification.push", err, user_id=recipient.user_id, notification_id=event.id
            )
            return None

        return DispatchResult(
            notification_id=event.id,
            priority=priority,
            ticket_id=ticket,
            delivered=ticket is not None,
        )
