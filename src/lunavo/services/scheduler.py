"""Background delivery of persisted, delayed notifications.

The dispatcher writes a ``ScheduledNotification`` row whenever a push has to
wait (quiet hours, smart timing, meeting reminders) and the digest service
writes one per upcoming digest. This worker sweeps due rows, delivers them and
retries failures with exponential backoff. Rows live in the database, so
pending deliveries survive a restart.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from lunavo.core.enums import Priority, ScheduleKind, ScheduleStatus
from lunavo.core.settings import settings
from lunavo.db.session import SessionLocal
from lunavo.db.time import utcnow
from lunavo.repositories import NotificationRepository, UserRepository
from lunavo.services.failures import FailureLog
from lunavo.services.notification_digest import DigestService
from lunavo.services.notification_dispatcher import NotificationDispatcher
from lunavo.services.ports import Notifier, NotificationStore, PushDeliveryError, StoreError

logger = logging.getLogger(__name__)

BASE_RETRY_SECONDS = 60
MAX_RETRY_SECONDS = 3600


def retry_delay(attempts: int) -> timedelta:
    """Backoff before the next attempt after ``attempts`` failures."""
    return timedelta(seconds=min(BASE_RETRY_SECONDS * 2 ** attempts, MAX_RETRY_SECONDS))


@dataclass
class SweepStats:
    delivered: int = 0
    retried: int = 0
    failed: int = 0

    @property
    def processed(self) -> int:
        return self.delivered + self.retried + self.failed


class ScheduledDeliveryWorker:
    """Periodically delivers scheduled notifications that have come due."""

    def __init__(
        self,
        notifier: Notifier | None = None,
        db_session: Session | None = None,
        failures: FailureLog | None = None,
    ) -> None:
        """Initialize the delivery worker.

        Args:
            notifier: Push channel. If None, due pushes are only marked delivered.
            db_session: Optional database session. If None, creates a session per sweep.
            failures: Sink for swallowed delivery failures.
        """
        self.notifier = notifier
        self.failures = failures or FailureLog()
        self.max_attempts = max(1, settings.scheduler_max_attempts)
        self.batch_size = max(1, settings.scheduler_batch_size)
        self._task: asyncio.Task[None] | None = None
        self._stopping = asyncio.Event()
        self._db_session = db_session

    async def start(self) -> None:
        """Start the background sweep loop."""
        if self._task is None or self._task.done():
            self._stopping.clear()
            self._task = asyncio.create_task(self._run())

    async def stop(self) -> None:
        """Stop the background sweep loop."""
        if self._task is None:
            return

        self._stopping.set()
        await self._task
        self._task = None

    async def _run(self) -> None:
        interval = max(0.1, float(settings.scheduler_sweep_interval_seconds))

        while not self._stopping.is_set():
            try:
                stats = await self.sweep()
            except SQLAlchemyError as e:
                logger.warning("ScheduledDeliveryWorker encountered database error: %s", e)
                await self._sleep(min(interval * 4, 120.0))
                continue
            except (ValueError, TypeError, KeyError, AttributeError) as e:
                logger.error(
                    "ScheduledDeliveryWorker encountered data processing error: %s", e, exc_info=True
                )
                await self._sleep(min(interval * 4, 120.0))
                continue

            if stats.processed:
                logger.info(
                    "Sweep delivered %d, retried %d, failed %d",
                    stats.delivered,
                    stats.retried,
                    stats.failed,
                )
            await self._sleep(interval)

    async def _sleep(self, seconds: float) -> None:
        try:
            await asyncio.wait_for(self._stopping.wait(), timeout=seconds)
        except TimeoutError:
            pass

    async def sweep(self, now: datetime | None = None) -> SweepStats:
        """Deliver every due row once; return what happened."""
        if self._db_session is not None:
            return await self._sweep_with(self._db_session, now)
        with SessionLocal() as db:
            return await self._sweep_with(db, now)

    async def _sweep_with(self, db: Session, now: datetime | None) -> SweepStats:
        store = NotificationRepository(db)
        dispatcher = NotificationDispatcher(
            store, UserRepository(db), notifier=self.notifier, failures=self.failures
        )
        digests = DigestService(store, dispatcher, failures=self.failures)
        return await self.process_due(store, dispatcher, digests, now=now)

    async def process_due(
        self,
        store: NotificationStore,
        dispatcher: NotificationDispatcher,
        digests: DigestService,
        *,
        now: datetime | None = None,
    ) -> SweepStats:
        """Deliver due rows from ``store`` using the given services."""
        now = now or utcnow()
        stats = SweepStats()
        try:
            due = await store.list_due(now, self.batch_size)
        except StoreError as err:
            self.failures.record("scheduler.list_due", err)
            return stats

        for row in due:
            is_digest = row.kind == ScheduleKind.DIGEST.value
            prefs = await dispatcher.preferences_for(row.user_id) if is_digest else None
            if prefs is not None and not prefs.digest_enabled:
                await self._mark(store, row, ScheduleStatus.CANCELLED)
                continue

            try:
                if is_digest:
                    await self._deliver_digest(row, digests, now)
                else:
                    await self._deliver_push(row, dispatcher)
            except PushDeliveryError as err:
                outcome = await self._retry_later(store, row, err, now)
                if outcome == ScheduleStatus.FAILED:
                    stats.failed += 1
                else:
                    stats.retried += 1
                continue

            if not await self._mark(store, row, ScheduleStatus.DELIVERED, attempts=row.attempts + 1):
                continue
            stats.delivered += 1

            if prefs is not None:
                await digests.schedule_digest(prefs, now=now)

        return stats

    async def _mark(
        self,
        store: NotificationStore,
        row: Any,
        status: ScheduleStatus,
        **changes: Any,
    ) -> bool:
        try:
            await store.update_scheduled(row.id, {"status": status.value, **changes})
        except StoreError as err:
            self.failures.record("scheduler.mark", err, schedule_id=row.id, status=status.value)
            return False
        return True

    async def _deliver_push(self, row: Any, dispatcher: NotificationDispatcher) -> None:
        payload = row.payload or {}
        try:
            priority = Priority(payload.get("priority", Priority.NORMAL.value))
        except ValueError:
            priority = Priority.NORMAL
        await dispatcher.push_to(
            row.user_id,
            payload.get("title", ""),
            payload.get("body", ""),
            priority,
            payload.get("data") or {},
        )

    async def _deliver_digest(
        self,
        row: Any,
        digests: DigestService,
        now: datetime,
    ) -> None:
        result = await digests.build_digest(row.user_id, now=now)
        if result is None:
            logger.debug("No digest sent for %s", row.user_id)

    async def _retry_later(
        self,
        store: NotificationStore,
        row: Any,
        error: Exception,
        now: datetime,
    ) -> ScheduleStatus:
        attempts = row.attempts + 1
        self.failures.record(
            "scheduler.deliver", error, schedule_id=row.id, user_id=row.user_id, attempts=attempts
        )
        changes: dict[str, Any] = {"attempts": attempts, "last_error": str(error)}
        if attempts >= self.max_attempts:
            status = ScheduleStatus.FAILED
            changes["status"] = status.value
        else:
            status = ScheduleStatus.PENDING
            changes["due_at"] = now + retry_delay(attempts)

        try:
            await store.update_scheduled(row.id, changes)
        except StoreError as err:
            self.failures.record("scheduler.reschedule", err, schedule_id=row.id)
        return status
