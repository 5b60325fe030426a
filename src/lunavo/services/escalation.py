"""Escalation lifecycle services for Lunavo."""

from __future__ import annotations

import asyncio
import logging
import weakref
from collections import Counter
from collections.abc import Mapping
from datetime import datetime
from typing import Any

from lunavo.core.enums import EscalationLevel, EscalationStatus, PostStatus
from lunavo.db.time import as_utc, utcnow
from lunavo.services.escalation_classifier import (
    CRISIS_CATEGORY,
    EscalationClassifier,
    EscalationResult,
    priority_score,
)
from lunavo.services.failures import FailureLog
from lunavo.services.notification_dispatcher import NotificationDispatcher
from lunavo.services.notification_triggers import (
    notify_escalation_assigned,
    notify_escalation_updated,
)
from lunavo.services.ports import EscalationStore, PostLike, PostStore, StoreError

logger = logging.getLogger(__name__)

OPEN_STATUSES = (EscalationStatus.PENDING.value, EscalationStatus.IN_PROGRESS.value)
UPDATABLE_FIELDS = frozenset({"status", "assigned_to", "resolved_at", "notes"})

_ALLOWED_TRANSITIONS: dict[EscalationStatus, frozenset[EscalationStatus]] = {
    EscalationStatus.PENDING: frozenset(
        {EscalationStatus.IN_PROGRESS, EscalationStatus.RESOLVED, EscalationStatus.DISMISSED}
    ),
    EscalationStatus.IN_PROGRESS: frozenset(
        {EscalationStatus.RESOLVED, EscalationStatus.DISMISSED}
    ),
    EscalationStatus.RESOLVED: frozenset(),
    EscalationStatus.DISMISSED: frozenset(),
}


class EscalationTransitionError(ValueError):
    """Raised when a status change would move an escalation backwards."""

    def __init__(self, current: str, requested: str) -> None:
        super().__init__(f"Cannot move escalation from {current!r} to {requested!r}")
        self.current = current
        self.requested = requested


def check_transition(current: str, requested: str) -> EscalationStatus:
    """Validate a status move and return the target status.

    Raises:
        EscalationTransitionError: If the move is unknown, backwards or leaves
            a terminal state.
    """
    try:
        source = EscalationStatus(current)
        target = EscalationStatus(requested)
    except ValueError as err:
        raise EscalationTransitionError(current, requested) from err

    if source == target:
        return target
    if target not in _ALLOWED_TRANSITIONS[source]:
        raise EscalationTransitionError(current, requested)
    return target


def _percent(part: int, whole: int) -> float:
    return round(part / whole * 100, 1) if whole else 0.0


class EscalationService:
    """Create, advance and rank escalation records."""

    def __init__(
        self,
        escalations: EscalationStore,
        posts: PostStore,
        dispatcher: NotificationDispatcher | None = None,
        classifier: EscalationClassifier | None = None,
        failures: FailureLog | None = None,
        locks: weakref.WeakValueDictionary[int, asyncio.Lock] | None = None,
    ) -> None:
        self.escalations = escalations
        self.posts = posts
        self.dispatcher = dispatcher
        self.classifier = classifier or EscalationClassifier()
        self.failures = failures or (dispatcher.failures if dispatcher else FailureLog())
        # post_id -> lock; an entry lives only while some task holds a reference
        self._post_locks = locks if locks is not None else weakref.WeakValueDictionary()

    async def create(
        self,
        post_id: int,
        level: EscalationLevel | str,
        reason: str,
        assigned_to: str | None = None,
    ) -> Any | None:
        """Open an escalation for a post, or return the one it already has.

        Args:
            post_id: Escalated post.
            level: Detected severity.
            reason: Human-readable detection reason.
            assigned_to: Optional responder to assign immediately.

        Returns:
            The escalation record, or None if it could not be stored.
        """
        level_value = EscalationLevel(level).value
        async with self._lock_for(post_id):
            try:
                existing = await self.escalations.get_escalation_for_post(post_id)
                if existing is not None:
                    logger.debug("Post %s already escalated as %s", post_id, existing.id)
                    return existing
                record = await self.escalations.create_escalation(
                    post_id=post_id,
                    level=level_value,
                    reason=reason,
                    assigned_to=assigned_to,
                )
            except StoreError as err:
                self.failures.record("escalation.create", err, post_id=post_id, level=level_value)
                return None

        logger.info("Created %s escalation %s for post %s", level_value, record.id, post_id)
        if assigned_to:
            await self._notify_assigned(record)
        return record

    def _lock_for(self, post_id: int) -> asyncio.Lock:
        lock = self._post_locks.get(post_id)
        if lock is None:
            lock = asyncio.Lock()
            self._post_locks[post_id] = lock
        return lock

    async def get(self, escalation_id: int) -> Any | None:
        try:
            return await self.escalations.get_escalation(escalation_id)
        except StoreError as err:
            self.failures.record("escalation.get", err, escalation_id=escalation_id)
            return None

    async def update(self, escalation_id: int, changes: Mapping[str, Any]) -> Any | None:
        """Apply a partial update to an escalation.

        Only ``status``, ``assigned_to``, ``resolved_at`` and ``notes`` are
        honoured; other keys are ignored. Moving to resolved or dismissed
        stamps ``resolved_at`` when the caller did not supply one.

        Returns:
            The updated record, or None when it does not exist or could not
            be stored.

        Raises:
            EscalationTransitionError: If the status change is not allowed.
        """
        current = await self.get(escalation_id)
        if current is None:
            return None

        applied = {key: value for key, value in changes.items() if key in UPDATABLE_FIELDS}
        status_changed = False
        if "status" in applied and applied["status"] is not None:
            requested = applied["status"]
            target = check_transition(current.status, str(getattr(requested, "value", requested)))
            applied["status"] = target.value
            status_changed = target.value != current.status
            if target.is_terminal and applied.get("resolved_at") is None and current.resolved_at is None:
                applied["resolved_at"] = utcnow()
        else:
            applied.pop("status", None)

        new_assignee = applied.get("assigned_to")
        assignee_changed = bool(new_assignee) and new_assignee != current.assigned_to

        if not applied:
            return current

        try:
            updated = await self.escalations.update_escalation(escalation_id, applied)
        except StoreError as err:
            self.failures.record("escalation.update", err, escalation_id=escalation_id)
            return None
        if updated is None:
            return None

        if assignee_changed:
            await self._notify_assigned(updated)
        if status_changed and updated.assigned_to:
            await self._notify_updated(updated)
        return updated

    async def queue(
        self,
        assigned_to: str | None = None,
        now: datetime | None = None,
    ) -> list[Any]:
        """Return open escalations, most urgent first."""
        try:
            records = await self.escalations.list_escalations(
                statuses=OPEN_STATUSES,
                assigned_to=assigned_to,
            )
        except StoreError as err:
            self.failures.record("escalation.queue", err, assigned_to=assigned_to)
            return []

        now = now or utcnow()
        return sorted(
            records,
            key=lambda record: priority_score(record.level, record.detected_at, now),
            reverse=True,
        )

    def _auto_result(self, post: PostLike) -> EscalationResult:
        detection = self.classifier.classify(post)
        if detection.escalated:
            return detection
        if getattr(post, "category", None) == CRISIS_CATEGORY:
            return EscalationResult(EscalationLevel.HIGH, "Post in crisis category", 0.8)
        reports = getattr(post, "reported_count", 0) or 0
        return EscalationResult(
            EscalationLevel.MEDIUM,
            f"Reported by {reports} users",
            0.5,
        )

    async def auto_escalate(self, post: Any) -> Any | None:
        """Escalate a stored post if the classifier says it needs a responder.

        Returns:
            The escalation record, or None when the post does not need one or
            the record could not be created.
        """
        current_level = getattr(post, "escalation_level", None) or EscalationLevel.NONE.value
        if current_level != EscalationLevel.NONE.value:
            try:
                return await self.escalations.get_escalation_for_post(post.id)
            except StoreError as err:
                self.failures.record("escalation.lookup", err, post_id=post.id)
                return None

        if not self.classifier.should_escalate(post):
            return None

        result = self._auto_result(post)
        try:
            await self.posts.update_post(
                post.id,
                {
                    "status": PostStatus.ESCALATED.value,
                    "escalation_level": result.level.value,
                    "escalation_reason": result.reason,
                },
            )
        except StoreError as err:
            self.failures.record("escalation.mark_post", err, post_id=post.id)

        return await self.create(post.id, result.level, result.reason)

    async def redetect(self, post_id: int) -> EscalationResult | None:
        """Re-run classification for a post and overwrite its stored level."""
        try:
            post = await self.posts.get_post(post_id)
        except StoreError as err:
            self.failures.record("escalation.redetect", err, post_id=post_id)
            return None
        if post is None:
            return None

        result = self.classifier.classify(post)
        changes: dict[str, Any] = {
            "escalation_level": result.level.value,
            "escalation_reason": result.reason or None,
        }
        if result.escalated and post.status == PostStatus.ACTIVE.value:
            changes["status"] = PostStatus.ESCALATED.value
        try:
            await self.posts.update_post(post_id, changes)
        except StoreError as err:
            self.failures.record("escalation.redetect", err, post_id=post_id)
            return None

        if result.escalated:
            await self.create(post_id, result.level, result.reason)
        logger.info("Re-detected post %s as %s", post_id, result.level.value)
        return result

    async def analytics(self) -> dict[str, Any]:
        """Aggregate escalation counts, response time and rates."""
        try:
            records = await self.escalations.list_escalations()
            total_posts = await self.posts.count_posts()
            categories = await self.posts.categories_for({record.post_id for record in records})
        except StoreError as err:
            self.failures.record("escalation.analytics", err)
            records, total_posts, categories = [], 0, {}

        by_level = {level.value: 0 for level in EscalationLevel}
        by_level.update(Counter(record.level for record in records))
        by_status = {status.value: 0 for status in EscalationStatus}
        by_status.update(Counter(record.status for record in records))

        resolved = [
            record
            for record in records
            if record.status == EscalationStatus.RESOLVED.value and record.resolved_at is not None
        ]
        response_hours = [
            (as_utc(record.resolved_at) - as_utc(record.detected_at)).total_seconds() / 3600
            for record in resolved
        ]
        average = round(sum(response_hours) / len(response_hours), 1) if response_hours else 0.0

        daily = Counter(as_utc(record.detected_at).date().isoformat() for record in records)
        by_category = Counter(
            categories[record.post_id] for record in records if record.post_id in categories
        )

        return {
            "total_escalations": len(records),
            "by_level": by_level,
            "by_status": by_status,
            "average_response_hours": average,
            "resolution_rate": _percent(len(resolved), len(records)),
            "escalation_rate": _percent(len(records), total_posts),
            "daily": dict(sorted(daily.items())),
            "by_category": dict(by_category),
        }

    async def _notify_assigned(self, record: Any) -> None:
        if self.dispatcher is None or not record.assigned_to:
            return
        await notify_escalation_assigned(
            self.dispatcher, record.assigned_to, record.id, record.post_id, record.level
        )

    async def _notify_updated(self, record: Any) -> None:
        if self.dispatcher is None:
            return
        await notify_escalation_updated(
            self.dispatcher, record.assigned_to, record.id, record.post_id, record.status
        )
