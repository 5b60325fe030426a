"""Enumerations shared across detection, escalation and notification code."""

from __future__ import annotations

from enum import Enum


class EscalationLevel(str, Enum):
    """Severity assigned to a post by the escalation classifier."""

    NONE = "none"
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class EscalationStatus(str, Enum):
    """Lifecycle state of an escalation record."""

    PENDING = "pending"
    IN_PROGRESS = "in-progress"
    RESOLVED = "resolved"
    DISMISSED = "dismissed"

    @property
    def is_terminal(self) -> bool:
        return self in (EscalationStatus.RESOLVED, EscalationStatus.DISMISSED)


class PostStatus(str, Enum):
    """Visibility state of a forum post."""

    ACTIVE = "active"
    ESCALATED = "escalated"
    REMOVED = "removed"


class Priority(str, Enum):
    """Delivery priority of a notification."""

    LOW = "low"
    NORMAL = "normal"
    HIGH = "high"
    URGENT = "urgent"
    CRITICAL = "critical"

    @property
    def weight(self) -> int:
        return PRIORITY_WEIGHTS[self]

    @property
    def bypasses_quiet_hours(self) -> bool:
        return self in (Priority.CRITICAL, Priority.URGENT)


PRIORITY_WEIGHTS: dict[Priority, int] = {
    Priority.CRITICAL: 5,
    Priority.URGENT: 4,
    Priority.HIGH: 3,
    Priority.NORMAL: 2,
    Priority.LOW: 1,
}


class NotificationType(str, Enum):
    """Kinds of events that produce user notifications."""

    ESCALATION_ASSIGNED = "escalation-assigned"
    ESCALATION_UPDATED = "escalation-updated"
    NEW_REPLY = "new-reply"
    POST_UPDATED = "post-updated"
    BADGE_EARNED = "badge-earned"
    STREAK_MILESTONE = "streak-milestone"
    MEETING_REMINDER = "meeting-reminder"
    MEETING_REMINDER_1H = "meeting-reminder-1h"
    SYSTEM = "system"
    ADMIN = "admin"


class DigestInterval(str, Enum):
    """How often a user's digest notification is assembled."""

    HOURLY = "hourly"
    DAILY = "daily"
    WEEKLY = "weekly"


class ScheduleStatus(str, Enum):
    """State of a persisted delayed delivery."""

    PENDING = "pending"
    DELIVERED = "delivered"
    FAILED = "failed"
    CANCELLED = "cancelled"


class ScheduleKind(str, Enum):
    """What the scheduler does when a row becomes due."""

    PUSH = "push"
    DIGEST = "digest"
