"""Priority, quiet-hours and smart-timing rules for notifications."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from types import MappingProxyType
from typing import Mapping
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from lunavo.core.enums import DigestInterval, NotificationType, Priority
from lunavo.core.settings import settings

logger = logging.getLogger(__name__)

WORK_HOURS = (9, 17)
EVENING_HOURS = (18, 22)
WORK_HOURS_LOW_DELAY_SECONDS = 5 * 60
EVENING_DELAY_SECONDS = 10 * 60

TYPE_PRIORITY_MAP: Mapping[NotificationType, Priority] = MappingProxyType({
    NotificationType.ESCALATION_ASSIGNED: Priority.CRITICAL,
    NotificationType.ESCALATION_UPDATED: Priority.URGENT,
    NotificationType.NEW_REPLY: Priority.NORMAL,
    NotificationType.POST_UPDATED: Priority.LOW,
    NotificationType.BADGE_EARNED: Priority.NORMAL,
    NotificationType.STREAK_MILESTONE: Priority.NORMAL,
    NotificationType.MEETING_REMINDER: Priority.HIGH,
    NotificationType.MEETING_REMINDER_1H: Priority.URGENT,
    NotificationType.SYSTEM: Priority.NORMAL,
    NotificationType.ADMIN: Priority.HIGH,
})


@dataclass(frozen=True)
class QuietHours:
    enabled: bool = True
    start_hour: int = 22
    end_hour: int = 7


@dataclass
class NotificationPreferences:
    """Per-user delivery preferences."""

    user_id: str
    quiet_hours: QuietHours = field(default_factory=QuietHours)
    priority_threshold: Priority = Priority.NORMAL
    grouping_enabled: bool = True
    smart_timing_enabled: bool = True
    digest_enabled: bool = False
    digest_interval: DigestInterval = DigestInterval.DAILY
    timezone: str = "UTC"


def default_preferences(user_id: str) -> NotificationPreferences:
    """Return the preferences applied to users who never saved their own."""
    return NotificationPreferences(
        user_id=user_id,
        quiet_hours=QuietHours(
            enabled=settings.default_quiet_hours_enabled,
            start_hour=settings.default_quiet_hours_start,
            end_hour=settings.default_quiet_hours_end,
        ),
        priority_threshold=Priority(settings.default_priority_threshold),
        digest_interval=DigestInterval(settings.default_digest_interval),
        timezone=settings.default_timezone,
    )


def type_value(notification_type: NotificationType | str) -> str:
    """Return the wire value of a notification type given as enum or string."""
    return str(getattr(notification_type, "value", notification_type))


def priority_for(notification_type: NotificationType | str) -> Priority:
    """Return the fixed priority of a notification type; unknown types are normal."""
    try:
        return TYPE_PRIORITY_MAP[NotificationType(notification_type)]
    except ValueError:
        return Priority.NORMAL


def local_time(now: datetime, timezone: str) -> datetime:
    """Express ``now`` in the recipient's timezone.

    Naive datetimes are assumed to already be local wall-clock time.
    """
    if now.tzinfo is None:
        return now
    try:
        return now.astimezone(ZoneInfo(timezone))
    except (ZoneInfoNotFoundError, ValueError):
        logger.warning("Unknown timezone %r, falling back to UTC", timezone)
        return now.astimezone(ZoneInfo("UTC"))


def should_send(priority: Priority, prefs: NotificationPreferences) -> bool:
    """Return True when ``priority`` meets the recipient's threshold."""
    return priority.weight >= prefs.priority_threshold.weight


def is_quiet_hours(quiet_hours: QuietHours, now: datetime) -> bool:
    """Return True if ``now`` falls inside the quiet window.

    A window whose start hour is after its end hour wraps past midnight.
    """
    if not quiet_hours.enabled:
        return False

    hour = now.hour
    if quiet_hours.start_hour > quiet_hours.end_hour:
        return hour >= quiet_hours.start_hour or hour < quiet_hours.end_hour
    return quiet_hours.start_hour <= hour < quiet_hours.end_hour


def seconds_until_quiet_end(quiet_hours: QuietHours, now: datetime) -> int:
    quiet_end = now.replace(hour=quiet_hours.end_hour, minute=0, second=0, microsecond=0)
    if quiet_end <= now:
        quiet_end += timedelta(days=1)
    if now.tzinfo is None:
        return int((quiet_end - now).total_seconds())
    # Elapsed time, across any UTC offset change.
    return int((quiet_end.astimezone(UTC) - now.astimezone(UTC)).total_seconds())


def smart_delay(priority: Priority, prefs: NotificationPreferences, now: datetime) -> int:
    """Return how many seconds to hold a notification back; 0 means send now.

    Critical and urgent notifications are never delayed, quiet hours included.
    """
    if not prefs.smart_timing_enabled or priority.bypasses_quiet_hours:
        return 0

    local_now = local_time(now, prefs.timezone)

    if is_quiet_hours(prefs.quiet_hours, local_now):
        return seconds_until_quiet_end(prefs.quiet_hours, local_now)

    hour = local_now.hour
    if WORK_HOURS[0] <= hour < WORK_HOURS[1] and priority == Priority.LOW:
        return WORK_HOURS_LOW_DELAY_SECONDS
    if EVENING_HOURS[0] <= hour < EVENING_HOURS[1] and priority in (Priority.NORMAL, Priority.LOW):
        return EVENING_DELAY_SECONDS
    return 0
