"""Domain events translated into notification dispatches."""

from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import TYPE_CHECKING

from lunavo.core.enums import NotificationType
from lunavo.db.time import as_utc, utcnow
from lunavo.services.notification_dispatcher import DispatchResult, NotificationDispatcher

if TYPE_CHECKING:
    from lunavo.models import Post

logger = logging.getLogger(__name__)

MEETING_REMINDER_LEADS: tuple[tuple[NotificationType, timedelta, str], ...] = (
    (NotificationType.MEETING_REMINDER, timedelta(hours=24), "tomorrow"),
    (NotificationType.MEETING_REMINDER_1H, timedelta(hours=1), "in 1 hour"),
)


async def notify_new_reply(
    dispatcher: NotificationDispatcher,
    post: Post,
    replier_id: str,
    replier_name: str,
) -> DispatchResult | None:
    """Tell a post's author about a reply; replies to one's own post are skipped."""
    if replier_id == post.author_id:
        return None
    return await dispatcher.send(
        post.author_id,
        NotificationType.NEW_REPLY,
        "New Reply",
        f'{replier_name} replied to your post: "{post.title}"',
        {"post_id": post.id, "reply_author": replier_name},
    )


async def notify_escalation_assigned(
    dispatcher: NotificationDispatcher,
    responder_id: str,
    escalation_id: int,
    post_id: int,
    level: str,
) -> DispatchResult | None:
    return await dispatcher.send(
        responder_id,
        NotificationType.ESCALATION_ASSIGNED,
        "New Escalation Assigned",
        f"A {level} level escalation requires your attention",
        {"escalation_id": escalation_id, "post_id": post_id, "level": level},
    )


async def notify_escalation_updated(
    dispatcher: NotificationDispatcher,
    responder_id: str,
    escalation_id: int,
    post_id: int,
    status: str,
) -> DispatchResult | None:
    return await dispatcher.send(
        responder_id,
        NotificationType.ESCALATION_UPDATED,
        "Escalation Updated",
        f"Escalation #{escalation_id} is now {status}",
        {"escalation_id": escalation_id, "post_id": post_id, "status": status},
    )


async def notify_badge_earned(
    dispatcher: NotificationDispatcher,
    user_id: str,
    badge_name: str,
    badge_description: str,
) -> DispatchResult | None:
    return await dispatcher.send(
        user_id,
        NotificationType.BADGE_EARNED,
        "Badge Earned! 🎉",
        f'You earned the "{badge_name}" badge: {badge_description}',
        {"badge_name": badge_name},
    )


async def notify_streak_milestone(
    dispatcher: NotificationDispatcher,
    user_id: str,
    streak_type: str,
    days: int,
) -> DispatchResult | None:
    return await dispatcher.send(
        user_id,
        NotificationType.STREAK_MILESTONE,
        "Streak Milestone! 🔥",
        f"Amazing! You've maintained a {streak_type} streak for {days} days!",
        {"streak_type": streak_type, "days": days},
    )


async def schedule_meeting_reminders(
    dispatcher: NotificationDispatcher,
    user_id: str,
    meeting_id: str,
    meeting_title: str,
    starts_at: datetime,
    *,
    now: datetime | None = None,
) -> list[DispatchResult]:
    """Schedule the 24 hour and 1 hour reminders that are still in the future.

    Returns:
        One result per reminder actually scheduled.
    """
    now = as_utc(now) if now is not None else utcnow()
    starts_at = as_utc(starts_at)
    results: list[DispatchResult] = []

    for notification_type, lead, when in MEETING_REMINDER_LEADS:
        due_at = starts_at - lead
        if due_at <= now:
            continue
        result = await dispatcher.schedule_at(
            user_id,
            notification_type,
            "Meeting Reminder",
            f'Peer Educator Club meeting {when}: "{meeting_title}"',
            due_at,
            {"meeting_id": meeting_id, "meeting_title": meeting_title},
            now=now,
        )
        if result is not None:
            results.append(result)

    logger.debug("Scheduled %d reminders for meeting %s", len(results), meeting_id)
    return results
