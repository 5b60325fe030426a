from datetime import UTC, datetime, timedelta
from types import SimpleNamespace

import pytest

from lunavo.core.enums import DigestInterval, NotificationType, Priority, ScheduleKind
from lunavo.repositories import NotificationRepository, UserRepository
from lunavo.services.notification_digest import (
    DigestService,
    group_notifications,
    group_title,
    next_digest_time,
)
from lunavo.services.notification_dispatcher import NotificationDispatcher
from lunavo.services.notification_priority import NotificationPreferences

START = datetime(2025, 3, 12, 10, 0, tzinfo=UTC)


def note(notification_type: NotificationType | str, minutes: int = 0) -> SimpleNamespace:
    return SimpleNamespace(type=notification_type, created_at=START + timedelta(minutes=minutes))


def test_group_counts_cover_every_notification() -> None:
    notifications = [
        note("new-reply"),
        note("badge-earned", 1),
        note("new-reply", 2),
        note("escalation-assigned", 3),
        note("new-reply", 4),
    ]

    groups = group_notifications(notifications)

    assert sum(group.count for group in groups) == len(notifications)
    assert [group.group_id for group in groups] == [
        "new-reply-normal",
        "badge-earned-normal",
        "escalation-assigned-critical",
    ]
    assert groups[0].title == "3 new replies"
    assert groups[2].priority == Priority.CRITICAL


def test_replies_and_badges_within_window() -> None:
    notifications = [note("new-reply", minute) for minute in (0, 3, 6)]
    notifications += [note("badge-earned", minute) for minute in (8, 12)]

    groups = group_notifications(notifications)

    assert [(group.count, group.title) for group in groups] == [
        (3, "3 new replies"),
        (2, "2 badges earned"),
    ]


def test_group_accepts_enum_types() -> None:
    notifications = [note(NotificationType.NEW_REPLY, minute) for minute in (0, 3, 6)]
    notifications += [note(NotificationType.BADGE_EARNED, minute) for minute in (8, 12)]

    groups = group_notifications(notifications)

    assert [(group.group_id, group.title) for group in groups] == [
        ("new-reply-normal", "3 new replies"),
        ("badge-earned-normal", "2 badges earned"),
    ]
    assert groups[0].type == "new-reply"


def test_group_window_splits_late_arrivals() -> None:
    groups = group_notifications([note("new-reply"), note("new-reply", 10), note("new-reply", 20)])

    assert [group.count for group in groups] == [2, 1]
    assert groups[1].group_id == "new-reply-normal-2"


def test_group_without_window_ignores_time() -> None:
    groups = group_notifications(
        [note("new-reply"), note("new-reply", 90)], window_minutes=None
    )

    assert len(groups) == 1
    assert groups[0].count == 2


def test_group_titles_pluralize() -> None:
    assert group_title("new-reply", 1) == "1 new reply"
    assert group_title("badge-earned", 2) == "2 badges earned"
    assert group_title("meeting-reminder-1h", 3) == "3 meetings starting soon"
    assert group_title("something-else", 2) == "2 notifications"


def test_next_digest_time() -> None:
    now = datetime(2025, 3, 12, 10, 42, 17, tzinfo=UTC)

    assert next_digest_time(DigestInterval.HOURLY, now) == datetime(2025, 3, 12, 11, 0, tzinfo=UTC)
    assert next_digest_time("daily", now) == datetime(2025, 3, 13, 9, 0, tzinfo=UTC)
    assert next_digest_time("weekly", now) == datetime(2025, 3, 19, 9, 0, tzinfo=UTC)
    assert next_digest_time("fortnightly", now) is None


@pytest.fixture
def digests(
    notification_repo: NotificationRepository, dispatcher: NotificationDispatcher
) -> DigestService:
    return DigestService(notification_repo, dispatcher)


async def _store(repo: NotificationRepository, user_id: str, notification_type: str) -> None:
    await repo.create_notification(
        user_id=user_id,
        type=notification_type,
        title="t",
        body="b",
        data={},
        priority="normal",
        scheduled=False,
    )


@pytest.mark.asyncio
async def test_build_digest_summarizes_unread(
    digests: DigestService,
    notification_repo: NotificationRepository,
    noon: datetime,
) -> None:
    await _store(notification_repo, "student-1", NotificationType.NEW_REPLY.value)
    await _store(notification_repo, "student-1", NotificationType.NEW_REPLY.value)
    await _store(notification_repo, "student-1", NotificationType.BADGE_EARNED.value)

    result = await digests.build_digest("student-1", now=noon)

    assert result is not None
    stored = await notification_repo.list_notifications("student-1")
    digest = stored[-1]
    assert digest.type == NotificationType.SYSTEM.value
    assert digest.title == "You have 3 new notifications"
    assert digest.body == "• 2 new replies\n• 1 badge earned"
    assert digest.data == {"digest": True, "count": 3}


@pytest.mark.asyncio
async def test_build_digest_skips_earlier_digests(
    digests: DigestService,
    notification_repo: NotificationRepository,
    noon: datetime,
) -> None:
    await _store(notification_repo, "student-1", NotificationType.NEW_REPLY.value)
    await digests.build_digest("student-1", now=noon)

    await digests.build_digest("student-1", now=noon)

    stored = await notification_repo.list_notifications("student-1")
    assert stored[-1].title == "You have 1 new notification"


@pytest.mark.asyncio
async def test_build_digest_with_nothing_unread(digests: DigestService, noon: datetime) -> None:
    assert await digests.build_digest("nobody", now=noon) is None


@pytest.mark.asyncio
async def test_schedule_digest_once(
    digests: DigestService,
    notification_repo: NotificationRepository,
    noon: datetime,
) -> None:
    prefs = NotificationPreferences(
        user_id="student-1", digest_enabled=True, digest_interval=DigestInterval.HOURLY
    )

    schedule_id = await digests.schedule_digest(prefs, now=noon)
    second = await digests.schedule_digest(prefs, now=noon)

    assert schedule_id is not None
    assert second is None
    row = await notification_repo.get_scheduled(schedule_id)
    assert row.kind == ScheduleKind.DIGEST.value
    assert row.payload == {"interval": "hourly"}
    assert row.due_at.replace(tzinfo=UTC) == datetime(2025, 3, 12, 13, 0, tzinfo=UTC)


@pytest.mark.asyncio
async def test_schedule_digest_disabled(digests: DigestService, noon: datetime) -> None:
    prefs = NotificationPreferences(user_id="student-1", digest_enabled=False)

    assert await digests.schedule_digest(prefs, now=noon) is None


@pytest.mark.asyncio
async def test_build_digest_lists_items_when_grouping_disabled(
    digests: DigestService,
    notification_repo: NotificationRepository,
    user_repo: UserRepository,
    noon: datetime,
) -> None:
    await user_repo.save_preferences(NotificationPreferences(user_id="student-1", grouping_enabled=False))
    for title in ("Someone replied to your post", "Another reply"):
        await notification_repo.create_notification(
            user_id="student-1",
            type=NotificationType.NEW_REPLY.value,
            title=title,
            body="b",
            data={},
            priority="normal",
            scheduled=False,
        )

    await digests.build_digest("student-1", now=noon)

    stored = await notification_repo.list_notifications("student-1")
    assert stored[-1].body == "• Someone replied to your post\n• Another reply"


@pytest.mark.asyncio
async def test_schedule_digest_uses_recipient_timezone(
    digests: DigestService,
    notification_repo: NotificationRepository,
    noon: datetime,
) -> None:
    prefs = NotificationPreferences(
        user_id="student-1",
        digest_enabled=True,
        digest_interval=DigestInterval.DAILY,
        timezone="Africa/Harare",
    )

    schedule_id = await digests.schedule_digest(prefs, now=noon)

    row = await notification_repo.get_scheduled(schedule_id)
    # 09:00 in Harare (UTC+2)
    assert row.due_at.replace(tzinfo=UTC) == datetime(2025, 3, 13, 7, 0, tzinfo=UTC)
