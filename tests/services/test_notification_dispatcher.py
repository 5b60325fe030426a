from datetime import UTC, datetime
from unittest.mock import AsyncMock

import pytest

from lunavo.core.enums import NotificationType, Priority, ScheduleStatus
from lunavo.models import UserAccount
from lunavo.repositories import NotificationRepository, UserRepository
from lunavo.services.failures import FailureLog
from lunavo.services.notification_dispatcher import NotificationDispatcher
from lunavo.services.notification_priority import NotificationPreferences, QuietHours
from lunavo.services.ports import PushDeliveryError, StoreError

LATE_NIGHT = datetime(2025, 3, 12, 23, 0, tzinfo=UTC)


@pytest.fixture
def notifier() -> AsyncMock:
    mock = AsyncMock()
    mock.push.return_value = "ticket-1"
    return mock


@pytest.fixture
def push_dispatcher(
    notification_repo: NotificationRepository,
    user_repo: UserRepository,
    notifier: AsyncMock,
    failures: FailureLog,
) -> NotificationDispatcher:
    return NotificationDispatcher(notification_repo, user_repo, notifier=notifier, failures=failures)


@pytest.mark.asyncio
async def test_send_pushes_immediately(
    push_dispatcher: NotificationDispatcher,
    notifier: AsyncMock,
    counselor: UserAccount,
    notification_repo: NotificationRepository,
    noon: datetime,
) -> None:
    result = await push_dispatcher.send(
        counselor.id, NotificationType.NEW_REPLY, "New Reply", "Someone replied", {"post_id": 4}, now=noon
    )

    assert result is not None
    assert result.delivered
    assert result.ticket_id == "ticket-1"
    assert result.priority == Priority.NORMAL
    message = notifier.push.await_args.args[0]
    assert message.token == counselor.push_token
    assert message.data == {"post_id": 4, "type": "new-reply", "notification_id": result.notification_id}
    stored = await notification_repo.list_notifications(counselor.id)
    assert [event.scheduled for event in stored] == [False]


@pytest.mark.asyncio
async def test_send_below_threshold_is_dropped(
    push_dispatcher: NotificationDispatcher,
    user_repo: UserRepository,
    notification_repo: NotificationRepository,
    notifier: AsyncMock,
    noon: datetime,
) -> None:
    await user_repo.save_preferences(
        NotificationPreferences(user_id="student-1", priority_threshold=Priority.HIGH)
    )

    result = await push_dispatcher.send(
        "student-1", NotificationType.BADGE_EARNED, "Badge", "You earned a badge", now=noon
    )

    assert result is None
    assert await notification_repo.list_notifications("student-1") == []
    notifier.push.assert_not_awaited()


@pytest.mark.asyncio
async def test_send_during_quiet_hours_is_deferred(
    push_dispatcher: NotificationDispatcher,
    notification_repo: NotificationRepository,
    notifier: AsyncMock,
) -> None:
    result = await push_dispatcher.send(
        "student-1", NotificationType.NEW_REPLY, "New Reply", "Someone replied", now=LATE_NIGHT
    )

    assert result is not None
    assert result.scheduled
    assert result.delay_seconds == 8 * 3600
    notifier.push.assert_not_awaited()
    row = await notification_repo.get_scheduled(result.schedule_id)
    assert row.status == ScheduleStatus.PENDING.value
    assert row.payload["priority"] == "normal"
    assert row.payload["data"]["notification_id"] == result.notification_id
    assert row.due_at.replace(tzinfo=UTC) == datetime(2025, 3, 13, 7, 0, tzinfo=UTC)


@pytest.mark.asyncio
async def test_critical_bypasses_quiet_hours(
    push_dispatcher: NotificationDispatcher,
    notifier: AsyncMock,
    counselor: UserAccount,
) -> None:
    result = await push_dispatcher.send(
        counselor.id, NotificationType.ESCALATION_ASSIGNED, "New Escalation Assigned", "...", now=LATE_NIGHT
    )

    assert result is not None
    assert result.delivered
    assert result.priority == Priority.CRITICAL
    notifier.push.assert_awaited_once()


@pytest.mark.asyncio
async def test_recipient_timezone_controls_quiet_hours(
    push_dispatcher: NotificationDispatcher,
    user_repo: UserRepository,
) -> None:
    await user_repo.save_preferences(
        NotificationPreferences(
            user_id="student-1",
            quiet_hours=QuietHours(True, 22, 7),
            timezone="America/New_York",
        )
    )

    # 23:00 UTC is 19:00 in New York: evening, not quiet hours.
    result = await push_dispatcher.send(
        "student-1", NotificationType.NEW_REPLY, "New Reply", "...", now=LATE_NIGHT
    )

    assert result is not None
    assert result.delay_seconds == 600


@pytest.mark.asyncio
async def test_send_without_push_token_stores_in_app_only(
    push_dispatcher: NotificationDispatcher,
    notifier: AsyncMock,
    noon: datetime,
) -> None:
    result = await push_dispatcher.send(
        "student-1", NotificationType.NEW_REPLY, "New Reply", "...", now=noon
    )

    assert result is not None
    assert not result.delivered
    assert result.ticket_id is None
    notifier.push.assert_not_awaited()


@pytest.mark.asyncio
async def test_push_failure_is_recorded(
    push_dispatcher: NotificationDispatcher,
    notifier: AsyncMock,
    counselor: UserAccount,
    failures: FailureLog,
    noon: datetime,
) -> None:
    notifier.push.side_effect = PushDeliveryError("provider unavailable")

    result = await push_dispatcher.send(
        counselor.id, NotificationType.NEW_REPLY, "New Reply", "...", now=noon
    )

    assert result is None
    [record] = failures.for_operation("notification.push")
    assert record.error_type == "PushDeliveryError"
    assert record.context["user_id"] == counselor.id


@pytest.mark.asyncio
async def test_store_failure_is_recorded(
    user_repo: UserRepository,
    failures: FailureLog,
    noon: datetime,
) -> None:
    store = AsyncMock()
    store.create_notification.side_effect = StoreError("disk full")
    dispatcher = NotificationDispatcher(store, user_repo, failures=failures)

    result = await dispatcher.send("student-1", NotificationType.NEW_REPLY, "t", "b", now=noon)

    assert result is None
    assert len(failures.for_operation("notification.create")) == 1


@pytest.mark.asyncio
async def test_recipient_lookup_failure_falls_back_to_defaults(
    notification_repo: NotificationRepository,
    failures: FailureLog,
    noon: datetime,
) -> None:
    recipients = AsyncMock()
    recipients.get_recipient.side_effect = StoreError("timeout")
    dispatcher = NotificationDispatcher(notification_repo, recipients, failures=failures)

    result = await dispatcher.send("student-1", NotificationType.NEW_REPLY, "t", "b", now=noon)

    assert result is not None
    assert len(failures.for_operation("notification.recipient_lookup")) == 1


@pytest.mark.asyncio
async def test_schedule_at_and_cancel(
    dispatcher: NotificationDispatcher,
    notification_repo: NotificationRepository,
    noon: datetime,
) -> None:
    due = datetime(2025, 3, 13, 11, 0, tzinfo=UTC)

    result = await dispatcher.schedule_at(
        "student-1", NotificationType.MEETING_REMINDER, "Meeting Reminder", "tomorrow", due, now=noon
    )

    assert result is not None
    assert result.delay_seconds == 23 * 3600
    assert await dispatcher.cancel(result.schedule_id)
    assert not await dispatcher.cancel(result.schedule_id)
    row = await notification_repo.get_scheduled(result.schedule_id)
    assert row.status == ScheduleStatus.CANCELLED.value


@pytest.mark.asyncio
async def test_cancel_unknown_schedule(dispatcher: NotificationDispatcher) -> None:
    assert not await dispatcher.cancel(9999)
