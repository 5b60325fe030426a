# tests/v1/test_notifications.py
"""Tests for notification inbox, preference and scheduling endpoints."""

import asyncio
from datetime import UTC, datetime, timedelta

import pytest
from fastapi import status

from lunavo.core.enums import NotificationType


@pytest.fixture
def stored_notifications(notification_repo):
    """Two unread replies for student-1."""
    async def _create():
        return [
            await notification_repo.create_notification(
                user_id="student-1",
                type=NotificationType.NEW_REPLY.value,
                title="New Reply",
                body=f"Reply {index}",
                data={"post_id": index},
                priority="normal",
                scheduled=False,
            )
            for index in range(2)
        ]

    return asyncio.run(_create())


def test_list_notifications(client, stored_notifications) -> None:
    response = client.get("/api/v1/notifications/users/student-1")

    assert response.status_code == status.HTTP_200_OK
    data = response.json()
    assert [item["body"] for item in data] == ["Reply 0", "Reply 1"]
    assert all(item["read"] is False for item in data)


def test_mark_read_and_filter_unread(client, stored_notifications) -> None:
    first = stored_notifications[0]

    response = client.post(f"/api/v1/notifications/{first.id}/read")
    unread = client.get("/api/v1/notifications/users/student-1", params={"unread_only": True})

    assert response.status_code == status.HTTP_204_NO_CONTENT
    assert [item["id"] for item in unread.json()] == [stored_notifications[1].id]


def test_mark_missing_notification_read(client) -> None:
    response = client.post("/api/v1/notifications/9999/read")

    assert response.status_code == status.HTTP_404_NOT_FOUND


def test_default_preferences(client) -> None:
    response = client.get("/api/v1/notifications/users/newcomer/preferences")

    assert response.status_code == status.HTTP_200_OK
    data = response.json()
    assert data["quiet_hours"] == {"enabled": True, "start_hour": 22, "end_hour": 7}
    assert data["priority_threshold"] == "normal"
    assert data["timezone"] == "UTC"


def test_update_preferences_schedules_digest(client, notification_repo) -> None:
    """Enabling digests persists the preferences and queues the next digest."""
    response = client.put(
        "/api/v1/notifications/users/student-1/preferences",
        json={
            "quiet_hours": {"enabled": True, "start_hour": 23, "end_hour": 6},
            "priority_threshold": "high",
            "digest_enabled": True,
            "digest_interval": "weekly",
            "timezone": "Africa/Harare",
        },
    )

    assert response.status_code == status.HTTP_200_OK
    assert response.json()["priority_threshold"] == "high"
    again = client.get("/api/v1/notifications/users/student-1/preferences").json()
    assert again["quiet_hours"]["start_hour"] == 23
    assert again["timezone"] == "Africa/Harare"
    pending = asyncio.run(notification_repo.pending_digest_for("student-1"))
    assert pending is not None
    assert pending.payload == {"interval": "weekly"}


def test_update_preferences_rejects_unknown_timezone(client) -> None:
    response = client.put(
        "/api/v1/notifications/users/student-1/preferences",
        json={"timezone": "Atlantis/Capital"},
    )

    assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY


def test_send_digest(client, stored_notifications) -> None:
    response = client.post("/api/v1/notifications/users/student-1/digest")

    assert response.status_code == status.HTTP_200_OK
    data = response.json()
    assert data["priority"] == "normal"
    inbox = client.get("/api/v1/notifications/users/student-1").json()
    assert inbox[-1]["title"] == "You have 2 new notifications"
    assert inbox[-1]["body"] == "• 2 new replies"


def test_send_digest_with_empty_inbox(client) -> None:
    response = client.post("/api/v1/notifications/users/nobody/digest")

    assert response.status_code == status.HTTP_200_OK
    assert response.json() is None


def test_cancel_scheduled_notification(client, dispatcher) -> None:
    now = datetime.now(UTC)
    result = asyncio.run(
        dispatcher.schedule_at(
            "student-1",
            NotificationType.MEETING_REMINDER,
            "Meeting Reminder",
            'Peer Educator Club meeting tomorrow: "Check-in"',
            now + timedelta(hours=5),
            now=now,
        )
    )
    url = f"/api/v1/notifications/scheduled/{result.schedule_id}"

    first = client.delete(url)
    second = client.delete(url)

    assert first.status_code == status.HTTP_204_NO_CONTENT
    assert second.status_code == status.HTTP_404_NOT_FOUND
