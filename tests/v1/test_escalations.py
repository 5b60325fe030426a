# tests/v1/test_escalations.py
"""Tests for responder escalation endpoints."""

from unittest.mock import AsyncMock

import pytest
from fastapi import status


@pytest.fixture
def escalated_post(client):
    """Submit a crisis post and return the submit response body."""
    response = client.post(
        "/api/v1/posts",
        json={"author_id": "student-9", "title": "Tonight", "content": "I want to die, I can't go on"},
    )
    assert response.status_code == status.HTTP_201_CREATED
    return response.json()


def test_queue_lists_open_escalations(client, escalated_post) -> None:
    response = client.get("/api/v1/escalations/queue")

    assert response.status_code == status.HTTP_200_OK
    [entry] = response.json()
    assert entry["id"] == escalated_post["escalation"]["id"]
    assert entry["priority_score"] >= 100


def test_get_escalation(client, escalated_post) -> None:
    escalation_id = escalated_post["escalation"]["id"]

    response = client.get(f"/api/v1/escalations/{escalation_id}")

    assert response.status_code == status.HTTP_200_OK
    assert response.json()["level"] == "critical"


def test_get_missing_escalation(client) -> None:
    response = client.get("/api/v1/escalations/9999")

    assert response.status_code == status.HTTP_404_NOT_FOUND


def test_assign_and_resolve(client, escalated_post, counselor, mocker) -> None:
    """Assignment pushes to the responder; resolving stamps the resolution time."""
    notifier = AsyncMock()
    notifier.push.return_value = "ticket-1"
    mocker.patch("lunavo.api.v1.dependencies.get_notifier", return_value=notifier)
    url = f"/api/v1/escalations/{escalated_post['escalation']['id']}"

    assigned = client.patch(url, json={"assigned_to": counselor.id, "status": "in-progress"})
    resolved = client.patch(url, json={"status": "resolved", "notes": "Connected to campus counselling"})

    assert assigned.status_code == status.HTTP_200_OK
    assert assigned.json()["assigned_to"] == counselor.id
    assert resolved.status_code == status.HTTP_200_OK
    assert resolved.json()["resolved_at"] is not None
    pushed = [call.args[0].title for call in notifier.push.await_args_list]
    assert pushed[0] == "New Escalation Assigned"
    assert "Escalation Updated" in pushed


def test_backward_transition_conflicts(client, escalated_post) -> None:
    url = f"/api/v1/escalations/{escalated_post['escalation']['id']}"
    client.patch(url, json={"status": "dismissed"})

    response = client.patch(url, json={"status": "pending"})

    assert response.status_code == status.HTTP_409_CONFLICT


def test_update_rejects_unknown_status(client, escalated_post) -> None:
    url = f"/api/v1/escalations/{escalated_post['escalation']['id']}"

    response = client.patch(url, json={"status": "closed"})

    assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY


def test_update_missing_escalation(client) -> None:
    response = client.patch("/api/v1/escalations/9999", json={"notes": "x"})

    assert response.status_code == status.HTTP_404_NOT_FOUND


def test_analytics(client, escalated_post, test_post) -> None:
    response = client.get("/api/v1/escalations/analytics")

    assert response.status_code == status.HTTP_200_OK
    data = response.json()
    assert data["total_escalations"] == 1
    assert data["by_level"]["critical"] == 1
    assert data["escalation_rate"] == 50.0
    assert data["by_category"] == {"general": 1}


def test_redetect_calm_post(client, test_post) -> None:
    response = client.post(f"/api/v1/escalations/posts/{test_post.id}/detect")

    assert response.status_code == status.HTTP_200_OK
    assert response.json() == {
        "level": "none",
        "reason": "",
        "confidence": 0.0,
        "should_escalate": False,
    }


def test_redetect_missing_post(client) -> None:
    response = client.post("/api/v1/escalations/posts/9999/detect")

    assert response.status_code == status.HTTP_404_NOT_FOUND
