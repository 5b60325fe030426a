# tests/v1/test_posts.py
"""Tests for post submission and reporting endpoints."""

from fastapi import status


def test_create_calm_post(client) -> None:
    """A post without risk indicators is stored and left active."""
    response = client.post(
        "/api/v1/posts",
        json={
            "author_id": "student-1",
            "category": "academic",
            "title": "Study group",
            "content": "Anyone want to revise chemistry together on Friday?",
        },
    )

    assert response.status_code == status.HTTP_201_CREATED
    data = response.json()
    assert data["escalation"] is None
    assert data["post"]["status"] == "active"
    assert data["post"]["escalation_level"] == "none"


def test_create_crisis_post_escalates(client) -> None:
    """A crisis post is escalated on submission."""
    response = client.post(
        "/api/v1/posts",
        json={"author_id": "student-1", "title": "Goodbye", "content": "I want to end it all tonight"},
    )

    assert response.status_code == status.HTTP_201_CREATED
    data = response.json()
    assert data["post"]["status"] == "escalated"
    assert data["post"]["escalation_level"] == "critical"
    assert data["escalation"]["level"] == "critical"
    assert data["escalation"]["status"] == "pending"
    assert data["escalation"]["post_id"] == data["post"]["id"]


def test_get_post(client, test_post) -> None:
    response = client.get(f"/api/v1/posts/{test_post.id}")

    assert response.status_code == status.HTTP_200_OK
    assert response.json()["title"] == "Exam week"


def test_get_missing_post(client) -> None:
    response = client.get("/api/v1/posts/9999")

    assert response.status_code == status.HTTP_404_NOT_FOUND


def test_reports_escalate_at_threshold(client, test_post) -> None:
    """The third report escalates an otherwise calm post."""
    url = f"/api/v1/posts/{test_post.id}/report"

    for reporter in ("peer-1", "peer-2"):
        response = client.post(url, json={"reporter_id": reporter})
        assert response.status_code == status.HTTP_200_OK
        assert response.json()["escalation"] is None

    response = client.post(url, json={"reporter_id": "peer-3"})

    data = response.json()
    assert data["post"]["reported_count"] == 3
    assert data["escalation"]["level"] == "medium"
    assert data["escalation"]["reason"] == "Reported by 3 users"


def test_report_missing_post(client) -> None:
    response = client.post("/api/v1/posts/9999/report", json={"reporter_id": "peer-1"})

    assert response.status_code == status.HTTP_404_NOT_FOUND
