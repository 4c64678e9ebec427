"""Tests for admin endpoints."""

from fastapi.testclient import TestClient

from cafe_finder.api.app import create_app

ADMIN = {"X-Admin-Token": "admin-token"}


def test_admin_requires_token(container) -> None:
    client = TestClient(create_app(container))

    assert client.get("/admin/health").status_code == 401
    assert (
        client.get("/admin/health", headers={"X-Admin-Token": "wrong"}).status_code
        == 401
    )
    assert client.get("/admin/health", headers=ADMIN).json() == {"status": "ok"}


def test_admin_analytics_endpoint(container) -> None:
    client = TestClient(create_app(container))
    client.get("/cafes/c1")
    client.get("/cafes/c1")
    client.get("/cafes", params={"q": "Buzz"})

    response = client.get("/admin/analytics", headers=ADMIN)

    assert response.status_code == 200
    data = response.json()
    assert data["total_views"] == 2
    assert data["total_searches"] == 1
    assert data["popular_cafes"] == [{"cafe_name": "Quiet Corner", "view_count": 2}]
    assert data["popular_searches"] == [{"search_query": "buzz", "search_count": 1}]


def test_admin_sessions_endpoint(container) -> None:
    client = TestClient(create_app(container))
    client.post(
        "/session/location/preset",
        json={"name": "Chicago"},
        headers={"X-Session-Id": "session-1"},
    )

    response = client.get("/admin/sessions", headers=ADMIN)

    assert response.status_code == 200
    assert response.json()["sessions"] == [
        {
            "id": "session-1",
            "location_status": "resolved",
            "tracking": False,
            "result_count": 0,
        }
    ]
