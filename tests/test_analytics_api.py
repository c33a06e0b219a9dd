from __future__ import annotations

from datetime import datetime, timedelta, timezone

from fastapi.testclient import TestClient

from aligno.main import app


def _iso(dt: datetime) -> str:
    return dt.isoformat()


def _snapshot(**overrides) -> dict:
    now = datetime.now(timezone.utc)
    today = now.date()
    payload = {
        "project_id": "p-api",
        "tasks": [
            {
                "id": "t1",
                "title": "Wire checkout",
                "status": "blocked",
                "priority": "high",
                "estimated_hours": 12,
                "assigned_to": "u1",
                "sprint_id": "s1",
                "story_points": 5,
                "created_at": _iso(now - timedelta(days=3)),
            },
            {
                "id": "t2",
                "title": "Payment retries",
                "status": "pending",
                "priority": "high",
                "due_date": _iso(now - timedelta(days=2)),
                "sprint_id": "s1",
                "story_points": 3,
            },
            {
                "id": "t3",
                "title": "Release notes",
                "status": "completed",
                "estimated_hours": 2,
                "story_points": 1,
                "sprint_id": "s1",
                "updated_at": _iso(now - timedelta(days=1)),
            },
        ],
        "sprints": [
            {
                "id": "s1",
                "name": "Sprint 1",
                "start_date": (today - timedelta(days=4)).isoformat(),
                "end_date": (today + timedelta(days=10)).isoformat(),
                "status": "active",
            },
            {
                "id": "s-empty",
                "name": "Sprint 2",
                "start_date": (today + timedelta(days=11)).isoformat(),
                "end_date": (today + timedelta(days=24)).isoformat(),
            },
        ],
        "members": [{"user_id": "u1"}, {"user_id": "u2"}],
    }
    payload.update(overrides)
    return payload


def test_health_check_sets_version_header() -> None:
    client = TestClient(app)

    response = client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}
    assert response.headers["X-API-Version"] == "1.0"


def test_project_health_endpoint() -> None:
    client = TestClient(app)

    response = client.post("/v1/analytics/health", json=_snapshot())

    assert response.status_code == 200
    body = response.json()
    assert 0 <= body["overall_score"] <= 100
    assert set(body["metrics"]) == {
        "velocity", "on_time_delivery", "scope_stability", "team_load", "blockers_ratio",
    }


def test_delay_endpoint_orders_by_probability() -> None:
    client = TestClient(app)

    response = client.post("/v1/analytics/delays", json=_snapshot())

    assert response.status_code == 200
    predictions = response.json()
    assert [p["task_id"] for p in predictions] == ["t2", "t1"]
    assert predictions[0]["critical_path_impact"] is True


def test_sprint_forecast_endpoint() -> None:
    client = TestClient(app)

    response = client.post("/v1/analytics/sprints/s1/forecast", json=_snapshot())

    assert response.status_code == 200
    body = response.json()
    assert body["sprint_id"] == "s1"
    assert body["forecast"]["total_points"] == 9
    assert body["forecast"]["remaining_points"] == 8
    assert body["message"] is None


def test_sprint_without_tasks_has_no_forecast() -> None:
    client = TestClient(app)

    response = client.post("/v1/analytics/sprints/s-empty/forecast", json=_snapshot())

    assert response.status_code == 200
    assert response.json()["forecast"] is None
    assert response.json()["message"] == "No forecast available"


def test_unknown_sprint_returns_error_envelope() -> None:
    client = TestClient(app)

    response = client.post("/v1/analytics/sprints/nope/forecast", json=_snapshot())

    assert response.status_code == 404
    assert response.json()["error"]["code"] == "SPRINT_NOT_FOUND"
    assert response.headers["X-API-Version"] == "1.0"


def test_inverted_sprint_window_is_rejected() -> None:
    client = TestClient(app)
    snapshot = _snapshot(
        sprints=[
            {"id": "bad", "name": "Bad", "start_date": "2026-03-20", "end_date": "2026-03-01"}
        ]
    )

    response = client.post("/v1/analytics/health", json=snapshot)

    assert response.status_code == 422


def test_risk_endpoints() -> None:
    client = TestClient(app)

    radar = client.post("/v1/analytics/risk-radar", json=_snapshot()).json()
    register = client.post("/v1/analytics/risk-register", json=_snapshot()).json()

    assert [d["dimension"] for d in radar["dimensions"]] == [
        "Schedule", "Scope", "Resource", "Dependency", "Quality",
    ]
    assert {entry["id"] for entry in register} == {
        "risk-overdue", "risk-blocked", "risk-unassigned",
    }


def test_capacity_endpoint_horizon() -> None:
    client = TestClient(app)

    ok = client.post("/v1/analytics/capacity?months=3", json=_snapshot())
    rejected = client.post("/v1/analytics/capacity?months=0", json=_snapshot())

    assert ok.status_code == 200
    assert len(ok.json()["points"]) == 3
    assert ok.json()["team_size"] == 2
    assert rejected.status_code == 422


def test_insights_endpoint() -> None:
    client = TestClient(app)

    response = client.post("/v1/analytics/insights?months=2", json=_snapshot())

    assert response.status_code == 200
    body = response.json()
    assert len(body["capacity"]["points"]) == 2
    assert [f["sprint_id"] for f in body["sprint_forecasts"]] == ["s1"]
    assert body["health"]["status"] in {"healthy", "at-risk", "critical"}


def test_sprint_burndown_endpoint() -> None:
    client = TestClient(app)

    response = client.post("/v1/analytics/sprints/s1/burndown", json=_snapshot())

    assert response.status_code == 200
    body = response.json()
    assert body["unit"] == "hours"
    assert body["total_work"] == 14
    assert body["remaining_work"] == 12
    assert body["total_days"] == 15
    assert len(body["points"]) == 15
    assert body["points"][-1]["actual"] is None


def test_sprint_capacity_endpoint() -> None:
    client = TestClient(app)
    snapshot = _snapshot(
        sprint_capacities=[
            {"sprint_id": "s1", "user_id": "u1", "available_hours": 20},
            {"sprint_id": "s1", "user_id": "u2", "available_hours": 20},
        ]
    )

    response = client.post("/v1/analytics/sprints/s1/capacity", json=snapshot)
    missing = client.post("/v1/analytics/sprints/nope/capacity", json=snapshot)

    assert response.status_code == 200
    assert response.json()["total_capacity_hours"] == 40
    assert response.json()["planned_points"] == 9
    assert response.json()["utilization"] == 35
    assert response.json()["health"] == "underutilized"
    assert missing.status_code == 404
    assert missing.json()["error"]["code"] == "SPRINT_NOT_FOUND"


def test_inverted_time_off_window_is_rejected() -> None:
    client = TestClient(app)
    snapshot = _snapshot(
        time_off=[{"user_id": "u1", "start_date": "2026-03-20", "end_date": "2026-03-10"}]
    )

    response = client.post("/v1/analytics/capacity", json=snapshot)

    assert response.status_code == 422
    assert "TIME_OFF_WINDOW_INVALID" in response.text
