#!/usr/bin/env python3
"""End-to-end smoke test for the Aligno analytics endpoints.

Posts a project snapshot to every analytics endpoint and checks that each
response carries the version header and the expected top-level keys.

Usage:
    python scripts/smoke_test_analytics.py --base-url http://localhost:8000 [--snapshot snapshot.json]
"""
from __future__ import annotations

import argparse
import json
import sys
from datetime import date, datetime, timedelta, timezone
from pathlib import Path
from typing import Any

import requests


# ---------------------------------------------------------------------------
# Expected response structure validators
# ---------------------------------------------------------------------------

def _has_keys(data: dict[str, Any], keys: set[str], label: str) -> list[str]:
    """Return a list of error messages for missing keys."""
    missing = keys - set(data.keys())
    if missing:
        return [f"{label}: missing keys {sorted(missing)}"]
    return []


def _is_list(body: Any, label: str) -> list[str]:
    if not isinstance(body, list):
        return [f"{label}: expected a JSON array"]
    return []


def validate_health(body: dict[str, Any]) -> list[str]:
    return _has_keys(body, {"overall_score", "status", "metrics", "summary"}, "health")


def validate_delays(body: Any) -> list[str]:
    errors = _is_list(body, "delays")
    for item in body if not errors else []:
        errors.extend(
            _has_keys(item, {"task_id", "delay_probability", "reasons", "confidence"}, "delays")
        )
    return errors


def validate_sprint_forecast(body: dict[str, Any]) -> list[str]:
    return _has_keys(body, {"sprint_id", "forecast", "message"}, "sprint forecast")


def validate_sprint_burndown(body: dict[str, Any]) -> list[str]:
    return _has_keys(
        body, {"unit", "total_work", "remaining_work", "points", "projected_on_track"},
        "sprint burndown",
    )


def validate_sprint_capacity(body: dict[str, Any]) -> list[str]:
    return _has_keys(
        body, {"planned_hours", "total_capacity_hours", "utilization", "health"},
        "sprint capacity",
    )


def validate_risk_radar(body: dict[str, Any]) -> list[str]:
    errors = _has_keys(
        body, {"dimensions", "average_risk", "highest_dimension", "callout"}, "risk radar"
    )
    if len(body.get("dimensions", [])) != 5:
        errors.append("risk radar: expected 5 dimensions")
    return errors


def validate_risk_register(body: Any) -> list[str]:
    return _is_list(body, "risk register")


def validate_capacity(body: dict[str, Any]) -> list[str]:
    return _has_keys(
        body, {"months", "team_size", "points", "recommendations"}, "capacity"
    )


def validate_insights(body: dict[str, Any]) -> list[str]:
    return _has_keys(
        body,
        {"generated_at", "health", "delay_predictions", "risk_radar", "risk_register",
         "capacity", "sprint_forecasts", "sprint_burndowns", "sprint_capacities"},
        "insights",
    )


# ---------------------------------------------------------------------------
# Sample snapshot
# ---------------------------------------------------------------------------

def sample_snapshot() -> dict[str, Any]:
    now = datetime.now(timezone.utc)
    today = date.today()
    return {
        "project_id": "smoke",
        "tasks": [
            {"id": "t1", "title": "Design onboarding", "status": "in_progress",
             "priority": "high", "estimated_hours": 16, "assigned_to": "u1",
             "sprint_id": "s1", "story_points": 5},
            {"id": "t2", "title": "Fix login redirect", "status": "blocked",
             "priority": "medium", "estimated_hours": 6, "assigned_to": "u2",
             "sprint_id": "s1", "story_points": 3},
            {"id": "t3", "title": "Billing export", "status": "pending", "priority": "high",
             "due_date": (now - timedelta(days=2)).isoformat(), "sprint_id": "s1",
             "story_points": 8},
            {"id": "t4", "title": "Release checklist", "status": "completed",
             "estimated_hours": 2, "tracked_hours": 2, "sprint_id": "s1", "story_points": 1,
             "updated_at": (now - timedelta(days=1)).isoformat()},
        ],
        "sprints": [
            {"id": "s1", "name": "Sprint 1", "status": "active",
             "start_date": (today - timedelta(days=5)).isoformat(),
             "end_date": (today + timedelta(days=9)).isoformat()},
        ],
        "members": [{"user_id": "u1"}, {"user_id": "u2"}],
        "time_off": [],
        "sprint_capacities": [
            {"sprint_id": "s1", "user_id": "u1", "available_hours": 40},
            {"sprint_id": "s1", "user_id": "u2", "available_hours": 32},
        ],
    }


# ---------------------------------------------------------------------------
# Endpoint test definitions
# ---------------------------------------------------------------------------

ENDPOINT_TESTS: list[dict[str, Any]] = [
    {"name": "POST /v1/analytics/health", "path": "/v1/analytics/health",
     "validator": validate_health},
    {"name": "POST /v1/analytics/delays", "path": "/v1/analytics/delays",
     "validator": validate_delays},
    {"name": "POST /v1/analytics/sprints/{id}/forecast",
     "path": "/v1/analytics/sprints/{sprint_id}/forecast",
     "validator": validate_sprint_forecast},
    {"name": "POST /v1/analytics/sprints/{id}/burndown",
     "path": "/v1/analytics/sprints/{sprint_id}/burndown",
     "validator": validate_sprint_burndown},
    {"name": "POST /v1/analytics/sprints/{id}/capacity",
     "path": "/v1/analytics/sprints/{sprint_id}/capacity",
     "validator": validate_sprint_capacity},
    {"name": "POST /v1/analytics/risk-radar", "path": "/v1/analytics/risk-radar",
     "validator": validate_risk_radar},
    {"name": "POST /v1/analytics/risk-register", "path": "/v1/analytics/risk-register",
     "validator": validate_risk_register},
    {"name": "POST /v1/analytics/capacity", "path": "/v1/analytics/capacity",
     "params": {"months": 3}, "validator": validate_capacity},
    {"name": "POST /v1/analytics/insights", "path": "/v1/analytics/insights",
     "params": {"months": 3}, "validator": validate_insights},
]


# ---------------------------------------------------------------------------
# Runner
# ---------------------------------------------------------------------------

def run_smoke_tests(base_url: str, snapshot: dict[str, Any]) -> bool:
    """Execute all smoke tests and return True if all passed."""
    base_url = base_url.rstrip("/")
    sprints = snapshot.get("sprints") or [{"id": "missing"}]
    sprint_id = sprints[0]["id"]
    passed = 0
    failed = 0
    results: list[tuple[str, bool, str]] = []

    for test in ENDPOINT_TESTS:
        name = test["name"]
        url = f"{base_url}{test['path'].format(sprint_id=sprint_id)}"

        try:
            resp = requests.post(url, params=test.get("params"), json=snapshot, timeout=30)
        except requests.RequestException as exc:
            results.append((name, False, f"Connection error: {exc}"))
            failed += 1
            continue

        errors: list[str] = []

        if resp.status_code != 200:
            errors.append(f"HTTP {resp.status_code} (expected 200)")

        api_version = resp.headers.get("X-API-Version")
        if api_version != "1.0":
            errors.append(
                f"X-API-Version header: got {api_version!r} (expected '1.0')"
            )

        if resp.status_code == 200:
            try:
                body = resp.json()
            except ValueError:
                errors.append("Response is not valid JSON")
                body = None

            if body is not None:
                errors.extend(test["validator"](body))

        if errors:
            results.append((name, False, "; ".join(errors)))
            failed += 1
        else:
            results.append((name, True, "OK"))
            passed += 1

    print()
    print("=" * 60)
    print("ANALYTICS SMOKE TEST RESULTS")
    print("=" * 60)
    print(f"Base URL   : {base_url}")
    print(f"Project ID : {snapshot.get('project_id')}")
    print("-" * 60)

    for name, success, detail in results:
        status = "PASS" if success else "FAIL"
        print(f"  [{status}] {name}")
        if not success:
            print(f"         {detail}")

    print("-" * 60)
    print(f"Total: {passed + failed} | Passed: {passed} | Failed: {failed}")
    print("=" * 60)

    return failed == 0


def main() -> None:
    parser = argparse.ArgumentParser(
        description="Smoke test for Aligno analytics endpoints",
    )
    parser.add_argument(
        "--base-url",
        default="http://localhost:8000",
        help="Base URL of the analytics API (default: http://localhost:8000)",
    )
    parser.add_argument(
        "--snapshot",
        type=Path,
        help="Path to a project snapshot JSON file (default: built-in sample)",
    )
    args = parser.parse_args()

    snapshot = json.loads(args.snapshot.read_text()) if args.snapshot else sample_snapshot()
    all_passed = run_smoke_tests(args.base_url, snapshot)
    sys.exit(0 if all_passed else 1)


if __name__ == "__main__":
    main()
