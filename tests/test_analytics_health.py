from __future__ import annotations

from datetime import timedelta

import pytest

from aligno.analytics.classification import classify_tasks
from aligno.analytics.health import (
    blockers_ratio_score,
    metric_status,
    metric_trend,
    on_time_delivery_score,
    project_status,
    scope_stability_score,
    score_project_health,
    team_load_score,
    velocity_score,
)
from aligno.schemas import Sprint


class TestScoreProjectHealth:
    def test_empty_project_is_fully_healthy(self, now) -> None:
        health = score_project_health([], now=now)

        assert health.overall_score == 100
        assert health.status == "healthy"
        assert health.summary == "Project is on track with healthy metrics"
        for metric in health.metrics.model_dump().values():
            assert metric["score"] == 100
            assert metric["status"] == "good"
            assert metric["trend"] == "up"

    def test_overdue_and_blocked_project_is_critical(self, make_task, now) -> None:
        overdue = [
            make_task(priority="high", assigned_to=None, due_date=now - timedelta(days=3))
            for _ in range(3)
        ]
        blocked = [make_task(status="blocked") for _ in range(2)]
        pending = [make_task() for _ in range(5)]

        health = score_project_health(overdue + blocked + pending, now=now)

        metrics = health.metrics
        assert metrics.velocity.score == 0
        assert metrics.on_time_delivery.score == 40
        assert metrics.scope_stability.score == 25
        assert metrics.team_load.score == 100
        assert metrics.blockers_ratio.score == 40
        assert metrics.blockers_ratio.trend == "down"
        assert health.overall_score == 36
        assert health.status == "critical"
        assert "3 overdue tasks and 2 blockers" in health.summary

    def test_recent_completions_keep_velocity_high(self, make_task, now) -> None:
        tasks = [
            make_task(status="completed", updated_at=now - timedelta(days=2))
            for _ in range(3)
        ] + [make_task() for _ in range(7)]

        health = score_project_health(tasks, now=now)

        assert health.metrics.velocity.score == 100
        assert health.overall_score == 100
        assert health.status == "healthy"

    def test_completions_outside_window_do_not_count(self, make_task, now) -> None:
        tasks = [
            make_task(status="completed", updated_at=now - timedelta(days=20)),
            make_task(),
        ]

        health = score_project_health(tasks, now=now)

        assert health.metrics.velocity.score == 0
        assert health.metrics.velocity.status == "critical"

    def test_at_risk_summary_cites_counts(self, make_task, now) -> None:
        tasks = [
            make_task(due_date=now - timedelta(days=1)),
            make_task(status="blocked"),
        ] + [make_task() for _ in range(8)]

        health = score_project_health(tasks, now=now)

        assert health.overall_score == 60
        assert health.status == "at-risk"
        assert health.summary == "1 overdue tasks and 1 blockers need attention"

    def test_work_in_progress_overload_lowers_team_load(self, make_task, now) -> None:
        tasks = [make_task(status="in_progress") for _ in range(5)] + [
            make_task() for _ in range(5)
        ]

        health = score_project_health(tasks, now=now)

        assert health.metrics.team_load.score == 60
        assert health.metrics.team_load.status == "warning"

    def test_sprints_do_not_change_the_score(self, make_task, now) -> None:
        tasks = [make_task(status="blocked"), make_task()]
        sprint = Sprint(id="s1", name="S1", start_date=now.date(), end_date=now.date())

        assert score_project_health(tasks, [sprint], now=now) == score_project_health(
            tasks, now=now
        )

    def test_reuses_precomputed_classification(self, make_task, now) -> None:
        tasks = [make_task(status="blocked"), make_task()]
        classification = classify_tasks(tasks, now)

        assert score_project_health(classification=classification) == score_project_health(
            tasks, now=now
        )

    @pytest.mark.parametrize("blocked_count", [0, 1, 3, 6, 10])
    def test_overall_score_stays_in_range(self, make_task, now, blocked_count) -> None:
        tasks = [make_task(status="blocked") for _ in range(blocked_count)] + [
            make_task(status="in_progress", due_date=now - timedelta(days=5))
            for _ in range(10 - blocked_count)
        ]

        health = score_project_health(tasks, now=now)

        assert 0 <= health.overall_score <= 100
        for metric in health.metrics.model_dump().values():
            assert 0 <= metric["score"] <= 100


class TestThresholds:
    @pytest.mark.parametrize(
        ("score", "status"),
        [(100, "good"), (70, "good"), (69.9, "warning"), (40, "warning"), (39.9, "critical")],
    )
    def test_metric_status(self, score, status) -> None:
        assert metric_status(score) == status

    @pytest.mark.parametrize(
        ("score", "trend"),
        [(75, "up"), (74.9, "stable"), (40.1, "stable"), (40, "down"), (0, "down")],
    )
    def test_metric_trend(self, score, trend) -> None:
        assert metric_trend(score) == trend

    def test_project_status_is_monotonic(self) -> None:
        order = {"critical": 0, "at-risk": 1, "healthy": 2}
        tiers = [order[project_status(score)] for score in range(101)]

        assert tiers == sorted(tiers)
        assert project_status(70) == "healthy"
        assert project_status(40) == "at-risk"
        assert project_status(39) == "critical"


def test_velocity_denominator_has_floor() -> None:
    assert velocity_score(1, 2) == 100
    assert velocity_score(0, 0) == 100


def test_team_load_at_thirty_percent_is_full_score() -> None:
    assert team_load_score(3, 10) == 100


def test_ratio_metrics_default_to_full_score_without_tasks() -> None:
    assert on_time_delivery_score(0, 0) == 100
    assert scope_stability_score(0, 0, 0) == 100
    assert team_load_score(0, 0) == 100
    assert blockers_ratio_score(0, 0) == 100


def test_ratio_metrics_floor_at_zero() -> None:
    assert on_time_delivery_score(10, 10) == 0
    assert scope_stability_score(4, 4, 8) == 0
    assert blockers_ratio_score(1, 2) == 0
