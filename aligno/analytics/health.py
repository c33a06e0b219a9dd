"""Composite project health score.

Five per-metric scores (0-100) are blended into one overall score:

- velocity: completions in the trailing window vs. 20% of all tasks
- on_time_delivery: penalises overdue work
- scope_stability: penalises overdue plus blocked work
- team_load: penalises more than 30% of tasks being in progress at once
- blockers_ratio: penalises blocked work

Per-metric ``trend`` is derived from the metric's own score, not from history.
"""
from __future__ import annotations

from datetime import datetime
from typing import Iterable, Optional

from aligno.analytics.classification import TaskClassification, classify_tasks
from aligno.analytics.constants import (
    AT_RISK_THRESHOLD,
    BLOCKERS_PENALTY,
    HEALTH_WEIGHTS,
    HEALTHY_THRESHOLD,
    OVERDUE_PENALTY,
    SCOPE_PENALTY,
    TEAM_LOAD_PENALTY,
    TEAM_LOAD_WIP_SHARE,
    TREND_DOWN_THRESHOLD,
    TREND_UP_THRESHOLD,
    VELOCITY_DENOMINATOR_FLOOR,
    VELOCITY_EXPECTED_SHARE,
)
from aligno.analytics.primitives import ratio_or_none, round_half_up
from aligno.logging_config import get_logger
from aligno.schemas import HealthMetric, HealthMetrics, ProjectHealth, Sprint, Task

logger = get_logger(__name__)

_METRIC_LABELS: dict[str, tuple[str, str]] = {
    "velocity": ("Velocity", "Team completion rate over time"),
    "on_time_delivery": ("On-Time Delivery", "Tasks delivered by due date"),
    "scope_stability": ("Scope Stability", "Scope changes and blockers"),
    "team_load": ("Team Load", "Work distribution balance"),
    "blockers_ratio": ("Blockers", "Blocked tasks ratio"),
}


def metric_status(score: float) -> str:
    if score >= HEALTHY_THRESHOLD:
        return "good"
    if score >= AT_RISK_THRESHOLD:
        return "warning"
    return "critical"


def metric_trend(score: float) -> str:
    if score >= TREND_UP_THRESHOLD:
        return "up"
    if score <= TREND_DOWN_THRESHOLD:
        return "down"
    return "stable"


def project_status(overall: int) -> str:
    if overall >= HEALTHY_THRESHOLD:
        return "healthy"
    if overall >= AT_RISK_THRESHOLD:
        return "at-risk"
    return "critical"


def velocity_score(recent_completions: int, total_tasks: int) -> float:
    if total_tasks == 0:
        return 100.0
    denominator = max(total_tasks * VELOCITY_EXPECTED_SHARE, VELOCITY_DENOMINATOR_FLOOR)
    return min(100.0, recent_completions / denominator * 100)


def _penalised(count: int, total_tasks: int, penalty: float) -> float:
    """``100 - count/total * penalty`` floored at 0; 100 when there are no tasks."""
    share = ratio_or_none(count, total_tasks)
    if share is None:
        return 100.0
    return max(0.0, 100 - share * penalty)


def on_time_delivery_score(overdue: int, total_tasks: int) -> float:
    return _penalised(overdue, total_tasks, OVERDUE_PENALTY)


def scope_stability_score(overdue: int, blocked: int, total_tasks: int) -> float:
    return _penalised(overdue + blocked, total_tasks, SCOPE_PENALTY)


def team_load_score(in_progress: int, total_tasks: int) -> float:
    share = ratio_or_none(in_progress, total_tasks)
    if share is None or share <= TEAM_LOAD_WIP_SHARE:
        return 100.0
    return max(0.0, 100 - (share - TEAM_LOAD_WIP_SHARE) * TEAM_LOAD_PENALTY)


def blockers_ratio_score(blocked: int, total_tasks: int) -> float:
    return _penalised(blocked, total_tasks, BLOCKERS_PENALTY)


def overall_score(scores: dict[str, float]) -> int:
    return round_half_up(
        sum(scores[key] * weight for key, weight in HEALTH_WEIGHTS.items())
    )


def _summary(status: str, overdue: int, blocked: int) -> str:
    if status == "healthy":
        return "Project is on track with healthy metrics"
    if status == "at-risk":
        return f"{overdue} overdue tasks and {blocked} blockers need attention"
    return (
        f"Critical issues detected - {overdue} overdue tasks and "
        f"{blocked} blockers require immediate action"
    )


def _metric(key: str, score: float) -> HealthMetric:
    name, description = _METRIC_LABELS[key]
    return HealthMetric(
        name=name,
        score=round_half_up(score),
        trend=metric_trend(score),
        status=metric_status(score),
        description=description,
    )


def score_project_health(
    tasks: Iterable[Task] = (),
    sprints: Optional[Iterable[Sprint]] = None,
    now: Optional[datetime] = None,
    classification: Optional[TaskClassification] = None,
) -> ProjectHealth:
    """Score a project's health from its tasks.

    ``sprints`` is accepted for call-site symmetry and not used by the
    current formulas. Pass ``classification`` to reuse a pass computed by
    the caller; ``tasks`` and ``now`` are then ignored.
    """
    if classification is None:
        classification = classify_tasks(tasks, now)

    total = classification.total
    overdue = len(classification.overdue)
    blocked = len(classification.blocked)

    scores = {
        "velocity": velocity_score(len(classification.recent_completions), total),
        "on_time_delivery": on_time_delivery_score(overdue, total),
        "scope_stability": scope_stability_score(overdue, blocked, total),
        "team_load": team_load_score(len(classification.in_progress), total),
        "blockers_ratio": blockers_ratio_score(blocked, total),
    }
    overall = overall_score(scores)
    status = project_status(overall)

    logger.debug(
        "project_health_scored",
        total_tasks=total,
        overall=overall,
        status=status,
    )

    return ProjectHealth(
        overall_score=overall,
        status=status,
        metrics=HealthMetrics(**{key: _metric(key, value) for key, value in scores.items()}),
        summary=_summary(status, overdue, blocked),
    )
