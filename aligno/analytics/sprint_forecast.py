"""Sprint completion forecasting (points per day).

Provides:
- historical_velocity: rolling average over the project's recent completed sprints
- forecast_sprint: projected/required velocity, likelihood, risk tier and actions
"""
from __future__ import annotations

import math
from datetime import date, datetime, timedelta
from typing import Iterable, Optional

from aligno.analytics.constants import (
    AT_RISK_LIKELIHOOD,
    HIGH_CONFIDENCE_MIN_ELAPSED_DAYS,
    HIGH_CONFIDENCE_MIN_SPRINTS,
    HISTORICAL_SPRINT_LENGTH_DAYS,
    HISTORICAL_SPRINT_LIMIT,
    MAX_RECOMMENDED_ACTIONS,
    MEDIUM_CONFIDENCE_MIN_ELAPSED_DAYS,
    MEDIUM_CONFIDENCE_MIN_SPRINTS,
    NO_VELOCITY_NOT_STARTED_LIKELIHOOD,
    NO_VELOCITY_STARTED_LIKELIHOOD,
    ON_TRACK_LIKELIHOOD,
    PACE_BELOW_AVERAGE_RATIO,
    VELOCITY_TREND_THRESHOLD,
)
from aligno.analytics.primitives import (
    clamp,
    ensure_utc,
    mean,
    one_decimal,
    round_half_up,
    utc_now,
)
from aligno.logging_config import get_logger
from aligno.schemas import (
    HistoricalVelocity,
    Sprint,
    SprintForecast,
    SprintVelocity,
    Task,
)

logger = get_logger(__name__)


def historical_velocity(
    sprints: Iterable[Sprint],
    tasks: Iterable[Task],
    limit: int = HISTORICAL_SPRINT_LIMIT,
) -> Optional[HistoricalVelocity]:
    """Summarise the most recent completed sprints, newest first.

    Returns ``None`` when the project has no completed sprints.
    """
    completed_sprints = sorted(
        (sprint for sprint in sprints if sprint.status == "completed"),
        key=lambda sprint: sprint.end_date,
        reverse=True,
    )[:limit]
    if not completed_sprints:
        return None

    done_by_sprint: dict[str, list[Task]] = {}
    for task in tasks:
        if task.status == "completed" and task.sprint_id is not None:
            done_by_sprint.setdefault(task.sprint_id, []).append(task)

    velocities = []
    for sprint in completed_sprints:
        done = done_by_sprint.get(sprint.id, [])
        velocities.append(
            SprintVelocity(
                sprint_id=sprint.id,
                name=sprint.name,
                points=sum(task.story_points or 0 for task in done),
                hours=sum(task.estimated_hours or 0 for task in done),
            )
        )

    trend = 0.0
    if len(velocities) >= 2:
        trend = velocities[0].points - velocities[-1].points

    return HistoricalVelocity(
        sprints=velocities,
        average_points=one_decimal(mean(v.points for v in velocities) or 0.0),
        average_hours=one_decimal(mean(v.hours for v in velocities) or 0.0),
        trend=trend,
    )


def completion_likelihood(
    remaining_points: float,
    projected_velocity: float,
    required_velocity: float,
    elapsed_days: int,
) -> int:
    if remaining_points == 0:
        return 100
    if projected_velocity == 0:
        if elapsed_days == 0:
            return NO_VELOCITY_NOT_STARTED_LIKELIHOOD
        return NO_VELOCITY_STARTED_LIKELIHOOD
    return int(clamp(round_half_up(projected_velocity / required_velocity * 100), 0, 100))


def risk_tier(likelihood: int) -> str:
    if likelihood >= ON_TRACK_LIKELIHOOD:
        return "on_track"
    if likelihood >= AT_RISK_LIKELIHOOD:
        return "at_risk"
    return "behind"


def forecast_confidence(
    historical: Optional[HistoricalVelocity], elapsed_days: int
) -> str:
    sprint_count = len(historical.sprints) if historical is not None else 0
    if (
        sprint_count >= HIGH_CONFIDENCE_MIN_SPRINTS
        and elapsed_days >= HIGH_CONFIDENCE_MIN_ELAPSED_DAYS
    ):
        return "high"
    if (
        elapsed_days >= MEDIUM_CONFIDENCE_MIN_ELAPSED_DAYS
        or sprint_count >= MEDIUM_CONFIDENCE_MIN_SPRINTS
    ):
        return "medium"
    return "low"


def velocity_trend(historical: Optional[HistoricalVelocity]) -> str:
    if historical is None:
        return "stable"
    if historical.trend > VELOCITY_TREND_THRESHOLD:
        return "increasing"
    if historical.trend < -VELOCITY_TREND_THRESHOLD:
        return "decreasing"
    return "stable"


def estimated_completion_date(
    today: date, remaining_points: float, projected_velocity: float
) -> Optional[date]:
    """Date the remaining work finishes at the projected pace, if it can be estimated."""
    if remaining_points <= 0:
        return today
    if projected_velocity <= 0:
        return None
    return today + timedelta(days=math.ceil(remaining_points / projected_velocity))


def _recommended_actions(
    tier: str,
    sprint_tasks: list[Task],
    current_velocity: float,
    average_velocity: float,
) -> list[str]:
    actions: list[str] = []
    if tier == "behind":
        actions.append("Consider reducing sprint scope")
        actions.append("Identify and remove blockers")
    if tier == "at_risk":
        actions.append("Focus on high-priority items")
        actions.append("Review task estimates")
    if any(task.status == "pending" and task.priority == "high" for task in sprint_tasks):
        actions.append("Start high-priority pending tasks")
    if current_velocity < average_velocity * PACE_BELOW_AVERAGE_RATIO:
        actions.append("Current pace is below historical average")
    return actions[:MAX_RECOMMENDED_ACTIONS]


def forecast_sprint(
    sprint: Sprint,
    tasks: Iterable[Task],
    historical: Optional[HistoricalVelocity] = None,
    now: Optional[datetime] = None,
) -> Optional[SprintForecast]:
    """Forecast one sprint; ``None`` means no forecast is available (no tasks).

    ``tasks`` may be the whole project's tasks; only those referencing the
    sprint are considered.
    """
    now = ensure_utc(now) if now is not None else utc_now()
    today = now.date()

    sprint_tasks = [task for task in tasks if task.sprint_id == sprint.id]
    if not sprint_tasks:
        logger.debug("sprint_forecast_unavailable", sprint_id=sprint.id)
        return None

    total_points = sum(task.story_points or 0 for task in sprint_tasks)
    completed_points = sum(
        task.story_points or 0 for task in sprint_tasks if task.status == "completed"
    )
    remaining_points = total_points - completed_points

    elapsed_days = max(0, (today - sprint.start_date).days)
    days_remaining = max(0, (sprint.end_date - today).days)

    current_velocity = completed_points / elapsed_days if elapsed_days > 0 else 0.0
    if historical is not None and historical.average_points:
        average_velocity = historical.average_points / HISTORICAL_SPRINT_LENGTH_DAYS
    else:
        average_velocity = current_velocity
    projected_velocity = current_velocity if current_velocity > 0 else average_velocity
    required_velocity = (
        remaining_points / days_remaining if days_remaining > 0 else remaining_points
    )

    likelihood = completion_likelihood(
        remaining_points, projected_velocity, required_velocity, elapsed_days
    )
    tier = risk_tier(likelihood)

    logger.debug(
        "sprint_forecast_computed",
        sprint_id=sprint.id,
        remaining_points=remaining_points,
        likelihood=likelihood,
        risk_tier=tier,
    )

    return SprintForecast(
        sprint_id=sprint.id,
        total_points=total_points,
        completed_points=completed_points,
        remaining_points=remaining_points,
        estimated_completion_date=estimated_completion_date(
            today, remaining_points, projected_velocity
        ),
        confidence=forecast_confidence(historical, elapsed_days),
        risk_tier=tier,
        completion_likelihood=likelihood,
        velocity_trend=velocity_trend(historical),
        days_remaining=days_remaining,
        projected_velocity=round(projected_velocity, 2),
        required_velocity=round(required_velocity, 2),
        recommended_actions=_recommended_actions(
            tier, sprint_tasks, current_velocity, average_velocity
        ),
    )
