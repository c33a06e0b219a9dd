"""Combined project insights computed against a single captured ``now``."""
from __future__ import annotations

from datetime import datetime
from typing import Optional

from aligno.analytics.capacity import VarianceSource, forecast_capacity
from aligno.analytics.classification import classify_tasks
from aligno.analytics.constants import DEFAULT_FORECAST_MONTHS
from aligno.analytics.delay import predict_delays
from aligno.analytics.health import score_project_health
from aligno.analytics.primitives import ensure_utc, utc_now
from aligno.analytics.risk_radar import risk_radar
from aligno.analytics.risk_register import build_risk_register
from aligno.analytics.sprint_forecast import forecast_sprint, historical_velocity
from aligno.analytics.sprint_planning import sprint_burndown, sprint_capacity
from aligno.logging_config import get_logger
from aligno.schemas import (
    ProjectInsights,
    ProjectSnapshot,
    Sprint,
    SprintBurndown,
    SprintCapacity,
    SprintForecast,
)

logger = get_logger(__name__)


def find_sprint(snapshot: ProjectSnapshot, sprint_id: str) -> Sprint:
    for sprint in snapshot.sprints:
        if sprint.id == sprint_id:
            return sprint
    raise ValueError("SPRINT_NOT_FOUND")


def forecast_snapshot_sprint(
    snapshot: ProjectSnapshot,
    sprint_id: str,
    now: Optional[datetime] = None,
) -> Optional[SprintForecast]:
    """Forecast one sprint of the snapshot using the project's velocity history."""
    sprint = find_sprint(snapshot, sprint_id)
    history = historical_velocity(snapshot.sprints, snapshot.tasks)
    return forecast_sprint(sprint, snapshot.tasks, history, now)


def burndown_snapshot_sprint(
    snapshot: ProjectSnapshot,
    sprint_id: str,
    now: Optional[datetime] = None,
) -> SprintBurndown:
    return sprint_burndown(find_sprint(snapshot, sprint_id), snapshot.tasks, now)


def plan_snapshot_sprint_capacity(
    snapshot: ProjectSnapshot, sprint_id: str
) -> SprintCapacity:
    sprint = find_sprint(snapshot, sprint_id)
    history = historical_velocity(snapshot.sprints, snapshot.tasks)
    return sprint_capacity(sprint, snapshot.tasks, snapshot.sprint_capacities, history)


def compute_insights(
    snapshot: ProjectSnapshot,
    now: Optional[datetime] = None,
    variance: Optional[VarianceSource] = None,
    months: int = DEFAULT_FORECAST_MONTHS,
) -> ProjectInsights:
    now = ensure_utc(now) if now is not None else utc_now()
    classification = classify_tasks(snapshot.tasks, now)
    history = historical_velocity(snapshot.sprints, snapshot.tasks)

    active = [sprint for sprint in snapshot.sprints if sprint.status == "active"]
    sprint_forecasts = []
    for sprint in active:
        forecast = forecast_sprint(sprint, snapshot.tasks, history, now)
        if forecast is not None:
            sprint_forecasts.append(forecast)

    insights = ProjectInsights(
        generated_at=now,
        health=score_project_health(classification=classification),
        delay_predictions=predict_delays(classification=classification),
        risk_radar=risk_radar(classification=classification),
        risk_register=build_risk_register(classification=classification),
        capacity=forecast_capacity(
            snapshot.members,
            time_off=snapshot.time_off,
            months=months,
            variance=variance,
            classification=classification,
        ),
        sprint_forecasts=sprint_forecasts,
        sprint_burndowns=[sprint_burndown(sprint, snapshot.tasks, now) for sprint in active],
        sprint_capacities=[
            sprint_capacity(sprint, snapshot.tasks, snapshot.sprint_capacities, history)
            for sprint in active
        ],
    )

    logger.info(
        "project_insights_computed",
        project_id=snapshot.project_id,
        overall_health=insights.health.overall_score,
        delayed_tasks=len(insights.delay_predictions),
        active_sprints=len(sprint_forecasts),
    )
    return insights
