"""Sprint burndown and capacity planning.

Provides:
- sprint_burndown: daily ideal vs. actual remaining work and progress metrics
- sprint_capacity: planned hours against member availability, with a health tier
"""
from __future__ import annotations

import math
from datetime import date, datetime, timedelta
from typing import Iterable, Optional

from aligno.analytics.constants import (
    COMMITMENT_ABOVE_AVERAGE_RATIO,
    COMMITMENT_BELOW_AVERAGE_RATIO,
    SPRINT_AT_RISK_UTILIZATION,
    SPRINT_HEALTHY_UTILIZATION,
    SPRINT_MAX_UTILIZATION,
    SPRINT_OVERCOMMITTED_UTILIZATION,
)
from aligno.analytics.primitives import (
    ensure_utc,
    one_decimal,
    ratio_or_none,
    round_half_up,
    utc_now,
)
from aligno.logging_config import get_logger
from aligno.schemas import (
    BurndownPoint,
    HistoricalVelocity,
    Sprint,
    SprintBurndown,
    SprintCapacity,
    SprintMemberCapacity,
    Task,
)

logger = get_logger(__name__)


# ---------------------------------------------------------------------------
# Burndown
# ---------------------------------------------------------------------------


def _completion_day(task: Task, sprint: Sprint) -> date:
    # updated_at stands in for the completion date
    if task.updated_at is None:
        return sprint.start_date
    return task.updated_at.date()


def _percent(part: float, whole: float) -> int:
    share = ratio_or_none(part, whole)
    if share is None:
        return 0
    return round_half_up(share * 100)


def sprint_burndown(
    sprint: Sprint,
    tasks: Iterable[Task],
    now: Optional[datetime] = None,
) -> SprintBurndown:
    """Burn down the sprint's work day by day from start to end, inclusive.

    Work is measured in estimated hours when any sprint task has an
    estimate, otherwise in task count. Actual remaining work is only
    reported for days up to today.
    """
    now = ensure_utc(now) if now is not None else utc_now()
    today = now.date()

    sprint_tasks = [task for task in tasks if task.sprint_id == sprint.id]
    use_hours = any((task.estimated_hours or 0) > 0 for task in sprint_tasks)

    def work(task: Task) -> float:
        return (task.estimated_hours or 0) if use_hours else 1

    total_work = sum(work(task) for task in sprint_tasks)
    total_days = (sprint.end_date - sprint.start_date).days + 1
    ideal_per_day = total_work / ((total_days - 1) or 1)
    completions = [
        (_completion_day(task, sprint), work(task))
        for task in sprint_tasks
        if task.status == "completed"
    ]

    points: list[BurndownPoint] = []
    for index in range(total_days):
        day = sprint.start_date + timedelta(days=index)
        actual = None
        if day <= today:
            done = sum(hours for finished, hours in completions if finished <= day)
            actual = one_decimal(total_work - done)
        points.append(
            BurndownPoint(
                day=day,
                ideal=one_decimal(max(0.0, total_work - ideal_per_day * index)),
                actual=actual,
            )
        )

    if today < sprint.start_date:
        current_actual, current_ideal = float(total_work), float(total_work)
    elif today > sprint.end_date:
        current_actual, current_ideal = points[-1].actual, points[-1].ideal
    else:
        current = points[(today - sprint.start_date).days]
        current_actual, current_ideal = current.actual, current.ideal

    completed_work = total_work - current_actual
    variance = one_decimal(current_actual - current_ideal)
    days_elapsed = max(0, (today - sprint.start_date).days + 1)
    days_remaining = max(0, (sprint.end_date - today).days)

    burn_rate = completed_work / days_elapsed if days_elapsed > 0 else 0.0
    projected_on_track = (
        burn_rate > 0 and math.ceil(current_actual / burn_rate) <= days_remaining
    )

    logger.debug(
        "sprint_burndown_computed",
        sprint_id=sprint.id,
        total_work=total_work,
        remaining=current_actual,
    )

    return SprintBurndown(
        sprint_id=sprint.id,
        unit="hours" if use_hours else "tasks",
        total_work=total_work,
        completed_work=completed_work,
        remaining_work=current_actual,
        progress_percent=_percent(completed_work, total_work),
        variance=variance,
        variance_percent=_percent(variance, total_work),
        days_elapsed=days_elapsed,
        days_remaining=days_remaining,
        total_days=total_days,
        burn_rate=one_decimal(burn_rate),
        projected_on_track=projected_on_track,
        points=points,
    )


# ---------------------------------------------------------------------------
# Capacity planning
# ---------------------------------------------------------------------------


def capacity_health(utilization_percent: Optional[float]) -> str:
    if utilization_percent is None:
        return "unknown"
    if utilization_percent > SPRINT_OVERCOMMITTED_UTILIZATION:
        return "overcommitted"
    if utilization_percent > SPRINT_AT_RISK_UTILIZATION:
        return "at-risk"
    if utilization_percent > SPRINT_HEALTHY_UTILIZATION:
        return "healthy"
    return "underutilized"


def commitment_vs_history(
    planned_points: float, historical: Optional[HistoricalVelocity]
) -> Optional[str]:
    if historical is None or not historical.average_points:
        return None
    if planned_points > historical.average_points * COMMITMENT_ABOVE_AVERAGE_RATIO:
        return "above_average"
    if planned_points < historical.average_points * COMMITMENT_BELOW_AVERAGE_RATIO:
        return "below_average"
    return "in_line"


def sprint_capacity(
    sprint: Sprint,
    tasks: Iterable[Task],
    capacities: Iterable[SprintMemberCapacity],
    historical: Optional[HistoricalVelocity] = None,
) -> SprintCapacity:
    """Compare the sprint's planned hours with the hours its members have booked."""
    sprint_tasks = [task for task in tasks if task.sprint_id == sprint.id]
    planned_points = sum(task.story_points or 0 for task in sprint_tasks)
    planned_hours = sum(task.estimated_hours or 0 for task in sprint_tasks)
    total_capacity = sum(
        entry.available_hours for entry in capacities if entry.sprint_id == sprint.id
    )

    share = ratio_or_none(planned_hours, total_capacity)
    percent = share * 100 if share is not None else None
    utilization = 0
    if percent is not None:
        utilization = round_half_up(min(float(SPRINT_MAX_UTILIZATION), percent))

    return SprintCapacity(
        sprint_id=sprint.id,
        planned_points=planned_points,
        planned_hours=planned_hours,
        total_capacity_hours=total_capacity,
        utilization=utilization,
        health=capacity_health(percent),
        commitment=commitment_vs_history(planned_points, historical),
    )
