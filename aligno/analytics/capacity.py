"""Monthly capacity vs. demand forecast with hiring recommendations.

Capacity per month is ``team_size * 160h`` minus booked time off, scaled by a
seasonal factor. Demand spreads the remaining estimated work evenly over the
horizon, grows 5% per month and is perturbed by a variance multiplier in
[0.8, 1.2] drawn from an injectable ``VarianceSource``.
"""
from __future__ import annotations

import math
import random
from datetime import datetime
from typing import Iterable, Optional, Protocol, Sequence

from aligno.analytics.classification import TaskClassification, classify_tasks
from aligno.analytics.constants import (
    DEFAULT_FORECAST_MONTHS,
    DEFAULT_SEASONAL_FACTOR,
    DEFAULT_TASK_HOURS,
    DEMAND_GROWTH_PER_MONTH,
    DEMAND_VARIANCE_MAX,
    DEMAND_VARIANCE_MIN,
    DESIGN_KEYWORDS,
    DESIGN_TASKS_PER_MEMBER,
    HOURS_PER_PERSON_MONTH,
    MAX_UTILIZATION,
    MONTH_ABBREVIATIONS,
    OVER_MIN_MONTHS,
    OVER_UTILIZATION,
    SEASONAL_FACTORS,
    SEVERE_MIN_MONTHS,
    SEVERE_UTILIZATION,
    SHORT_TERM_MONTHS,
    SHORT_TERM_UTILIZATION,
)
from aligno.analytics.primitives import (
    mean,
    ratio_or_none,
    round_half_up,
)
from aligno.logging_config import get_logger
from aligno.schemas import (
    CapacityForecast,
    CapacityForecastPoint,
    HiringRecommendation,
    Task,
    TeamMember,
    TimeOffInterval,
)

logger = get_logger(__name__)


# ---------------------------------------------------------------------------
# Variance sources
# ---------------------------------------------------------------------------


class VarianceSource(Protocol):
    def next_variance(self) -> float:
        ...


def _check_variance(value: float) -> float:
    if not DEMAND_VARIANCE_MIN <= value <= DEMAND_VARIANCE_MAX:
        raise ValueError("INVALID_VARIANCE")
    return value


class UniformVariance:
    """Uniform draws in [0.8, 1.2); pass ``seed`` for reproducible forecasts."""

    def __init__(self, seed: Optional[int] = None) -> None:
        self._rng = random.Random(seed)

    def next_variance(self) -> float:
        spread = DEMAND_VARIANCE_MAX - DEMAND_VARIANCE_MIN
        return DEMAND_VARIANCE_MIN + self._rng.random() * spread


class FixedVariance:
    def __init__(self, value: float = 1.0) -> None:
        self.value = _check_variance(value)

    def next_variance(self) -> float:
        return self.value


class SequenceVariance:
    """Replays the given multipliers in order, cycling when exhausted."""

    def __init__(self, values: Sequence[float]) -> None:
        if not values:
            raise ValueError("INVALID_VARIANCE")
        self.values = [_check_variance(value) for value in values]
        self._index = 0

    def next_variance(self) -> float:
        value = self.values[self._index % len(self.values)]
        self._index += 1
        return value


# ---------------------------------------------------------------------------
# Capacity and demand
# ---------------------------------------------------------------------------


def seasonal_factor(month_index: int) -> float:
    return SEASONAL_FACTORS.get(month_index, DEFAULT_SEASONAL_FACTOR)


def period_label(year: int, month_index: int) -> str:
    return f"{MONTH_ABBREVIATIONS[month_index]} {year % 100:02d}"


def time_off_by_month(intervals: Iterable[TimeOffInterval]) -> dict[tuple[int, int], float]:
    """Absent hours keyed by ``(year, month_index)`` of each interval's start."""
    buckets: dict[tuple[int, int], float] = {}
    for interval in intervals:
        key = (interval.start_date.year, interval.start_date.month - 1)
        days = (interval.end_date - interval.start_date).days
        buckets[key] = buckets.get(key, 0.0) + days * interval.hours_per_day
    return buckets


def monthly_capacity(team_size: int, time_off_hours: float, month_index: int) -> float:
    raw = team_size * HOURS_PER_PERSON_MONTH - time_off_hours
    return max(0.0, raw * seasonal_factor(month_index))


def utilization(demand: float, capacity: float) -> float:
    share = ratio_or_none(demand, capacity)
    if share is None:
        return 0.0
    return min(float(MAX_UTILIZATION), share * 100)


def _is_design_task(task: Task) -> bool:
    title = task.title.lower()
    return any(keyword in title for keyword in DESIGN_KEYWORDS)


# ---------------------------------------------------------------------------
# Hiring rules
# ---------------------------------------------------------------------------


def hiring_recommendations(
    points: list[CapacityForecastPoint],
    tasks: Iterable[Task],
    team_size: int,
) -> list[HiringRecommendation]:
    recommendations: list[HiringRecommendation] = []
    if not points:
        return recommendations

    severe = [p for p in points if p.utilization > SEVERE_UTILIZATION]
    over = [p for p in points if p.utilization > OVER_UTILIZATION]

    if len(severe) >= SEVERE_MIN_MONTHS:
        average_gap = mean(p.demand - p.capacity for p in severe) or 0.0
        recommendations.append(
            HiringRecommendation(
                role="Developer",
                count=max(1, math.ceil(average_gap / HOURS_PER_PERSON_MONTH)),
                urgency="high",
                reason=f"{len(severe)} months show >{SEVERE_UTILIZATION}% utilization",
                start_period=points[0].period,
            )
        )
    elif len(over) >= OVER_MIN_MONTHS:
        recommendations.append(
            HiringRecommendation(
                role="Developer",
                count=1,
                urgency="medium",
                reason=f"{len(over)} months exceed capacity",
                start_period=over[0].period,
            )
        )

    design_tasks = [task for task in tasks if _is_design_task(task)]
    if len(design_tasks) > team_size * DESIGN_TASKS_PER_MEMBER:
        start = points[1] if len(points) > 1 else points[-1]
        recommendations.append(
            HiringRecommendation(
                role="UI/UX Designer",
                count=1,
                urgency="medium",
                reason="High volume of design-related tasks detected",
                start_period=start.period,
            )
        )

    short_term = [
        p for p in points[:SHORT_TERM_MONTHS] if p.utilization > SHORT_TERM_UTILIZATION
    ]
    if short_term and not any(r.urgency == "high" for r in recommendations):
        recommendations.append(
            HiringRecommendation(
                role="Contractor",
                count=1,
                urgency="low",
                reason=f"Short-term capacity gap in next {SHORT_TERM_MONTHS} months",
                start_period=short_term[0].period,
            )
        )

    return recommendations


def forecast_capacity(
    members: Sequence[TeamMember],
    tasks: Iterable[Task] = (),
    time_off: Iterable[TimeOffInterval] = (),
    months: int = DEFAULT_FORECAST_MONTHS,
    now: Optional[datetime] = None,
    variance: Optional[VarianceSource] = None,
    classification: Optional[TaskClassification] = None,
) -> CapacityForecast:
    """Project capacity and demand for ``months`` calendar months from ``now``.

    Demand counts incomplete tasks only, at their estimate or 4 hours when
    unestimated. Design-task detection looks at every task title. Pass
    ``classification`` to reuse a pass computed by the caller; ``tasks`` and
    ``now`` are then ignored.
    """
    if months < 1:
        raise ValueError("INVALID_FORECAST_HORIZON")
    if classification is None:
        classification = classify_tasks(tasks, now)
    now = classification.now
    if variance is None:
        variance = UniformVariance()

    team_size = len(members) or 1
    absent_hours = time_off_by_month(time_off)

    remaining_hours = sum(
        task.estimated_hours or DEFAULT_TASK_HOURS for task in classification.incomplete
    )
    average_demand = remaining_hours / months

    points: list[CapacityForecastPoint] = []
    for i in range(months):
        offset = now.month - 1 + i
        year, month_index = now.year + offset // 12, offset % 12

        capacity = monthly_capacity(
            team_size, absent_hours.get((year, month_index), 0.0), month_index
        )
        demand = (
            average_demand
            * variance.next_variance()
            * (1 + i * DEMAND_GROWTH_PER_MONTH)
        )
        points.append(
            CapacityForecastPoint(
                period=period_label(year, month_index),
                capacity=round_half_up(capacity),
                demand=round_half_up(demand),
                utilization=round_half_up(utilization(demand, capacity)),
            )
        )

    recommendations = hiring_recommendations(points, classification.tasks, team_size)
    average_utilization = round_half_up(mean(p.utilization for p in points) or 0.0)

    logger.debug(
        "capacity_forecast_computed",
        months=months,
        team_size=team_size,
        average_utilization=average_utilization,
        recommendations=len(recommendations),
    )

    return CapacityForecast(
        months=months,
        team_size=team_size,
        points=points,
        recommendations=recommendations,
        average_utilization=average_utilization,
    )
