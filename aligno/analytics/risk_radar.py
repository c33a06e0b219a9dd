from __future__ import annotations

from datetime import datetime
from typing import Iterable, Optional

from aligno.analytics.classification import TaskClassification, classify_tasks
from aligno.analytics.constants import (
    RISK_ALERT_THRESHOLD,
    RISK_CALLOUT_THRESHOLD,
    RISK_CALLOUTS,
    RISK_LEVEL_FLOOR,
    RISK_LEVELS,
    RISK_MULTIPLIERS,
)
from aligno.analytics.primitives import mean, round_half_up
from aligno.logging_config import get_logger
from aligno.schemas import RiskDimension, RiskRadar, Sprint, Task

logger = get_logger(__name__)


def risk_level(score: float) -> str:
    for threshold, label in RISK_LEVELS:
        if score >= threshold:
            return label
    return RISK_LEVEL_FLOOR


def dimension_risk(count: int, denominator: int, multiplier: float) -> int:
    """``min(100, count / max(1, denominator) * multiplier)``, rounded."""
    return round_half_up(min(100.0, count / max(1, denominator) * multiplier))


def risk_radar(
    tasks: Iterable[Task] = (),
    sprints: Optional[Iterable[Sprint]] = None,
    now: Optional[datetime] = None,
    classification: Optional[TaskClassification] = None,
) -> RiskRadar:
    """Five normalised risk dimensions for a radar chart.

    Dimensions come back in the fixed order Schedule, Scope, Resource,
    Dependency, Quality; the highest one wins ties by that order. ``sprints``
    is accepted but not used by the current formulas.
    """
    if classification is None:
        classification = classify_tasks(tasks, now)

    total = classification.total
    counts = {
        "Schedule": (len(classification.overdue), total),
        "Scope": (len(classification.missing_estimate), total),
        "Resource": (len(classification.unassigned_high_priority), total),
        "Dependency": (len(classification.blocked), total),
        "Quality": (len(classification.rushed_completed), len(classification.completed)),
    }

    dimensions = []
    for name, (count, denominator) in counts.items():
        risk = dimension_risk(count, denominator, RISK_MULTIPLIERS[name])
        dimensions.append(
            RiskDimension(
                dimension=name,
                risk=risk,
                threshold=RISK_ALERT_THRESHOLD,
                level=risk_level(risk),
            )
        )

    highest = dimensions[0]
    for dimension in dimensions[1:]:
        if dimension.risk > highest.risk:
            highest = dimension

    average = round_half_up(mean(d.risk for d in dimensions) or 0.0)
    callout = None
    if highest.risk > RISK_CALLOUT_THRESHOLD:
        callout = RISK_CALLOUTS[highest.dimension]

    logger.debug(
        "risk_radar_computed",
        total_tasks=total,
        highest=highest.dimension,
        highest_risk=highest.risk,
    )

    return RiskRadar(
        dimensions=dimensions,
        average_risk=average,
        average_level=risk_level(average),
        highest_dimension=highest.dimension,
        highest_risk=highest.risk,
        callout=callout,
    )
