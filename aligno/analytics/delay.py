"""Per-task delay prediction.

An additive heuristic: each rule that fires adds to the delay probability
and records a reason. Rule order is significant because reasons are
reported in evaluation order.
"""
from __future__ import annotations

import math
from datetime import datetime
from typing import Iterable, Optional

from aligno.analytics.classification import (
    TaskClassification,
    classify_tasks,
    is_missing_estimate,
    is_unassigned_high_priority,
)
from aligno.analytics.constants import (
    DELAY_BASE_CONFIDENCE,
    DELAY_BLOCKED_DAYS,
    DELAY_BLOCKED_PROBABILITY,
    DELAY_CONFIDENCE_PER_REASON,
    DELAY_DUE_SOON_DAYS,
    DELAY_DUE_SOON_PROBABILITY,
    DELAY_MAX_CONFIDENCE,
    DELAY_MIN_DAYS,
    DELAY_MIN_PROBABILITY,
    DELAY_MIN_REASONS,
    DELAY_MISSING_ESTIMATE_PROBABILITY,
    DELAY_OVERDUE_BUFFER_DAYS,
    DELAY_OVERDUE_PROBABILITY,
    DELAY_STALE_PENDING_DAYS,
    DELAY_STALE_PENDING_PROBABILITY,
    DELAY_TRACKED_HOURS_PER_DAY,
    DELAY_TRACKED_PROBABILITY,
    DELAY_TRACKED_RATIO,
    DELAY_UNASSIGNED_HIGH_PROBABILITY,
)
from aligno.analytics.primitives import ceil_days, clamp
from aligno.logging_config import get_logger
from aligno.schemas import DelayPrediction, Task

logger = get_logger(__name__)


def predict_task_delay(task: Task, now: datetime) -> Optional[DelayPrediction]:
    """Score one task; return ``None`` when it is completed or does not qualify."""
    if task.status == "completed":
        return None

    probability = 0
    delay_days = 0
    reasons: list[str] = []
    critical_path = False

    if task.due_date is not None:
        days_until_due = ceil_days(now, task.due_date)
        if days_until_due < 0:
            probability += DELAY_OVERDUE_PROBABILITY
            delay_days += abs(days_until_due) + DELAY_OVERDUE_BUFFER_DAYS
            reasons.append(f"Already {abs(days_until_due)} days overdue")
        elif days_until_due <= DELAY_DUE_SOON_DAYS:
            probability += DELAY_DUE_SOON_PROBABILITY
            reasons.append("Due date approaching soon")

    if is_unassigned_high_priority(task):
        probability += DELAY_UNASSIGNED_HIGH_PROBABILITY
        reasons.append("High priority but unassigned")
        critical_path = True

    if is_missing_estimate(task):
        probability += DELAY_MISSING_ESTIMATE_PROBABILITY
        reasons.append("Missing time estimate")

    if task.status == "blocked":
        probability += DELAY_BLOCKED_PROBABILITY
        delay_days += DELAY_BLOCKED_DAYS
        reasons.append("Currently blocked")
        critical_path = True

    if (
        task.estimated_hours
        and task.tracked_hours
        and task.tracked_hours > task.estimated_hours * DELAY_TRACKED_RATIO
    ):
        overrun = task.tracked_hours - task.estimated_hours * DELAY_TRACKED_RATIO
        probability += DELAY_TRACKED_PROBABILITY
        delay_days += math.ceil(overrun / DELAY_TRACKED_HOURS_PER_DAY)
        reasons.append("Tracked time approaching estimate")

    if task.status == "pending" and task.created_at is not None:
        days_pending = ceil_days(task.created_at, now)
        if days_pending > DELAY_STALE_PENDING_DAYS:
            probability += DELAY_STALE_PENDING_PROBABILITY
            reasons.append(f"In pending state for {days_pending} days")

    if task.priority == "high":
        critical_path = True

    if probability < DELAY_MIN_PROBABILITY and len(reasons) < DELAY_MIN_REASONS:
        return None

    return DelayPrediction(
        task_id=task.id,
        task_title=task.title,
        delay_probability=int(clamp(probability, 0, 100)),
        predicted_delay_days=max(DELAY_MIN_DAYS, delay_days),
        reasons=reasons,
        critical_path_impact=critical_path,
        confidence=min(
            DELAY_MAX_CONFIDENCE,
            DELAY_BASE_CONFIDENCE + len(reasons) * DELAY_CONFIDENCE_PER_REASON,
        ),
    )


def predict_delays(
    tasks: Iterable[Task] = (),
    now: Optional[datetime] = None,
    classification: Optional[TaskClassification] = None,
) -> list[DelayPrediction]:
    """Return qualifying predictions, highest delay probability first.

    Ties keep input order. Pass ``classification`` to reuse a pass computed
    by the caller; ``tasks`` and ``now`` are then ignored.
    """
    if classification is None:
        classification = classify_tasks(tasks, now)
    predictions = [
        prediction
        for prediction in (
            predict_task_delay(task, classification.now)
            for task in classification.incomplete
        )
        if prediction is not None
    ]
    predictions.sort(key=lambda prediction: prediction.delay_probability, reverse=True)

    logger.debug("delay_predictions_computed", count=len(predictions))
    return predictions
