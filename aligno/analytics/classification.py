"""Single-pass task classification shared by every scorer.

Overdue, blocked, unassigned-high-priority and missing-estimate buckets are
computed once per snapshot so the health score, risk radar and risk register
agree on what they count.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Iterable, Optional

from aligno.analytics.constants import (
    RECENT_COMPLETION_WINDOW_DAYS,
    RUSHED_TRACKED_RATIO,
)
from aligno.analytics.primitives import ensure_utc, utc_now
from aligno.schemas import Task


@dataclass(frozen=True)
class TaskClassification:
    now: datetime
    tasks: tuple[Task, ...]
    completed: tuple[Task, ...]
    incomplete: tuple[Task, ...]
    in_progress: tuple[Task, ...]
    pending: tuple[Task, ...]
    blocked: tuple[Task, ...]
    overdue: tuple[Task, ...]
    unassigned_high_priority: tuple[Task, ...]
    missing_estimate: tuple[Task, ...]
    rushed_completed: tuple[Task, ...]
    recent_completions: tuple[Task, ...]

    @property
    def total(self) -> int:
        return len(self.tasks)


def is_overdue(task: Task, now: datetime) -> bool:
    return (
        task.due_date is not None
        and task.due_date < now
        and task.status != "completed"
    )


def is_unassigned_high_priority(task: Task) -> bool:
    return task.priority == "high" and not task.assigned_to


def is_missing_estimate(task: Task) -> bool:
    return not task.estimated_hours


def is_rushed(task: Task) -> bool:
    return bool(
        task.status == "completed"
        and task.estimated_hours
        and task.tracked_hours
        and task.tracked_hours < task.estimated_hours * RUSHED_TRACKED_RATIO
    )


def classify_tasks(
    tasks: Iterable[Task], now: Optional[datetime] = None
) -> TaskClassification:
    now = ensure_utc(now) if now is not None else utc_now()
    window_start = now - timedelta(days=RECENT_COMPLETION_WINDOW_DAYS)

    buckets: dict[str, list[Task]] = {
        "completed": [],
        "incomplete": [],
        "in_progress": [],
        "pending": [],
        "blocked": [],
        "overdue": [],
        "unassigned_high_priority": [],
        "missing_estimate": [],
        "rushed_completed": [],
        "recent_completions": [],
    }
    tasks_list = list(tasks)

    for task in tasks_list:
        if task.status == "completed":
            buckets["completed"].append(task)
            if task.updated_at is not None and task.updated_at > window_start:
                buckets["recent_completions"].append(task)
            if is_rushed(task):
                buckets["rushed_completed"].append(task)
            continue

        buckets["incomplete"].append(task)
        if task.status == "in_progress":
            buckets["in_progress"].append(task)
        elif task.status == "pending":
            buckets["pending"].append(task)
        elif task.status == "blocked":
            buckets["blocked"].append(task)

        if is_overdue(task, now):
            buckets["overdue"].append(task)
        if is_unassigned_high_priority(task):
            buckets["unassigned_high_priority"].append(task)
        if is_missing_estimate(task):
            buckets["missing_estimate"].append(task)

    return TaskClassification(
        now=now,
        tasks=tuple(tasks_list),
        **{name: tuple(members) for name, members in buckets.items()},
    )
