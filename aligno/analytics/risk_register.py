"""Automatic risk register built from task signals.

Each rule emits at most one open entry; ids are stable per rule so a
caller can merge regenerated entries with ones a user has already triaged.
"""
from __future__ import annotations

from datetime import datetime
from typing import Iterable, Optional

from aligno.analytics.classification import TaskClassification, classify_tasks
from aligno.analytics.constants import (
    REGISTER_BLOCKED_HIGH_IMPACT,
    REGISTER_OVERDUE_HIGH_LIKELIHOOD,
    REGISTER_SCOPE_MIN_PENDING,
    REGISTER_SCOPE_PENDING_RATIO,
    REGISTER_WIP_LIMIT,
    REGISTER_WIP_LINKED_TASKS,
)
from aligno.logging_config import get_logger
from aligno.schemas import RiskEntry, Task

logger = get_logger(__name__)


def _plural(count: int, noun: str) -> str:
    return f"{count} {noun}{'s' if count > 1 else ''}"


def build_risk_register(
    tasks: Iterable[Task] = (),
    now: Optional[datetime] = None,
    classification: Optional[TaskClassification] = None,
) -> list[RiskEntry]:
    if classification is None:
        classification = classify_tasks(tasks, now)
    detected_at = classification.now
    entries: list[RiskEntry] = []

    overdue = classification.overdue
    if overdue:
        entries.append(
            RiskEntry(
                id="risk-overdue",
                title=_plural(len(overdue), "Overdue Task"),
                description=(
                    "Tasks have passed their due dates without completion, "
                    "indicating schedule slippage."
                ),
                category="schedule",
                likelihood="high" if len(overdue) > REGISTER_OVERDUE_HIGH_LIKELIHOOD else "medium",
                impact="high" if any(t.priority == "high" for t in overdue) else "medium",
                mitigation=(
                    "Review and reprioritize overdue tasks, consider extending "
                    "deadlines or adding resources"
                ),
                linked_task_ids=[t.id for t in overdue],
                detected_at=detected_at,
            )
        )

    blocked = classification.blocked
    if blocked:
        entries.append(
            RiskEntry(
                id="risk-blocked",
                title=_plural(len(blocked), "Blocked Task"),
                description=(
                    "Tasks are blocked and cannot progress, potentially "
                    "causing cascading delays."
                ),
                category="technical",
                likelihood="high",
                impact="high" if len(blocked) > REGISTER_BLOCKED_HIGH_IMPACT else "medium",
                mitigation="Identify and resolve blockers immediately, escalate if needed",
                linked_task_ids=[t.id for t in blocked],
                detected_at=detected_at,
            )
        )

    unassigned = classification.unassigned_high_priority
    if unassigned:
        entries.append(
            RiskEntry(
                id="risk-unassigned",
                title=_plural(len(unassigned), "Unassigned High Priority Task"),
                description="High priority work without owners may not get completed on time.",
                category="resource",
                likelihood="high",
                impact="high",
                mitigation="Assign owners to all high priority tasks immediately",
                linked_task_ids=[t.id for t in unassigned],
                detected_at=detected_at,
            )
        )

    pending_count = len(classification.pending)
    completed_count = len(classification.completed)
    if (
        pending_count > completed_count * REGISTER_SCOPE_PENDING_RATIO
        and pending_count > REGISTER_SCOPE_MIN_PENDING
    ):
        entries.append(
            RiskEntry(
                id="risk-scope",
                title="Potential Scope Creep",
                description=(
                    f"Large number of pending tasks ({pending_count}) compared "
                    f"to completed ({completed_count})."
                ),
                category="scope",
                likelihood="medium",
                impact="medium",
                mitigation="Review backlog priorities, consider deferring low-priority items",
                linked_task_ids=[],
                detected_at=detected_at,
            )
        )

    in_progress = classification.in_progress
    if len(in_progress) > REGISTER_WIP_LIMIT:
        entries.append(
            RiskEntry(
                id="risk-wip",
                title="High Work In Progress",
                description=(
                    f"{len(in_progress)} tasks are in progress simultaneously, "
                    "risking context switching overhead."
                ),
                category="resource",
                likelihood="medium",
                impact="medium",
                mitigation="Limit WIP, focus on completing current tasks before starting new ones",
                linked_task_ids=[t.id for t in in_progress[:REGISTER_WIP_LINKED_TASKS]],
                detected_at=detected_at,
            )
        )

    logger.debug("risk_register_built", entries=len(entries))
    return entries
