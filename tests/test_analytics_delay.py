from __future__ import annotations

from datetime import timedelta

import pytest

from aligno.analytics.classification import classify_tasks
from aligno.analytics.delay import predict_delays, predict_task_delay


class TestPredictTaskDelay:
    def test_overdue_unassigned_unestimated_high_priority(self, make_task, now) -> None:
        task = make_task(
            priority="high",
            assigned_to=None,
            estimated_hours=None,
            due_date=now - timedelta(days=1, hours=1),
        )

        prediction = predict_task_delay(task, now)

        assert prediction is not None
        assert prediction.delay_probability == 100
        assert prediction.predicted_delay_days == 3
        assert prediction.reasons == [
            "Already 1 days overdue",
            "High priority but unassigned",
            "Missing time estimate",
        ]
        assert prediction.critical_path_impact is True
        assert prediction.confidence == 90

    @pytest.mark.parametrize("days_overdue", [1, 5, 30])
    def test_overdue_days_drive_predicted_delay(self, make_task, now, days_overdue) -> None:
        task = make_task(due_date=now - timedelta(days=days_overdue))

        prediction = predict_task_delay(task, now)

        assert prediction is not None
        assert prediction.delay_probability >= 90
        assert prediction.predicted_delay_days >= days_overdue + 2
        assert prediction.reasons[0] == f"Already {days_overdue} days overdue"

    def test_due_soon(self, make_task, now) -> None:
        prediction = predict_task_delay(make_task(due_date=now + timedelta(days=1)), now)

        assert prediction is not None
        assert prediction.delay_probability == 40
        assert prediction.reasons == ["Due date approaching soon"]
        assert prediction.predicted_delay_days == 1
        assert prediction.confidence == 70
        assert prediction.critical_path_impact is False

    def test_due_earlier_today_is_not_yet_overdue(self, make_task, now) -> None:
        prediction = predict_task_delay(make_task(due_date=now - timedelta(hours=6)), now)

        assert prediction is not None
        assert prediction.reasons == ["Due date approaching soon"]

    def test_due_far_ahead_is_not_flagged(self, make_task, now) -> None:
        assert predict_task_delay(make_task(due_date=now + timedelta(days=10)), now) is None

    def test_single_weak_signal_is_excluded(self, make_task, now) -> None:
        assert predict_task_delay(make_task(estimated_hours=None), now) is None

    def test_blocked_task(self, make_task, now) -> None:
        prediction = predict_task_delay(make_task(status="blocked"), now)

        assert prediction is not None
        assert prediction.delay_probability == 50
        assert prediction.predicted_delay_days == 3
        assert prediction.reasons == ["Currently blocked"]
        assert prediction.critical_path_impact is True

    @pytest.mark.parametrize(("tracked", "days"), [(12, 1), (17, 3)])
    def test_tracked_time_overrun(self, make_task, now, tracked, days) -> None:
        task = make_task(status="in_progress", estimated_hours=10, tracked_hours=tracked)

        prediction = predict_task_delay(task, now)

        assert prediction is not None
        assert prediction.delay_probability == 35
        assert prediction.predicted_delay_days == days
        assert prediction.reasons == ["Tracked time approaching estimate"]

    def test_tracked_time_within_budget(self, make_task, now) -> None:
        task = make_task(status="in_progress", estimated_hours=10, tracked_hours=8)

        assert predict_task_delay(task, now) is None

    def test_stale_pending_combines_with_missing_estimate(self, make_task, now) -> None:
        task = make_task(estimated_hours=None, created_at=now - timedelta(days=10))

        prediction = predict_task_delay(task, now)

        assert prediction is not None
        assert prediction.delay_probability == 35
        assert prediction.reasons == ["Missing time estimate", "In pending state for 10 days"]
        assert prediction.confidence == 80

    def test_stale_pending_alone_is_excluded(self, make_task, now) -> None:
        assert predict_task_delay(make_task(created_at=now - timedelta(days=10)), now) is None

    def test_stale_rule_only_applies_to_pending(self, make_task, now) -> None:
        task = make_task(status="in_progress", created_at=now - timedelta(days=30))

        assert predict_task_delay(task, now) is None

    def test_assigned_high_priority_marks_critical_path(self, make_task, now) -> None:
        task = make_task(priority="high", due_date=now + timedelta(days=2))

        prediction = predict_task_delay(task, now)

        assert prediction is not None
        assert prediction.delay_probability == 40
        assert prediction.critical_path_impact is True

    def test_confidence_is_capped(self, make_task, now) -> None:
        task = make_task(
            status="blocked",
            priority="high",
            assigned_to=None,
            estimated_hours=None,
            due_date=now - timedelta(days=4),
        )

        prediction = predict_task_delay(task, now)

        assert prediction is not None
        assert len(prediction.reasons) == 4
        assert prediction.confidence == 95
        assert prediction.predicted_delay_days == 4 + 2 + 3

    def test_completed_tasks_never_predicted(self, make_task, now) -> None:
        task = make_task(
            status="completed",
            priority="high",
            assigned_to=None,
            due_date=now - timedelta(days=10),
        )

        assert predict_task_delay(task, now) is None


class TestPredictDelays:
    def test_sorted_by_probability_with_stable_ties(self, make_task, now) -> None:
        tasks = [
            make_task(id="soon-a", due_date=now + timedelta(days=1)),
            make_task(id="blocked", status="blocked"),
            make_task(id="fine"),
            make_task(id="soon-b", due_date=now + timedelta(days=2)),
            make_task(id="overdue", due_date=now - timedelta(days=2)),
        ]

        predictions = predict_delays(tasks, now)

        assert [p.task_id for p in predictions] == ["overdue", "blocked", "soon-a", "soon-b"]

    def test_repeated_calls_are_identical(self, make_task, now) -> None:
        tasks = [
            make_task(status="blocked"),
            make_task(due_date=now - timedelta(days=3)),
            make_task(estimated_hours=None, created_at=now - timedelta(days=9)),
        ]

        assert predict_delays(tasks, now) == predict_delays(tasks, now)

    def test_empty_input(self, now) -> None:
        assert predict_delays([], now) == []

    def test_reuses_precomputed_classification(self, make_task, now) -> None:
        tasks = [
            make_task(status="blocked"),
            make_task(priority="high", assigned_to=None, estimated_hours=None),
            make_task(status="completed", due_date=now - timedelta(days=3)),
        ]
        classification = classify_tasks(tasks, now)

        assert predict_delays(classification=classification) == predict_delays(tasks, now)
        assert len(predict_delays(classification=classification)) == 2
