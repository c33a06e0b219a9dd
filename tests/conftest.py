import itertools
import os
import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest


ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

os.environ.setdefault("ALIGNO_LOG_LEVEL", "warning")

from aligno.schemas import Task


NOW = datetime(2026, 3, 10, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def now() -> datetime:
    return NOW


@pytest.fixture
def make_task():
    """Factory for tasks that trip no delay or risk rule unless overridden."""
    counter = itertools.count(1)

    def _make(**overrides) -> Task:
        n = next(counter)
        fields = {
            "id": f"t{n}",
            "title": f"Task {n}",
            "status": "pending",
            "priority": "medium",
            "estimated_hours": 8,
            "assigned_to": "u1",
            "created_at": NOW - timedelta(days=1),
            "updated_at": NOW - timedelta(days=1),
        }
        fields.update(overrides)
        return Task(**fields)

    return _make
