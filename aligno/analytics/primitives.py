from __future__ import annotations

import math
import statistics
from datetime import datetime, timezone
from typing import Iterable, Optional

SECONDS_PER_DAY = 86400


def clamp(value: float, lower: float = 0.0, upper: float = 100.0) -> float:
    return max(lower, min(upper, value))


def ratio_or_none(numerator: float, denominator: float) -> Optional[float]:
    if denominator == 0:
        return None
    return numerator / denominator


def mean(values: Iterable[float]) -> Optional[float]:
    values_list = list(values)
    if not values_list:
        return None
    return statistics.fmean(values_list)


def round_half_up(value: float) -> int:
    """Round to the nearest integer with .5 going up, as dashboards display it.

    Python's ``round`` uses banker's rounding, which would turn 62.5 into 62.
    """
    return int(math.floor(value + 0.5))


def one_decimal(value: float) -> float:
    return round_half_up(value * 10) / 10


def ensure_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def ceil_days(start: datetime, end: datetime) -> int:
    """Whole days from *start* to *end*, rounded up (negative when end < start)."""
    seconds = (ensure_utc(end) - ensure_utc(start)).total_seconds()
    return math.ceil(seconds / SECONDS_PER_DAY)
