from __future__ import annotations

import os

from aligno.analytics.constants import DEFAULT_FORECAST_MONTHS


def _int_or_none(raw: str | None) -> int | None:
    if raw is None or raw.strip() == "":
        return None
    return int(raw)


APP_NAME = "Aligno Analytics"
APP_ENV = os.getenv("ALIGNO_APP_ENV", "development")
LOG_LEVEL = os.getenv("ALIGNO_LOG_LEVEL", "info")
FORECAST_MONTHS = int(os.getenv("ALIGNO_FORECAST_MONTHS", str(DEFAULT_FORECAST_MONTHS)))
# Seeds the demand-variance generator used by the API; unset means truly random.
VARIANCE_SEED = _int_or_none(os.getenv("ALIGNO_VARIANCE_SEED"))
