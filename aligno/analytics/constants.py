from __future__ import annotations

# ---------------------------------------------------------------------------
# Shared classification
# ---------------------------------------------------------------------------

RECENT_COMPLETION_WINDOW_DAYS = 14
RUSHED_TRACKED_RATIO = 0.5  # completed with tracked < 50% of estimate

# ---------------------------------------------------------------------------
# Health scorer
# ---------------------------------------------------------------------------

HEALTH_WEIGHTS: dict[str, float] = {
    "velocity": 0.25,
    "on_time_delivery": 0.30,
    "scope_stability": 0.20,
    "team_load": 0.15,
    "blockers_ratio": 0.10,
}

VELOCITY_EXPECTED_SHARE = 0.2  # recent completions expected per total task
VELOCITY_DENOMINATOR_FLOOR = 1.0
OVERDUE_PENALTY = 200
SCOPE_PENALTY = 150
TEAM_LOAD_WIP_SHARE = 0.3
TEAM_LOAD_PENALTY = 200
BLOCKERS_PENALTY = 300

HEALTHY_THRESHOLD = 70
AT_RISK_THRESHOLD = 40
TREND_UP_THRESHOLD = 75
TREND_DOWN_THRESHOLD = 40

# ---------------------------------------------------------------------------
# Delay predictor
# ---------------------------------------------------------------------------

DELAY_OVERDUE_PROBABILITY = 90
DELAY_OVERDUE_BUFFER_DAYS = 2
DELAY_DUE_SOON_DAYS = 2
DELAY_DUE_SOON_PROBABILITY = 40
DELAY_UNASSIGNED_HIGH_PROBABILITY = 30
DELAY_MISSING_ESTIMATE_PROBABILITY = 15
DELAY_BLOCKED_PROBABILITY = 50
DELAY_BLOCKED_DAYS = 3
DELAY_TRACKED_RATIO = 0.8
DELAY_TRACKED_PROBABILITY = 35
DELAY_TRACKED_HOURS_PER_DAY = 4
DELAY_STALE_PENDING_DAYS = 7
DELAY_STALE_PENDING_PROBABILITY = 20

DELAY_MIN_PROBABILITY = 25
DELAY_MIN_REASONS = 2
DELAY_MIN_DAYS = 1
DELAY_BASE_CONFIDENCE = 60
DELAY_CONFIDENCE_PER_REASON = 10
DELAY_MAX_CONFIDENCE = 95

# ---------------------------------------------------------------------------
# Sprint forecaster
# ---------------------------------------------------------------------------

# Historical averages are per sprint; sprints are assumed to be two weeks
# long when normalising them to points per day.
HISTORICAL_SPRINT_LENGTH_DAYS = 14
HISTORICAL_SPRINT_LIMIT = 5

ON_TRACK_LIKELIHOOD = 80
AT_RISK_LIKELIHOOD = 50
NO_VELOCITY_NOT_STARTED_LIKELIHOOD = 50
NO_VELOCITY_STARTED_LIKELIHOOD = 10

HIGH_CONFIDENCE_MIN_SPRINTS = 3
HIGH_CONFIDENCE_MIN_ELAPSED_DAYS = 3
MEDIUM_CONFIDENCE_MIN_ELAPSED_DAYS = 2
MEDIUM_CONFIDENCE_MIN_SPRINTS = 1

VELOCITY_TREND_THRESHOLD = 2
PACE_BELOW_AVERAGE_RATIO = 0.8
MAX_RECOMMENDED_ACTIONS = 3

# ---------------------------------------------------------------------------
# Sprint burndown and capacity planning
# ---------------------------------------------------------------------------

SPRINT_OVERCOMMITTED_UTILIZATION = 100
SPRINT_AT_RISK_UTILIZATION = 85
SPRINT_HEALTHY_UTILIZATION = 60
SPRINT_MAX_UTILIZATION = 150
COMMITMENT_ABOVE_AVERAGE_RATIO = 1.2
COMMITMENT_BELOW_AVERAGE_RATIO = 0.8

# ---------------------------------------------------------------------------
# Risk radar
# ---------------------------------------------------------------------------

RISK_MULTIPLIERS: dict[str, float] = {
    "Schedule": 200,
    "Scope": 150,
    "Resource": 200,
    "Dependency": 250,
    "Quality": 150,
}
RISK_ALERT_THRESHOLD = 50
RISK_CALLOUT_THRESHOLD = 30

RISK_LEVELS: tuple[tuple[int, str], ...] = (
    (70, "Critical"),
    (50, "High"),
    (30, "Medium"),
)
RISK_LEVEL_FLOOR = "Low"

RISK_CALLOUTS: dict[str, str] = {
    "Schedule": "Multiple tasks are overdue or at risk of slipping",
    "Scope": "Many tasks lack proper estimates or have undefined scope",
    "Resource": "High priority tasks need assignees",
    "Dependency": "Blocked tasks are impacting progress",
    "Quality": "Tasks may be rushed - review quality controls",
}

# ---------------------------------------------------------------------------
# Risk register
# ---------------------------------------------------------------------------

REGISTER_OVERDUE_HIGH_LIKELIHOOD = 3
REGISTER_BLOCKED_HIGH_IMPACT = 2
REGISTER_SCOPE_PENDING_RATIO = 2
REGISTER_SCOPE_MIN_PENDING = 5
REGISTER_WIP_LIMIT = 10
REGISTER_WIP_LINKED_TASKS = 5

# ---------------------------------------------------------------------------
# Capacity forecaster
# ---------------------------------------------------------------------------

DEFAULT_FORECAST_MONTHS = 6
HOURS_PER_PERSON_MONTH = 160
DEFAULT_TASK_HOURS = 4
DEMAND_VARIANCE_MIN = 0.8
DEMAND_VARIANCE_MAX = 1.2
DEMAND_GROWTH_PER_MONTH = 0.05

# Calendar month index (0 = January) -> capacity multiplier.
SEASONAL_FACTORS: dict[int, float] = {
    0: 0.90,
    6: 0.85,
    7: 0.85,
    11: 0.80,
}
DEFAULT_SEASONAL_FACTOR = 1.0

SEVERE_UTILIZATION = 130
OVER_UTILIZATION = 100
SHORT_TERM_UTILIZATION = 110
SEVERE_MIN_MONTHS = 2
OVER_MIN_MONTHS = 3
SHORT_TERM_MONTHS = 2
MAX_UTILIZATION = 150
DESIGN_KEYWORDS = ("design", "ui")
DESIGN_TASKS_PER_MEMBER = 2

MONTH_ABBREVIATIONS = (
    "Jan", "Feb", "Mar", "Apr", "May", "Jun",
    "Jul", "Aug", "Sep", "Oct", "Nov", "Dec",
)
