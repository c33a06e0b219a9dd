from __future__ import annotations

from datetime import date, datetime
from typing import Any, Literal

from pydantic import BaseModel, Field, field_validator, model_validator

from aligno.analytics.primitives import ensure_utc


TaskStatus = Literal["pending", "in_progress", "blocked", "completed"]
TaskPriority = Literal["low", "medium", "high"]
SprintStatus = Literal["planned", "active", "completed"]


class ApiError(BaseModel):
    code: str
    message: str
    retryable: bool = False
    details: dict[str, Any] | None = None


class ErrorResponse(BaseModel):
    error: ApiError


# ---------------------------------------------------------------------------
# Snapshot inputs
# ---------------------------------------------------------------------------


class Task(BaseModel):
    id: str
    title: str
    status: TaskStatus = "pending"
    priority: TaskPriority = "medium"
    due_date: datetime | None = None
    estimated_hours: float | None = None
    tracked_hours: float | None = None
    story_points: float | None = None
    assigned_to: str | None = None
    sprint_id: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @field_validator("due_date", "created_at", "updated_at")
    @classmethod
    def _as_utc(cls, value: datetime | None) -> datetime | None:
        if value is None:
            return None
        return ensure_utc(value)


class Sprint(BaseModel):
    id: str
    name: str
    start_date: date
    end_date: date
    status: SprintStatus = "planned"
    goal: str | None = None

    @model_validator(mode="after")
    def _check_window(self) -> "Sprint":
        if self.start_date > self.end_date:
            raise ValueError("SPRINT_WINDOW_INVALID")
        return self


class TeamMember(BaseModel):
    user_id: str
    full_name: str | None = None
    role: str = "member"


class TimeOffInterval(BaseModel):
    user_id: str
    start_date: date
    end_date: date
    hours_per_day: float = 8.0
    reason: str | None = None

    @model_validator(mode="after")
    def _check_window(self) -> "TimeOffInterval":
        if self.start_date > self.end_date:
            raise ValueError("TIME_OFF_WINDOW_INVALID")
        return self


class SprintMemberCapacity(BaseModel):
    sprint_id: str
    user_id: str
    available_hours: float = Field(ge=0)
    notes: str | None = None


class ProjectSnapshot(BaseModel):
    project_id: str | None = None
    tasks: list[Task] = Field(default_factory=list)
    sprints: list[Sprint] = Field(default_factory=list)
    members: list[TeamMember] = Field(default_factory=list)
    time_off: list[TimeOffInterval] = Field(default_factory=list)
    sprint_capacities: list[SprintMemberCapacity] = Field(default_factory=list)


class SprintVelocity(BaseModel):
    sprint_id: str
    name: str
    points: float
    hours: float


class HistoricalVelocity(BaseModel):
    sprints: list[SprintVelocity]
    average_points: float
    average_hours: float
    trend: float = 0.0


# ---------------------------------------------------------------------------
# Derived outputs
# ---------------------------------------------------------------------------


class HealthMetric(BaseModel):
    name: str
    score: int
    trend: Literal["up", "down", "stable"]
    status: Literal["good", "warning", "critical"]
    description: str


class HealthMetrics(BaseModel):
    velocity: HealthMetric
    on_time_delivery: HealthMetric
    scope_stability: HealthMetric
    team_load: HealthMetric
    blockers_ratio: HealthMetric


class ProjectHealth(BaseModel):
    overall_score: int
    status: Literal["healthy", "at-risk", "critical"]
    metrics: HealthMetrics
    summary: str


class DelayPrediction(BaseModel):
    task_id: str
    task_title: str
    delay_probability: int
    predicted_delay_days: int
    reasons: list[str]
    critical_path_impact: bool
    confidence: int


class SprintForecast(BaseModel):
    sprint_id: str
    total_points: float
    completed_points: float
    remaining_points: float
    estimated_completion_date: date | None
    confidence: Literal["high", "medium", "low"]
    risk_tier: Literal["on_track", "at_risk", "behind"]
    completion_likelihood: int
    velocity_trend: Literal["increasing", "stable", "decreasing"]
    days_remaining: int
    projected_velocity: float
    required_velocity: float
    recommended_actions: list[str]


class BurndownPoint(BaseModel):
    day: date
    ideal: float
    actual: float | None = None


class SprintBurndown(BaseModel):
    sprint_id: str
    unit: Literal["hours", "tasks"]
    total_work: float
    completed_work: float
    remaining_work: float
    progress_percent: int
    variance: float
    variance_percent: int
    days_elapsed: int
    days_remaining: int
    total_days: int
    burn_rate: float
    projected_on_track: bool
    points: list[BurndownPoint]


class SprintCapacity(BaseModel):
    sprint_id: str
    planned_points: float
    planned_hours: float
    total_capacity_hours: float
    utilization: int
    health: Literal["overcommitted", "at-risk", "healthy", "underutilized", "unknown"]
    commitment: Literal["above_average", "in_line", "below_average"] | None = None


class RiskDimension(BaseModel):
    dimension: Literal["Schedule", "Scope", "Resource", "Dependency", "Quality"]
    risk: int
    threshold: int
    level: str


class RiskRadar(BaseModel):
    dimensions: list[RiskDimension]
    average_risk: int
    average_level: str
    highest_dimension: str
    highest_risk: int
    callout: str | None = None


class RiskEntry(BaseModel):
    id: str
    title: str
    description: str
    category: Literal["schedule", "scope", "resource", "technical", "external"]
    likelihood: Literal["low", "medium", "high"]
    impact: Literal["low", "medium", "high"]
    status: Literal["open", "mitigated", "accepted", "closed"] = "open"
    mitigation: str
    owner: str | None = None
    linked_task_ids: list[str]
    detected_at: datetime
    source: Literal["auto", "manual"] = "auto"


class CapacityForecastPoint(BaseModel):
    period: str
    capacity: int
    demand: int
    utilization: int


class HiringRecommendation(BaseModel):
    role: str
    count: int
    urgency: Literal["low", "medium", "high"]
    reason: str
    start_period: str


class CapacityForecast(BaseModel):
    months: int
    team_size: int
    points: list[CapacityForecastPoint]
    recommendations: list[HiringRecommendation]
    average_utilization: int


class ProjectInsights(BaseModel):
    generated_at: datetime
    health: ProjectHealth
    delay_predictions: list[DelayPrediction]
    risk_radar: RiskRadar
    risk_register: list[RiskEntry]
    capacity: CapacityForecast
    sprint_forecasts: list[SprintForecast]
    sprint_burndowns: list[SprintBurndown]
    sprint_capacities: list[SprintCapacity]


class SprintForecastResponse(BaseModel):
    sprint_id: str
    forecast: SprintForecast | None = None
    message: str | None = None
