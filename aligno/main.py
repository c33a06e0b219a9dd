from fastapi import FastAPI, HTTPException, Query, Request
from fastapi.responses import JSONResponse

from aligno import config
from aligno.analytics.capacity import UniformVariance, forecast_capacity
from aligno.analytics.delay import predict_delays
from aligno.analytics.health import score_project_health
from aligno.analytics.insights import (
    burndown_snapshot_sprint,
    compute_insights,
    forecast_snapshot_sprint,
    plan_snapshot_sprint_capacity,
)
from aligno.analytics.risk_radar import risk_radar
from aligno.analytics.risk_register import build_risk_register
from aligno.logging_config import configure_logging, get_logger
from aligno.schemas import (
    CapacityForecast,
    DelayPrediction,
    ErrorResponse,
    ProjectHealth,
    ProjectInsights,
    ProjectSnapshot,
    RiskEntry,
    RiskRadar,
    SprintBurndown,
    SprintCapacity,
    SprintForecastResponse,
)

API_VERSION = "1.0"

configure_logging()
logger = get_logger(__name__)

app = FastAPI(title=config.APP_NAME, version=API_VERSION)


_ENGINE_ERRORS: dict[str, tuple[int, str]] = {
    "SPRINT_NOT_FOUND": (404, "Sprint not found in snapshot"),
    "INVALID_FORECAST_HORIZON": (422, "Forecast horizon must be at least one month"),
    "INVALID_VARIANCE": (422, "Demand variance must be within [0.8, 1.2]"),
}


def _engine_error(exc: ValueError) -> HTTPException:
    code = str(exc)
    status_code, message = _ENGINE_ERRORS.get(code, (409, "Invalid analytics input"))
    return HTTPException(
        status_code=status_code,
        detail=ErrorResponse(
            error={"code": code, "message": message, "retryable": False}
        ).model_dump(),
    )


def _variance_source() -> UniformVariance:
    return UniformVariance(config.VARIANCE_SEED)


@app.exception_handler(HTTPException)
async def http_exception_handler(_: Request, exc: HTTPException) -> JSONResponse:
    if isinstance(exc.detail, dict) and "error" in exc.detail:
        return JSONResponse(status_code=exc.status_code, content=exc.detail)
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail})


@app.middleware("http")
async def add_api_version_header(request: Request, call_next):
    response = await call_next(request)
    response.headers["X-API-Version"] = API_VERSION
    return response


@app.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok"}


@app.post("/v1/analytics/health", response_model=ProjectHealth)
def project_health(snapshot: ProjectSnapshot) -> ProjectHealth:
    return score_project_health(snapshot.tasks, snapshot.sprints)


@app.post("/v1/analytics/delays", response_model=list[DelayPrediction])
def delay_predictions(snapshot: ProjectSnapshot) -> list[DelayPrediction]:
    return predict_delays(snapshot.tasks)


@app.post("/v1/analytics/sprints/{sprint_id}/forecast", response_model=SprintForecastResponse)
def sprint_forecast(sprint_id: str, snapshot: ProjectSnapshot) -> SprintForecastResponse:
    try:
        forecast = forecast_snapshot_sprint(snapshot, sprint_id)
    except ValueError as exc:
        raise _engine_error(exc)
    if forecast is None:
        return SprintForecastResponse(sprint_id=sprint_id, message="No forecast available")
    return SprintForecastResponse(sprint_id=sprint_id, forecast=forecast)


@app.post("/v1/analytics/sprints/{sprint_id}/burndown", response_model=SprintBurndown)
def sprint_burndown(sprint_id: str, snapshot: ProjectSnapshot) -> SprintBurndown:
    try:
        return burndown_snapshot_sprint(snapshot, sprint_id)
    except ValueError as exc:
        raise _engine_error(exc)


@app.post("/v1/analytics/sprints/{sprint_id}/capacity", response_model=SprintCapacity)
def sprint_capacity_plan(sprint_id: str, snapshot: ProjectSnapshot) -> SprintCapacity:
    try:
        return plan_snapshot_sprint_capacity(snapshot, sprint_id)
    except ValueError as exc:
        raise _engine_error(exc)


@app.post("/v1/analytics/risk-radar", response_model=RiskRadar)
def project_risk_radar(snapshot: ProjectSnapshot) -> RiskRadar:
    return risk_radar(snapshot.tasks, snapshot.sprints)


@app.post("/v1/analytics/risk-register", response_model=list[RiskEntry])
def project_risk_register(snapshot: ProjectSnapshot) -> list[RiskEntry]:
    return build_risk_register(snapshot.tasks)


@app.post("/v1/analytics/capacity", response_model=CapacityForecast)
def capacity_forecast(
    snapshot: ProjectSnapshot,
    months: int = Query(default=config.FORECAST_MONTHS, ge=1, le=24),
) -> CapacityForecast:
    try:
        return forecast_capacity(
            snapshot.members,
            snapshot.tasks,
            snapshot.time_off,
            months=months,
            variance=_variance_source(),
        )
    except ValueError as exc:
        raise _engine_error(exc)


@app.post("/v1/analytics/insights", response_model=ProjectInsights)
def project_insights(
    snapshot: ProjectSnapshot,
    months: int = Query(default=config.FORECAST_MONTHS, ge=1, le=24),
) -> ProjectInsights:
    logger.info(
        "insights_requested",
        project_id=snapshot.project_id,
        tasks=len(snapshot.tasks),
        sprints=len(snapshot.sprints),
    )
    try:
        return compute_insights(snapshot, variance=_variance_source(), months=months)
    except ValueError as exc:
        raise _engine_error(exc)
