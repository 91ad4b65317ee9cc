"""
SLA Controllers (API Routes)
=============================

FastAPI routes for SLA evaluation and settings management.

Controllers are thin - they delegate to application services and the
settings store.
"""

from datetime import date, datetime, timezone

from fastapi import APIRouter, Body, Depends, Request, Response, status

from core.exceptions import ConfigurationException
from sla.application import (
    SLAService,
    EvaluateRequest,
    EvaluateResponse,
    JiraEvaluateRequest,
    PerformanceRequest,
    PerformanceResponse,
    SLAStatusResponse,
    DeveloperPerformanceResponse,
    TeamAveragesResponse,
    RuleUpdateRequest,
    BusinessHoursUpdateRequest,
    HolidayRequest,
    ProjectKeyRequest,
)
from sla.infrastructure import SLASettingsStore

router = APIRouter(prefix="/sla", tags=["SLA"])


# ========== Example payloads for Swagger ==========

EVALUATE_REQUEST_EXAMPLE = {
    "issues": [
        {
            "key": "SD-101",
            "priority_name": "Highest",
            "created_at": "2025-03-03T08:00:00Z",
            "first_comment_at": None,
            "status_name": "In Progress",
            "status_category": "in-progress",
            "assignee_id": "5b10a2844c20165700ede21g",
            "assignee_name": "Maria Santos"
        }
    ],
    "now": "2025-03-03T11:00:00Z"
}


# ========== Dependencies ==========

def get_settings_store(request: Request) -> SLASettingsStore:
    """Settings store created at startup."""
    return request.app.state.settings_store


def get_sla_service(store: SLASettingsStore = Depends(get_settings_store)) -> SLAService:
    return SLAService(store)


def _settings_payload(store: SLASettingsStore) -> dict:
    return store.settings.model_dump(mode="json", by_alias=True)


# ========== Evaluation ==========

@router.post(
    "/evaluate",
    response_model=EvaluateResponse,
    summary="Evaluate SLA status for a batch of issues",
    description="""
    Calculate first-response and resolution SLA status for every issue,
    all against the same evaluation instant.

    **SLA States**: `on-track`, `at-risk` (>= 75% of the deadline used),
    `breached`, `met`
    """,
)
async def evaluate_issues(
    payload: EvaluateRequest = Body(..., examples=[EVALUATE_REQUEST_EXAMPLE]),
    sla_service: SLAService = Depends(get_sla_service)
):
    now = payload.now or datetime.now(timezone.utc)
    statuses = sla_service.evaluate([dto.to_domain() for dto in payload.issues], now)

    return EvaluateResponse(
        evaluated_at=now,
        statuses=[SLAStatusResponse.from_domain(sla) for sla in statuses],
        summary=sla_service.summarize(statuses),
    )


@router.post(
    "/evaluate/jira",
    response_model=EvaluateResponse,
    summary="Evaluate SLA status for issues in the tracker's native shape",
)
async def evaluate_jira_issues(
    payload: JiraEvaluateRequest,
    sla_service: SLAService = Depends(get_sla_service)
):
    now = payload.now or datetime.now(timezone.utc)
    statuses = sla_service.evaluate([issue.to_snapshot() for issue in payload.issues], now)

    return EvaluateResponse(
        evaluated_at=now,
        statuses=[SLAStatusResponse.from_domain(sla) for sla in statuses],
        summary=sla_service.summarize(statuses),
    )


@router.post(
    "/performance",
    response_model=PerformanceResponse,
    summary="Developer workload and SLA compliance",
)
async def developer_performance(
    payload: PerformanceRequest,
    sla_service: SLAService = Depends(get_sla_service)
):
    now = payload.now or datetime.now(timezone.utc)
    roster = [dev.to_domain() for dev in payload.roster] if payload.roster is not None else None

    performances, averages = sla_service.developer_performance(
        [dto.to_domain() for dto in payload.issues],
        roster=roster,
        now=now,
        period_days=payload.period_days,
    )

    return PerformanceResponse(
        evaluated_at=now,
        developers=[DeveloperPerformanceResponse.from_domain(p) for p in performances],
        team_averages=TeamAveragesResponse.from_domain(averages),
    )


# ========== Settings ==========

@router.get("/settings", summary="Current SLA settings")
async def get_sla_settings(store: SLASettingsStore = Depends(get_settings_store)):
    return _settings_payload(store)


@router.put("/settings/rules/{priority}", summary="Update one priority's SLA rule")
async def update_rule(
    priority: str,
    update: RuleUpdateRequest,
    store: SLASettingsStore = Depends(get_settings_store)
):
    rule = store.update_rule(priority, **update.model_dump(exclude_none=True))
    return rule.model_dump(mode="json", by_alias=True)


@router.put("/settings/business-hours", summary="Update the business-hours window")
async def update_business_hours(
    update: BusinessHoursUpdateRequest,
    store: SLASettingsStore = Depends(get_settings_store)
):
    hours = store.update_business_hours(**update.model_dump(exclude_none=True))
    return hours.model_dump(mode="json", by_alias=True)


@router.post(
    "/settings/holidays",
    status_code=status.HTTP_201_CREATED,
    summary="Add a holiday"
)
async def add_holiday(
    payload: HolidayRequest,
    store: SLASettingsStore = Depends(get_settings_store)
):
    store.add_holiday(payload.holiday)
    return _settings_payload(store)


@router.delete("/settings/holidays/{holiday}", summary="Remove a holiday")
async def remove_holiday(
    holiday: date,
    store: SLASettingsStore = Depends(get_settings_store)
):
    store.remove_holiday(holiday)
    return _settings_payload(store)


@router.put("/settings/project", summary="Set the tracked project key")
async def set_project_key(
    payload: ProjectKeyRequest,
    store: SLASettingsStore = Depends(get_settings_store)
):
    store.set_project_key(payload.project_key)
    return _settings_payload(store)


@router.get("/settings/export", summary="Export settings as JSON")
async def export_settings(store: SLASettingsStore = Depends(get_settings_store)):
    return Response(content=store.export_settings(), media_type="application/json")


@router.post("/settings/import", summary="Import settings exported earlier")
async def import_settings(
    request: Request,
    store: SLASettingsStore = Depends(get_settings_store)
):
    payload = (await request.body()).decode("utf-8")
    if not store.import_settings(payload):
        raise ConfigurationException("Settings document could not be imported")
    return _settings_payload(store)


@router.post("/settings/reset", summary="Restore default settings")
async def reset_settings(store: SLASettingsStore = Depends(get_settings_store)):
    store.reset_settings()
    return _settings_payload(store)


# Export router for inclusion in main app
sla_router = router
