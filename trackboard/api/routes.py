"""
FastAPI routes exposing Hubstaff data to the dashboard.
"""

from __future__ import annotations

import logging
from datetime import date, timedelta
from http import HTTPStatus
from typing import Annotated, NoReturn, Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from trackboard.clients import (
    HubstaffAPIError,
    HubstaffAuthUnavailableError,
    HubstaffConfigurationError,
    HubstaffClient,
    HubstaffRateLimitError,
)
from trackboard.core.config import AppSettings
from trackboard.dependencies import get_app_settings, get_hubstaff_client
from trackboard.services.activity_reports import (
    aggregate_monthly,
    build_hr_daily_report,
    days_in_month,
    find_project,
    summarize_project_activity,
)
from trackboard.services.team_directory import TEAM_MEMBERS

router = APIRouter()
logger = logging.getLogger(__name__)

HubstaffClientDependency = Annotated[HubstaffClient, Depends(get_hubstaff_client)]
SettingsDependency = Annotated[AppSettings, Depends(get_app_settings)]

# Default look-back window for project effort when no start date is given.
PROJECT_ACTIVITY_LOOKBACK_DAYS = 90


def _raise_for_provider_error(exc: Exception, action: str) -> NoReturn:
    """Translate Hubstaff integration failures into HTTP errors."""
    if isinstance(exc, HubstaffRateLimitError):
        raise HTTPException(
            status_code=HTTPStatus.TOO_MANY_REQUESTS,
            detail="Hubstaff rate limit reached, try again later.",
        ) from exc
    if isinstance(exc, (HubstaffAuthUnavailableError, HubstaffConfigurationError)):
        raise HTTPException(
            status_code=HTTPStatus.SERVICE_UNAVAILABLE,
            detail=f"Hubstaff is not available: {exc}",
        ) from exc
    if isinstance(exc, HubstaffAPIError):
        logger.error("Failed to %s: %s", action, exc.detail)
        raise HTTPException(
            status_code=HTTPStatus.BAD_GATEWAY,
            detail=f"Failed to {action}: {exc.detail}",
        ) from exc
    raise exc


def _parse_user_ids(raw: Optional[str]) -> Optional[list[int]]:
    if raw is None or not raw.strip():
        return None
    try:
        user_ids = [int(part) for part in raw.split(",") if part.strip()]
    except ValueError as exc:
        raise HTTPException(
            status_code=HTTPStatus.BAD_REQUEST,
            detail="user_ids must be a comma-separated list of integers.",
        ) from exc
    if not user_ids:
        raise HTTPException(
            status_code=HTTPStatus.BAD_REQUEST,
            detail="user_ids must contain at least one id.",
        )
    return user_ids


@router.get("/health", status_code=HTTPStatus.OK)
async def healthcheck(settings: SettingsDependency) -> dict:
    """Simple health endpoint for monitoring."""
    return {
        "status": "ok",
        "environment": settings.environment,
        "hubstaff_configured": bool(settings.hubstaff.org_id),
    }


@router.get("/hubstaff/members", status_code=HTTPStatus.OK)
async def list_members(hubstaff: HubstaffClientDependency) -> dict:
    try:
        members = await hubstaff.get_organization_members()
    except (HubstaffAPIError, HubstaffAuthUnavailableError, HubstaffConfigurationError) as exc:
        _raise_for_provider_error(exc, "fetch members")
    return {"members": [member.model_dump() for member in members]}


@router.get("/hubstaff/projects", status_code=HTTPStatus.OK)
async def list_projects(
    hubstaff: HubstaffClientDependency,
    refresh: bool = Query(False, description="Bypass the project cache."),
) -> dict:
    try:
        projects = await hubstaff.get_organization_projects(force_refresh=refresh)
    except (HubstaffAPIError, HubstaffAuthUnavailableError, HubstaffConfigurationError) as exc:
        _raise_for_provider_error(exc, "fetch projects")
    return {"projects": [project.model_dump() for project in projects]}


@router.get("/hubstaff/activities", status_code=HTTPStatus.OK)
async def list_daily_activities(
    hubstaff: HubstaffClientDependency,
    start: date = Query(..., description="First day, YYYY-MM-DD."),
    end: date = Query(..., description="Last day (inclusive), YYYY-MM-DD."),
    user_ids: Optional[str] = Query(None, description="Comma-separated Hubstaff user ids."),
) -> dict:
    if start > end:
        raise HTTPException(
            status_code=HTTPStatus.BAD_REQUEST, detail="start must not be after end."
        )
    try:
        activities = await hubstaff.get_daily_activities(
            start, end, _parse_user_ids(user_ids)
        )
    except ValueError as exc:
        raise HTTPException(status_code=HTTPStatus.BAD_REQUEST, detail=str(exc)) from exc
    except (HubstaffAPIError, HubstaffAuthUnavailableError, HubstaffConfigurationError) as exc:
        _raise_for_provider_error(exc, "fetch activities")
    return {"activities": [record.model_dump(by_alias=True) for record in activities]}


@router.get("/hubstaff/monthly", status_code=HTTPStatus.OK)
async def monthly_summary(
    hubstaff: HubstaffClientDependency,
    month: int = Query(..., ge=1, le=12),
    year: int = Query(..., ge=2000),
    user_id: Optional[int] = Query(None, description="Restrict to one Hubstaff user."),
) -> dict:
    days = days_in_month(month, year)
    logger.info("Fetching Hubstaff data for %s/%s (%s to %s)", month, year, days[0], days[-1])
    try:
        activities = await hubstaff.get_daily_activities(
            days[0], days[-1], [user_id] if user_id is not None else None
        )
    except (HubstaffAPIError, HubstaffAuthUnavailableError, HubstaffConfigurationError) as exc:
        _raise_for_provider_error(exc, "fetch monthly data")
    return aggregate_monthly(activities, month, year).model_dump(by_alias=True)


@router.get("/hubstaff/hr-daily", status_code=HTTPStatus.OK)
async def hr_daily_report(
    hubstaff: HubstaffClientDependency,
    day: date = Query(..., alias="date", description="Report day, YYYY-MM-DD."),
) -> dict:
    try:
        activities = await hubstaff.get_daily_activities(day, day)
    except (HubstaffAPIError, HubstaffAuthUnavailableError, HubstaffConfigurationError) as exc:
        _raise_for_provider_error(exc, "fetch HR daily data")
    logger.info("HR daily: %d activities for %s", len(activities), day)
    return build_hr_daily_report(activities, day.isoformat()).model_dump(by_alias=True)


@router.get("/hubstaff/project-activity", status_code=HTTPStatus.OK)
async def project_activity(
    hubstaff: HubstaffClientDependency,
    project_name: str = Query(..., description="Project name as used on tasks."),
    start: Optional[date] = Query(None, description="First day; defaults to 90 days before end."),
    end: Optional[date] = Query(None, description="Last day (inclusive); defaults to today."),
) -> dict:
    """Hours and activity logged against the Hubstaff project matching ``project_name``."""
    if not project_name.strip():
        raise HTTPException(
            status_code=HTTPStatus.BAD_REQUEST, detail="project_name is required."
        )
    end = end or date.today()
    start = start or end - timedelta(days=PROJECT_ACTIVITY_LOOKBACK_DAYS)
    if start > end:
        raise HTTPException(
            status_code=HTTPStatus.BAD_REQUEST, detail="start must not be after end."
        )

    try:
        project = find_project(await hubstaff.get_organization_projects(), project_name)
        if project is None:
            logger.info("No Hubstaff project matches %r", project_name)
            activities = []
        else:
            activities = await hubstaff.get_daily_activities(
                start, end, project_ids=[project.id]
            )
    except (HubstaffAPIError, HubstaffAuthUnavailableError, HubstaffConfigurationError) as exc:
        _raise_for_provider_error(exc, "fetch project activity")

    return summarize_project_activity(
        activities,
        project_name,
        start_date=start.isoformat(),
        end_date=end.isoformat(),
        project=project,
    ).model_dump(by_alias=True)


@router.get("/hubstaff/team-members", status_code=HTTPStatus.OK)
async def list_team_members() -> dict:
    """Configured roster with both the short and the Hubstaff display names."""
    return {
        "members": [
            {
                "name": member.name,
                "hubstaffName": member.hubstaff_name if member.has_hubstaff_account else None,
                "department": member.department.value,
                "departmentLabel": member.department.label,
            }
            for member in TEAM_MEMBERS
        ]
    }


__all__ = ["router"]
