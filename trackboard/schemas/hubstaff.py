"""
Pydantic models for Hubstaff tokens, organization data and activity reports.
"""

from __future__ import annotations

from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class _CamelModel(BaseModel):
    """Models that are serialized with the camelCase keys the dashboard reads."""

    model_config = ConfigDict(populate_by_name=True)


class TokenRecord(BaseModel):
    """The single authoritative Hubstaff token pair for this service account."""

    access_token: str
    refresh_token: str
    expires_at: int = Field(..., description="Absolute expiry, milliseconds since epoch.")


class TokenGrant(BaseModel):
    """Token endpoint response after a successful refresh exchange."""

    access_token: str
    refresh_token: str
    expires_in: int = Field(3600, description="Lifetime of the access token in seconds.")


class OrganizationMember(BaseModel):
    id: int
    name: str
    email: Optional[str] = None
    status: Optional[str] = None


class Project(BaseModel):
    """Remote project; provider fields beyond id/name/status are kept as-is."""

    model_config = ConfigDict(extra="allow")

    id: int
    name: str
    status: Optional[str] = None


class DailyActivityRecord(_CamelModel):
    """One per-user, per-day (and per-project) time-tracking row."""

    user_id: int = Field(..., alias="userId")
    user_name: str = Field("Unknown User", alias="userName")
    date: str
    time_worked: int = Field(0, alias="timeWorked", description="Tracked seconds.")
    activity_percentage: int = Field(0, alias="activityPercentage", ge=0, le=100)
    project_id: Optional[int] = Field(None, alias="projectId")
    project_name: str = Field("Unknown Project", alias="projectName")
    team: Optional[str] = Field(None, description="Department label, when reconciled.")


class ProjectBreakdown(_CamelModel):
    project_name: str = Field(..., alias="projectName")
    time: int
    activity: int


class MemberSummary(_CamelModel):
    """Aggregated activity for one team member over a period."""

    name: str
    hubstaff_name: str = Field(..., alias="hubstaffName")
    total_time: int = Field(0, alias="totalTime")
    avg_activity: int = Field(0, alias="avgActivity")
    days_active: int = Field(0, alias="daysActive")
    projects: List[ProjectBreakdown] = Field(default_factory=list)


class DailyTotal(_CamelModel):
    date: str
    total_time: int = Field(0, alias="totalTime")
    avg_activity: int = Field(0, alias="avgActivity")


class MonthlySummary(_CamelModel):
    month: int
    year: int
    total_time: int = Field(0, alias="totalTime")
    avg_activity: int = Field(0, alias="avgActivity")
    total_days: int = Field(0, alias="totalDays")
    member_breakdown: List[MemberSummary] = Field(
        default_factory=list, alias="memberBreakdown"
    )
    daily_data: List[DailyTotal] = Field(default_factory=list, alias="dailyData")


class HRDailyRow(_CamelModel):
    name: str
    hubstaff_name: str = Field(..., alias="hubstaffName")
    time_worked: int = Field(0, alias="timeWorked")
    activity_percentage: int = Field(0, alias="activityPercentage")
    projects: List[str] = Field(default_factory=list)
    floor_time: str = Field("", alias="floorTime", description="Filled in manually by HR.")


class HRDailyReport(_CamelModel):
    date: str
    departments: List[str]
    department_data: Dict[str, List[HRDailyRow]] = Field(
        default_factory=dict, alias="departmentData"
    )


class MemberProjectActivity(_CamelModel):
    user_id: int = Field(..., alias="userId")
    user_name: str = Field(..., alias="userName")
    team: str
    time_worked: int = Field(0, alias="timeWorked")
    hours: float = 0.0
    activity_percentage: int = Field(0, alias="activityPercentage")


class ProjectActivitySummary(_CamelModel):
    """Effort spent on one Hubstaff project over a date range.

    ``team_breakdown`` and ``total_work_days`` are expressed in 8-hour work
    days. ``project_id`` is ``None`` when no Hubstaff project matched.
    """

    project_name: str = Field(..., alias="projectName")
    project_id: Optional[int] = Field(None, alias="projectId")
    matched_project_name: Optional[str] = Field(None, alias="matchedProjectName")
    start_date: str = Field(..., alias="startDate")
    end_date: str = Field(..., alias="endDate")
    total_time: int = Field(0, alias="totalTime")
    activity_percentage: int = Field(0, alias="activityPercentage")
    total_work_days: float = Field(0.0, alias="totalWorkDays")
    team_breakdown: Dict[str, float] = Field(default_factory=dict, alias="teamBreakdown")
    member_activities: List[MemberProjectActivity] = Field(
        default_factory=list, alias="memberActivities"
    )


__all__ = [
    "DailyActivityRecord",
    "DailyTotal",
    "HRDailyReport",
    "HRDailyRow",
    "MemberProjectActivity",
    "MemberSummary",
    "MonthlySummary",
    "OrganizationMember",
    "Project",
    "ProjectActivitySummary",
    "ProjectBreakdown",
    "TokenGrant",
    "TokenRecord",
]
