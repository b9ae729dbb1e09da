"""
Activity metrics and report aggregation over Hubstaff daily activity rows.

The weighted average used throughout mirrors the Hubstaff dashboard: rows
with 0% activity (meetings, idle manual time) count towards time worked but
are left out of the activity denominator.
"""

from __future__ import annotations

import calendar
from collections import OrderedDict
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Sequence

from trackboard.schemas import (
    DailyActivityRecord,
    DailyTotal,
    HRDailyReport,
    HRDailyRow,
    MemberProjectActivity,
    MemberSummary,
    MonthlySummary,
    Project,
    ProjectActivitySummary,
    ProjectBreakdown,
)
from trackboard.services.team_directory import (
    DEPARTMENTS,
    TEAM_MEMBERS,
    TeamMemberConfig,
    short_name_for,
)

HOURS_PER_WORK_DAY = 8
UNASSIGNED_TEAM = "Unassigned"


def activity_percentage(tracked_seconds: Optional[int], overall_seconds: Optional[int]) -> int:
    """Share of tracked time with keyboard/mouse activity, as a 0-100 integer."""
    tracked = tracked_seconds or 0
    if tracked <= 0:
        return 0
    percentage = round((overall_seconds or 0) / tracked * 100)
    return max(0, min(100, percentage))


@dataclass
class _Accumulator:
    total_time: int = 0
    weighted_activity: int = 0
    active_time: int = 0

    def add(self, record: DailyActivityRecord) -> None:
        self.total_time += record.time_worked
        if record.activity_percentage > 0:
            self.weighted_activity += record.activity_percentage * record.time_worked
            self.active_time += record.time_worked

    @property
    def average(self) -> int:
        if self.active_time <= 0:
            return 0
        return round(self.weighted_activity / self.active_time)


def weighted_average_activity(records: Iterable[DailyActivityRecord]) -> int:
    acc = _Accumulator()
    for record in records:
        acc.add(record)
    return acc.average


def total_time_worked(records: Iterable[DailyActivityRecord]) -> int:
    return sum(record.time_worked for record in records)


@dataclass
class _MemberAccumulator(_Accumulator):
    hubstaff_name: str = ""
    days: set = field(default_factory=set)
    projects: Dict[str, _Accumulator] = field(default_factory=dict)


def _member_summary(name: str, acc: _MemberAccumulator) -> MemberSummary:
    projects = [
        ProjectBreakdown(project_name=project, time=p.total_time, activity=p.average)
        for project, p in acc.projects.items()
    ]
    projects.sort(key=lambda p: p.time, reverse=True)
    return MemberSummary(
        name=name,
        hubstaff_name=acc.hubstaff_name,
        total_time=acc.total_time,
        avg_activity=acc.average,
        days_active=len(acc.days),
        projects=projects,
    )


def summarize_member(
    records: Sequence[DailyActivityRecord], *, name: Optional[str] = None
) -> MemberSummary:
    """Totals for a single user across days and projects."""
    acc = _MemberAccumulator(hubstaff_name=records[0].user_name if records else "")
    for record in records:
        _accumulate_member(acc, record)
    return _member_summary(name or short_name_for(acc.hubstaff_name), acc)


def _accumulate_member(acc: _MemberAccumulator, record: DailyActivityRecord) -> None:
    acc.add(record)
    acc.days.add(record.date)
    if record.project_name:
        acc.projects.setdefault(record.project_name, _Accumulator()).add(record)


def days_in_month(month: int, year: int) -> List[str]:
    """ISO dates for every day of ``month`` in ``year``."""
    if not 1 <= month <= 12:
        raise ValueError(f"Invalid month: {month}")
    _, last_day = calendar.monthrange(year, month)
    return [f"{year:04d}-{month:02d}-{day:02d}" for day in range(1, last_day + 1)]


def aggregate_monthly(
    records: Iterable[DailyActivityRecord], month: int, year: int
) -> MonthlySummary:
    """Roll a month of activity rows up per member and per day."""
    members: Dict[str, _MemberAccumulator] = OrderedDict()
    daily: Dict[str, _Accumulator] = {}
    overall = _Accumulator()

    for record in records:
        short_name = short_name_for(record.user_name)
        acc = members.setdefault(
            short_name, _MemberAccumulator(hubstaff_name=record.user_name)
        )
        _accumulate_member(acc, record)
        daily.setdefault(record.date, _Accumulator()).add(record)
        overall.add(record)

    breakdown = [_member_summary(name, acc) for name, acc in members.items()]
    breakdown.sort(key=lambda m: m.total_time, reverse=True)

    daily_data = [
        DailyTotal(date=day, total_time=acc.total_time, avg_activity=acc.average)
        for day, acc in sorted(daily.items())
    ]

    return MonthlySummary(
        month=month,
        year=year,
        total_time=overall.total_time,
        avg_activity=overall.average,
        total_days=len(daily_data),
        member_breakdown=breakdown,
        daily_data=daily_data,
    )


def build_hr_daily_report(
    records: Sequence[DailyActivityRecord],
    date: str,
    members: Iterable[TeamMemberConfig] = TEAM_MEMBERS,
) -> HRDailyReport:
    """One row per configured member, grouped by department.

    Members with no activity on ``date`` still get a zeroed row so HR can
    fill in floor time for them.
    """
    by_name: Dict[str, List[DailyActivityRecord]] = {}
    for record in records:
        by_name.setdefault(record.user_name.casefold(), []).append(record)

    department_data: Dict[str, List[HRDailyRow]] = {
        department.value: [] for department in DEPARTMENTS
    }
    for member in members:
        rows = by_name.get(member.hubstaff_name.casefold(), []) if member.has_hubstaff_account else []
        projects = list(OrderedDict.fromkeys(r.project_name or "Unknown" for r in rows))
        department_data.setdefault(member.department.value, []).append(
            HRDailyRow(
                name=member.name,
                hubstaff_name=member.hubstaff_name if member.has_hubstaff_account else "",
                time_worked=total_time_worked(rows),
                activity_percentage=weighted_average_activity(rows),
                projects=projects,
            )
        )

    return HRDailyReport(
        date=date,
        departments=[department.value for department in DEPARTMENTS],
        department_data=department_data,
    )


def find_project(projects: Iterable[Project], name: str) -> Optional[Project]:
    """Resolve a task-tracker project name to a Hubstaff project.

    An exact case-insensitive match wins; otherwise the first project whose
    name contains, or is contained in, ``name``.
    """
    wanted = " ".join(name.split()).casefold()
    if not wanted:
        return None
    candidates = list(projects)
    for project in candidates:
        if " ".join(project.name.split()).casefold() == wanted:
            return project
    for project in candidates:
        normalized = " ".join(project.name.split()).casefold()
        if normalized and (wanted in normalized or normalized in wanted):
            return project
    return None


def _work_days(seconds: int) -> float:
    return round(seconds / 3600 / HOURS_PER_WORK_DAY, 2)


def summarize_project_activity(
    records: Sequence[DailyActivityRecord],
    project_name: str,
    *,
    start_date: str,
    end_date: str,
    project: Optional[Project] = None,
) -> ProjectActivitySummary:
    """Per-member and per-team effort on one project.

    Members whose department is unknown are reported under ``UNASSIGNED_TEAM``.
    """
    overall = _Accumulator()
    team_time: Dict[str, int] = OrderedDict()
    members: Dict[int, _Accumulator] = {}
    identities: Dict[int, tuple] = {}
    for record in records:
        team = record.team or UNASSIGNED_TEAM
        overall.add(record)
        team_time[team] = team_time.get(team, 0) + record.time_worked
        members.setdefault(record.user_id, _Accumulator()).add(record)
        identities.setdefault(record.user_id, (record.user_name, team))

    member_activities = [
        MemberProjectActivity(
            user_id=user_id,
            user_name=identities[user_id][0],
            team=identities[user_id][1],
            time_worked=acc.total_time,
            hours=round(acc.total_time / 3600, 2),
            activity_percentage=acc.average,
        )
        for user_id, acc in members.items()
    ]
    member_activities.sort(key=lambda m: m.time_worked, reverse=True)

    return ProjectActivitySummary(
        project_name=project_name,
        project_id=project.id if project else None,
        matched_project_name=project.name if project else None,
        start_date=start_date,
        end_date=end_date,
        total_time=overall.total_time,
        activity_percentage=overall.average,
        total_work_days=_work_days(overall.total_time),
        team_breakdown={team: _work_days(seconds) for team, seconds in team_time.items()},
        member_activities=member_activities,
    )


def format_duration(seconds: int) -> str:
    """Render seconds as ``"5h 30m"``, ``"5h"`` or ``"45m"``."""
    hours, remainder = divmod(max(int(seconds), 0), 3600)
    minutes = remainder // 60
    if hours == 0:
        return f"{minutes}m"
    return f"{hours}h {minutes}m" if minutes else f"{hours}h"


__all__ = [
    "HOURS_PER_WORK_DAY",
    "UNASSIGNED_TEAM",
    "activity_percentage",
    "aggregate_monthly",
    "build_hr_daily_report",
    "days_in_month",
    "find_project",
    "format_duration",
    "summarize_member",
    "summarize_project_activity",
    "total_time_worked",
    "weighted_average_activity",
]
