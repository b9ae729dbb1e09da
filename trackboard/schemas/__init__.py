"""Public schema exports."""

from .hubstaff import (
    DailyActivityRecord,
    DailyTotal,
    HRDailyReport,
    HRDailyRow,
    MemberProjectActivity,
    MemberSummary,
    MonthlySummary,
    OrganizationMember,
    Project,
    ProjectActivitySummary,
    ProjectBreakdown,
    TokenGrant,
    TokenRecord,
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
