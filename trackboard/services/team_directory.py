"""
Static reconciliation between Hubstaff display names and internal team members.

Hubstaff reports people by their full display name ("Aswathi M Ashok") while
the task tracker assigns work by short name ("Aswathi"). This module holds the
configured roster, the department each person reports to, and the name
matching rules that callers use to bridge the two.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Iterable, List, Optional


class Department(str, Enum):
    DESIGNERS = "DESIGNERS"
    QA = "QA"
    PHP = "PHP"
    APP = "APP"
    WPD = "WPD"

    @property
    def label(self) -> str:
        return DEPARTMENT_LABELS[self]


DEPARTMENT_LABELS: Dict[Department, str] = {
    Department.DESIGNERS: "Design",
    Department.QA: "QA & Testing",
    Department.PHP: "PHP Development",
    Department.APP: "Mobile App Development",
    Department.WPD: "WordPress Development",
}

# Report ordering used by the HR daily sheet.
DEPARTMENTS: List[Department] = [
    Department.DESIGNERS,
    Department.PHP,
    Department.APP,
    Department.WPD,
    Department.QA,
]

# Placeholder for people on the roster who have no Hubstaff account.
NO_HUBSTAFF_ACCOUNT = "__no_hubstaff_account__"


@dataclass(frozen=True)
class TeamMemberConfig:
    name: str
    hubstaff_name: str
    department: Department

    @property
    def has_hubstaff_account(self) -> bool:
        return self.hubstaff_name != NO_HUBSTAFF_ACCOUNT


# hubstaff_name must match the Hubstaff display name exactly (case aside).
TEAM_MEMBERS: List[TeamMemberConfig] = [
    TeamMemberConfig("Justin", "Justin Jose", Department.DESIGNERS),
    TeamMemberConfig("Kiran", "Kiran P S", Department.DESIGNERS),
    TeamMemberConfig("Alfiya", "Alfiya Noori", Department.DESIGNERS),
    TeamMemberConfig("Neethu", "Neethu Shaji", Department.DESIGNERS),
    TeamMemberConfig("Nikitha", "Nikitha", Department.DESIGNERS),
    TeamMemberConfig("Aswathi", "Aswathi M Ashok", Department.QA),
    TeamMemberConfig("Minnu", "Minnu Sebastian", Department.QA),
    TeamMemberConfig("Josin", "Josin Joseph", Department.PHP),
    TeamMemberConfig("Ammu", "Ammu", Department.PHP),
    TeamMemberConfig("Akhila", "Akhila Mohanan", Department.PHP),
    TeamMemberConfig("Sreeji", "Sreeji", Department.PHP),
    TeamMemberConfig("Suchith", "Suchith", Department.PHP),
    TeamMemberConfig("Priya", "Priya", Department.PHP),
    TeamMemberConfig("Amrutha", "Amrutha lakshmi", Department.PHP),
    TeamMemberConfig("Abish", "Abish", Department.PHP),
    TeamMemberConfig("Sajin", "Sajin", Department.PHP),
    TeamMemberConfig("Vaishnav", "Vaishnav", Department.APP),
    TeamMemberConfig("Ajay", "Ajay", Department.APP),
    TeamMemberConfig("Joshua", "Joshua Johnson", Department.APP),
    TeamMemberConfig("Bijith", "Bijith P N", Department.APP),
    TeamMemberConfig("Nikhil", "Nikhil", Department.APP),
    TeamMemberConfig("Sejal", "Sejal", Department.APP),
    TeamMemberConfig("Hasna", "Hasna", Department.WPD),
    TeamMemberConfig("Deepu", "Deepu Nr", Department.WPD),
    TeamMemberConfig("Sonu", "Sonu", Department.WPD),
    TeamMemberConfig("Jishnu", "Jishnu V Gopal", Department.WPD),
]

# Hubstaff display names that differ from the roster entry or belong to
# people outside it, mapped to the short name used on tasks.
HUBSTAFF_NAME_ALIASES: Dict[str, str] = {
    "Aswathi M Ashok": "Aswathi",
    "Minnu Sebastian": "Minnu",
    "Justin Jose": "Justin",
    "Kiran P S": "Kiran",
    "Alfiya Noori": "Alfiya",
    "Neethu Shaji": "Neethu",
    "Akhila Mohanan": "Akhila",
    "Akhila Mohan": "Akhila",
    "Ramees Nuhman": "Ramees",
    "Josin Joseph": "Josin",
    "Sreegith VA": "Sreegith",
    "Samir Mulashiya": "Samir",
    "Amrutha lakshmi": "Amrutha",
    "amrutha ms": "Amrutha",
    "Vishnu Shaji": "Vishnu",
    "Jishnu V Gopal": "Jishnu",
    "Sayooj K": "Sayooj",
    "Abhiram P Mohan": "Abhiram",
}


def _normalize(name: str) -> str:
    return " ".join(name.split()).casefold()


def lookup_by_provider_name(
    name: str, members: Iterable[TeamMemberConfig] = TEAM_MEMBERS
) -> Optional[TeamMemberConfig]:
    """Case-insensitive exact match on ``hubstaff_name``.

    Entries without a Hubstaff account never match.
    """
    if not name:
        return None
    wanted = _normalize(name)
    for member in members:
        if member.has_hubstaff_account and _normalize(member.hubstaff_name) == wanted:
            return member
    return None


def department_label_for(provider_name: str) -> Optional[str]:
    member = lookup_by_provider_name(provider_name)
    return member.department.label if member else None


def members_by_department(
    department: Department, members: Iterable[TeamMemberConfig] = TEAM_MEMBERS
) -> List[TeamMemberConfig]:
    return [member for member in members if member.department == department]


def short_name_for(provider_name: str) -> str:
    """Map a Hubstaff display name to a short name, defaulting to the first word."""
    member = lookup_by_provider_name(provider_name)
    if member:
        return member.name
    wanted = _normalize(provider_name)
    for alias, short_name in HUBSTAFF_NAME_ALIASES.items():
        if _normalize(alias) == wanted:
            return short_name
    parts = provider_name.split()
    return parts[0] if parts else provider_name


def provider_name_for(short_name: str) -> Optional[str]:
    """Reverse lookup of a short name, preferring the roster over aliases."""
    wanted = _normalize(short_name)
    for member in TEAM_MEMBERS:
        if member.has_hubstaff_account and _normalize(member.name) == wanted:
            return member.hubstaff_name
    for alias, name in HUBSTAFF_NAME_ALIASES.items():
        if _normalize(name) == wanted:
            return alias
    return None


def match_assignee(assignee: str, provider_names: Iterable[str]) -> Optional[str]:
    """Find the Hubstaff display name that corresponds to a task assignee.

    Precedence:
      1. exact, case-insensitive match of the assignee against a display name;
      2. a display name whose reconciled short name equals the assignee;
      3. substring containment in either direction.

    Substring matching is last because short names can be fragments of
    unrelated longer names. Within each stage the first candidate in
    ``provider_names`` order wins.
    """
    if not assignee or not assignee.strip():
        return None
    candidates = [name for name in provider_names if name]
    wanted = _normalize(assignee)

    for candidate in candidates:
        if _normalize(candidate) == wanted:
            return candidate

    for candidate in candidates:
        if _normalize(short_name_for(candidate)) == wanted:
            return candidate

    for candidate in candidates:
        normalized = _normalize(candidate)
        if wanted in normalized or normalized in wanted:
            return candidate
    return None


__all__ = [
    "DEPARTMENTS",
    "DEPARTMENT_LABELS",
    "Department",
    "HUBSTAFF_NAME_ALIASES",
    "NO_HUBSTAFF_ACCOUNT",
    "TEAM_MEMBERS",
    "TeamMemberConfig",
    "department_label_for",
    "lookup_by_provider_name",
    "match_assignee",
    "members_by_department",
    "provider_name_for",
    "short_name_for",
]
