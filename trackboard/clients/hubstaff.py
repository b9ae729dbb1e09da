"""
Hubstaff API client.

Wraps organization member/project lookups and daily activity retrieval.
Member and project lists are cached per organization for the configured TTL
so that activity enrichment does not re-download them on every request.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import date
from http import HTTPStatus
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple, TYPE_CHECKING

import httpx
from pydantic import ValidationError

from trackboard.core.config import HubstaffSettings
from trackboard.schemas import DailyActivityRecord, OrganizationMember, Project
from trackboard.services.activity_reports import activity_percentage
from trackboard.services.team_directory import department_label_for
from trackboard.utils.cache import TTLCache
from trackboard.utils.http import RetryConfig, Sleep, request_with_retry

if TYPE_CHECKING:  # pragma: no cover
    from trackboard.services.hubstaff_tokens import HubstaffTokenService

logger = logging.getLogger(__name__)

UNKNOWN_USER = "Unknown User"
UNKNOWN_PROJECT = "Unknown Project"


class HubstaffConfigurationError(Exception):
    """Raised when required Hubstaff settings are missing."""


class HubstaffAuthUnavailableError(Exception):
    """Raised when no valid Hubstaff access token could be obtained."""


class HubstaffAPIError(Exception):
    """Raised for non-success or malformed Hubstaff responses."""

    def __init__(self, status_code: int, detail: str) -> None:
        super().__init__(detail)
        self.status_code = status_code
        self.detail = detail


class HubstaffRateLimitError(HubstaffAPIError):
    """Raised when a request is still rate limited after all retries."""


MembersEntry = Tuple[List[OrganizationMember], Dict[int, str]]
ProjectsEntry = Tuple[List[Project], Dict[int, str]]


class HubstaffClient:
    """Authenticated access to the Hubstaff v2 organization endpoints."""

    def __init__(
        self,
        settings: HubstaffSettings,
        token_service: "HubstaffTokenService",
        *,
        members_cache: Optional[TTLCache[MembersEntry]] = None,
        projects_cache: Optional[TTLCache[ProjectsEntry]] = None,
        client_factory: Optional[Callable[[], httpx.AsyncClient]] = None,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        self._settings = settings
        self._tokens = token_service
        self._members_cache = members_cache or TTLCache(settings.cache_ttl_seconds)
        self._projects_cache = projects_cache or TTLCache(settings.cache_ttl_seconds)
        self._client_factory = client_factory or (
            lambda: httpx.AsyncClient(timeout=settings.request_timeout_seconds)
        )
        self._retry_config = RetryConfig(retries=settings.max_retries)
        self._sleep = sleep

    @property
    def org_id(self) -> str:
        if not self._settings.org_id:
            raise HubstaffConfigurationError("HUBSTAFF_ORG_ID is not configured")
        return self._settings.org_id

    def _url(self, path: str) -> str:
        return f"{self._settings.api_base_url.rstrip('/')}/{path.lstrip('/')}"

    async def fetch_with_retry(
        self,
        client: httpx.AsyncClient,
        url: str,
        *,
        params: Optional[Dict[str, Any]] = None,
    ) -> httpx.Response:
        """GET ``url`` with a bearer token, backing off on 429s and network errors."""
        token = await self._tokens.get_valid_access_token()
        if not token:
            raise HubstaffAuthUnavailableError("Failed to get valid Hubstaff access token")
        headers = {
            "Authorization": f"Bearer {token}",
            "Content-Type": "application/json",
        }
        response = await request_with_retry(
            lambda: client.get(url, params=params, headers=headers),
            retry_config=self._retry_config,
            sleep=self._sleep,
        )
        if response.status_code == HTTPStatus.UNAUTHORIZED:
            self._tokens.invalidate(token)
        return response

    def _payload(self, response: httpx.Response, what: str) -> Dict[str, Any]:
        if response.status_code == HTTPStatus.TOO_MANY_REQUESTS:
            raise HubstaffRateLimitError(
                response.status_code,
                f"Hubstaff rate limit reached while fetching {what}; try again later",
            )
        if not response.is_success:
            raise HubstaffAPIError(
                response.status_code,
                f"Failed to fetch {what}: {response.status_code} {response.reason_phrase}",
            )
        try:
            payload = response.json()
        except ValueError as exc:
            raise HubstaffAPIError(
                response.status_code, f"Malformed {what} response from Hubstaff"
            ) from exc
        if not isinstance(payload, dict):
            raise HubstaffAPIError(
                response.status_code, f"Unexpected {what} payload from Hubstaff"
            )
        return payload

    async def _paginate(
        self, path: str, params: Dict[str, Any], key: str
    ) -> List[Dict[str, Any]]:
        """Follow ``next_page_start_id`` cursors until exhausted; any failure aborts."""
        results: List[Dict[str, Any]] = []
        page_start_id: Any = None
        pages = 0
        async with self._client_factory() as client:
            while True:
                page_params = dict(params)
                if page_start_id is not None:
                    page_params["page_start_id"] = page_start_id
                response = await self.fetch_with_retry(
                    client, self._url(path), params=page_params
                )
                payload = self._payload(response, key)
                results.extend(payload.get(key) or [])
                pages += 1
                page_start_id = (payload.get("pagination") or {}).get("next_page_start_id")
                if not page_start_id:
                    break
        logger.debug("Fetched %d %s across %d page(s)", len(results), key, pages)
        return results

    async def _members(self) -> MembersEntry:
        org_id = self.org_id
        cached, hit = self._members_cache.get(org_id)
        if hit:
            logger.debug("Returning cached members for org %s", org_id)
            return cached

        logger.info("Fetching members from Hubstaff API...")
        async with self._client_factory() as client:
            response = await self.fetch_with_retry(
                client,
                self._url(f"organizations/{org_id}/members"),
                params={"include": "users"},
            )
        payload = self._payload(response, "members")

        members: List[OrganizationMember] = []
        names: Dict[int, str] = {}
        try:
            users = {user.get("id"): user for user in payload.get("users") or []}
            for membership in payload.get("members") or []:
                user_id = membership.get("user_id") or membership.get("id")
                if user_id is None:
                    continue
                full_user = users.get(user_id)
                name = (full_user or {}).get("name") or membership.get("name")
                member = OrganizationMember(
                    id=user_id,
                    name=name or "Unknown",
                    email=full_user.get("email") if full_user else None,
                    status=membership.get("membership_status") or membership.get("status"),
                )
                members.append(member)
                if name:
                    names[member.id] = name
        except (AttributeError, ValidationError) as exc:
            raise HubstaffAPIError(
                HTTPStatus.BAD_GATEWAY, f"Malformed member entry from Hubstaff: {exc}"
            ) from exc

        entry: MembersEntry = (members, names)
        self._members_cache.set(org_id, entry)
        return entry

    async def _projects(self, force_refresh: bool = False) -> ProjectsEntry:
        org_id = self.org_id
        if not force_refresh:
            cached, hit = self._projects_cache.get(org_id)
            if hit:
                logger.debug("Returning cached projects for org %s", org_id)
                return cached

        logger.info("Fetching projects from Hubstaff API...")
        raw = await self._paginate(
            f"organizations/{org_id}/projects",
            {"status": "all", "page_limit": self._settings.page_limit},
            "projects",
        )
        try:
            projects = [Project.model_validate(item) for item in raw]
        except ValidationError as exc:
            raise HubstaffAPIError(
                HTTPStatus.BAD_GATEWAY, f"Malformed project entry from Hubstaff: {exc}"
            ) from exc
        entry: ProjectsEntry = (projects, {p.id: p.name for p in projects})
        self._projects_cache.set(org_id, entry)
        return entry

    async def get_organization_members(self) -> List[OrganizationMember]:
        """All organization members with names resolved from the included users."""
        members, _ = await self._members()
        return members

    async def get_organization_projects(self, force_refresh: bool = False) -> List[Project]:
        """All projects, archived ones included."""
        projects, _ = await self._projects(force_refresh=force_refresh)
        return projects

    async def get_daily_activities(
        self,
        start_date: str | date,
        end_date: str | date,
        user_ids: Optional[Sequence[int]] = None,
        project_ids: Optional[Sequence[int]] = None,
    ) -> List[DailyActivityRecord]:
        """
        Daily activity rows between two dates (inclusive), in provider order.

        Each row is enriched with the member name, project name and
        department label; unknown ids resolve to placeholder names. ``user_ids``
        and ``project_ids`` narrow the query on the Hubstaff side.
        """
        start = _as_date(start_date)
        stop = _as_date(end_date)
        if start > stop:
            raise ValueError("start_date must not be after end_date")
        if user_ids is not None and len(user_ids) == 0:
            raise ValueError("user_ids, when given, must not be empty")
        if project_ids is not None and len(project_ids) == 0:
            raise ValueError("project_ids, when given, must not be empty")

        _, user_names = await self._members()
        _, project_names = await self._projects()

        params: Dict[str, Any] = {
            "date[start]": start.isoformat(),
            "date[stop]": stop.isoformat(),
            "page_limit": self._settings.page_limit,
        }
        if user_ids:
            params["user_ids"] = ",".join(str(user_id) for user_id in user_ids)
        if project_ids:
            params["project_ids"] = ",".join(str(project_id) for project_id in project_ids)

        logger.info(
            "Fetching daily activities from %s to %s%s",
            start,
            stop,
            f" for users {params['user_ids']}" if user_ids else "",
        )
        raw = await self._paginate(
            f"organizations/{self.org_id}/activities/daily", params, "daily_activities"
        )

        try:
            return [_enrich(activity, user_names, project_names) for activity in raw]
        except ValidationError as exc:
            raise HubstaffAPIError(
                HTTPStatus.BAD_GATEWAY, f"Malformed daily activity from Hubstaff: {exc}"
            ) from exc


def _enrich(
    activity: Dict[str, Any], user_names: Dict[int, str], project_names: Dict[int, str]
) -> DailyActivityRecord:
    user_id = activity.get("user_id")
    project_id = activity.get("project_id")
    user_name = user_names.get(user_id) or UNKNOWN_USER
    tracked = activity.get("tracked") or 0
    project_name = project_names.get(project_id) if project_id else None
    return DailyActivityRecord(
        user_id=user_id,
        user_name=user_name,
        date=activity.get("date"),
        time_worked=tracked,
        activity_percentage=activity_percentage(tracked, activity.get("overall")),
        project_id=project_id,
        project_name=project_name or UNKNOWN_PROJECT,
        team=department_label_for(user_name) if user_name != UNKNOWN_USER else None,
    )


def _as_date(value: str | date) -> date:
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(value)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"Invalid date {value!r}; expected YYYY-MM-DD") from exc


__all__ = [
    "HubstaffAPIError",
    "HubstaffAuthUnavailableError",
    "HubstaffClient",
    "HubstaffConfigurationError",
    "HubstaffRateLimitError",
    "UNKNOWN_PROJECT",
    "UNKNOWN_USER",
]
