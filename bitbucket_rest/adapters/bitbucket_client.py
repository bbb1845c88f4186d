"""HTTP adapter for the Bitbucket Server REST API 1.0."""

import json
from collections.abc import AsyncIterator, Awaitable, Callable, Mapping, Sequence
from types import MappingProxyType
from typing import Any, TypeVar
from urllib.parse import quote

import httpx
import pydantic
import structlog

from bitbucket_rest.adapters.bitbucket_models import (
    AnyPullRequestActivity,
    Branch,
    Project,
    PullRequest,
    PullRequestChange,
    PullRequestState,
    Repository,
    Task,
    User,
)
from bitbucket_rest.config.config import Settings
from bitbucket_rest.schemas.page import Limit, Page
from bitbucket_rest.services.paginator import iterate

logger = structlog.get_logger(__name__)

_T = TypeVar("_T")


class BitbucketClientError(Exception):
    def __init__(self, message: str, status_code: int | None = None, errors: Sequence[str] = ()) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.errors = tuple(errors)


def _segment(value: str) -> str:
    """Percent-encode a single path segment such as a project key or repository slug."""
    if not value:
        raise ValueError("path segment must be a non-empty string")
    return quote(value, safe="")


class BitbucketClient:
    _API_PATH = "/rest/api/1.0"

    def __init__(
        self,
        base_url: str,
        username: str | None = None,
        password: str | None = None,
        token: str | None = None,
        timeout: float = 30.0,
        verify: bool = True,
        page_size: int = 25,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self.page_size = page_size
        headers: dict[str, str] = {"Accept": "application/json"}
        auth: httpx.BasicAuth | None = None
        if token:
            headers["Authorization"] = f"Bearer {token}"
        elif username is not None:
            auth = httpx.BasicAuth(username, password or "")
        self._http = httpx.AsyncClient(
            base_url=self._base_url + self._API_PATH,
            headers=headers,
            auth=auth,
            timeout=httpx.Timeout(timeout),
            verify=verify,
        )

    @classmethod
    def from_settings(cls, settings: Settings) -> "BitbucketClient":
        return cls(
            base_url=settings.base_url,
            username=settings.username,
            password=settings.password,
            token=settings.token,
            timeout=settings.timeout_seconds,
            verify=settings.verify_ssl,
            page_size=settings.page_size,
        )

    async def __aenter__(self) -> "BitbucketClient":
        return self

    async def __aexit__(self, *exc: object) -> None:
        await self.close()

    async def close(self) -> None:
        if not self._http.is_closed:
            await self._http.aclose()

    def iter_all(self, fetch: Callable[[Limit], Awaitable[Page[_T]]]) -> AsyncIterator[_T]:
        """Yield every item of a paged accessor, fetching ``page_size`` items per request.

        Example: ``client.iter_all(lambda limit: client.get_project_repositories("PRJ", limit))``.
        """
        return iterate(fetch, self.page_size)

    # ------------------------------------------------------------------
    # Health
    # ------------------------------------------------------------------

    async def health_check(self) -> bool:
        try:
            resp = await self._http.get("/application-properties")
            return resp.status_code == 200
        except httpx.HTTPError:
            return False

    # ------------------------------------------------------------------
    # Projects
    # ------------------------------------------------------------------

    async def get_projects(self, limit: Limit) -> Page[Project]:
        """Return a page of projects.

        Only projects for which the authenticated user has the PROJECT_VIEW
        permission are returned.
        """
        return await self._get_page("/projects", limit, Project)

    async def get_project_by_key(self, project_key: str) -> Project | None:
        return await self._get_optional(f"/projects/{_segment(project_key)}", Project)

    async def get_project_repositories(self, project_key: str, limit: Limit) -> Page[Repository]:
        """Return a page of the repositories belonging to a project.

        The authenticated user must have REPO_READ permission for the project.
        """
        return await self._get_page(f"/projects/{_segment(project_key)}/repos", limit, Repository)

    # ------------------------------------------------------------------
    # Repositories
    # ------------------------------------------------------------------

    async def get_all_repositories(self, limit: Limit) -> Page[Repository]:
        return await self._get_page("/repos", limit, Repository)

    async def get_repository_by_slug(self, project_key: str, repository_slug: str) -> Repository | None:
        return await self._get_optional(self._repo_path(project_key, repository_slug), Repository)

    async def get_repository_branches(
        self,
        project_key: str,
        repository_slug: str,
        query: str | None,
        limit: Limit,
    ) -> Page[Branch]:
        """Return a page of branches, alphabetically ordered.

        Args:
            project_key: Project key, e.g. ``PRJ``.
            repository_slug: Repository slug, e.g. ``my-repo``.
            query: When not None, only branches whose name matches this text are returned.
            limit: Requested window.
        """
        params: dict[str, Any] = {"orderBy": "ALPHABETICAL"}
        if query is not None:
            params["filterText"] = query
        return await self._get_page(
            f"{self._repo_path(project_key, repository_slug)}/branches", limit, Branch, params
        )

    async def get_repository_forks(self, project_key: str, repository_slug: str, limit: Limit) -> Page[Repository]:
        return await self._get_page(f"{self._repo_path(project_key, repository_slug)}/forks", limit, Repository)

    async def get_repository_default_branch(self, project_key: str, repository_slug: str) -> Branch | None:
        return await self._get_optional(f"{self._repo_path(project_key, repository_slug)}/branches/default", Branch)

    # ------------------------------------------------------------------
    # Pull requests
    # ------------------------------------------------------------------

    async def get_repository_pull_requests(
        self,
        project_key: str,
        repository_slug: str,
        state: PullRequestState,
        limit: Limit,
    ) -> Page[PullRequest]:
        """Return a page of pull requests in the given state, newest first.

        ``PullRequestState.all`` returns pull requests in every state.
        """
        params = {"state": PullRequestState(state).value, "order": "NEWEST"}
        return await self._get_page(
            f"{self._repo_path(project_key, repository_slug)}/pull-requests", limit, PullRequest, params
        )

    async def get_repository_pull_request_changes(
        self, project_key: str, repository_slug: str, pull_request_id: int, limit: Limit
    ) -> Page[PullRequestChange]:
        path = self._pull_request_path(project_key, repository_slug, pull_request_id)
        return await self._get_page(f"{path}/changes", limit, PullRequestChange)

    async def get_repository_pull_request_activities(
        self, project_key: str, repository_slug: str, pull_request_id: int, limit: Limit
    ) -> Page[AnyPullRequestActivity]:
        """Return a page of activities, each parsed into the record matching its ``action``."""
        path = self._pull_request_path(project_key, repository_slug, pull_request_id)
        return await self._get_page(f"{path}/activities", limit, AnyPullRequestActivity)

    async def get_repository_pull_request_tasks(
        self, project_key: str, repository_slug: str, pull_request_id: int, limit: Limit
    ) -> Page[Task]:
        path = self._pull_request_path(project_key, repository_slug, pull_request_id)
        return await self._get_page(f"{path}/tasks", limit, Task)

    # ------------------------------------------------------------------
    # Users and application
    # ------------------------------------------------------------------

    async def get_users(self, limit: Limit) -> Page[User]:
        return await self._get_page("/users", limit, User)

    async def get_application_properties(self) -> Mapping[str, str]:
        """Retrieve version information and other application properties.

        Returns:
            A read-only mapping such as ``{"version": "8.9.0", "buildNumber": "8009000", ...}``.
        """
        resp = await self._get("/application-properties")
        self._raise_for_status(resp)
        data = self._json(resp)
        if not isinstance(data, dict):
            raise BitbucketClientError(
                f"Bitbucket returned unexpected shape, expected object, got {type(data).__name__} "
                f"(status {resp.status_code})",
                status_code=resp.status_code,
            )
        return MappingProxyType({str(key): str(value) for key, value in data.items()})

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _repo_path(project_key: str, repository_slug: str) -> str:
        return f"/projects/{_segment(project_key)}/repos/{_segment(repository_slug)}"

    def _pull_request_path(self, project_key: str, repository_slug: str, pull_request_id: int) -> str:
        return f"{self._repo_path(project_key, repository_slug)}/pull-requests/{int(pull_request_id)}"

    async def _get(self, path: str, params: Mapping[str, Any] | None = None) -> httpx.Response:
        resp = await self._http.get(path, params=params)
        logger.debug("bitbucket_request", method="GET", path=path, params=params, status=resp.status_code)
        return resp

    async def _get_page(
        self,
        path: str,
        limit: Limit,
        item_type: Any,
        params: Mapping[str, Any] | None = None,
    ) -> Page[Any]:
        resp = await self._get(path, {**(params or {}), **limit.as_params()})
        self._raise_for_status(resp)
        return self._parse(resp, Page[item_type])

    async def _get_optional(self, path: str, model: type[_T]) -> _T | None:
        """GET a single resource, mapping 404 and empty bodies to None."""
        resp = await self._get(path)
        if resp.status_code == 404:
            return None
        self._raise_for_status(resp)
        if resp.status_code == 204 or not resp.content:
            return None
        return self._parse(resp, model)

    def _raise_for_status(self, resp: httpx.Response) -> None:
        if not resp.is_success:
            errors = self._error_messages(resp)
            logger.warning(
                "bitbucket_error",
                path=resp.request.url.path,
                status=resp.status_code,
                errors=errors,
            )
            detail = "; ".join(errors) if errors else resp.text
            raise BitbucketClientError(
                f"Bitbucket API error {resp.status_code}: {detail}",
                status_code=resp.status_code,
                errors=errors,
            )

    @staticmethod
    def _error_messages(resp: httpx.Response) -> list[str]:
        """Extract messages from the ``{"errors": [{"message": ...}]}`` error envelope."""
        try:
            body = resp.json()
        except (json.JSONDecodeError, UnicodeDecodeError):
            return []
        if not isinstance(body, dict) or not isinstance(body.get("errors"), list):
            return []
        return [str(err["message"]) for err in body["errors"] if isinstance(err, dict) and "message" in err]

    def _json(self, resp: httpx.Response) -> Any:
        """Decode the body, reporting bytes that are not UTF-8 JSON as BitbucketClientError."""
        try:
            return resp.json()
        except (json.JSONDecodeError, UnicodeDecodeError) as exc:
            raise BitbucketClientError(
                f"Bitbucket returned non-JSON body (status {resp.status_code}): {exc}",
                status_code=resp.status_code,
            ) from exc

    def _parse(self, resp: httpx.Response, model: type[_T]) -> _T:
        """Validate the decoded body against ``model``.

        Decoding failures surface from ``_json``; a body that decodes but does
        not fit the model is reported here as a schema mismatch.
        """
        data = self._json(resp)
        try:
            return model.model_validate(data)  # type: ignore[attr-defined]
        except pydantic.ValidationError as exc:
            raise BitbucketClientError(
                f"Bitbucket response schema mismatch: {exc}",
                status_code=resp.status_code,
            ) from exc
