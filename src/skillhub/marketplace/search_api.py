"""Client for the paginated skill search API (skillsmp.com).

The search API is a paginated listing and is kept separate from the
exhaustive GitHub source listing. Each result points at a GitHub tree URL
that the installer turns into a raw-content URL for the SKILL.md.
"""

from __future__ import annotations

import logging
import re

import httpx
from pydantic import BaseModel, Field, ValidationError

from skillhub.config.constants import (
    DEFAULT_HTTP_TIMEOUT,
    DEFAULT_SEARCH_API_URL,
    DEFAULT_SEARCH_LIMIT,
    SEARCH_SORT_OPTIONS,
    USER_AGENT,
)
from skillhub.errors import RemoteUnavailableError
from skillhub.marketplace.cache import MarketplaceCache, search_key
from skillhub.marketplace.models import SEARCH_API_SOURCE, ApiCandidate, SearchPage

logger = logging.getLogger(__name__)

_TREE_URL_PATTERN = re.compile(
    r"github\.com/(?P<owner>[^/]+)/(?P<repo>[^/]+)(?:/tree/(?P<branch>[^/]+)(?:/(?P<path>.+?))?)?/?$"
)


class GitHubLocation(BaseModel):
    """Owner, repository, branch and path parsed from a GitHub URL."""

    owner: str
    repo: str
    branch: str = "main"
    path: str = ""


def parse_github_url(url: str) -> GitHubLocation | None:
    """Parse ``https://github.com/<owner>/<repo>[/tree/<branch>[/<path>]]``.

    Returns:
        GitHubLocation, or None if the URL is not a GitHub repository URL

    Example:
        >>> parse_github_url("https://github.com/acme/skills/tree/main/skills/pdf").path
        'skills/pdf'
    """
    match = _TREE_URL_PATTERN.search(url.strip())
    if not match:
        return None
    repo = match.group("repo")
    if repo.endswith(".git"):
        repo = repo[: -len(".git")]
    return GitHubLocation(
        owner=match.group("owner"),
        repo=repo,
        branch=match.group("branch") or "main",
        path=(match.group("path") or "").strip("/"),
    )


class _ApiSkill(BaseModel):
    id: str
    name: str
    author: str | None = None
    description: str = ""
    githubUrl: str = ""
    stars: int = 0
    forks: int = 0
    updatedAt: int | str | None = None
    path: str | None = None
    branch: str | None = None


class _Pagination(BaseModel):
    page: int = 1
    limit: int = 0
    total: int = 0
    totalPages: int = 0
    hasNext: bool = False
    hasPrev: bool = False


class _ApiResponse(BaseModel):
    skills: list[_ApiSkill] = Field(default_factory=list)
    pagination: _Pagination = Field(default_factory=_Pagination)


def to_candidate(skill: _ApiSkill) -> ApiCandidate:
    """Convert a search API record into an ApiCandidate."""
    location = parse_github_url(skill.githubUrl)
    owner = location.owner if location else (skill.author or SEARCH_API_SOURCE.owner)
    repo = location.repo if location else ""
    source = SEARCH_API_SOURCE.model_copy(update={"owner": owner, "repo": repo})
    return ApiCandidate(
        name=skill.name,
        description=skill.description,
        path=location.path if location else (skill.path or ""),
        source=source,
        author=skill.author,
        skill_id=skill.id,
        stars=skill.stars,
        github_url=skill.githubUrl or None,
        branch=location.branch if location else (skill.branch or "main"),
    )


class SearchApiClient:
    """Query the skill search API with caching.

    Args:
        cache: Shared marketplace cache
        endpoint: Search API endpoint
        client: Optional pre-configured client (caller keeps ownership)
        timeout: Per-request timeout in seconds

    Example:
        >>> async with SearchApiClient(MarketplaceCache()) as api:
        ...     page = await api.fetch(search="pdf", limit=10)
        ...     print(page.total, page.has_next)
    """

    def __init__(
        self,
        cache: MarketplaceCache,
        endpoint: str = DEFAULT_SEARCH_API_URL,
        client: httpx.AsyncClient | None = None,
        timeout: float = DEFAULT_HTTP_TIMEOUT,
    ):
        self.cache = cache
        self.endpoint = endpoint
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            timeout=httpx.Timeout(timeout),
            headers={"User-Agent": USER_AGENT},
            follow_redirects=True,
        )

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> SearchApiClient:
        return self

    async def __aexit__(self, *exc: object) -> None:
        await self.aclose()

    async def fetch(
        self,
        search: str = "",
        page: int = 1,
        limit: int = DEFAULT_SEARCH_LIMIT,
        sort_by: str = "stars",
    ) -> SearchPage:
        """Fetch one page of results.

        Args:
            search: Free-text query (omitted from the request when empty)
            page: 1-based page number
            limit: Page size
            sort_by: ``stars`` or ``recent``

        Returns:
            SearchPage with the page's skills and pagination totals

        Raises:
            ValueError: If sort_by is not supported
            RemoteUnavailableError: On network, HTTP or payload errors
        """
        if sort_by not in SEARCH_SORT_OPTIONS:
            raise ValueError(f"sort_by must be one of {', '.join(SEARCH_SORT_OPTIONS)}")

        key = search_key(search, page, limit, sort_by)
        cached = self.cache.get(key)
        if cached is not None:
            logger.debug(f"Cache hit for {key}")
            return cached

        params: dict[str, str | int] = {"page": page, "limit": limit, "sortBy": sort_by}
        if search:
            params["search"] = search

        try:
            response = await self._client.get(self.endpoint, params=params)
            response.raise_for_status()
            data = _ApiResponse.model_validate(response.json())
        except httpx.HTTPStatusError as e:
            raise RemoteUnavailableError(
                f"Search API error: HTTP {e.response.status_code}"
            ) from e
        except httpx.HTTPError as e:
            raise RemoteUnavailableError(f"Search API request failed: {e}") from e
        except (ValueError, ValidationError) as e:
            raise RemoteUnavailableError(f"Search API returned an unexpected payload: {e}") from e

        result = SearchPage(
            skills=[to_candidate(skill) for skill in data.skills],
            page=data.pagination.page,
            limit=data.pagination.limit or limit,
            total=data.pagination.total,
            total_pages=data.pagination.totalPages,
            has_next=data.pagination.hasNext,
            has_prev=data.pagination.hasPrev,
        )
        self.cache.set(key, result)
        return result

    async def find(self, name: str) -> ApiCandidate | None:
        """Search by name and return the exact name match, if any."""
        result = await self.fetch(search=name)
        return next((skill for skill in result.skills if skill.name == name), None)
