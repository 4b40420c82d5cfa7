"""Remote source resolver for GitHub-backed marketplace sources.

Listing a source tries two strategies in order:

1. Index strategy: fetch ``<skillsPath>/skills-index.json`` from the raw
   content host. A valid index is accepted verbatim in a single request.
2. Directory-listing fallback: list ``<skillsPath>`` through the GitHub
   contents API, keep directory entries and fetch each entry's SKILL.md in
   batches of ``batch_size`` concurrent requests. Entries whose document
   cannot be fetched or parsed are dropped.

Results are cached per source under ``owner/repo``.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any

import httpx
from pydantic import BaseModel, Field, ValidationError

from skillhub.config.constants import (
    DEFAULT_HTTP_TIMEOUT,
    FETCH_BATCH_SIZE,
    GITHUB_API_URL,
    GITHUB_RAW_URL,
    INDEX_FILE_NAME,
    USER_AGENT,
)
from skillhub.errors import RemoteUnavailableError, SkillError
from skillhub.marketplace.cache import MarketplaceCache
from skillhub.marketplace.models import IndexedCandidate, MarketplaceSource
from skillhub.skills.manifest import SKILL_FILE_NAME, parse_frontmatter

logger = logging.getLogger(__name__)


class _IndexEntry(BaseModel):
    model_config = {"coerce_numbers_to_str": True}

    name: str
    description: str = ""
    path: str
    license: str | None = None
    author: str | None = None
    version: str | None = None
    tags: list[str] = Field(default_factory=list)


class _SkillsIndex(BaseModel):
    skills: list[_IndexEntry]


class _ContentEntry(BaseModel):
    name: str
    path: str
    type: str


def raw_url(source: MarketplaceSource, path: str) -> str:
    """Raw-content URL of a file inside a source repository."""
    return f"{GITHUB_RAW_URL}/{source.owner}/{source.repo}/{source.branch}/{path}"


def contents_url(source: MarketplaceSource) -> str:
    """GitHub contents API URL listing a source's skills directory."""
    return (
        f"{GITHUB_API_URL}/repos/{source.owner}/{source.repo}/contents/"
        f"{source.skills_path}?ref={source.branch}"
    )


class SourceResolver:
    """List skill candidates from GitHub marketplace sources.

    The resolver owns an :class:`httpx.AsyncClient` unless one is supplied.
    Call :meth:`aclose` or use ``async with`` when finished.

    Args:
        cache: Shared marketplace cache
        client: Optional pre-configured client (caller keeps ownership)
        timeout: Per-request timeout in seconds
        github_token: Optional token sent to the contents API
        batch_size: Concurrent document fetches in the listing fallback

    Example:
        >>> async with SourceResolver(MarketplaceCache()) as resolver:
        ...     skills = await resolver.list_source(DEFAULT_SOURCES[0])
    """

    def __init__(
        self,
        cache: MarketplaceCache,
        client: httpx.AsyncClient | None = None,
        timeout: float = DEFAULT_HTTP_TIMEOUT,
        github_token: str | None = None,
        batch_size: int = FETCH_BATCH_SIZE,
    ):
        self.cache = cache
        self.batch_size = batch_size
        self._github_token = github_token
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            timeout=httpx.Timeout(timeout),
            headers={"User-Agent": USER_AGENT},
            follow_redirects=True,
        )

    async def aclose(self) -> None:
        """Close the underlying HTTP client if it is owned by this resolver."""
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> SourceResolver:
        return self

    async def __aexit__(self, *exc: object) -> None:
        await self.aclose()

    def _api_headers(self) -> dict[str, str]:
        headers = {"Accept": "application/vnd.github.v3+json", "User-Agent": USER_AGENT}
        if self._github_token:
            headers["Authorization"] = f"Bearer {self._github_token}"
        return headers

    async def list_source(self, source: MarketplaceSource) -> list[IndexedCandidate]:
        """List every skill in one source, index first.

        Raises:
            RemoteUnavailableError: If the directory listing itself fails
        """
        cached = self.cache.get(source.cache_key)
        if cached is not None:
            logger.debug(f"Cache hit for {source.cache_key}")
            return cached

        skills = await self._fetch_index(source)
        if skills is None:
            skills = await self._fetch_listing(source)

        self.cache.set(source.cache_key, skills)
        return skills

    async def _fetch_index(self, source: MarketplaceSource) -> list[IndexedCandidate] | None:
        """Return candidates from skills-index.json, or None to fall back."""
        url = raw_url(source, f"{source.skills_path}/{INDEX_FILE_NAME}")
        try:
            response = await self._client.get(url)
        except httpx.HTTPError as e:
            logger.debug(f"Index request failed for {source.id}: {e}")
            return None
        if response.status_code != 200:
            logger.debug(f"No index for {source.id} (HTTP {response.status_code})")
            return None

        try:
            index = _SkillsIndex.model_validate(response.json())
        except (ValueError, ValidationError) as e:
            logger.warning(f"Ignoring malformed {INDEX_FILE_NAME} in {source.id}: {e}")
            return None

        logger.info(f"Loaded {len(index.skills)} skill(s) from index of {source.id}")
        return [
            IndexedCandidate(
                name=entry.name,
                description=entry.description,
                path=entry.path,
                source=source,
                license=entry.license,
                author=entry.author,
                version=entry.version,
                tags=entry.tags,
            )
            for entry in index.skills
        ]

    async def _fetch_listing(self, source: MarketplaceSource) -> list[IndexedCandidate]:
        url = contents_url(source)
        try:
            response = await self._client.get(url, headers=self._api_headers())
            response.raise_for_status()
            payload = response.json()
        except httpx.HTTPStatusError as e:
            raise RemoteUnavailableError(
                f"Failed to fetch from {source.cache_key}: HTTP {e.response.status_code}"
            ) from e
        except (httpx.HTTPError, ValueError) as e:
            raise RemoteUnavailableError(f"Failed to fetch from {source.cache_key}: {e}") from e

        if not isinstance(payload, list):
            raise RemoteUnavailableError(
                f"Failed to fetch from {source.cache_key}: '{source.skills_path}' is not a directory"
            )

        directories = []
        for item in payload:
            try:
                entry = _ContentEntry.model_validate(item)
            except ValidationError:
                continue
            if entry.type == "dir":
                directories.append(entry)

        skills: list[IndexedCandidate] = []
        for start in range(0, len(directories), self.batch_size):
            batch = directories[start : start + self.batch_size]
            results = await asyncio.gather(
                *(self._fetch_candidate(source, entry) for entry in batch)
            )
            skills.extend(result for result in results if result is not None)

        logger.info(f"Listed {len(skills)} skill(s) from {source.id} via contents API")
        return skills

    async def _fetch_candidate(
        self, source: MarketplaceSource, entry: _ContentEntry
    ) -> IndexedCandidate | None:
        url = raw_url(source, f"{entry.path}/{SKILL_FILE_NAME}")
        try:
            response = await self._client.get(url)
            if response.status_code != 200:
                return None
            parsed = parse_frontmatter(response.text)
        except (httpx.HTTPError, SkillError) as e:
            logger.debug(f"Dropping {entry.path} from {source.id}: {e}")
            return None
        if parsed is None:
            return None

        frontmatter: dict[str, Any] = parsed.frontmatter
        metadata = frontmatter.get("metadata")
        if not isinstance(metadata, dict):
            metadata = {}
        try:
            return IndexedCandidate(
                name=frontmatter.get("name") or entry.name,
                description=frontmatter.get("description") or "",
                path=entry.path,
                source=source,
                license=frontmatter.get("license") or None,
                author=metadata.get("author"),
                version=metadata.get("version"),
            )
        except ValidationError as e:
            logger.debug(f"Dropping {entry.path} from {source.id}: {e}")
            return None

    async def list_all(
        self, sources: list[MarketplaceSource], source_id: str | None = None
    ) -> list[IndexedCandidate]:
        """List skills across sources, isolating per-source failures.

        Args:
            sources: Registered sources
            source_id: Restrict the listing to one source id

        Returns:
            Candidates from every reachable source, in source order
        """
        selected = [
            s for s in sources if not s.is_search_api and (source_id is None or s.id == source_id)
        ]
        skills: list[IndexedCandidate] = []
        for source in selected:
            try:
                skills.extend(await self.list_source(source))
            except RemoteUnavailableError as e:
                logger.warning(f"Could not fetch from {source.id}: {e}")
        return skills

    async def search(
        self, query: str, sources: list[MarketplaceSource]
    ) -> list[IndexedCandidate]:
        """Case-insensitive match of query against name, description and tags."""
        needle = query.lower()
        return [
            skill
            for skill in await self.list_all(sources)
            if needle in skill.name.lower()
            or needle in skill.description.lower()
            or any(needle in tag.lower() for tag in skill.tags)
        ]
