"""Subtree fetch implementations used to stage remote skills.

The install orchestrator depends only on the :class:`SubtreeFetcher`
protocol. Two implementations are provided:

- :class:`GitSparseFetcher`: shallow sparse checkout of the skill's
  subtree with GitPython (latest revision of one branch, one path).
- :class:`RawDocumentFetcher`: download the skill's SKILL.md directly from
  the raw content host.
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Protocol

import httpx
from git import GitCommandError, Repo

from skillhub.config.constants import (
    DEFAULT_GIT_TIMEOUT,
    DEFAULT_HTTP_TIMEOUT,
    GITHUB_CLONE_URL,
    GITHUB_RAW_URL,
    USER_AGENT,
)
from skillhub.errors import RemoteUnavailableError, SkillNotFoundError
from skillhub.marketplace.models import MarketplaceSource
from skillhub.skills.manifest import SKILL_FILE_NAME

logger = logging.getLogger(__name__)


class SubtreeFetcher(Protocol):
    """Capability to materialize one path of a remote source locally."""

    async def fetch_subtree(
        self, source: MarketplaceSource, path: str, branch: str, dest: Path
    ) -> Path:
        """Fetch ``path`` at ``branch`` into ``dest``.

        Returns:
            Directory inside ``dest`` holding the skill content
        """
        ...


class GitSparseFetcher:
    """Fetch a skill subtree using a shallow git sparse checkout.

    Cost is proportional to the one skill's content: no history is
    downloaded and only ``path`` is checked out.

    Args:
        timeout: Seconds before a git command is killed
        base_url: Git host used to build the remote URL
    """

    def __init__(self, timeout: int = DEFAULT_GIT_TIMEOUT, base_url: str = GITHUB_CLONE_URL):
        self.timeout = timeout
        self.base_url = base_url.rstrip("/")

    def remote_url(self, source: MarketplaceSource) -> str:
        return f"{self.base_url}/{source.owner}/{source.repo}.git"

    async def fetch_subtree(
        self, source: MarketplaceSource, path: str, branch: str, dest: Path
    ) -> Path:
        return await asyncio.to_thread(self._sparse_checkout, source, path, branch, dest)

    def _sparse_checkout(
        self, source: MarketplaceSource, path: str, branch: str, dest: Path
    ) -> Path:
        path = path.strip("/")
        remote_url = self.remote_url(source)
        logger.info(f"Sparse checkout of '{path}' from {remote_url} ({branch})")

        repo = Repo.init(dest)
        try:
            repo.create_remote("origin", remote_url)
            with repo.config_writer() as writer:
                writer.set_value("core", "sparseCheckout", "true")

            sparse_file = Path(repo.git_dir) / "info" / "sparse-checkout"
            sparse_file.parent.mkdir(parents=True, exist_ok=True)
            sparse_file.write_text(f"{path}\n", encoding="utf-8")

            repo.git.fetch("--depth=1", "origin", branch, kill_after_timeout=self.timeout)
            repo.git.checkout("-B", branch, "FETCH_HEAD", kill_after_timeout=self.timeout)
        except GitCommandError as e:
            raise RemoteUnavailableError(
                f"git fetch of {source.cache_key}@{branch} failed: {e}"
            ) from e
        finally:
            # Release file handles before the staging directory is removed
            repo.close()

        subtree = dest / path if path else dest
        if not subtree.is_dir():
            raise SkillNotFoundError(f"Path '{path}' not found in {source.cache_key}@{branch}")
        return subtree


class RawDocumentFetcher:
    """Fetch only a skill's SKILL.md from the raw content host.

    Args:
        client: Optional pre-configured client (caller keeps ownership)
        timeout: Per-request timeout in seconds
        base_url: Raw content host
    """

    def __init__(
        self,
        client: httpx.AsyncClient | None = None,
        timeout: float = DEFAULT_HTTP_TIMEOUT,
        base_url: str = GITHUB_RAW_URL,
    ):
        self.base_url = base_url.rstrip("/")
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            timeout=httpx.Timeout(timeout),
            headers={"User-Agent": USER_AGENT},
            follow_redirects=True,
        )

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    def document_url(self, source: MarketplaceSource, path: str, branch: str) -> str:
        parts = [self.base_url, source.owner, source.repo, branch]
        if path.strip("/"):
            parts.append(path.strip("/"))
        parts.append(SKILL_FILE_NAME)
        return "/".join(parts)

    async def fetch_subtree(
        self, source: MarketplaceSource, path: str, branch: str, dest: Path
    ) -> Path:
        url = self.document_url(source, path, branch)
        logger.info(f"Fetching {url}")
        try:
            response = await self._client.get(url)
        except httpx.HTTPError as e:
            raise RemoteUnavailableError(f"Could not fetch {SKILL_FILE_NAME} from {url}: {e}") from e
        if response.status_code == 404:
            raise SkillNotFoundError(f"{SKILL_FILE_NAME} not found at {url}")
        if response.status_code != 200:
            raise RemoteUnavailableError(
                f"Could not fetch {SKILL_FILE_NAME} from {url}: HTTP {response.status_code}"
            )

        dest.mkdir(parents=True, exist_ok=True)
        (dest / SKILL_FILE_NAME).write_text(response.text, encoding="utf-8")
        return dest
