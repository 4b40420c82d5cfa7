"""Marketplace data model.

Pydantic models for marketplace sources, remote skill candidates, installed
skill tracking and the persisted marketplace document. The persisted
document uses camelCase keys (``skillsPath``, ``installedAt``...).
"""

from datetime import datetime
from pathlib import Path
from typing import Annotated, Literal, Union

from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel

from skillhub.config.constants import (
    DEFAULT_INSTALL_DIR,
    SEARCH_API_SOURCE_ID,
)

_CAMEL_CONFIG = {"alias_generator": to_camel, "populate_by_name": True}


class MarketplaceSource(BaseModel):
    """A registered remote location skills can be listed and fetched from.

    ``id`` is the stable join key used for caching and manifest lookups.

    Example:
        >>> source = MarketplaceSource(id="team", name="Team Skills", owner="acme", repo="skills")
        >>> source.cache_key
        'acme/skills'
    """

    id: str
    name: str
    owner: str
    repo: str
    branch: str = "main"
    skills_path: str = "skills"
    description: str | None = None
    verified: bool = False

    model_config = _CAMEL_CONFIG

    @property
    def cache_key(self) -> str:
        return f"{self.owner}/{self.repo}"

    @property
    def is_search_api(self) -> bool:
        return self.id == SEARCH_API_SOURCE_ID


DEFAULT_SOURCES: list[MarketplaceSource] = [
    MarketplaceSource(
        id="anthropic-skills",
        name="Anthropic Official Skills",
        owner="anthropics",
        repo="skills",
        branch="main",
        skills_path="skills",
        description="Official Agent Skills from Anthropic",
        verified=True,
    )
]

SEARCH_API_SOURCE = MarketplaceSource(
    id=SEARCH_API_SOURCE_ID,
    name="SkillsMP Marketplace",
    owner="skillsmp",
    repo="skillsmp.com",
    description="Browse agent skills from the community",
    verified=True,
)


class IndexedCandidate(BaseModel):
    """Skill listed by a GitHub source (index file or directory listing)."""

    kind: Literal["indexed"] = "indexed"
    name: str
    description: str = ""
    path: str
    source: MarketplaceSource
    license: str | None = None
    author: str | None = None
    version: str | None = None
    tags: list[str] = Field(default_factory=list)


class ApiCandidate(BaseModel):
    """Skill returned by the search API.

    The search API never reports versions or licenses. ``source`` carries
    the repository the skill lives in so the document can be fetched by
    raw-content URL.
    """

    kind: Literal["api"] = "api"
    name: str
    description: str = ""
    path: str = ""
    source: MarketplaceSource
    author: str | None = None
    skill_id: str | None = None
    stars: int = 0
    github_url: str | None = None
    branch: str = "main"


RemoteCandidate = Annotated[Union[IndexedCandidate, ApiCandidate], Field(discriminator="kind")]
MarketplaceSkill = RemoteCandidate


class SearchPage(BaseModel):
    """One page of search API results."""

    skills: list[ApiCandidate] = Field(default_factory=list)
    page: int = 1
    limit: int = 0
    total: int = 0
    total_pages: int = 0
    has_next: bool = False
    has_prev: bool = False


class InstalledSkill(BaseModel):
    """Manifest entry for an installed skill. ``name`` is unique in the manifest."""

    name: str
    local_path: Path
    source: MarketplaceSource | None = None
    remote_path: str | None = None
    version: str | None = None
    installed_at: datetime = Field(default_factory=datetime.now)
    last_checked: datetime | None = None

    model_config = _CAMEL_CONFIG


class MarketplaceConfig(BaseModel):
    """The single persisted marketplace document."""

    sources: list[MarketplaceSource] = Field(
        default_factory=lambda: [s.model_copy() for s in DEFAULT_SOURCES]
    )
    installed: list[InstalledSkill] = Field(default_factory=list)
    install_dir: Path = DEFAULT_INSTALL_DIR

    model_config = _CAMEL_CONFIG

    def get_source(self, source_id: str) -> MarketplaceSource | None:
        return next((s for s in self.sources if s.id == source_id), None)

    def get_installed(self, name: str) -> InstalledSkill | None:
        return next((i for i in self.installed if i.name == name), None)


class UpdateStatus(BaseModel):
    """Result of comparing an installed skill against its source."""

    skill: InstalledSkill
    current_version: str | None = None
    latest_version: str | None = None
    has_update: bool = False


class InstallResult(BaseModel):
    """Outcome of a successful install."""

    installed: InstalledSkill
    warnings: list[str] = Field(default_factory=list)
    exported: list[Path] = Field(default_factory=list)
