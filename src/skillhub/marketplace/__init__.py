"""Marketplace sources, caching, resolution and installation."""

from skillhub.marketplace.cache import MarketplaceCache
from skillhub.marketplace.installer import SkillInstaller
from skillhub.marketplace.models import (
    ApiCandidate,
    IndexedCandidate,
    InstalledSkill,
    MarketplaceConfig,
    MarketplaceSource,
    RemoteCandidate,
    UpdateStatus,
)
from skillhub.marketplace.resolver import SourceResolver
from skillhub.marketplace.search_api import SearchApiClient
from skillhub.marketplace.store import ManifestStore

__all__ = [
    "ApiCandidate",
    "IndexedCandidate",
    "InstalledSkill",
    "ManifestStore",
    "MarketplaceCache",
    "MarketplaceConfig",
    "MarketplaceSource",
    "RemoteCandidate",
    "SearchApiClient",
    "SkillInstaller",
    "SourceResolver",
    "UpdateStatus",
]
