"""Manifest store for marketplace sources and installed skills.

This module provides persistence for the marketplace document with atomic
file operations. Every mutation is a full read-modify-write of the
document; the next load always re-reads from disk.
"""

import json
import logging
import os
import tempfile
from datetime import datetime
from pathlib import Path

from pydantic import ValidationError

from skillhub.config.constants import DEFAULT_MANIFEST_PATH, DEPRECATED_SOURCE_IDS
from skillhub.errors import (
    DuplicateSourceError,
    NotInstalledError,
    ProtectedSourceError,
    SourceNotFoundError,
)
from skillhub.marketplace.models import (
    DEFAULT_SOURCES,
    InstalledSkill,
    MarketplaceConfig,
    MarketplaceSource,
)

logger = logging.getLogger(__name__)


class ManifestStore:
    """Durable record of registered sources and installed skills.

    Corrupt or missing files degrade to defaults. Built-in sources are
    re-injected and deprecated sources stripped on every load.

    Attributes:
        manifest_path: Path to marketplace.json
        install_dir: Install directory used when creating a fresh document

    Example:
        >>> store = ManifestStore(Path("/tmp/marketplace.json"))
        >>> store.add_source(MarketplaceSource(id="team", name="Team", owner="acme", repo="skills"))
        >>> [s.id for s in store.list_sources()]
        ['anthropic-skills', 'team']
    """

    def __init__(self, manifest_path: Path | None = None, install_dir: Path | None = None):
        self.manifest_path = manifest_path or DEFAULT_MANIFEST_PATH
        self.install_dir = install_dir

    def _defaults(self) -> MarketplaceConfig:
        config = MarketplaceConfig()
        if self.install_dir is not None:
            config.install_dir = self.install_dir
        return config

    def load(self) -> MarketplaceConfig:
        """Load the marketplace document.

        Returns:
            Parsed config, or defaults if the file is missing or unparseable
        """
        if not self.manifest_path.exists():
            return self._defaults()

        try:
            with open(self.manifest_path, encoding="utf-8") as f:
                data = json.load(f)
            config = MarketplaceConfig.model_validate(data)
        except (OSError, UnicodeDecodeError, json.JSONDecodeError, ValidationError) as e:
            # Corrupted manifest, start fresh
            logger.warning(f"Could not read {self.manifest_path}, using defaults: {e}")
            return self._defaults()

        known = {source.id for source in config.sources}
        for default in DEFAULT_SOURCES:
            if default.id not in known:
                config.sources.append(default.model_copy())
        config.sources = [s for s in config.sources if s.id not in DEPRECATED_SOURCE_IDS]
        return config

    def save(self, config: MarketplaceConfig) -> None:
        """Save the marketplace document atomically.

        Uses temp file + os.replace() so a failed write never leaves a
        truncated document behind.
        """
        self.manifest_path.parent.mkdir(parents=True, exist_ok=True)
        payload = config.model_dump(mode="json", by_alias=True)

        fd, temp_path = tempfile.mkstemp(
            dir=self.manifest_path.parent, prefix=".marketplace-", suffix=".tmp"
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(payload, f, indent=2)
            os.replace(temp_path, self.manifest_path)
        except Exception:
            try:
                os.unlink(temp_path)
            except FileNotFoundError:
                pass
            raise

    def list_sources(self) -> list[MarketplaceSource]:
        return self.load().sources

    def get_source(self, source_id: str) -> MarketplaceSource:
        """Look up a registered source.

        Raises:
            SourceNotFoundError: If no source has this id
        """
        source = self.load().get_source(source_id)
        if source is None:
            raise SourceNotFoundError(f"Marketplace source '{source_id}' not found")
        return source

    def add_source(self, source: MarketplaceSource) -> None:
        """Register a new source.

        Raises:
            DuplicateSourceError: If a source with the same id exists
        """
        config = self.load()
        if config.get_source(source.id) is not None:
            raise DuplicateSourceError(f"Marketplace source '{source.id}' already exists")
        config.sources.append(source)
        self.save(config)
        logger.info(f"Added marketplace source {source.id} ({source.cache_key})")

    def remove_source(self, source_id: str) -> None:
        """Remove a user-added source.

        Raises:
            SourceNotFoundError: If the source is not registered
            ProtectedSourceError: If the source is verified
        """
        config = self.load()
        source = config.get_source(source_id)
        if source is None:
            raise SourceNotFoundError(f"Marketplace source '{source_id}' not found")
        if source.verified:
            raise ProtectedSourceError(f"Cannot remove verified marketplace source: {source_id}")
        config.sources = [s for s in config.sources if s.id != source_id]
        self.save(config)
        logger.info(f"Removed marketplace source {source_id}")

    def list_installed(self) -> list[InstalledSkill]:
        return self.load().installed

    def get_installed(self, name: str) -> InstalledSkill | None:
        return self.load().get_installed(name)

    def record_install(self, entry: InstalledSkill) -> None:
        """Add or replace the manifest entry for ``entry.name``."""
        config = self.load()
        config.installed = [i for i in config.installed if i.name != entry.name]
        config.installed.append(entry)
        self.save(config)

    def remove_install(self, name: str) -> InstalledSkill:
        """Drop an installed entry.

        Raises:
            NotInstalledError: If no entry exists for name
        """
        config = self.load()
        entry = config.get_installed(name)
        if entry is None:
            raise NotInstalledError(f"Skill '{name}' is not installed")
        config.installed = [i for i in config.installed if i.name != name]
        self.save(config)
        return entry

    def mark_checked(self, names: list[str], when: datetime | None = None) -> None:
        """Set ``last_checked`` on the named entries."""
        if not names:
            return
        when = when or datetime.now()
        config = self.load()
        for entry in config.installed:
            if entry.name in names:
                entry.last_checked = when
        self.save(config)
