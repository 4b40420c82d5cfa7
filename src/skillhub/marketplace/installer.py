"""Install orchestrator for marketplace skills.

This module resolves a skill name to one remote artifact, stages it in a
temporary directory, promotes it into the install directory, validates the
promoted copy and records it in the manifest.
"""

import logging
import shutil
import tempfile
from pathlib import Path

from skillhub.config.constants import SEARCH_API_SOURCE_ID
from skillhub.errors import (
    AlreadyInstalledError,
    InvalidInstallError,
    NotInstalledError,
    RemoteUnavailableError,
    SkillError,
    SkillNotFoundError,
    SkillSecurityError,
    SourceNotFoundError,
)
from skillhub.marketplace.fetcher import GitSparseFetcher, RawDocumentFetcher, SubtreeFetcher
from skillhub.marketplace.models import (
    ApiCandidate,
    IndexedCandidate,
    InstalledSkill,
    InstallResult,
    MarketplaceSource,
    RemoteCandidate,
    UpdateStatus,
)
from skillhub.marketplace.resolver import SourceResolver
from skillhub.marketplace.search_api import SearchApiClient, parse_github_url
from skillhub.marketplace.store import ManifestStore
from skillhub.skills.export import ExportTarget, export_skills
from skillhub.skills.loader import SkillStore
from skillhub.skills.manifest import SKILL_FILE_NAME, ParsedDocument, read_skill_document
from skillhub.skills.security import lint_script, sanitize_skill_name
from skillhub.skills.validation import validate_body, validate_metadata

logger = logging.getLogger(__name__)


class SkillInstaller:
    """Install, uninstall and update-check marketplace skills.

    Collaborators are injected so the cache, the manifest and the fetch
    mechanism can be replaced in tests.

    Args:
        store: Manifest store
        resolver: GitHub source resolver
        search_api: Optional search API client used when no source has the name
        git_fetcher: Fetcher for GitHub-source candidates (sparse checkout)
        document_fetcher: Fetcher for search API candidates (raw SKILL.md)

    Example:
        >>> installer = SkillInstaller(store, resolver, search_api)
        >>> result = await installer.install("pdf")
        >>> result.installed.local_path
        PosixPath('/home/me/.skillhub/skills/pdf')
    """

    def __init__(
        self,
        store: ManifestStore,
        resolver: SourceResolver,
        search_api: SearchApiClient | None = None,
        git_fetcher: SubtreeFetcher | None = None,
        document_fetcher: SubtreeFetcher | None = None,
    ):
        self.store = store
        self.resolver = resolver
        self.search_api = search_api
        self.git_fetcher = git_fetcher or GitSparseFetcher()
        self.document_fetcher = document_fetcher or RawDocumentFetcher()

    async def available(self, source_id: str | None = None) -> list[IndexedCandidate]:
        """List candidates across registered GitHub sources."""
        return await self.resolver.list_all(self.store.list_sources(), source_id)

    async def search(self, query: str) -> list[IndexedCandidate]:
        """Search registered GitHub sources by name, description and tags."""
        return await self.resolver.search(query, self.store.list_sources())

    async def resolve(self, name: str, source_id: str | None = None) -> RemoteCandidate:
        """Find the remote candidate whose name matches exactly.

        Registered GitHub sources are searched first, then the search API.

        Raises:
            SourceNotFoundError: If source_id is not registered
            RemoteUnavailableError: If source_id names a GitHub source that cannot be listed
            SkillNotFoundError: If no candidate matches
        """
        config = self.store.load()
        use_search_api = source_id is None or source_id == SEARCH_API_SOURCE_ID

        if use_search_api:
            candidates = [] if source_id else await self.resolver.list_all(config.sources)
        else:
            source = config.get_source(source_id)
            if source is None:
                raise SourceNotFoundError(f"Marketplace source '{source_id}' not found")
            candidates = await self.resolver.list_source(source)

        for candidate in candidates:
            if candidate.name == name:
                return candidate

        if use_search_api and self.search_api is not None:
            try:
                match = await self.search_api.find(name)
            except RemoteUnavailableError as e:
                logger.warning(f"Search API unavailable while resolving '{name}': {e}")
                match = None
            if match is not None:
                return match

        scope = f" in source '{source_id}'" if source_id else ""
        raise SkillNotFoundError(f"Skill not found: {name}{scope}")

    async def install(
        self,
        name: str,
        source_id: str | None = None,
        export_targets: list[ExportTarget] | None = None,
        project_dir: Path | None = None,
    ) -> InstallResult:
        """Install a skill by name.

        Args:
            name: Exact skill name
            source_id: Restrict resolution to one source
            export_targets: Targets to export the installed skill to
            project_dir: Project root for exports (default: current directory)

        Returns:
            InstallResult with the manifest entry and any warnings

        Raises:
            SkillNotFoundError: If the name cannot be resolved
            AlreadyInstalledError: If the name is already installed
            InvalidInstallError: If the fetched skill fails validation
            RemoteUnavailableError: If the fetch fails
        """
        candidate = await self.resolve(name, source_id)
        return await self.install_candidate(candidate, export_targets, project_dir)

    async def install_from_url(
        self,
        url: str,
        export_targets: list[ExportTarget] | None = None,
        project_dir: Path | None = None,
    ) -> InstallResult:
        """Install a skill from a GitHub tree URL.

        The URL must point at the skill directory, for example
        ``https://github.com/acme/skills/tree/main/skills/pdf``. The skill is
        installed under the last path segment.

        Raises:
            InvalidInstallError: If the URL is not a GitHub tree URL
        """
        location = parse_github_url(url)
        if location is None or not location.path:
            raise InvalidInstallError(f"Invalid GitHub URL: {url}")

        parent, _, skill_dir = location.path.rpartition("/")
        source = MarketplaceSource(
            id=f"github:{location.owner}/{location.repo}",
            name=f"{location.owner}/{location.repo}",
            owner=location.owner,
            repo=location.repo,
            branch=location.branch,
            skills_path=parent,
        )
        candidate = IndexedCandidate(name=skill_dir, path=location.path, source=source)
        return await self.install_candidate(candidate, export_targets, project_dir)

    def _fetcher_for(self, candidate: RemoteCandidate) -> tuple[SubtreeFetcher, str]:
        if isinstance(candidate, ApiCandidate):
            return self.document_fetcher, candidate.branch
        return self.git_fetcher, candidate.source.branch

    async def install_candidate(
        self,
        candidate: RemoteCandidate,
        export_targets: list[ExportTarget] | None = None,
        project_dir: Path | None = None,
    ) -> InstallResult:
        """Stage, promote, validate and record one resolved candidate."""
        config = self.store.load()
        name = candidate.name

        existing = config.get_installed(name)
        if existing is not None:
            raise AlreadyInstalledError(
                f"Skill {name} is already installed at {existing.local_path}"
            )
        try:
            sanitize_skill_name(name)
        except SkillSecurityError as e:
            raise InvalidInstallError(str(e)) from e

        install_dir = Path(config.install_dir).expanduser()
        target = install_dir / name
        if target.exists():
            raise AlreadyInstalledError(
                f"Directory {target} already exists but is not in the manifest"
            )
        install_dir.mkdir(parents=True, exist_ok=True)

        staging = Path(tempfile.mkdtemp(prefix="skillhub-"))
        promoted = False
        try:
            fetcher, branch = self._fetcher_for(candidate)
            subtree = await fetcher.fetch_subtree(
                candidate.source, candidate.path, branch, staging / "checkout"
            )

            shutil.copytree(subtree, target, ignore=shutil.ignore_patterns(".git"))
            promoted = True
            logger.info(f"Promoted {name} to {target}")

            document, warnings = self._validate_promoted(target)

            version = candidate.version if isinstance(candidate, IndexedCandidate) else None
            entry = InstalledSkill(
                name=name,
                local_path=target,
                source=candidate.source,
                remote_path=candidate.path,
                version=version or _document_version(document),
            )
            self.store.record_install(entry)
        except Exception:
            if promoted and target.exists():
                shutil.rmtree(target, ignore_errors=True)
                logger.info(f"Rolled back {target}")
            raise
        finally:
            self._cleanup(staging)

        result = InstallResult(installed=entry, warnings=warnings)
        if export_targets:
            result.exported = self._export(target, export_targets, project_dir, result.warnings)
        logger.info(f"Installed {name} from {candidate.source.id}")
        return result

    def _validate_promoted(self, target: Path) -> tuple[ParsedDocument, list[str]]:
        """Validate the promoted copy, removing it when invalid.

        Returns:
            Parsed document and non-blocking warnings

        Raises:
            InvalidInstallError: If metadata validation fails
        """
        skill_md = target / SKILL_FILE_NAME
        document: ParsedDocument | None = None
        errors: list[str] = []
        warnings: list[str] = []

        if not skill_md.is_file():
            errors.append(f"{SKILL_FILE_NAME} not found")
        else:
            try:
                document = read_skill_document(skill_md)
            except SkillError as e:
                errors.append(str(e))

        if document is not None:
            result = validate_metadata(document.frontmatter).merge(validate_body(document.body))
            errors.extend(issue.message for issue in result.errors)
            warnings.extend(f"{issue.field}: {issue.message}" for issue in result.warnings)

        if errors or document is None:
            shutil.rmtree(target, ignore_errors=True)
            raise InvalidInstallError(
                f"Installed skill is invalid: {', '.join(errors)}", errors=errors
            )

        scripts_dir = target / "scripts"
        if scripts_dir.is_dir():
            for script in sorted(scripts_dir.iterdir()):
                if not script.is_file():
                    continue
                lint = lint_script(script.read_text(encoding="utf-8", errors="replace"))
                warnings.extend(f"scripts/{script.name}: {w}" for w in lint.warnings)

        return document, warnings

    def _export(
        self,
        target: Path,
        export_targets: list[ExportTarget],
        project_dir: Path | None,
        warnings: list[str],
    ) -> list[Path]:
        skill = SkillStore().load(target)
        if skill is None:
            return []
        try:
            return export_skills([skill], export_targets, project_dir or Path.cwd())
        except (OSError, SkillError) as e:
            logger.error(f"Export of {skill.name} failed: {e}")
            warnings.append(f"export failed: {e}")
            return []

    def _cleanup(self, staging: Path) -> None:
        """Remove the staging directory, best effort."""
        try:
            shutil.rmtree(staging)
        except FileNotFoundError:
            pass
        except OSError as e:
            logger.warning(
                f"Could not delete staging directory {staging}: {e}. "
                "It is safe to remove it manually."
            )

    def uninstall(self, name: str) -> InstalledSkill:
        """Remove an installed skill's directory and manifest entry.

        Raises:
            NotInstalledError: If the skill has no manifest entry
        """
        entry = self.store.get_installed(name)
        if entry is None:
            raise NotInstalledError(f"Skill '{name}' is not installed")

        local_path = Path(entry.local_path).expanduser()
        if local_path.exists():
            shutil.rmtree(local_path)
            logger.info(f"Deleted {local_path}")

        self.store.remove_install(name)
        return entry

    async def check_updates(self) -> list[UpdateStatus]:
        """Compare installed versions with each skill's source listing.

        Skills installed from the search API are skipped (it reports no
        versions). Unreachable sources are skipped per entry. Skills that
        no longer appear in their source are omitted.
        """
        statuses: list[UpdateStatus] = []
        checked: list[str] = []

        for installed in self.store.list_installed():
            source = installed.source
            if source is None or source.is_search_api:
                continue

            try:
                remote_skills = await self.resolver.list_source(source)
            except RemoteUnavailableError as e:
                logger.warning(f"Skipping update check for {installed.name}: {e}")
                continue

            checked.append(installed.name)
            remote = next((s for s in remote_skills if s.name == installed.name), None)
            if remote is None:
                continue

            statuses.append(
                UpdateStatus(
                    skill=installed,
                    current_version=installed.version,
                    latest_version=remote.version,
                    has_update=bool(remote.version) and remote.version != installed.version,
                )
            )

        self.store.mark_checked(checked)
        return statuses


def _document_version(document: ParsedDocument) -> str | None:
    metadata = document.frontmatter.get("metadata")
    if isinstance(metadata, dict):
        return metadata.get("version") or None
    return None
