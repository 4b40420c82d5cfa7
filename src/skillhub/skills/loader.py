"""Local skill store for discovering and loading skills.

Discovery is two-level: ``discover`` returns lightweight SkillRef entries
built from frontmatter only, and ``load`` reads the full document when a
skill is actually needed.
"""

import logging
from pathlib import Path

from skillhub.config.constants import (
    DEFAULT_INSTALL_DIR,
    DEFAULT_MAX_DEPTH,
    LOCAL_SKILLS_DIR,
    PROJECT_SKILLS_DIR,
)
from skillhub.errors import InvalidSkillError, SkillManifestError
from skillhub.skills.manifest import (
    SKILL_FILE_NAME,
    Skill,
    SkillMetadata,
    SkillRef,
    SkillResources,
    build_metadata,
    read_skill_document,
)
from skillhub.skills.validation import validate_metadata

logger = logging.getLogger(__name__)


def default_search_paths(install_dir: Path | None = None) -> list[Path]:
    """Global install dir, then project-level and local development skills."""
    return [install_dir or DEFAULT_INSTALL_DIR, PROJECT_SKILLS_DIR, LOCAL_SKILLS_DIR]


class SkillStore:
    """Enumerate and load skill documents from configured search roots.

    Attributes:
        search_paths: Roots scanned when no explicit paths are given

    Example:
        >>> store = SkillStore([Path("./skills")])
        >>> refs = store.discover()
        >>> skill = store.load(refs[0].path)
    """

    def __init__(self, search_paths: list[Path] | None = None):
        self.search_paths = search_paths if search_paths is not None else default_search_paths()

    def _find_documents(self, root: Path, max_depth: int) -> list[Path]:
        """Find SKILL.md files whose depth below root (file included) is <= max_depth."""
        documents: list[Path] = []
        for depth in range(max_depth):
            pattern = "/".join(["*"] * depth + [SKILL_FILE_NAME])
            documents.extend(sorted(p for p in root.glob(pattern) if p.is_file()))
        return documents

    def discover(
        self, search_paths: list[Path] | None = None, max_depth: int = DEFAULT_MAX_DEPTH
    ) -> list[SkillRef]:
        """Discover skills under each search root (metadata only).

        Args:
            search_paths: Roots to scan (defaults to the store's search paths)
            max_depth: Maximum path depth of SKILL.md below a root

        Returns:
            SkillRef list in root order, then by depth and path within a root
        """
        refs: list[SkillRef] = []

        for root in search_paths if search_paths is not None else self.search_paths:
            root = Path(root).expanduser()
            if not root.is_dir():
                continue

            for skill_md in self._find_documents(root, max_depth):
                try:
                    metadata = self.load_metadata(skill_md)
                except (InvalidSkillError, SkillManifestError, OSError) as e:
                    logger.warning(f"Skipping skill at {skill_md}: {e}")
                    continue
                if metadata is None:
                    continue

                result = validate_metadata(metadata)
                if not result.valid:
                    problems = "; ".join(f"{i.field}: {i.message}" for i in result.errors)
                    logger.warning(f"Skipping invalid skill at {skill_md}: {problems}")
                    continue

                refs.append(
                    SkillRef(
                        name=metadata.name,
                        description=metadata.description,
                        path=skill_md.parent,
                    )
                )

        logger.debug(f"Discovered {len(refs)} skill(s)")
        return refs

    @staticmethod
    def _skill_md_path(path: Path) -> Path:
        path = Path(path).expanduser()
        return path if path.name == SKILL_FILE_NAME else path / SKILL_FILE_NAME

    def load_metadata(self, path: Path) -> SkillMetadata | None:
        """Read only the frontmatter of a skill (Level 1).

        Returns:
            SkillMetadata, or None if the document does not exist

        Raises:
            InvalidSkillError: If required fields are missing
            SkillManifestError: If frontmatter is malformed
        """
        skill_md = self._skill_md_path(path)
        if not skill_md.is_file():
            return None
        parsed = read_skill_document(skill_md)
        return build_metadata(parsed.frontmatter)

    def load(self, path: Path) -> Skill | None:
        """Load a full skill (Level 2).

        Args:
            path: Skill directory or path to its SKILL.md

        Returns:
            Skill with metadata and body, or None if the document does not exist

        Raises:
            InvalidSkillError: If required fields are missing
            SkillManifestError: If frontmatter is malformed
        """
        skill_md = self._skill_md_path(path)
        if not skill_md.is_file():
            return None

        parsed = read_skill_document(skill_md)
        metadata = build_metadata(parsed.frontmatter)
        return Skill(
            metadata=metadata,
            body=parsed.body,
            path=skill_md.parent,
            skill_md_path=skill_md,
        )

    def find(self, name: str, search_paths: list[Path] | None = None) -> Skill | None:
        """Load the first discovered skill with the given name."""
        for ref in self.discover(search_paths):
            if ref.name == name:
                return self.load(ref.path)
        return None

    def list_resources(self, path: Path) -> SkillResources:
        """List scripts, references and assets of a skill (non-recursive).

        Missing subdirectories yield empty lists.
        """
        skill_dir = Path(path).expanduser()
        if skill_dir.name == SKILL_FILE_NAME:
            skill_dir = skill_dir.parent

        def _list(subdir: str, pattern: str) -> list[str]:
            directory = skill_dir / subdir
            if not directory.is_dir():
                return []
            return sorted(p.name for p in directory.glob(pattern) if p.is_file())

        return SkillResources(
            scripts=_list("scripts", "*"),
            references=_list("references", "*.md"),
            assets=_list("assets", "*"),
        )
