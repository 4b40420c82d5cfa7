"""Export adapter that writes loaded skills into agent-specific layouts.

Each target receives a loaded Skill and writes it under its own fixed
directory convention, in the shared header + body document format.
"""

import logging
from collections.abc import Callable
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel

from skillhub.skills.manifest import SKILL_FILE_NAME, Skill
from skillhub.skills.security import sanitize_skill_name

logger = logging.getLogger(__name__)

ALL_TARGETS = "all"


class ExportTarget(BaseModel):
    """An agent integration and where it expects skill documents.

    Attributes:
        name: Target identifier used on the command line
        label: Human-readable agent name
        base_dir: Directory (relative to the project) holding exported skills
        flat: Write ``<name>.md`` files instead of ``<name>/SKILL.md``
        description_limit: Truncate the description to this many characters
        include_name: Whether the header carries the skill name
    """

    name: str
    label: str
    base_dir: Path
    flat: bool = False
    description_limit: int | None = None
    include_name: bool = True

    def document_path(self, skill_name: str, project_dir: Path) -> Path:
        root = project_dir / self.base_dir
        if self.flat:
            return root / f"{skill_name}.md"
        return root / skill_name / SKILL_FILE_NAME

    def render(self, skill: Skill) -> str:
        header: dict[str, Any] = {}
        if self.include_name:
            header["name"] = skill.metadata.name
        description = skill.metadata.description
        if self.description_limit is not None:
            description = description[: self.description_limit]
        header["description"] = description
        return render_document(header, skill.body)


EXPORT_TARGETS: dict[str, ExportTarget] = {
    target.name: target
    for target in (
        ExportTarget(name="copilot", label="GitHub Copilot", base_dir=Path(".github/skills")),
        ExportTarget(name="cursor", label="Cursor", base_dir=Path(".cursor/skills")),
        ExportTarget(name="claude", label="Claude Code", base_dir=Path(".claude/skills")),
        ExportTarget(name="codex", label="OpenAI Codex", base_dir=Path(".codex/skills")),
        ExportTarget(
            name="antigravity",
            label="Antigravity",
            base_dir=Path(".agent/workflows"),
            flat=True,
            description_limit=100,
            include_name=False,
        ),
    )
}


def render_document(header: dict[str, Any], body: str) -> str:
    """Render a frontmatter header and body as a SKILL.md document."""
    frontmatter = yaml.safe_dump(
        header, sort_keys=False, allow_unicode=True, default_flow_style=False, width=1000
    )
    return f"---\n{frontmatter}---\n\n{body}\n"


def resolve_targets(names: list[str]) -> list[ExportTarget]:
    """Map target names to ExportTarget objects; ``all`` expands to every target.

    Raises:
        ValueError: If a name is not a known target
    """
    resolved: list[ExportTarget] = []
    for name in names:
        key = name.strip().lower()
        if key == ALL_TARGETS:
            targets = list(EXPORT_TARGETS.values())
        elif key in EXPORT_TARGETS:
            targets = [EXPORT_TARGETS[key]]
        else:
            valid = ", ".join([*EXPORT_TARGETS, ALL_TARGETS])
            raise ValueError(f"Unknown export target '{name}' (valid: {valid})")
        resolved.extend(t for t in targets if t not in resolved)
    return resolved


def export_skill(skill: Skill, target: ExportTarget, project_dir: Path) -> Path:
    """Write one skill into a target's layout.

    Returns:
        Path of the written document
    """
    sanitize_skill_name(skill.metadata.name)
    path = target.document_path(skill.metadata.name, project_dir)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(target.render(skill), encoding="utf-8")
    logger.info(f"Exported {skill.metadata.name} to {target.name}: {path}")
    return path


def export_skills(
    skills: list[Skill],
    targets: list[ExportTarget],
    project_dir: Path,
    on_export: Callable[[ExportTarget, Path], None] | None = None,
) -> list[Path]:
    """Export every skill to every target.

    Args:
        skills: Loaded skills to export
        targets: Targets from resolve_targets()
        project_dir: Project root the target directories are relative to
        on_export: Optional callback invoked after each written document

    Returns:
        Paths of all written documents
    """
    written: list[Path] = []
    for target in targets:
        for skill in skills:
            path = export_skill(skill, target, project_dir)
            written.append(path)
            if on_export is not None:
                on_export(target, path)
    return written
