"""Unit tests for exporting skills to agent-specific layouts."""

import pytest
import yaml

from skillhub.errors import SkillSecurityError
from skillhub.skills.export import (
    EXPORT_TARGETS,
    export_skill,
    export_skills,
    render_document,
    resolve_targets,
)
from skillhub.skills.loader import SkillStore
from skillhub.skills.manifest import Skill, SkillMetadata, parse_frontmatter
from tests.fixtures.skills import write_skill


@pytest.fixture
def skill(skills_root):
    return SkillStore([]).load(write_skill(skills_root, "pdf-tools", body="# PDF\n\nSteps."))


@pytest.mark.unit
class TestResolveTargets:
    """Test resolve_targets function."""

    def test_all_expands(self):
        """Should expand 'all' to every registered target."""
        assert [t.name for t in resolve_targets(["all"])] == list(EXPORT_TARGETS)

    def test_named_targets(self):
        """Should resolve names case-insensitively without duplicates."""
        targets = resolve_targets(["Claude", "cursor", "claude"])

        assert [t.name for t in targets] == ["claude", "cursor"]

    def test_unknown_target(self):
        """Should raise ValueError for unknown names."""
        with pytest.raises(ValueError, match="Unknown export target 'vim'"):
            resolve_targets(["vim"])


@pytest.mark.unit
class TestExportSkill:
    """Test export_skill and export_skills."""

    @pytest.mark.parametrize(
        "target, relative",
        [
            ("copilot", ".github/skills/pdf-tools/SKILL.md"),
            ("cursor", ".cursor/skills/pdf-tools/SKILL.md"),
            ("claude", ".claude/skills/pdf-tools/SKILL.md"),
            ("codex", ".codex/skills/pdf-tools/SKILL.md"),
            ("antigravity", ".agent/workflows/pdf-tools.md"),
        ],
    )
    def test_target_layout(self, skill, tmp_path, target, relative):
        """Should write the document where each agent expects it."""
        path = export_skill(skill, EXPORT_TARGETS[target], tmp_path / "project")

        assert path == tmp_path / "project" / relative
        assert path.is_file()

    def test_exported_document_parses(self, skill, tmp_path):
        """Should write a document the frontmatter parser reads back."""
        path = export_skill(skill, EXPORT_TARGETS["claude"], tmp_path)
        parsed = parse_frontmatter(path.read_text(encoding="utf-8"))

        assert parsed.frontmatter["name"] == "pdf-tools"
        assert parsed.frontmatter["description"] == skill.metadata.description
        assert parsed.body == "# PDF\n\nSteps."

    def test_antigravity_truncates_description(self, tmp_path):
        """Should drop the name and cap the description at 100 characters."""
        long_skill = Skill(
            metadata=SkillMetadata(name="long", description="d" * 150),
            body="Body",
            path=tmp_path,
            skill_md_path=tmp_path / "SKILL.md",
        )

        path = export_skill(long_skill, EXPORT_TARGETS["antigravity"], tmp_path)
        parsed = parse_frontmatter(path.read_text(encoding="utf-8"))

        assert "name" not in parsed.frontmatter
        assert parsed.frontmatter["description"] == "d" * 100

    def test_rejects_unsafe_name(self, tmp_path):
        """Should refuse to export a name that escapes the target directory."""
        unsafe = Skill(
            metadata=SkillMetadata(name="../evil", description="x"),
            body="",
            path=tmp_path,
            skill_md_path=tmp_path / "SKILL.md",
        )

        with pytest.raises(SkillSecurityError):
            export_skill(unsafe, EXPORT_TARGETS["claude"], tmp_path)

    def test_export_skills_reports_each(self, skill, tmp_path):
        """Should export every skill to every target and report each write."""
        reported = []

        written = export_skills(
            [skill],
            resolve_targets(["claude", "cursor"]),
            tmp_path,
            on_export=lambda target, path: reported.append(target.name),
        )

        assert len(written) == 2
        assert reported == ["claude", "cursor"]


@pytest.mark.unit
class TestRenderDocument:
    """Test render_document function."""

    def test_header_order_preserved(self):
        """Should keep header keys in insertion order."""
        text = render_document({"name": "x", "description": "y: z"}, "Body")

        assert text.startswith("---\nname: x\n")
        header = text.split("---\n")[1]
        assert yaml.safe_load(header) == {"name": "x", "description": "y: z"}
        assert text.endswith("---\n\nBody\n")
