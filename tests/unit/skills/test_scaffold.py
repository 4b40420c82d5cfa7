"""Unit tests for skill scaffolding."""

import pytest

from skillhub.errors import InvalidSkillError, SkillError
from skillhub.skills.loader import SkillStore
from skillhub.skills.scaffold import scaffold_skill
from skillhub.skills.validation import validate_metadata


@pytest.mark.unit
class TestScaffoldSkill:
    """Test scaffold_skill function."""

    def test_creates_skill(self, tmp_path):
        """Should create SKILL.md and the resource directories."""
        skill_dir = scaffold_skill("pdf-tools", tmp_path)

        assert skill_dir == tmp_path / "pdf-tools"
        for subdir in ("scripts", "references", "assets"):
            assert (skill_dir / subdir).is_dir()
        assert "# Pdf Tools" in (skill_dir / "SKILL.md").read_text(encoding="utf-8")

    def test_template_is_valid_skill(self, tmp_path):
        """Should produce a document that loads and validates."""
        skill = SkillStore([]).load(scaffold_skill("pdf-tools", tmp_path))

        assert skill.metadata.license == "MIT"
        assert skill.metadata.version == "1.0"
        assert validate_metadata(skill.metadata).valid

    @pytest.mark.parametrize("name", ["Bad-Name", "my-claude-skill", "pdf--tools"])
    def test_rejects_invalid_name(self, tmp_path, name):
        """Should validate the name before touching the filesystem."""
        with pytest.raises(InvalidSkillError):
            scaffold_skill(name, tmp_path)

        assert not (tmp_path / name).exists()

    def test_rejects_existing_directory(self, tmp_path):
        """Should refuse to overwrite an existing directory."""
        (tmp_path / "pdf-tools").mkdir()

        with pytest.raises(SkillError, match="already exists"):
            scaffold_skill("pdf-tools", tmp_path)
