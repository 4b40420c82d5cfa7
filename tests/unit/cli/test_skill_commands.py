"""Unit tests for local skill CLI commands."""

import pytest
from typer.testing import CliRunner

from skillhub.cli import app
from tests.fixtures.skills import write_skill


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def local_skill(cli_env):
    """A valid skill in the project's local skills directory."""
    path = write_skill(cli_env["project"] / "skills", "pdf-tools")
    (path / "scripts").mkdir()
    (path / "scripts" / "extract.py").write_text("print('hi')\n", encoding="utf-8")
    return path


@pytest.mark.unit
@pytest.mark.cli
class TestListCommand:
    """Tests for the list command."""

    def test_lists_discovered_skills(self, runner, local_skill):
        """Should print every discovered skill."""
        result = runner.invoke(app, ["list"])

        assert result.exit_code == 0
        assert "Found 1 skill(s)" in result.stdout
        assert "pdf-tools" in result.stdout

    def test_verbose_shows_path(self, runner, local_skill):
        """Should include description and path with --verbose."""
        result = runner.invoke(app, ["list", "-v"])

        assert result.exit_code == 0
        assert "Extract text and tables" in result.stdout
        assert "Path:" in result.stdout

    def test_custom_paths(self, runner, cli_env, tmp_path):
        """Should only search the given paths."""
        write_skill(tmp_path / "elsewhere", "docx-tools")

        result = runner.invoke(app, ["list", "--path", str(tmp_path / "elsewhere")])

        assert result.exit_code == 0
        assert "docx-tools" in result.stdout

    def test_no_skills(self, runner, cli_env):
        """Should explain where skills are searched."""
        result = runner.invoke(app, ["list"])

        assert result.exit_code == 0
        assert "No skills found" in result.stdout
        assert "Skills are searched in" in result.stdout


@pytest.mark.unit
@pytest.mark.cli
class TestShowCommand:
    """Tests for the show command."""

    def test_shows_details(self, runner, local_skill):
        """Should print metadata, resources and a preview."""
        result = runner.invoke(app, ["show", "pdf-tools"])

        assert result.exit_code == 0
        assert "Description:" in result.stdout
        assert "Version:" in result.stdout
        assert "extract.py" in result.stdout
        assert "Use pdfplumber" in result.stdout

    def test_unknown_skill(self, runner, local_skill):
        """Should exit 1 and list available skills."""
        result = runner.invoke(app, ["show", "nope"])

        assert result.exit_code == 1
        assert "Skill not found: nope" in result.stdout
        assert "pdf-tools" in result.stdout


@pytest.mark.unit
@pytest.mark.cli
class TestValidateCommand:
    """Tests for the validate command."""

    def test_valid_skill(self, runner, local_skill):
        """Should report a valid skill."""
        result = runner.invoke(app, ["validate", str(local_skill)])

        assert result.exit_code == 0
        assert "Skill is valid" in result.stdout

    def test_invalid_skill(self, runner, cli_env):
        """Should exit 1 when metadata breaks the rules."""
        path = write_skill(cli_env["project"] / "skills", "claude-helper")

        result = runner.invoke(app, ["validate", str(path)])

        assert result.exit_code == 1
        assert "reserved word" in result.stdout

    def test_script_warnings(self, runner, local_skill):
        """Should list dangerous script patterns without failing."""
        (local_skill / "scripts" / "setup.sh").write_text("rm -rf /\n", encoding="utf-8")

        result = runner.invoke(app, ["validate", str(local_skill)])

        assert result.exit_code == 0
        assert "setup.sh" in result.stdout

    def test_missing_path(self, runner, cli_env):
        """Should exit 1 when no document exists."""
        result = runner.invoke(app, ["validate", "missing"])

        assert result.exit_code == 1
        assert "Skill not found at" in result.stdout


@pytest.mark.unit
@pytest.mark.cli
class TestInitCommand:
    """Tests for the init command."""

    def test_creates_skill(self, runner, cli_env):
        """Should scaffold into ./skills by default."""
        result = runner.invoke(app, ["init", "my-skill"])

        assert result.exit_code == 0
        assert (cli_env["project"] / "skills" / "my-skill" / "SKILL.md").is_file()
        assert "Created skill" in result.stdout

    def test_existing_directory(self, runner, local_skill):
        """Should refuse to overwrite an existing skill."""
        result = runner.invoke(app, ["init", "pdf-tools"])

        assert result.exit_code == 1
        assert "already exists" in result.stdout

    def test_invalid_name(self, runner, cli_env):
        """Should reject names that break the naming rules."""
        result = runner.invoke(app, ["init", "Bad_Name", "-d", "custom"])

        assert result.exit_code == 1
        assert not (cli_env["project"] / "custom" / "Bad_Name").exists()


@pytest.mark.unit
@pytest.mark.cli
class TestExportCommand:
    """Tests for the export command."""

    def test_export_selected_target(self, runner, local_skill, cli_env):
        """Should write the skill into the chosen agent's directory."""
        result = runner.invoke(app, ["export", "-t", "claude"])

        project = cli_env["project"]
        assert result.exit_code == 0
        assert (project / ".claude" / "skills" / "pdf-tools" / "SKILL.md").is_file()
        assert not (project / ".cursor").exists()
        assert "Exported 1 file(s)" in result.stdout

    def test_export_all_by_default(self, runner, local_skill, cli_env):
        """Should use the configured default targets."""
        result = runner.invoke(app, ["export"])

        project = cli_env["project"]
        assert result.exit_code == 0
        assert (project / ".github" / "skills" / "pdf-tools" / "SKILL.md").is_file()
        assert (project / ".agent" / "workflows" / "pdf-tools.md").is_file()

    def test_export_to_directory(self, runner, local_skill, tmp_path):
        """Should export into another project root."""
        other = tmp_path / "other"

        result = runner.invoke(app, ["export", "-t", "codex", "-d", str(other)])

        assert result.exit_code == 0
        assert (other / ".codex" / "skills" / "pdf-tools" / "SKILL.md").is_file()

    def test_unknown_target(self, runner, local_skill):
        """Should exit 1 for an unknown target."""
        result = runner.invoke(app, ["export", "-t", "emacs"])

        assert result.exit_code == 1
        assert "Unknown export target" in result.stdout

    def test_unknown_name(self, runner, local_skill):
        """Should exit 1 when --name matches nothing."""
        result = runner.invoke(app, ["export", "--name", "nope"])

        assert result.exit_code == 1
