"""CLI entry point for skillhub."""

import logging
from pathlib import Path

import typer

from skillhub import __version__
from skillhub.cli.constants import ExitCodes
from skillhub.cli.utils import configure_from_settings, get_console
from skillhub.config import ConfigurationError, Settings, load_settings
from skillhub.config.constants import DEFAULT_SEARCH_LIMIT, LOCAL_SKILLS_DIR

app = typer.Typer(help="skillhub - Agent skill marketplace and installer")

console = get_console()

logger = logging.getLogger(__name__)


def _settings(ctx: typer.Context) -> Settings:
    root = ctx.find_root()
    if isinstance(root.obj, Settings):
        return root.obj
    return load_settings()


@app.callback(invoke_without_command=True)
def main(
    ctx: typer.Context,
    version_flag: bool = typer.Option(False, "--version", help="Show version"),
    verbose: bool = typer.Option(False, "--verbose", help="Log at DEBUG level"),
) -> None:
    """skillhub - discover, validate, install and export agent skills.

    \b
    Examples:
        skillhub list                               # Skills found on this machine
        skillhub validate ./skills/my-skill         # Check a skill document
        skillhub market --search pdf                # Browse the marketplace
        skillhub install pdf                        # Install from registered sources
        skillhub install pdf --export               # Install and export to agents
        skillhub updates                            # Check for newer versions
        skillhub source add team acme skills        # Register a GitHub source
    """
    if version_flag:
        console.print(f"skillhub version {__version__}")
        raise typer.Exit(ExitCodes.SUCCESS)

    try:
        settings = load_settings()
    except ConfigurationError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(ExitCodes.GENERAL_ERROR)

    log_file = configure_from_settings(settings, verbose=verbose)
    logger.debug(f"skillhub {__version__} (log file: {log_file})")
    ctx.obj = settings

    if ctx.invoked_subcommand is None:
        console.print(ctx.get_help())


@app.command("list")
def list_command(
    ctx: typer.Context,
    paths: list[Path] = typer.Option(None, "--path", "-p", help="Custom search path (repeatable)"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show details"),
) -> None:
    """List all discovered skills."""
    from skillhub.cli.skill_commands import list_skills

    list_skills(_settings(ctx), paths or None, verbose)


@app.command("show")
def show_command(
    ctx: typer.Context,
    name: str = typer.Argument(..., help="Skill name"),
) -> None:
    """Show detailed information about a skill."""
    from skillhub.cli.skill_commands import show_skill

    show_skill(_settings(ctx), name)


@app.command("validate")
def validate_command(
    path: Path = typer.Argument(..., help="Skill directory or SKILL.md path"),
) -> None:
    """Validate a skill's metadata, body and scripts."""
    from skillhub.cli.skill_commands import validate_skill

    validate_skill(path)


@app.command("init")
def init_command(
    name: str = typer.Argument(..., help="Name of the new skill"),
    directory: Path = typer.Option(
        LOCAL_SKILLS_DIR, "--directory", "-d", help="Parent directory for the skill"
    ),
) -> None:
    """Create a new skill from the template.

    Example:
        skillhub init pdf-tools --directory ./skills
    """
    from skillhub.cli.skill_commands import init_skill

    init_skill(name, directory)


@app.command("export")
def export_command(
    ctx: typer.Context,
    targets: list[str] = typer.Option(
        None,
        "--target",
        "-t",
        help="Target agent (copilot, cursor, claude, codex, antigravity, all); repeatable",
    ),
    directory: Path = typer.Option(None, "--directory", "-d", help="Project root"),
    name: str = typer.Option(None, "--name", "-n", help="Export only this skill"),
) -> None:
    """Export discovered skills into agent-specific project directories.

    \b
    Examples:
        skillhub export                             # Every skill, default targets
        skillhub export -t claude -t cursor         # Selected agents
        skillhub export --name pdf -d ../project    # One skill into another project
    """
    from skillhub.cli.skill_commands import export_local_skills

    export_local_skills(_settings(ctx), targets or None, directory, name)


@app.command("install")
def install_command(
    ctx: typer.Context,
    name: str = typer.Argument(..., help="Skill name"),
    source: str = typer.Option(None, "--source", "-s", help="Only resolve from this source"),
    export: bool = typer.Option(False, "--export", help="Export after installing"),
    directory: Path = typer.Option(None, "--directory", "-d", help="Project root for --export"),
) -> None:
    """Install a skill from the marketplace.

    \b
    Examples:
        skillhub install pdf
        skillhub install pdf --source anthropic-skills
        skillhub install pdf --export
    """
    from skillhub.cli.market_commands import install_skill

    install_skill(_settings(ctx), name, source, export, directory)


@app.command("install-url")
def install_url_command(
    ctx: typer.Context,
    url: str = typer.Argument(..., help="GitHub tree URL of the skill directory"),
    export: bool = typer.Option(False, "--export", help="Export after installing"),
    directory: Path = typer.Option(None, "--directory", "-d", help="Project root for --export"),
) -> None:
    """Install a skill from a GitHub URL.

    Example:
        skillhub install-url https://github.com/acme/skills/tree/main/skills/pdf
    """
    from skillhub.cli.market_commands import install_from_url

    install_from_url(_settings(ctx), url, export, directory)


@app.command("uninstall")
def uninstall_command(
    ctx: typer.Context,
    name: str = typer.Argument(..., help="Installed skill name"),
) -> None:
    """Uninstall a marketplace skill."""
    from skillhub.cli.market_commands import uninstall_skill

    uninstall_skill(_settings(ctx), name)


@app.command("installed")
def installed_command(ctx: typer.Context) -> None:
    """List installed marketplace skills."""
    from skillhub.cli.market_commands import show_installed

    show_installed(_settings(ctx))


@app.command("search")
def search_command(
    ctx: typer.Context,
    query: str = typer.Argument(..., help="Text matched against name, description and tags"),
) -> None:
    """Search registered GitHub sources."""
    from skillhub.cli.market_commands import search_sources

    search_sources(_settings(ctx), query)


@app.command("market")
def market_command(
    ctx: typer.Context,
    page: int = typer.Option(1, "--page", min=1, help="Page number"),
    limit: int = typer.Option(
        DEFAULT_SEARCH_LIMIT, "--limit", min=1, max=100, help="Results per page"
    ),
    sort: str = typer.Option("stars", "--sort", help="Sort order (stars, recent)"),
    search: str = typer.Option("", "--search", help="Free-text query"),
    source: str = typer.Option(None, "--source", "-s", help="List one GitHub source instead"),
) -> None:
    """Browse the skill marketplace."""
    from skillhub.cli.market_commands import browse_market

    browse_market(_settings(ctx), page, limit, sort, search, source)


@app.command("updates")
def updates_command(ctx: typer.Context) -> None:
    """Check installed skills for newer versions."""
    from skillhub.cli.market_commands import check_updates

    check_updates(_settings(ctx))


# Source command group
source_app = typer.Typer(help="Manage marketplace sources")
app.add_typer(source_app, name="source")


@source_app.callback(invoke_without_command=True)
def source_callback(ctx: typer.Context) -> None:
    """Source command callback - shows help if no subcommand given."""
    if ctx.invoked_subcommand is None:
        console.print(ctx.get_help())


@source_app.command("list")
def source_list_command(ctx: typer.Context) -> None:
    """List registered marketplace sources."""
    from skillhub.cli.market_commands import list_sources

    list_sources(_settings(ctx))


@source_app.command("add")
def source_add_command(
    ctx: typer.Context,
    source_id: str = typer.Argument(..., help="Unique source id"),
    owner: str = typer.Argument(..., help="GitHub owner"),
    repo: str = typer.Argument(..., help="GitHub repository"),
    name: str = typer.Option(None, "--name", help="Display name"),
    branch: str = typer.Option("main", "--branch", help="Branch to read"),
    path: str = typer.Option("skills", "--path", help="Directory holding the skills"),
    description: str = typer.Option(None, "--description", help="Short description"),
) -> None:
    """Register a GitHub repository as a marketplace source.

    Example:
        skillhub source add team acme team-skills --branch develop --path agent-skills
    """
    from skillhub.cli.market_commands import add_source

    add_source(_settings(ctx), source_id, owner, repo, name, branch, path, description)


@source_app.command("remove")
def source_remove_command(
    ctx: typer.Context,
    source_id: str = typer.Argument(..., help="Source id"),
) -> None:
    """Remove a user-added marketplace source."""
    from skillhub.cli.market_commands import remove_source

    remove_source(_settings(ctx), source_id)


if __name__ == "__main__":
    app()
