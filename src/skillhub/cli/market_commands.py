"""CLI commands for the skill marketplace (sources, install, updates)."""

import asyncio
import logging
from collections.abc import AsyncIterator, Coroutine
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any, TypeVar

import typer
from rich.table import Table

from skillhub.cli.constants import ExitCodes
from skillhub.cli.utils import get_console
from skillhub.config import Settings
from skillhub.config.constants import SEARCH_API_SOURCE_ID
from skillhub.errors import SkillError
from skillhub.marketplace.cache import MarketplaceCache
from skillhub.marketplace.fetcher import GitSparseFetcher, RawDocumentFetcher
from skillhub.marketplace.installer import SkillInstaller
from skillhub.marketplace.models import InstallResult, MarketplaceSource
from skillhub.marketplace.resolver import SourceResolver
from skillhub.marketplace.search_api import SearchApiClient
from skillhub.marketplace.store import ManifestStore
from skillhub.skills.export import resolve_targets

console = get_console()
logger = logging.getLogger(__name__)

T = TypeVar("T")


def open_store(settings: Settings) -> ManifestStore:
    return ManifestStore(settings.manifest_path, settings.resolved_install_dir)


@asynccontextmanager
async def open_installer(settings: Settings) -> AsyncIterator[SkillInstaller]:
    """Build an installer wired from settings and close its HTTP clients on exit.

    One cache instance is shared by the resolver and the search API client
    for the lifetime of the command.
    """
    cache = MarketplaceCache(ttl=settings.cache_ttl, enabled=settings.cache_enabled)
    resolver = SourceResolver(
        cache, timeout=settings.http_timeout, github_token=settings.github_token
    )
    search_api = SearchApiClient(
        cache, endpoint=settings.search_api_url, timeout=settings.http_timeout
    )
    document_fetcher = RawDocumentFetcher(timeout=settings.http_timeout)
    try:
        yield SkillInstaller(
            open_store(settings),
            resolver,
            search_api=search_api,
            git_fetcher=GitSparseFetcher(),
            document_fetcher=document_fetcher,
        )
    finally:
        await resolver.aclose()
        await search_api.aclose()
        await document_fetcher.aclose()


def run_command(coro: Coroutine[Any, Any, T]) -> T:
    """Run a coroutine, mapping domain errors and interrupts to exit codes."""
    try:
        return asyncio.run(coro)
    except SkillError as e:
        logger.error(f"Command failed: {e}")
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(ExitCodes.GENERAL_ERROR)
    except KeyboardInterrupt:
        console.print("\n[yellow]Interrupted[/yellow]")
        raise typer.Exit(ExitCodes.INTERRUPTED)


def _export_targets(settings: Settings, export: bool):
    if not export:
        return None
    try:
        return resolve_targets(settings.export_targets)
    except ValueError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(ExitCodes.GENERAL_ERROR)


def _print_install_result(result: InstallResult) -> None:
    entry = result.installed
    console.print(f"[green]✓[/green] Installed [bold]{entry.name}[/bold] to {entry.local_path}")
    if entry.version:
        console.print(f"  [dim]Version: {entry.version}[/dim]")
    for warning in result.warnings:
        console.print(f"  [yellow]⚠ {warning}[/yellow]")
    for path in result.exported:
        console.print(f"  [dim]Exported: {path}[/dim]")


def install_skill(
    settings: Settings,
    name: str,
    source_id: str | None = None,
    export: bool = False,
    directory: Path | None = None,
) -> None:
    """Install a marketplace skill by name."""
    targets = _export_targets(settings, export)

    async def _install() -> InstallResult:
        async with open_installer(settings) as installer:
            return await installer.install(name, source_id, targets, directory)

    console.print(f"Installing [cyan]{name}[/cyan]...")
    _print_install_result(run_command(_install()))


def install_from_url(
    settings: Settings, url: str, export: bool = False, directory: Path | None = None
) -> None:
    """Install a skill from a GitHub tree URL."""
    targets = _export_targets(settings, export)

    async def _install() -> InstallResult:
        async with open_installer(settings) as installer:
            return await installer.install_from_url(url, targets, directory)

    console.print(f"Installing from [cyan]{url}[/cyan]...")
    _print_install_result(run_command(_install()))


def uninstall_skill(settings: Settings, name: str) -> None:
    """Remove an installed marketplace skill."""

    async def _uninstall():
        async with open_installer(settings) as installer:
            return installer.uninstall(name)

    entry = run_command(_uninstall())
    console.print(f"[green]✓[/green] Uninstalled [bold]{entry.name}[/bold]")


def show_installed(settings: Settings) -> None:
    """List skills recorded in the manifest."""
    installed = open_store(settings).list_installed()
    if not installed:
        console.print("[yellow]No marketplace skills installed.[/yellow]")
        return

    table = Table(title="Installed Skills", show_header=True, header_style="bold cyan")
    table.add_column("Name")
    table.add_column("Version")
    table.add_column("Source")
    table.add_column("Installed")
    table.add_column("Path", style="dim")
    for entry in installed:
        table.add_row(
            entry.name,
            entry.version or "-",
            entry.source.name if entry.source else "-",
            entry.installed_at.strftime("%Y-%m-%d"),
            str(entry.local_path),
        )
    console.print(table)


def search_sources(settings: Settings, query: str) -> None:
    """Search registered GitHub sources by name, description and tags."""

    async def _search():
        async with open_installer(settings) as installer:
            return await installer.search(query)

    results = run_command(_search())
    if not results:
        console.print(f"[yellow]No skills found matching '{query}'[/yellow]")
        return

    console.print(f"\n[bold]Found {len(results)} skill(s):[/bold]\n")
    for skill in results:
        version = f" [dim]v{skill.version}[/dim]" if skill.version else ""
        console.print(f"  [cyan]{skill.name}[/cyan]{version} [dim]({skill.source.name})[/dim]")
        if skill.description:
            console.print(f"    [dim]{skill.description}[/dim]")
    console.print()


def browse_market(
    settings: Settings,
    page: int = 1,
    limit: int = 20,
    sort_by: str = "stars",
    search: str = "",
    source_id: str | None = None,
) -> None:
    """Browse skills: one page of the search API, or every skill of a GitHub source."""
    if source_id is not None and source_id != SEARCH_API_SOURCE_ID:
        _list_source(settings, source_id)
        return

    async def _fetch():
        async with open_installer(settings) as installer:
            if installer.search_api is None:
                return None
            return await installer.search_api.fetch(search, page, limit, sort_by)

    try:
        result = run_command(_fetch())
    except ValueError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(ExitCodes.GENERAL_ERROR)

    if result is None or not result.skills:
        console.print("[yellow]No skills found.[/yellow]")
        return

    table = Table(
        title=f"SkillsMP Marketplace (page {result.page}/{result.total_pages}, {result.total} total)",
        show_header=True,
        header_style="bold cyan",
    )
    table.add_column("Name")
    table.add_column("Stars", justify="right")
    table.add_column("Author")
    table.add_column("Description", overflow="fold")
    for skill in result.skills:
        table.add_row(skill.name, str(skill.stars), skill.author or "-", skill.description)
    console.print(table)
    if result.has_next:
        console.print(f"[dim]Next page: skillhub market --page {result.page + 1}[/dim]")


def _list_source(settings: Settings, source_id: str) -> None:
    async def _available():
        async with open_installer(settings) as installer:
            installer.store.get_source(source_id)
            return await installer.available(source_id)

    skills = run_command(_available())
    if not skills:
        console.print(f"[yellow]No skills found in source '{source_id}'[/yellow]")
        return

    console.print(f"\n[bold]{len(skills)} skill(s) in {source_id}:[/bold]\n")
    for skill in skills:
        version = f" [dim]v{skill.version}[/dim]" if skill.version else ""
        console.print(f"  [cyan]{skill.name}[/cyan]{version}")
        if skill.description:
            console.print(f"    [dim]{skill.description}[/dim]")
    console.print()


def check_updates(settings: Settings) -> None:
    """Report installed skills whose source lists a different version."""

    async def _check():
        async with open_installer(settings) as installer:
            return await installer.check_updates()

    statuses = run_command(_check())
    updates = [s for s in statuses if s.has_update]
    if not updates:
        console.print("[green]✓[/green] All skills are up to date")
        return

    console.print(f"\n[bold]{len(updates)} update(s) available:[/bold]\n")
    for status in updates:
        console.print(
            f"  [cyan]{status.skill.name}[/cyan]: "
            f"{status.current_version or 'unknown'} → {status.latest_version}"
        )
    console.print(
        "\n[dim]Reinstall with: skillhub uninstall <name> && skillhub install <name>[/dim]"
    )


def list_sources(settings: Settings) -> None:
    """Show registered marketplace sources."""
    table = Table(title="Marketplace Sources", show_header=True, header_style="bold cyan")
    table.add_column("ID")
    table.add_column("Name")
    table.add_column("Repository")
    table.add_column("Path")
    table.add_column("Verified", justify="center")
    for source in open_store(settings).list_sources():
        table.add_row(
            source.id,
            source.name,
            f"{source.cache_key}@{source.branch}",
            source.skills_path,
            "✓" if source.verified else "",
        )
    console.print(table)


def add_source(
    settings: Settings,
    source_id: str,
    owner: str,
    repo: str,
    name: str | None = None,
    branch: str = "main",
    skills_path: str = "skills",
    description: str | None = None,
) -> None:
    """Register a GitHub repository as a marketplace source."""
    source = MarketplaceSource(
        id=source_id,
        name=name or f"{owner}/{repo}",
        owner=owner,
        repo=repo,
        branch=branch,
        skills_path=skills_path,
        description=description,
    )
    try:
        open_store(settings).add_source(source)
    except SkillError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(ExitCodes.GENERAL_ERROR)
    console.print(f"[green]✓[/green] Added source [bold]{source_id}[/bold] ({source.cache_key})")


def remove_source(settings: Settings, source_id: str) -> None:
    """Remove a user-added marketplace source."""
    try:
        open_store(settings).remove_source(source_id)
    except SkillError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(ExitCodes.GENERAL_ERROR)
    console.print(f"[green]✓[/green] Removed source [bold]{source_id}[/bold]")
