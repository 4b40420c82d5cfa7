"""CLI commands for local skills (discover, inspect, validate, scaffold, export)."""

import logging
from pathlib import Path

import typer

from skillhub.cli.constants import BODY_PREVIEW_LINES, ExitCodes
from skillhub.cli.utils import get_console
from skillhub.config import Settings
from skillhub.errors import SkillError
from skillhub.marketplace.store import ManifestStore
from skillhub.skills.export import ExportTarget, export_skills, resolve_targets
from skillhub.skills.loader import SkillStore, default_search_paths
from skillhub.skills.scaffold import scaffold_skill
from skillhub.skills.security import lint_script
from skillhub.skills.validation import format_validation_result, validate_body, validate_metadata

console = get_console()
logger = logging.getLogger(__name__)


def _skill_store(settings: Settings, paths: list[Path] | None = None) -> SkillStore:
    if paths:
        return SkillStore(paths)
    config = ManifestStore(settings.manifest_path, settings.resolved_install_dir).load()
    return SkillStore(default_search_paths(Path(config.install_dir).expanduser()))


def list_skills(settings: Settings, paths: list[Path] | None = None, verbose: bool = False) -> None:
    """Print every discovered skill."""
    store = _skill_store(settings, paths)
    skills = store.discover()

    if not skills:
        console.print("[yellow]No skills found.[/yellow]")
        console.print("[dim]Skills are searched in:[/dim]")
        for root in store.search_paths:
            console.print(f"[dim]  - {root}[/dim]")
        return

    console.print(f"\n[bold]Found {len(skills)} skill(s):[/bold]\n")
    for ref in skills:
        console.print(f"  [cyan]{ref.name}[/cyan]")
        if verbose:
            console.print(f"    [dim]{ref.description}[/dim]")
            console.print(f"    [dim]Path: {ref.path}[/dim]")
    console.print()


def show_skill(settings: Settings, name: str) -> None:
    """Print a skill's metadata, resources and an instructions preview."""
    store = _skill_store(settings)
    refs = store.discover()
    ref = next((r for r in refs if r.name == name), None)
    if ref is None:
        console.print(f"[red]Skill not found: {name}[/red]")
        available = ", ".join(r.name for r in refs) or "none"
        console.print(f"[dim]Available skills: {available}[/dim]")
        raise typer.Exit(ExitCodes.GENERAL_ERROR)

    try:
        skill = store.load(ref.path)
    except SkillError as e:
        console.print(f"[red]Could not load skill {name}: {e}[/red]")
        raise typer.Exit(ExitCodes.GENERAL_ERROR)
    if skill is None:
        console.print(f"[red]Could not load skill: {name}[/red]")
        raise typer.Exit(ExitCodes.GENERAL_ERROR)

    metadata = skill.metadata
    console.print(f"\n[bold]{metadata.name}[/bold]")
    console.print("─" * 40)
    console.print(f"[cyan]Description:[/cyan] {metadata.description}")
    console.print(f"[cyan]Path:[/cyan] {skill.path}")
    if metadata.license:
        console.print(f"[cyan]License:[/cyan] {metadata.license}")
    if metadata.compatibility:
        console.print(f"[cyan]Compatibility:[/cyan] {metadata.compatibility}")
    for key, value in metadata.metadata.items():
        console.print(f"[cyan]{key.capitalize()}:[/cyan] {value}")

    resources = store.list_resources(skill.path)
    for label, items in (
        ("Scripts", resources.scripts),
        ("References", resources.references),
        ("Assets", resources.assets),
    ):
        if items:
            console.print(f"\n[cyan]{label}:[/cyan]")
            for item in items:
                console.print(f"[dim]  - {item}[/dim]")

    body_lines = skill.body.split("\n")
    console.print("\n[cyan]Instructions (preview):[/cyan]")
    console.print("\n".join(body_lines[:BODY_PREVIEW_LINES]), style="dim", markup=False)
    if len(body_lines) > BODY_PREVIEW_LINES:
        console.print("[dim]...[/dim]")
    console.print()


def validate_skill(path: Path) -> None:
    """Validate a skill directory; exits with status 1 when it has errors."""
    try:
        skill = SkillStore([]).load(path)
    except SkillError as e:
        console.print(f"[red]✗ {e}[/red]")
        raise typer.Exit(ExitCodes.GENERAL_ERROR)
    if skill is None:
        console.print(f"[red]Skill not found at: {path}[/red]")
        raise typer.Exit(ExitCodes.GENERAL_ERROR)

    console.print(f"\n[bold]Validating: {skill.name}[/bold]\n")

    metadata_result = validate_metadata(skill.metadata)
    console.print("[underline]Metadata:[/underline]")
    console.print(format_validation_result(metadata_result), markup=False)

    body_result = validate_body(skill.body)
    console.print("\n[underline]Body Content:[/underline]")
    console.print(format_validation_result(body_result), markup=False)

    scripts_dir = skill.path / "scripts"
    if scripts_dir.is_dir():
        script_warnings: list[str] = []
        for script in sorted(p for p in scripts_dir.iterdir() if p.is_file()):
            lint = lint_script(script.read_text(encoding="utf-8", errors="replace"))
            script_warnings.extend(f"{script.name}: {w}" for w in lint.warnings)
        if script_warnings:
            console.print("\n[underline]Scripts:[/underline]")
            for warning in script_warnings:
                console.print(f"  [yellow]⚠ {warning}[/yellow]")

    console.print("\n" + "─" * 40)
    if metadata_result.valid and body_result.valid:
        console.print("[bold green]✓ Skill is valid[/bold green]")
    else:
        console.print("[bold red]✗ Skill has validation errors[/bold red]")
        raise typer.Exit(ExitCodes.GENERAL_ERROR)


def init_skill(name: str, directory: Path) -> None:
    """Scaffold a new skill from the template."""
    try:
        skill_dir = scaffold_skill(name, directory)
    except SkillError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(ExitCodes.GENERAL_ERROR)

    console.print(f"[green]✓[/green] Created skill: {skill_dir}")
    console.print("\n[dim]Next steps:[/dim]")
    console.print(f"[dim]  1. Edit {skill_dir / 'SKILL.md'} to add your instructions[/dim]")
    console.print("[dim]  2. Add scripts, references or assets as needed[/dim]")
    console.print(f"[dim]  3. Run: skillhub validate {skill_dir}[/dim]")


def export_local_skills(
    settings: Settings,
    targets: list[str] | None = None,
    directory: Path | None = None,
    name: str | None = None,
) -> None:
    """Export discovered skills into agent-specific project directories."""
    try:
        resolved = resolve_targets(targets or settings.export_targets)
    except ValueError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(ExitCodes.GENERAL_ERROR)

    store = _skill_store(settings)
    refs = store.discover()
    if name is not None:
        refs = [r for r in refs if r.name == name]
        if not refs:
            console.print(f"[red]Skill not found: {name}[/red]")
            raise typer.Exit(ExitCodes.GENERAL_ERROR)
    if not refs:
        console.print("[yellow]No skills to export.[/yellow]")
        return

    skills = []
    for ref in refs:
        try:
            skill = store.load(ref.path)
        except SkillError as e:
            logger.warning(f"Skipping {ref.name} during export: {e}")
            continue
        if skill is not None:
            skills.append(skill)

    def _report(target: ExportTarget, path: Path) -> None:
        console.print(f"  [green]✓[/green] {target.label}: {path}")

    project_dir = directory or Path.cwd()
    console.print(f"\n[bold]Exporting {len(skills)} skill(s) to {project_dir}[/bold]\n")
    try:
        written = export_skills(skills, resolved, project_dir, on_export=_report)
    except (OSError, SkillError) as e:
        console.print(f"[red]Export failed: {e}[/red]")
        raise typer.Exit(ExitCodes.GENERAL_ERROR)
    console.print(f"\n[green]Exported {len(written)} file(s)[/green]")
