"""
Rendering functions for subtree-modules output.

Services return domain objects; this module makes them human-readable
as rich tables. Machine-readable output goes through format_utils.
"""

from typing import List

from rich import box
from rich.console import Console
from rich.table import Table

from .domain.dependency import DependencyCheck, DependencyReport
from .domain.module import ModuleInfo
from .domain.operation import FileGenerationResult, OperationDetail, OperationStatus, OperationSummary
from .domain.status import ModuleStatus, StatusKind

console = Console()

STATUS_STYLES = {
    StatusKind.CURRENT: "green",
    StatusKind.UPDATE_AVAILABLE: "yellow",
    StatusKind.UNKNOWN: "dim",
}

OPERATION_STYLES = {
    OperationStatus.SUCCESS: "green",
    OperationStatus.SKIPPED: "yellow",
    OperationStatus.FAILED: "red",
    OperationStatus.DRY_RUN: "cyan",
}


def _table(title: str) -> Table:
    return Table(
        title=title,
        box=box.ROUNDED,
        show_header=True,
        header_style="bold magenta"
    )


def render_module_table(modules: List[ModuleInfo]) -> None:
    """Render tracked modules (``list``)."""
    if not modules:
        console.print("[yellow]No modules tracked.[/yellow]")
        return

    table = _table("Vendored Modules")
    table.add_column("Name", style="cyan")
    table.add_column("Ref", style="green")
    table.add_column("Repository")
    table.add_column("Path", style="dim")

    for module in modules:
        path = module.path if module.present else f"{module.path} [red](missing)[/red]"
        table.add_row(module.name, module.ref, module.repository, path)

    console.print(table)


def render_status_table(statuses: List[ModuleStatus]) -> None:
    """Render module freshness with a summary line."""
    if not statuses:
        console.print("[yellow]No modules to report.[/yellow]")
        return

    table = _table("Module Status")
    table.add_column("Name", style="cyan")
    table.add_column("Ref", style="green")
    table.add_column("Status")
    table.add_column("Local", style="dim")
    table.add_column("Upstream", style="dim")

    for status in statuses:
        style = STATUS_STYLES[status.status]
        table.add_row(
            status.name,
            status.ref,
            f"[{style}]{status.status.value}[/{style}]",
            status.local_commit_short or "-",
            status.upstream_commit_short or "-",
        )

    console.print(table)

    updates = sum(1 for s in statuses if s.status == StatusKind.UPDATE_AVAILABLE)
    unknown = sum(1 for s in statuses if s.status == StatusKind.UNKNOWN)
    console.print(f"\n[bold]Summary:[/bold] {len(statuses)} modules")
    if updates:
        console.print(f"  [yellow]Updates available: {updates}[/yellow]")
    if unknown:
        console.print(f"  [dim]Unknown: {unknown}[/dim]")


def _describe_check(check: DependencyCheck) -> str:
    text = check.name
    if check.version_bound:
        text += f" ({check.version_bound})"
    if check.found:
        return f"[green]✓[/green] {text}"
    return f"[red]✗[/red] {text}"


def render_dependency_table(reports: List[DependencyReport]) -> None:
    """Render dependency reports, one row per module."""
    if not reports:
        console.print("[yellow]No modules to check.[/yellow]")
        return

    table = _table("Module Dependencies")
    table.add_column("Module", style="cyan")
    table.add_column("Met")
    table.add_column("Dependencies")

    for report in reports:
        met = "[green]yes[/green]" if report.all_dependencies_met else "[red]no[/red]"
        if report.manifest_path is None:
            deps = "[red]no module manifest found[/red]"
        elif report.error:
            deps = f"[red]{report.error}[/red]"
        else:
            deps = "\n".join(_describe_check(c) for c in report.all_checks()) or "[dim]none declared[/dim]"
        table.add_row(report.name, met, deps)

    console.print(table)

    unmet = [r.name for r in reports if not r.all_dependencies_met]
    if unmet:
        console.print(f"\n[red]Unmet dependencies in: {', '.join(unmet)}[/red]")


def render_operation_table(details: List[OperationDetail], title: str,
                           summary: OperationSummary = None) -> None:
    """Render the per-module outcome of init/add/update/remove."""
    table = _table(title)
    table.add_column("Name", style="cyan")
    table.add_column("Status")
    table.add_column("Action")
    table.add_column("Detail", style="dim")

    for detail in details:
        style = OPERATION_STYLES[detail.status]
        if isinstance(detail, FileGenerationResult):
            info = detail.file_path or ""
        else:
            info = detail.error or detail.message or getattr(detail, 'commit_message', None) or ""
        table.add_row(
            detail.module_name,
            f"[{style}]{detail.status.value}[/{style}]",
            detail.action,
            info,
        )

    console.print(table)

    if summary is not None:
        console.print(
            f"\n[bold]Summary:[/bold] {summary.successful} succeeded, "
            f"{summary.skipped} skipped, {summary.failed} failed"
        )
        if summary.dry_run:
            console.print("[yellow]DRY RUN - no changes were made[/yellow]")
