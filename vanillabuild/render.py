"""
Rendering functions for vanillabuild output.

This module handles all pretty-printing and table formatting.
Core functions return data, this module makes it human-readable.
"""

from rich.table import Table
from rich.console import Console
from rich import box
from typing import List
from pathlib import Path

from .domain.operation import RunReport
from .services.artifact_service import is_byproduct

console = Console()
# Stdout belongs to the build tool, summaries go to stderr
err_console = Console(stderr=True)


def render_run_summary(report: RunReport, target_console: Console = err_console) -> None:
    """
    Render the stages of a run as a table.

    Args:
        report: Result of a driver run
        target_console: Console to print to
    """
    table = Table(
        title="Build Summary",
        box=box.ROUNDED,
        show_header=True,
        header_style="bold magenta"
    )
    table.add_column("Stage", style="cyan")
    table.add_column("Detail", style="dim")
    table.add_column("Status")

    sync = report.sync
    sync_detail = f"{sync.path.value} -> {sync.ref}" if sync.ref else sync.path.value
    table.add_row("sync", sync_detail, _status(sync.success, sync.cause.value if sync.cause else ""))

    if report.build is not None:
        for stage in report.build.stages:
            table.add_row(
                stage.name,
                " ".join([Path(stage.command[0]).name] + stage.command[1:]),
                _status(stage.success, f"exit {stage.exit_code}"),
            )
        for name in report.build.skipped:
            table.add_row(name, "", "[yellow]skipped[/yellow]")

    target_console.print(table)

    if report.artifacts:
        target_console.print(f"[bold]Primary artifact:[/bold] [green]{report.artifacts[0]}[/green]")


def render_artifacts_table(artifacts: List[Path], artifact_dir: Path,
                           target_console: Console = console) -> None:
    """
    Render the jars found in the artifact directory.

    Args:
        artifacts: Jar paths
        artifact_dir: Directory they were found in
        target_console: Console to print to
    """
    if not artifacts:
        target_console.print(f"[yellow]No jars found in {artifact_dir}.[/yellow]")
        return

    table = Table(
        title=str(artifact_dir),
        box=box.ROUNDED,
        show_header=True,
        header_style="bold magenta"
    )
    table.add_column("Jar", style="cyan")
    table.add_column("Size", justify="right")
    table.add_column("Kind")

    for jar in artifacts:
        kind = "[dim]byproduct[/dim]" if is_byproduct(jar) else "[green]primary[/green]"
        table.add_row(jar.name, _format_size(jar.stat().st_size), kind)

    target_console.print(table)


def _status(success: bool, detail: str = "") -> str:
    if success:
        return "[green]ok[/green]"
    return f"[red]failed[/red] {detail}".rstrip()


def _format_size(size: int) -> str:
    value = float(size)
    for unit in ("B", "KB", "MB"):
        if value < 1024:
            return f"{value:.0f} {unit}" if unit == "B" else f"{value:.1f} {unit}"
        value /= 1024
    return f"{value:.1f} GB"
