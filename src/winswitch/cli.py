"""CLI for winswitch using click."""

from __future__ import annotations

import logging
from datetime import datetime
from pathlib import Path
from typing import TypeVar

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.progress import (
    BarColumn,
    DownloadColumn,
    Progress,
    TextColumn,
    TimeRemainingColumn,
)
from rich.table import Table

from winswitch.backup import BackupOrchestrator
from winswitch.layout import BackupLayout
from winswitch.manifest import JsonManifestStore, ManifestError
from winswitch.models import BackupPlan, BackupProgress
from winswitch.runner import BackgroundRunner, RunHandle
from winswitch.settings import DEFAULT_BUFFER_SIZE, BackupSettings
from winswitch.sources import default_sources, resolve_sources
from winswitch.verifier import BackupVerifier

console = Console()

T = TypeVar("T")


def _setup_logging(verbose: bool) -> None:
    """Configure logging with rich handler."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_time=False)],
    )


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output.")
def main(verbose: bool) -> None:
    """WinSwitch: incremental backup of user folders to a removable drive."""
    _setup_logging(verbose)


@main.command()
@click.argument("destination", type=click.Path(file_okay=False))
@click.argument("sources", nargs=-1, type=click.Path())
@click.option("--defaults", is_flag=True, help="Include the default user folders.")
@click.option("--notes", default=None, help="Free-text notes stored in the manifest.")
@click.option(
    "--buffer-size",
    type=click.IntRange(min=1),
    default=DEFAULT_BUFFER_SIZE,
    show_default=True,
    help="Copy and hash buffer size in bytes.",
)
@click.option(
    "--no-baseline",
    is_flag=True,
    help="Copy every file instead of linking unchanged files from the previous set.",
)
def backup(
    destination: str,
    sources: tuple[str, ...],
    defaults: bool,
    notes: str | None,
    buffer_size: int,
    no_baseline: bool,
) -> None:
    """Back up SOURCES into a new backup set on DESTINATION.

    DESTINATION is the drive or folder that receives WinSwitch/Backups/.
    """
    picked = list(sources)
    if defaults:
        picked.extend(item.path for item in default_sources() if item.selected)
    resolved = resolve_sources(picked)
    if not resolved:
        console.print("[red]No existing source folders selected.[/red]")
        raise SystemExit(1)

    settings = BackupSettings(buffer_size=buffer_size, use_baseline=not no_baseline)
    plan = BackupPlan(
        sources=tuple(resolved),
        destination_root=Path(destination),
        human_timestamp=datetime.now().strftime("%Y-%m-%d %H:%M:%S"),
        notes=notes,
    )

    console.print(f"[bold]Backing up:[/bold] {', '.join(str(s) for s in resolved)}")
    progress = Progress(
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        DownloadColumn(),
        TimeRemainingColumn(),
        console=console,
        transient=True,
    )
    with BackgroundRunner(BackupOrchestrator(settings=settings)) as runner, progress:
        task = progress.add_task("Copying", total=None)

        def on_progress(snapshot: BackupProgress) -> None:
            progress.update(
                task,
                completed=snapshot.bytes_copied,
                total=max(1, snapshot.total_bytes),
            )

        result = _wait(runner.submit_backup(plan, on_progress))

    console.print(f"[green]Backup set:[/green] {result.set_path}")
    console.print(
        f"[green]Files:[/green] {result.files_copied} copied, "
        f"{result.files_skipped} unchanged, {result.files_failed} failed"
    )
    console.print(f"[green]Bytes copied:[/green] {result.bytes_copied} of {result.total_bytes}")
    style = "green" if result.ok else "red"
    console.print(f"[{style}]{result.message}[/{style}]")
    if not result.ok:
        raise SystemExit(1)


@main.command()
@click.argument("backup_set", type=click.Path(exists=True, file_okay=False))
@click.argument("target", type=click.Path(file_okay=False))
def restore(backup_set: str, target: str) -> None:
    """Restore BACKUP_SET into the TARGET folder."""
    console.print(f"[bold]Restoring:[/bold] {backup_set} → {target}")
    with BackgroundRunner() as runner:
        result = _wait(runner.submit_restore(backup_set, target))

    style = "green" if result.success else "red"
    console.print(f"[{style}]{result.message}[/{style}]")
    if not result.success:
        raise SystemExit(1)


@main.command(name="list")
@click.argument("destination", type=click.Path(exists=True, file_okay=False))
def list_cmd(destination: str) -> None:
    """List the backup sets stored on DESTINATION."""
    layout = BackupLayout(destination)
    sets = layout.list_sets()
    if not sets:
        console.print(f"No backup sets in {layout.backups_dir}")
        return

    store = JsonManifestStore()
    table = Table(title=str(layout.backups_dir))
    table.add_column("Set")
    table.add_column("Files", justify="right")
    table.add_column("Manifest")
    for backup_set in sets:
        if not backup_set.has_manifest():
            table.add_row(backup_set.name, "-", "[yellow]missing[/yellow]")
            continue
        try:
            manifest = store.load(backup_set.manifest_path)
        except ManifestError:
            table.add_row(backup_set.name, "-", "[red]invalid[/red]")
            continue
        table.add_row(backup_set.name, str(len(manifest.files)), "ok")
    console.print(table)


@main.command()
@click.argument("backup_set", type=click.Path(exists=True, file_okay=False))
def verify(backup_set: str) -> None:
    """Re-hash the data in BACKUP_SET and compare it with its manifest."""
    report = BackupVerifier().verify(backup_set)
    if report.manifest_error is not None:
        console.print(f"[red]Manifest error:[/red] {report.manifest_error}")
        raise SystemExit(1)

    for issue in report.issues:
        console.print(f"[red]{issue.problem}:[/red] {issue.relative_path} {issue.detail}")
    console.print(
        f"[green]Checked:[/green] {report.files_checked} files, {len(report.issues)} issues"
    )
    if not report.ok:
        raise SystemExit(1)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _wait(handle: RunHandle[T]) -> T:
    """Block until *handle* finishes; Ctrl-C requests cancellation."""
    while True:
        try:
            return handle.result(timeout=0.25)
        except TimeoutError:
            continue
        except KeyboardInterrupt:
            console.print("[yellow]Cancelling…[/yellow]")
            handle.cancel()
