# ritual_tool/cli/utils/output.py
"""Output formatting utilities"""

import json
from typing import Any, List, Optional

from rich.console import Console
from rich.table import Table
from rich.panel import Panel
from rich.syntax import Syntax
from rich import box

from ...constants import (
    EMOJI_SUCCESS,
    EMOJI_ERROR,
    EMOJI_WARNING,
    EMOJI_BULLET,
    MSG_UPDATE_SUCCESS,
    MSG_UPDATE_FAILED,
    MSG_ROLLBACK_SUCCEEDED,
    MSG_ROLLBACK_FAILED,
    DeploymentStatus,
    MigrationStatus,
)
from ...models import DeploymentPlan, UpdateResult, BackupSnapshot, Checkpoint, DeploymentRecord
from ...models.result import OperationStatus
from ...utils.formatting import format_size, format_duration, format_plan_duration

console = Console()

_MIGRATION_STYLES = {
    MigrationStatus.APPLIED: "green",
    MigrationStatus.FAILED: "red",
    MigrationStatus.SKIPPED: "yellow",
    MigrationStatus.PENDING: "dim",
    MigrationStatus.ROLLEDBACK: "cyan",
}

_HISTORY_STYLES = {
    DeploymentStatus.SUCCESS: "green",
    DeploymentStatus.FAILURE: "red",
    DeploymentStatus.ROLLBACK: "yellow",
}


def format_plan(plan: DeploymentPlan) -> None:
    """Format and display a deployment plan"""
    lines = [
        f"[bold]Current:[/bold] {plan.current_version}",
        f"[bold]Target:[/bold] {plan.target_version}",
        f"[bold]Estimated duration:[/bold] {format_plan_duration(plan.estimated_duration)}",
    ]

    for label, files, style in (
        ("Add", plan.files_added, "green"),
        ("Modify", plan.files_modified, "yellow"),
        ("Delete", plan.files_deleted, "red"),
    ):
        if files:
            lines.append("")
            lines.append(f"[bold]{label} ({len(files)}):[/bold]")
            for name in files:
                lines.append(f"  [{style}]{EMOJI_BULLET} {name}[/{style}]")

    if plan.migrations_to_run:
        lines.append("")
        lines.append(f"[bold]Migrations ({len(plan.migrations_to_run)}):[/bold]")
        for migration in plan.migrations_to_run:
            lines.append(f"  {EMOJI_BULLET} {migration}")

    border = "yellow" if plan.requires_manual_intervention else "blue"
    console.print(Panel("\n".join(lines), title="Update Plan", border_style=border))

    if plan.steps:
        table = Table(title="Steps", box=box.SIMPLE)
        table.add_column("#", justify="right", style="dim")
        table.add_column("Step", style="cyan")
        table.add_column("Description")
        table.add_column("Required")

        for index, step in enumerate(plan.steps, 1):
            table.add_row(
                str(index),
                step.type.value,
                step.description,
                "yes" if step.required else "[dim]no[/dim]",
            )
        console.print(table)

    if plan.conflicts:
        console.print(f"\n[bold yellow]{EMOJI_WARNING} Conflicts requiring attention:[/bold yellow]")
        for conflict in plan.conflicts:
            console.print(f"  {EMOJI_BULLET} [bold]{conflict.file}[/bold]: {conflict.reason}")
            if conflict.resolution:
                console.print(f"    [dim]{conflict.resolution}[/dim]")


def format_update_result(result: UpdateResult) -> None:
    """Format and display an update result

    The primary failure and the rollback outcome are shown separately.
    """
    if result.status == OperationStatus.SKIPPED:
        lines = [
            f"[cyan]Dry run:[/cyan] {result.from_version} -> {result.to_version}",
            "[dim]No changes were made[/dim]",
        ]
        _append_migrations(lines, result)
        console.print(Panel("\n".join(lines), title="Update Preview", border_style="cyan"))

    elif result.is_success:
        lines = [
            "[green]" + MSG_UPDATE_SUCCESS.format(
                name=result.ritual_name,
                from_version=result.from_version,
                to_version=result.to_version,
            ) + "[/green]",
        ]
        if result.files_written:
            lines.append(f"[bold]Files written:[/bold] {len(result.files_written)}")
        if result.files_removed:
            lines.append(f"[bold]Files removed:[/bold] {len(result.files_removed)}")
        if result.backup_path:
            lines.append(f"[bold]Backup:[/bold] {result.backup_path}")
        _append_migrations(lines, result)
        if result.duration is not None:
            lines.append("")
            lines.append(f"[dim]Duration: {format_duration(result.duration)}[/dim]")
        console.print(Panel("\n".join(lines), title="Update Result", border_style="green"))

    else:
        error = result.error.message if result.error else result.message
        lines = [f"[red]{MSG_UPDATE_FAILED.format(error=error)}[/red]"]

        if result.rollback_succeeded:
            lines.append(f"[green]{MSG_ROLLBACK_SUCCEEDED}[/green]")
        elif result.rollback_error:
            lines.append(f"[red]{MSG_ROLLBACK_FAILED.format(error=result.rollback_error.message)}[/red]")
            if result.backup_path:
                lines.append(f"[yellow]Restore manually from:[/yellow] {result.backup_path}")
        elif result.backup_path:
            lines.append(f"[yellow]Partial changes kept; backup at:[/yellow] {result.backup_path}")

        _append_migrations(lines, result)
        console.print(Panel("\n".join(lines), title="Update Error", border_style="red"))

    for warning in result.warnings:
        print_warning(warning)


def _append_migrations(lines: List[str], result: UpdateResult) -> None:
    if not result.migrations:
        return
    lines.append("")
    lines.append("[bold]Migrations:[/bold]")
    for record in result.migrations:
        style = _MIGRATION_STYLES.get(record.status, "white")
        line = f"  [{style}]{record.status.value:<8}[/{style}] {record.from_version} -> {record.to_version}"
        if record.error:
            line += f" [dim]({record.error})[/dim]"
        lines.append(line)


def format_backup_list(snapshots: List[BackupSnapshot], sizes: Optional[dict] = None) -> None:
    """Format and display backups, newest first"""
    if not snapshots:
        console.print("[yellow]No backups found[/yellow]")
        return

    sizes = sizes or {}
    table = Table(title="Backups", box=box.ROUNDED)
    table.add_column("Name", style="cyan", no_wrap=True)
    table.add_column("Version", style="green")
    table.add_column("Created", style="dim")
    table.add_column("Size", justify="right", style="yellow")
    table.add_column("Description")

    for snapshot in snapshots:
        size = sizes.get(snapshot.name)
        table.add_row(
            snapshot.name,
            snapshot.ritual_version or "-",
            snapshot.created_at.strftime("%Y-%m-%d %H:%M:%S"),
            format_size(size) if size is not None else "-",
            snapshot.description,
        )

    console.print(table)


def format_checkpoint_list(checkpoints: List[Checkpoint]) -> None:
    """Format and display checkpoints, newest first"""
    if not checkpoints:
        console.print("[yellow]No checkpoints found[/yellow]")
        return

    table = Table(title="Checkpoints", box=box.ROUNDED)
    table.add_column("ID", style="cyan", no_wrap=True)
    table.add_column("Label")
    table.add_column("Version", style="green")
    table.add_column("Created", style="dim")

    for checkpoint in checkpoints:
        table.add_row(
            checkpoint.id,
            checkpoint.label,
            str(checkpoint.state.get('ritual_version') or '-'),
            checkpoint.timestamp.strftime("%Y-%m-%d %H:%M:%S"),
        )

    console.print(table)


def format_history(records: List[DeploymentRecord]) -> None:
    """Format and display update history, newest first"""
    if not records:
        console.print("[yellow]No updates recorded[/yellow]")
        return

    table = Table(title="Update History", box=box.SIMPLE)
    table.add_column("When", style="dim")
    table.add_column("From")
    table.add_column("To")
    table.add_column("Status")
    table.add_column("Duration", justify="right")
    table.add_column("Message")

    for record in records:
        style = _HISTORY_STYLES.get(record.status, "white")
        table.add_row(
            record.timestamp.strftime("%Y-%m-%d %H:%M:%S"),
            record.from_version,
            record.to_version,
            f"[{style}]{record.status.value}[/{style}]",
            format_duration(record.duration),
            record.message,
        )

    console.print(table)


def format_validation_result(errors: List[str], warnings: List[str], info: List[str] = None) -> None:
    """Format and display validation findings"""
    if not errors:
        console.print(f"[green]{EMOJI_SUCCESS} Validation passed[/green]")
    else:
        console.print(f"[red]{EMOJI_ERROR} Validation failed[/red]")
        console.print("\n[bold red]Errors:[/bold red]")
        for error in errors:
            console.print(f"  {EMOJI_BULLET} {error}")

    if warnings:
        console.print("\n[bold yellow]Warnings:[/bold yellow]")
        for warning in warnings:
            console.print(f"  {EMOJI_BULLET} {warning}")

    for line in info or []:
        console.print(f"[dim]{line}[/dim]")


def format_json(data: Any, title: Optional[str] = None) -> None:
    """Format and display JSON data with syntax highlighting"""
    json_str = json.dumps(data, indent=2, default=str)
    syntax = Syntax(json_str, "json", theme="monokai", line_numbers=False)

    if title:
        console.print(Panel(syntax, title=title, border_style="blue"))
    else:
        console.print(syntax)


def print_error(message: str, error: Optional[Exception] = None) -> None:
    """Print error message"""
    if error:
        console.print(f"[red]Error:[/red] {message}: {str(error)}")
    else:
        console.print(f"[red]Error:[/red] {message}")


def print_warning(message: str) -> None:
    """Print warning message"""
    console.print(f"[yellow]Warning:[/yellow] {message}")


def print_info(message: str) -> None:
    """Print info message"""
    console.print(f"[blue]Info:[/blue] {message}")


def print_success(message: str) -> None:
    """Print success message"""
    console.print(f"[green]Success:[/green] {message}")
