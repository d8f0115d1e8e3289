"""Backup management command"""

import sys

import click
from rich.console import Console
from rich.prompt import Confirm

from ..utils.output import format_backup_list, print_error, print_success
from ...api.exceptions import RitualToolError
from ...constants import MSG_BACKUP_CREATED
from ...utils.formatting import pluralize

console = Console()


@click.group()
@click.pass_context
def backup(ctx):
    """Manage full project backups

    Backups live under .ritual/backups and are taken automatically before
    every update. Refer to a backup by its directory name or full path.
    """
    pass


@backup.command('list')
@click.option('--size', 'show_size', is_flag=True, help='Compute the size of each backup')
@click.pass_context
def list_backups(ctx, show_size):
    """List backups, newest first"""
    store = ctx.obj.backup_store
    snapshots = store.list_backups()

    sizes = {}
    if show_size:
        sizes = {snapshot.name: store.get_backup_size(snapshot.path) for snapshot in snapshots}

    format_backup_list(snapshots, sizes)


@backup.command('create')
@click.option('--description', default='Manual backup', help='Description stored with the backup')
@click.pass_context
def create_backup(ctx, description):
    """Back up the whole project now"""
    try:
        metadata = {'description': description}
        state_store = ctx.obj.state_store
        if state_store.exists():
            state = state_store.load()
            metadata['ritual_name'] = state.ritual_name
            metadata['ritual_version'] = state.ritual_version

        path = ctx.obj.backup_store.create_backup_with_metadata(metadata=metadata)
        console.print(MSG_BACKUP_CREATED.format(path=path))

    except (RitualToolError, OSError) as e:
        print_error("Backup failed", e)
        sys.exit(1)


@backup.command('restore')
@click.argument('reference')
@click.option('--clean', is_flag=True, help='Also delete files created after the backup')
@click.option('--force', is_flag=True, help='Skip confirmation prompt')
@click.pass_context
def restore_backup(ctx, reference, clean, force):
    """Restore the project from backup REFERENCE"""
    try:
        store = ctx.obj.backup_store
        path = store.find_backup(reference)

        if not force:
            console.print(f"Restore from: [bold]{path}[/bold]")
            if clean:
                console.print("[yellow]Files not in the backup will be deleted[/yellow]")
            if not Confirm.ask("\n[cyan]Overwrite project files?[/cyan]"):
                console.print("[yellow]Restore cancelled[/yellow]")
                return

        restored = store.restore_from_backup(path, clean=clean)
        print_success(f"Restored {pluralize(len(restored), 'file')} from {path.name}")

    except (RitualToolError, OSError) as e:
        print_error("Restore failed", e)
        sys.exit(1)


@backup.command('clean')
@click.option('--keep', type=int, help='Number of backups to keep (default: backups.keep)')
@click.pass_context
def clean_backups(ctx, keep):
    """Delete all but the newest backups"""
    if keep is None:
        keep = ctx.obj.config.backups.keep
    if keep < 0:
        print_error(f"--keep must not be negative: {keep}")
        sys.exit(1)

    try:
        removed = ctx.obj.backup_store.clean_old_backups(keep_count=keep)
    except RitualToolError as e:
        print_error("Cleanup failed", e)
        sys.exit(1)

    if removed:
        print_success(f"Removed {pluralize(len(removed), 'old backup')}")
    else:
        console.print("[dim]Nothing to remove[/dim]")
