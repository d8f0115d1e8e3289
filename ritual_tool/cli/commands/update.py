"""Update command implementation"""

import sys
from pathlib import Path

import click
from rich.console import Console
from rich.prompt import Confirm

from ..utils.output import format_plan, format_update_result, print_error
from ...api.exceptions import RitualToolError

console = Console()


@click.command()
@click.argument('target', type=click.Path(exists=True, path_type=Path))
@click.option('--dry-run', is_flag=True, help='Plan and simulate without changing anything')
@click.option('--force', is_flag=True, help='Keep partial changes instead of rolling back on failure')
@click.option('--manifests-dir', type=click.Path(exists=True, file_okay=False, path_type=Path),
              help='Directory of ritual manifests used for dependency checks')
@click.option('-y', '--yes', is_flag=True, help='Skip confirmation prompt')
@click.pass_context
def update(ctx, target, dry_run, force, manifests_dir, yes):
    """Update the project to the ritual version at TARGET

    A backup of the whole project is taken first. If writing files or a
    migration fails, the backup is restored unless --force is given.

    Examples:

        # Preview first
        ritual-tool update ../rituals/webapp-2.0.0 --dry-run

        # Apply without prompting
        ritual-tool update ../rituals/webapp-2.0.0 --yes
    """
    try:
        service = ctx.obj.update_service
        inputs = service.prepare(target, manifests_dir)

        if not yes and not dry_run:
            deployment_plan = service.plan(
                inputs.current_manifest,
                inputs.target_manifest,
                inputs.current_files,
                inputs.target_files,
            )
            format_plan(deployment_plan)

            if force:
                console.print("[yellow]--force: failed updates will NOT be rolled back[/yellow]")

            if not Confirm.ask("\n[cyan]Proceed with update?[/cyan]"):
                console.print("[yellow]Update cancelled[/yellow]")
                return

        result = service.update(
            inputs.current_manifest,
            inputs.target_manifest,
            current_files=inputs.current_files,
            target_files=inputs.target_files,
            known_manifests=inputs.known_manifests,
            dry_run=dry_run,
            force=force,
        )

        if dry_run and result.plan:
            format_plan(result.plan)
        format_update_result(result)

        if result.is_failed:
            sys.exit(1)

    except RitualToolError as e:
        print_error("Update aborted", e)
        sys.exit(1)
    except OSError as e:
        print_error("Update aborted before any change", e)
        sys.exit(1)
