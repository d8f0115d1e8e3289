"""Plan command implementation"""

import json
import sys
from pathlib import Path

import click
from rich.console import Console

from ..utils.output import format_plan, print_error
from ...api.exceptions import RitualToolError

console = Console()


@click.command()
@click.argument('target', type=click.Path(exists=True, path_type=Path))
@click.option('--json', 'as_json', is_flag=True, help='Print the plan as JSON')
@click.option('--report', is_flag=True, help='Print the plain text report')
@click.pass_context
def plan(ctx, target, as_json, report):
    """Show what updating to TARGET would do

    TARGET is a ritual directory containing ritual.yaml, or the manifest
    file itself. Nothing in the project is changed.

    Examples:

        # Preview the update
        ritual-tool plan ../rituals/webapp-2.0.0

        # Machine readable plan
        ritual-tool plan ../rituals/webapp-2.0.0 --json
    """
    try:
        service = ctx.obj.update_service
        inputs = service.prepare(target)
        deployment_plan = service.plan(
            inputs.current_manifest,
            inputs.target_manifest,
            inputs.current_files,
            inputs.target_files,
        )

        if as_json:
            click.echo(json.dumps(deployment_plan.to_json_dict(), indent=2))
        elif report:
            click.echo(service.generate_report(deployment_plan), nl=False)
        else:
            format_plan(deployment_plan)

    except RitualToolError as e:
        print_error("Planning failed", e)
        sys.exit(1)
