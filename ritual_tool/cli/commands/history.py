"""History command implementation"""

import sys

import click

from ..utils.output import format_history, print_error
from ...api.exceptions import RitualToolError


@click.command()
@click.option('--limit', type=int, default=10, show_default=True, help='Number of entries to show')
@click.pass_context
def history(ctx, limit):
    """Show recent update attempts, newest first"""
    try:
        records = ctx.obj.history_store.load().latest(limit)
        format_history(records)
    except RitualToolError as e:
        print_error("Cannot read history", e)
        sys.exit(1)
