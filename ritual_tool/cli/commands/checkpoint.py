"""Checkpoint management command"""

import sys

import click
from rich.console import Console

from ..utils.output import format_checkpoint_list, print_error, print_success
from ...api.exceptions import RitualToolError

console = Console()


@click.group()
@click.pass_context
def checkpoint(ctx):
    """Manage state checkpoints

    A checkpoint records only .ritual/state.yaml, not project files. One is
    taken automatically before every update.
    """
    pass


@checkpoint.command('list')
@click.pass_context
def list_checkpoints(ctx):
    """List checkpoints, newest first"""
    format_checkpoint_list(ctx.obj.checkpoint_store.list_checkpoints())


@checkpoint.command('create')
@click.argument('label')
@click.pass_context
def create_checkpoint(ctx, label):
    """Record the current project state under LABEL"""
    try:
        state = ctx.obj.state_store.load()
        created = ctx.obj.checkpoint_store.create_checkpoint(label, state.to_dict())
        print_success(f"Checkpoint created: {created.id}")
    except RitualToolError as e:
        print_error("Cannot create checkpoint", e)
        sys.exit(1)


@checkpoint.command('restore')
@click.argument('reference')
@click.pass_context
def restore_checkpoint(ctx, reference):
    """Restore project state from checkpoint REFERENCE (id or label)"""
    try:
        store = ctx.obj.checkpoint_store
        found = store.find_checkpoint(reference)
        store.restore_checkpoint(found.id)
        print_success(f"State restored from {found.id} ({found.label})")
    except RitualToolError as e:
        print_error("Cannot restore checkpoint", e)
        sys.exit(1)


@checkpoint.command('delete')
@click.argument('checkpoint_id')
@click.pass_context
def delete_checkpoint(ctx, checkpoint_id):
    """Delete checkpoint CHECKPOINT_ID"""
    try:
        ctx.obj.checkpoint_store.delete_checkpoint(checkpoint_id)
        print_success(f"Deleted checkpoint {checkpoint_id}")
    except RitualToolError as e:
        print_error("Cannot delete checkpoint", e)
        sys.exit(1)
