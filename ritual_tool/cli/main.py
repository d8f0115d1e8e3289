# ritual_tool/cli/main.py
"""Main CLI entry point for ritual-tool"""

import sys
import logging
from pathlib import Path
from typing import Optional

import click
from rich.console import Console
from rich.logging import RichHandler

from ..__version__ import __version__
from ..constants import APP_NAME, LOG_FORMAT, RITUAL_DIR, ENV_PROJECT_ROOT
from ..core import StateStore, HistoryStore, ManifestEngine
from ..models import ToolConfig
from ..services import ConfigService, UpdateService
from ..storage import BackupStore, CheckpointStore

# Import all commands
from .commands import (
    plan,
    update,
    validate,
    backup,
    checkpoint,
    history,
)

console = Console()


def setup_logging(verbose: bool = False, debug: bool = False) -> None:
    """Setup logging configuration

    Args:
        verbose: Enable verbose output (INFO level)
        debug: Enable debug output (DEBUG level)
    """
    if debug:
        level = logging.DEBUG
    elif verbose:
        level = logging.INFO
    else:
        level = logging.WARNING

    # Configure rich handler
    logging.basicConfig(
        level=level,
        format=LOG_FORMAT,
        handlers=[
            RichHandler(
                console=console,
                show_time=debug,
                show_path=debug,
                rich_tracebacks=True,
                tracebacks_suppress=[click]
            )
        ]
    )


def find_project_root(start_path: Optional[Path] = None) -> Optional[Path]:
    """Walk up from start_path looking for a .ritual directory"""
    current = Path(start_path or Path.cwd()).resolve()
    for candidate in [current, *current.parents]:
        if (candidate / RITUAL_DIR).is_dir():
            return candidate
    return None


class Context:
    """CLI context object with lazily built stores and services"""

    def __init__(self, project_root: Optional[Path] = None):
        """Initialize CLI context

        Args:
            project_root: Explicit project root; found from the working
                directory when not given
        """
        self._project_root = Path(project_root) if project_root else None
        self._config_service: Optional[ConfigService] = None
        self._update_service: Optional[UpdateService] = None
        self.verbose: bool = False
        self.debug: bool = False
        self.quiet: bool = False

    @property
    def project_root(self) -> Path:
        """Project root directory (lazy loading)"""
        if self._project_root is None:
            self._project_root = find_project_root() or Path.cwd()
            if self.debug:
                console.print(f"[dim]Project root: {self._project_root}[/dim]")
        return self._project_root

    @property
    def config(self) -> ToolConfig:
        """Project configuration; its log level applies unless -v/-d/-q was given"""
        if self._config_service is None:
            self._config_service = ConfigService(self.project_root)
            config = self._config_service.config
            if not (self.verbose or self.debug or self.quiet):
                logging.getLogger().setLevel(config.log_level.upper())
        return self._config_service.config

    @property
    def state_store(self) -> StateStore:
        return self.update_service.state_store

    @property
    def history_store(self) -> HistoryStore:
        return self.update_service.history_store

    @property
    def backup_store(self) -> BackupStore:
        return self.update_service.backup_store

    @property
    def checkpoint_store(self) -> CheckpointStore:
        return self.update_service.checkpoint_store

    @property
    def manifest_engine(self) -> ManifestEngine:
        return self.update_service.manifest_engine

    @property
    def update_service(self) -> UpdateService:
        if self._update_service is None:
            self._update_service = UpdateService(self.project_root, config=self.config)
        return self._update_service


@click.group(name=APP_NAME)
@click.option('-v', '--verbose', is_flag=True, help='Enable verbose output')
@click.option('-d', '--debug', is_flag=True, help='Enable debug output')
@click.option('-q', '--quiet', is_flag=True, help='Suppress all output except errors')
@click.option('--project-root', type=click.Path(file_okay=False, path_type=Path),
              envvar=ENV_PROJECT_ROOT,
              help='Project directory (default: nearest parent with a .ritual directory)')
@click.version_option(version=__version__, prog_name=APP_NAME)
@click.pass_context
def cli(ctx, verbose, debug, quiet, project_root):
    """Ritual Tool - Keep generated projects up to date

    Plans and applies updates between versions of the ritual (project
    template) a project was generated from. Every update is preceded by a
    full backup and rolled back automatically when a step fails.
    """
    # Setup logging
    if quiet:
        logging.disable(logging.CRITICAL)
    else:
        setup_logging(verbose=verbose, debug=debug)

    ctx.obj = Context(project_root)
    ctx.obj.verbose = verbose
    ctx.obj.debug = debug
    ctx.obj.quiet = quiet


# Register commands
cli.add_command(plan.plan)
cli.add_command(update.update)
cli.add_command(validate.validate)
cli.add_command(backup.backup)
cli.add_command(checkpoint.checkpoint)
cli.add_command(history.history)


def main():
    """Main entry point for the CLI application

    This function handles:
    - Keyboard interrupts
    - Unexpected exceptions with proper error display
    """
    try:
        cli(prog_name=APP_NAME)

    except KeyboardInterrupt:
        console.print("\n[yellow]Operation cancelled by user[/yellow]")
        sys.exit(130)

    except Exception as e:
        console.print(f"[red]Unexpected error: {e}[/red]")
        if '--debug' in sys.argv or '-d' in sys.argv:
            console.print_exception()
        sys.exit(1)


if __name__ == "__main__":
    main()
