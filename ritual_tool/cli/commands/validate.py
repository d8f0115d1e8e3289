"""Validate command implementation"""

import sys
from pathlib import Path

import click

from ..utils.output import format_validation_result, print_error
from ...api.exceptions import RitualToolError
from ...core import ManifestEngine, ValidationEngine


@click.command()
@click.argument('manifest', type=click.Path(exists=True, path_type=Path))
@click.option('--manifests-dir', type=click.Path(exists=True, file_okay=False, path_type=Path),
              help='Directory of other ritual manifests, for dependency cycle checks')
def validate(manifest, manifests_dir):
    """Validate a ritual manifest

    Checks versions, migrations, tool compatibility and, with
    --manifests-dir, dependency cycles between rituals.
    """
    try:
        engine = ManifestEngine()
        loaded = engine.load_manifest(manifest)
        known = engine.load_manifests(manifests_dir) if manifests_dir else {}

        result = ValidationEngine().validate_manifest(loaded, known)
        format_validation_result(result.errors, result.warnings, result.info)

        if not result.is_valid:
            sys.exit(1)

    except RitualToolError as e:
        print_error("Cannot validate manifest", e)
        sys.exit(1)
