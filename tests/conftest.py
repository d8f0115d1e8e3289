"""Shared test fixtures for ritual-tool tests."""

import os
from pathlib import Path
from typing import Callable, Dict, Optional, Union

import pytest
from click.testing import CliRunner

from ritual_tool.constants import MANIFEST_FILE_NAME
from ritual_tool.core import ManifestEngine, StateStore
from ritual_tool.models import (
    FileMapping,
    Migration,
    MigrationHandler,
    ProjectState,
    RitualManifest,
)

V1_FILES = {
    "README.md": "# webapp v1\n",
    "config/app.yaml": "debug: false\n",
}


@pytest.fixture
def runner() -> CliRunner:
    """Create CLI test runner."""
    return CliRunner()


@pytest.fixture
def project_dir(tmp_path: Path) -> Path:
    """Project generated from webapp 1.0.0.

    Holds the two generated files and a .ritual/state.yaml recording them.
    """
    root = tmp_path / "project"
    root.mkdir()
    for name, content in V1_FILES.items():
        path = root / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content)

    StateStore(root).save(ProjectState(
        ritual_name="webapp",
        ritual_version="1.0.0",
        generated_files=sorted(V1_FILES),
    ))
    return root


@pytest.fixture
def make_manifest() -> Callable[..., RitualManifest]:
    """Factory for in-memory manifests."""
    def _make(version: str = "1.0.0", name: str = "webapp", **kwargs) -> RitualManifest:
        return RitualManifest(name=name, version=version, **kwargs)
    return _make


@pytest.fixture
def make_migration() -> Callable[..., Migration]:
    """Factory for migrations with a script or SQL up handler.

    Migrations are idempotent unless a down script is given.
    """
    def _make(from_version: str, to_version: str,
              script: Optional[str] = None,
              sql: Optional[list] = None,
              down_script: Optional[str] = None,
              description: str = "") -> Migration:
        return Migration(
            from_version=from_version,
            to_version=to_version,
            description=description or f"migrate to {to_version}",
            up=MigrationHandler(sql=list(sql or []), script=script),
            down=MigrationHandler(script=down_script),
            idempotent=down_script is None,
        )
    return _make


@pytest.fixture
def write_script() -> Callable[[Path, str, str], str]:
    """Write an executable shell script below a project, returning its relative name."""
    def _write(root: Path, name: str, body: str) -> str:
        path = root / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text("#!/bin/sh\n" + body + "\n")
        os.chmod(path, 0o755)
        return name
    return _write


@pytest.fixture
def write_ritual(tmp_path: Path) -> Callable[..., Path]:
    """Write a ritual directory (ritual.yaml plus templates) and return its path."""
    def _write(version: str, files: Dict[str, Union[str, bytes]], name: str = "webapp",
               **kwargs) -> Path:
        ritual_dir = tmp_path / "rituals" / f"{name}-{version}"
        templates = []
        for dest, content in files.items():
            src = f"templates/{dest}"
            source = ritual_dir / src
            source.parent.mkdir(parents=True, exist_ok=True)
            if isinstance(content, bytes):
                source.write_bytes(content)
            else:
                source.write_text(content)
            templates.append(FileMapping(src=src, dest=dest))

        manifest = RitualManifest(name=name, version=version, templates=templates, **kwargs)
        ManifestEngine().save_manifest(manifest, ritual_dir / MANIFEST_FILE_NAME)
        return ritual_dir
    return _write
