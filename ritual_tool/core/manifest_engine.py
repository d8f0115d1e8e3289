# ritual_tool/core/manifest_engine.py
"""Thin ritual manifest loader and file content provider"""

import logging
from pathlib import Path
from typing import Dict, Iterable, Optional

import yaml

from ..api.exceptions import ManifestError, ManifestNotFoundError
from ..constants import MANIFEST_FILE_NAME
from ..models.manifest import RitualManifest
from ..utils.file_utils import atomic_write, read_file_content, read_files
from .changeset_analyzer import FileContent

logger = logging.getLogger(__name__)


class ManifestEngine:
    """Load ritual manifests and the file contents they describe"""

    def resolve_manifest_path(self, path: Path) -> Path:
        """Accept either a ritual directory or a manifest file"""
        path = Path(path)
        if path.is_dir():
            path = path / MANIFEST_FILE_NAME
        if not path.is_file():
            raise ManifestNotFoundError(str(path))
        return path

    def load_manifest(self, path: Path) -> RitualManifest:
        """Load manifest from a ritual.yaml (or the directory holding it)

        Args:
            path: Manifest file or ritual directory

        Returns:
            RitualManifest

        Raises:
            ManifestNotFoundError: If there is no manifest
            ManifestError: If the document is not valid YAML or not a mapping
        """
        manifest_path = self.resolve_manifest_path(path)

        try:
            with open(manifest_path, 'r') as f:
                data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ManifestError(f"Invalid manifest {manifest_path}: {e}") from e

        if not isinstance(data, dict):
            raise ManifestError(f"Invalid manifest {manifest_path}: expected a mapping")

        manifest = RitualManifest.from_dict(data)
        logger.debug("Loaded manifest %s@%s from %s", manifest.name, manifest.version, manifest_path)
        return manifest

    def save_manifest(self, manifest: RitualManifest, path: Path) -> Path:
        """Write a manifest as YAML"""
        path = Path(path)
        content = yaml.dump(manifest.to_dict(), default_flow_style=False, sort_keys=False)
        atomic_write(path, content)
        return path

    def load_manifests(self, directory: Path) -> Dict[str, RitualManifest]:
        """
        Load every ritual found directly below directory, keyed by ritual name

        Sub-directories without a manifest are ignored.
        """
        directory = Path(directory)
        manifests = {}
        if not directory.is_dir():
            return manifests

        for entry in sorted(directory.iterdir()):
            if entry.is_dir() and (entry / MANIFEST_FILE_NAME).is_file():
                manifest = self.load_manifest(entry)
                manifests[manifest.name] = manifest
            elif entry.is_file() and entry.suffix in ('.yaml', '.yml'):
                manifest = self.load_manifest(entry)
                manifests[manifest.name] = manifest

        return manifests

    def load_template_files(self, manifest: RitualManifest, ritual_dir: Path) -> Dict[str, FileContent]:
        """
        Raw (unrendered) template contents keyed by project destination

        Binary templates are returned as bytes.

        Raises:
            ManifestError: If a non-optional template source is missing
        """
        ritual_dir = Path(ritual_dir)
        contents = {}
        for mapping in manifest.templates:
            source = ritual_dir / mapping.src
            if not source.is_file():
                if mapping.optional:
                    continue
                raise ManifestError(f"Template source not found: {mapping.src}")
            contents[mapping.dest] = read_file_content(source)
        return contents

    def load_project_files(self, project_root: Path,
                           destinations: Iterable[str]) -> Dict[str, FileContent]:
        """Current project contents for the given destinations (missing ones left out)"""
        return read_files(project_root, destinations)

    def tracked_destinations(self, *manifests: Optional[RitualManifest]) -> list:
        """Union of template destinations of the given manifests, sorted"""
        destinations = set()
        for manifest in manifests:
            if manifest is not None:
                destinations.update(manifest.template_destinations())
        return sorted(destinations)
