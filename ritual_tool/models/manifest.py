"""Ritual manifest models"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Any

from .migration import Migration


@dataclass
class FileMapping:
    """Template file mapping (source in the ritual, destination in the project)"""
    src: str
    dest: str
    optional: bool = False

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary"""
        data = {'src': self.src, 'dest': self.dest}
        if self.optional:
            data['optional'] = True
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'FileMapping':
        """Create from dictionary"""
        return cls(
            src=data['src'],
            dest=data.get('dest') or data['src'],
            optional=bool(data.get('optional', False)),
        )


@dataclass
class Compatibility:
    """Supported ritual-tool version range"""
    min_tool_version: Optional[str] = None
    max_tool_version: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary"""
        data = {}
        if self.min_tool_version:
            data['min_tool_version'] = self.min_tool_version
        if self.max_tool_version:
            data['max_tool_version'] = self.max_tool_version
        return data


@dataclass
class RitualManifest:
    """Parsed ritual definition

    Only the fields read by the update engine are modelled; anything else in
    the manifest document is kept in ``extra`` and written back untouched.
    """
    name: str
    version: str
    description: str = ""
    compatibility: Compatibility = field(default_factory=Compatibility)
    rituals: List[str] = field(default_factory=list)
    packages: List[str] = field(default_factory=list)
    templates: List[FileMapping] = field(default_factory=list)
    protected: List[str] = field(default_factory=list)
    migrations: List[Migration] = field(default_factory=list)
    hooks: Dict[str, List[Any]] = field(default_factory=dict)
    extra: Dict[str, Any] = field(default_factory=dict)

    @property
    def dependencies(self) -> List[str]:
        """Identifiers of the rituals this ritual composes"""
        return self.rituals

    @property
    def post_update_hooks(self) -> List[Any]:
        return self.hooks.get('post_update') or []

    @property
    def pre_update_hooks(self) -> List[Any]:
        return self.hooks.get('pre_update') or []

    def template_destinations(self) -> List[str]:
        return [mapping.dest for mapping in self.templates]

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary"""
        data = dict(self.extra)
        data['ritual'] = {
            'name': self.name,
            'version': self.version,
            'description': self.description,
        }

        compatibility = self.compatibility.to_dict()
        if compatibility:
            data['compatibility'] = compatibility

        if self.rituals or self.packages:
            data['dependencies'] = {
                'rituals': list(self.rituals),
                'packages': list(self.packages),
            }

        files = {}
        if self.templates:
            files['templates'] = [m.to_dict() for m in self.templates]
        if self.protected:
            files['protected'] = list(self.protected)
        if files:
            data['files'] = files

        if self.migrations:
            data['migrations'] = [m.to_dict() for m in self.migrations]
        if self.hooks:
            data['hooks'] = self.hooks

        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'RitualManifest':
        """Create from dictionary"""
        data = dict(data or {})
        ritual = data.pop('ritual', None) or {}
        compatibility = data.pop('compatibility', None) or {}
        dependencies = data.pop('dependencies', None) or {}
        files = data.pop('files', None) or {}
        migrations = data.pop('migrations', None) or []
        hooks = data.pop('hooks', None) or {}

        return cls(
            name=str(ritual.get('name', '')),
            version=str(ritual.get('version', '')),
            description=ritual.get('description', ''),
            compatibility=Compatibility(
                min_tool_version=compatibility.get('min_tool_version'),
                max_tool_version=compatibility.get('max_tool_version'),
            ),
            rituals=list(dependencies.get('rituals') or []),
            packages=list(dependencies.get('packages') or []),
            templates=[FileMapping.from_dict(t) for t in files.get('templates') or []],
            protected=list(files.get('protected') or []),
            migrations=[Migration.from_dict(m) for m in migrations],
            hooks={k: list(v or []) for k, v in hooks.items()},
            extra=data,
        )
