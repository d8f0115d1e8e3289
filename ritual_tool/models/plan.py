"""Deployment plan models"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Any

from ..constants import StepType, DEFAULT_STEP_DURATIONS, DEFAULT_STEP_DURATION


@dataclass
class DeploymentStep:
    """Single ordered step of a deployment plan"""
    type: StepType
    description: str
    estimated_duration: float = 0  # seconds, 0 means "use the default for the type"
    required: bool = True

    @property
    def effective_duration(self) -> float:
        if self.estimated_duration > 0:
            return self.estimated_duration
        return DEFAULT_STEP_DURATIONS.get(self.type.value, DEFAULT_STEP_DURATION)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary"""
        return {
            'type': self.type.value,
            'description': self.description,
            'estimated_duration': self.estimated_duration,
            'required': self.required,
        }


@dataclass
class Conflict:
    """Something that needs an operator's attention before or after updating"""
    file: str
    reason: str
    resolution: str

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary"""
        return {
            'file': self.file,
            'reason': self.reason,
            'resolution': self.resolution,
        }


@dataclass
class DeploymentPlan:
    """Ordered steps to move a project from one ritual version to another"""
    current_version: str
    target_version: str
    steps: List[DeploymentStep] = field(default_factory=list)
    conflicts: List[Conflict] = field(default_factory=list)
    files_added: List[str] = field(default_factory=list)
    files_modified: List[str] = field(default_factory=list)
    files_deleted: List[str] = field(default_factory=list)
    migrations_to_run: List[str] = field(default_factory=list)
    estimated_duration: float = 0

    @property
    def requires_manual_intervention(self) -> bool:
        return len(self.conflicts) > 0

    def add_step(self, step_type: StepType, description: str,
                 required: bool = True, estimated_duration: float = 0) -> DeploymentStep:
        """Append a step and return it"""
        step = DeploymentStep(
            type=step_type,
            description=description,
            estimated_duration=estimated_duration,
            required=required,
        )
        self.steps.append(step)
        return step

    def find_steps(self, step_type: StepType) -> List[DeploymentStep]:
        return [step for step in self.steps if step.type == step_type]

    def conflict_for(self, file: str) -> Optional[Conflict]:
        for conflict in self.conflicts:
            if conflict.file == file:
                return conflict
        return None

    def to_json_dict(self) -> Dict[str, Any]:
        """Machine-readable plan document"""
        return {
            'current_version': self.current_version,
            'target_version': self.target_version,
            'files': {
                'to_add': list(self.files_added),
                'to_modify': list(self.files_modified),
                'to_delete': list(self.files_deleted),
            },
            'migrations': list(self.migrations_to_run),
            'conflicts': [conflict.file for conflict in self.conflicts],
            'estimated_duration_seconds': int(self.estimated_duration),
            'requires_manual_intervention': self.requires_manual_intervention,
        }

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary, including steps and conflict details"""
        data = self.to_json_dict()
        data['steps'] = [step.to_dict() for step in self.steps]
        data['conflict_details'] = [conflict.to_dict() for conflict in self.conflicts]
        return data
