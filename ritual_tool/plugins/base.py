# ritual_tool/plugins/base.py
"""Hook task registry

Pre- and post-update hooks are declared in the manifest as a task type plus
its configuration. The update engine only looks tasks up here and reports
success or failure per hook; the tasks themselves are provided by plugins.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Union

from ..api.exceptions import HookError


@dataclass
class TaskContext:
    """Context passed to hook tasks"""
    project_root: Path
    hook_point: str
    data: Dict[str, Any] = field(default_factory=dict)
    env: Dict[str, str] = field(default_factory=dict)


class HookTask(ABC):
    """Base class for hook tasks"""

    def __init__(self, config: Dict[str, Any] = None):
        """
        Initialize task

        Args:
            config: Task-specific configuration from the manifest
        """
        self.config = config or {}
        self.logger = logging.getLogger(self.__class__.__name__)

    @property
    @abstractmethod
    def name(self) -> str:
        """Task type name"""
        pass

    def validate(self) -> None:
        """Check the configuration, raising HookError when unusable (optional)"""
        pass

    @abstractmethod
    def execute(self, context: TaskContext) -> None:
        """Run the task, raising on failure"""
        pass


TaskFactory = Callable[[Dict[str, Any]], HookTask]


@dataclass
class HookOutcome:
    """Result of a single hook"""
    name: str
    success: bool
    error: Optional[str] = None
    resolved: bool = True


@dataclass
class HookRunResult:
    """Results of a batch of hooks"""
    outcomes: List[HookOutcome] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return all(outcome.success for outcome in self.outcomes)

    @property
    def failures(self) -> List[HookOutcome]:
        return [outcome for outcome in self.outcomes if not outcome.success]

    @property
    def unresolved(self) -> List[HookOutcome]:
        """Hooks naming no registered task"""
        return [outcome for outcome in self.outcomes if not outcome.resolved]


def parse_hook_spec(spec: Union[str, Dict[str, Any]]) -> tuple:
    """Split a manifest hook entry into (task type, config)"""
    if isinstance(spec, str):
        return spec, {}
    if isinstance(spec, dict):
        config = dict(spec)
        task_type = config.pop('type', None) or config.pop('task', None)
        if task_type:
            return str(task_type), config
    raise HookError(str(spec), "hook entry must be a task name or a mapping with 'type'")


class TaskRegistry:
    """Registry mapping task type names to factories"""

    def __init__(self):
        self._factories: Dict[str, TaskFactory] = {}
        self.logger = logging.getLogger("TaskRegistry")

    def register(self, name: str, factory: TaskFactory) -> None:
        """
        Register a task factory

        Args:
            name: Task type name used in manifests
            factory: Callable building a task from its configuration
        """
        if name in self._factories:
            self.logger.warning(f"Task {name} already registered, replacing")
        self._factories[name] = factory

    def unregister(self, name: str) -> None:
        self._factories.pop(name, None)

    def get(self, name: str, config: Optional[Dict[str, Any]] = None) -> HookTask:
        """
        Build a task instance

        Raises:
            HookError: If no factory is registered under name
        """
        factory = self._factories.get(name)
        if factory is None:
            raise HookError(name, "task not found")
        return factory(config or {})

    def list(self) -> List[str]:
        return sorted(self._factories)

    def run_hooks(self, hooks: List[Union[str, Dict[str, Any]]], context: TaskContext) -> HookRunResult:
        """
        Run hooks in order, recording each outcome

        A failing hook does not stop the ones after it. Hooks naming no
        registered task are recorded as unresolved failures.
        """
        result = HookRunResult()

        for spec in hooks:
            name = str(spec)
            try:
                name, config = parse_hook_spec(spec)
                if name not in self._factories:
                    self.logger.warning(f"No task registered for hook {name}")
                    result.outcomes.append(HookOutcome(name=name, success=False,
                                                      error="task not found", resolved=False))
                    continue
                task = self.get(name, config)
                task.validate()
                self.logger.debug(f"Executing hook {name} for {context.hook_point}")
                task.execute(context)
                result.outcomes.append(HookOutcome(name=name, success=True))
            except Exception as e:
                self.logger.error(f"Hook {name} failed: {e}")
                result.outcomes.append(HookOutcome(name=name, success=False, error=str(e)))

        return result
