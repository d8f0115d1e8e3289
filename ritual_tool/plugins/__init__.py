"""Hook task plugins for ritual-tool"""

from .base import (
    HookTask,
    TaskContext,
    TaskRegistry,
    TaskFactory,
    HookOutcome,
    HookRunResult,
    parse_hook_spec,
)

__all__ = [
    "HookTask",
    "TaskContext",
    "TaskRegistry",
    "TaskFactory",
    "HookOutcome",
    "HookRunResult",
    "parse_hook_spec",
]
