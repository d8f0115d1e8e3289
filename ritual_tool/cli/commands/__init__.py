# ritual_tool/cli/commands/__init__.py
"""CLI commands"""

from . import plan
from . import update
from . import validate
from . import backup
from . import checkpoint
from . import history

__all__ = [
    "plan",
    "update",
    "validate",
    "backup",
    "checkpoint",
    "history",
]
