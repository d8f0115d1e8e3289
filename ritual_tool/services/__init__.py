# ritual_tool/services/__init__.py
"""Business logic services for ritual-tool"""

from .config_service import ConfigService
from .update_service import UpdateService, UpdateInputs, FileWriter

__all__ = [
    "ConfigService",
    "UpdateService",
    "UpdateInputs",
    "FileWriter",
]
