"""CLI utility functions"""

from .output import (
    console,
    format_plan,
    format_update_result,
    format_backup_list,
    format_checkpoint_list,
    format_history,
    format_validation_result,
    format_json,
    print_error,
    print_warning,
    print_info,
    print_success,
)

__all__ = [
    # Output utilities
    'console',
    'format_plan',
    'format_update_result',
    'format_backup_list',
    'format_checkpoint_list',
    'format_history',
    'format_validation_result',
    'format_json',
    'print_error',
    'print_warning',
    'print_info',
    'print_success',
]
