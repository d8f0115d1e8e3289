"""Formatting utilities for display"""

from typing import Union

SIZE_UNITS = ['B', 'KB', 'MB', 'GB', 'TB']


def format_size(size_bytes: Union[int, float]) -> str:
    """Backup size for listings, e.g. '1.5 MB'"""
    if size_bytes < 0:
        return "Invalid size"

    size = float(size_bytes)
    unit = 0
    while size >= 1024 and unit < len(SIZE_UNITS) - 1:
        size /= 1024
        unit += 1

    if unit == 0:
        return f"{int(size)} B"
    return f"{size:.1f} {SIZE_UNITS[unit]}"


def format_duration(seconds: float) -> str:
    """Measured run time of an update or history record"""
    if seconds < 0:
        return "Invalid duration"
    if seconds < 1:
        return f"{seconds * 1000:.0f}ms"
    if seconds < 60:
        return f"{seconds:.1f}s"
    if seconds < 3600:
        minutes, secs = divmod(int(seconds), 60)
        return f"{minutes}m {secs}s"
    hours, rest = divmod(int(seconds), 3600)
    return f"{hours}h {rest // 60}m"


def format_plan_duration(seconds: float) -> str:
    """Whole-second duration as used in plan reports, e.g. '1m 7s'"""
    total = int(seconds)
    if total < 60:
        return f"{total}s"
    minutes, secs = divmod(total, 60)
    if minutes < 60:
        return f"{minutes}m {secs}s"
    hours, minutes = divmod(minutes, 60)
    return f"{hours}h {minutes}m {secs}s"


def pluralize(count: int, singular: str, plural: str = None) -> str:
    """'1 file', '3 files'"""
    if plural is None:
        plural = singular + 's'
    return f"{count} {singular if count == 1 else plural}"
