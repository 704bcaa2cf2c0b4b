"""
Display formatting helpers used by the JSON views.
"""
from datetime import datetime
from typing import Optional


def iso_datetime(value: Optional[datetime]) -> Optional[str]:
    """
    ISO-8601 timestamp, or None.

    Examples:
        iso_datetime(datetime(2025, 8, 18, 15, 30)) -> "2025-08-18T15:30:00"
        iso_datetime(None) -> None
    """
    if not isinstance(value, datetime):
        return None
    return value.isoformat()


def datetime_display(value: Optional[datetime], with_time: bool = True) -> str:
    """
    Date and time for detail views: MM/DD/YYYY HH:MM

    Examples:
        datetime_display(datetime(2025, 8, 18, 15, 30)) -> "08/18/2025 15:30"
        datetime_display(datetime(2025, 8, 18, 15, 30), with_time=False) -> "08/18/2025"
    """
    if not isinstance(value, datetime):
        return "-"

    if with_time:
        return value.strftime("%m/%d/%Y %H:%M")
    return value.strftime("%m/%d/%Y")


def file_size_display(size: Optional[int]) -> str:
    """
    Human readable byte count.

    Examples:
        file_size_display(512) -> "512 B"
        file_size_display(2048) -> "2.0 KB"
    """
    if size is None or size < 0:
        return "-"
    if size < 1024:
        return f"{size} B"
    if size < 1024 * 1024:
        return f"{size / 1024:.1f} KB"
    return f"{size / (1024 * 1024):.1f} MB"
