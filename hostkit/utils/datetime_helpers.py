"""
Date and time utilities for hostkit.

This module provides helper functions for consistent timestamp formatting in
log lines and log file names. Timestamps are local wall-clock time, matching
what an operator sees on the host console.
"""

from datetime import datetime
from typing import Optional

LOG_LINE_FORMAT = "%Y-%m-%d %H:%M:%S"
SESSION_FILE_FORMAT = "%Y-%m-%d_%H-%M-%S"


def local_now() -> datetime:
    """Return the current local time (naive)."""
    return datetime.now()


def format_log_timestamp(dt: Optional[datetime] = None) -> str:
    """
    Format a timestamp for the start of a log file line.

    Args:
        dt: Datetime object. If None, uses current local time.

    Returns:
        Timestamp string in yyyy-MM-dd HH:mm:ss format.
        Example: "2025-10-29 14:30:00"
    """
    if dt is None:
        dt = local_now()
    return dt.strftime(LOG_LINE_FORMAT)


def session_file_stamp(dt: datetime) -> str:
    """
    Format a session start time for use in a log file name.

    Args:
        dt: Session start time.

    Returns:
        Timestamp string in yyyy-MM-dd_HH-mm-ss format, safe for file names.
        Example: "2025-10-29_14-30-00"
    """
    return dt.strftime(SESSION_FILE_FORMAT)
