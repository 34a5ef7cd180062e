"""
Leveled operator log for hostkit.

Every message is delivered to a console channel with a colored level prefix,
recorded in an in-process history, and written without color markers to two
files in the log directory:

- ``latest.log``, always the current session
- ``<yyyy-MM-dd_HH-mm-ss>.log``, named for the session start time

In ``overwrite`` mode (the default) both files are truncated on each call, so
only the most recent line survives on disk while the history keeps the whole
run. ``append`` mode keeps every line.
"""

from __future__ import annotations

import re
import threading
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import List, Optional, Protocol, Union

from hostkit.core.config import Config, LOG_FILE_MODES
from hostkit.utils.datetime_helpers import format_log_timestamp, local_now, session_file_stamp
from hostkit.utils.logging_config import get_logger

logger = get_logger(__name__)

RESET = "\033[0m"
_MARKER_PATTERN = re.compile(r"\033\[[;\d]*m")


class LogLevel(Enum):
    """Operator log levels with their console prefix, color marker and severity."""

    INFO = ("info", "\033[0m[SUNO]\033[0m", "\033[90m", 0)
    DEBUG = ("debug", "\033[36m[DEBUG]\033[0m", "\033[90m", 1)
    SOFT_WARNING = ("soft-warning", "\033[33m[WARNING]\033[0m", "\033[0m", 2)
    WARNING = ("warning", "\033[33m[WARNING]\033[0m", "\033[33m", 3)
    ERROR = ("error", "\033[31m[ERROR]\033[0m", "\033[31m", 4)

    def __init__(self, label: str, prefix: str, color: str, severity: int) -> None:
        self.label = label
        self.prefix = prefix
        self.color = color
        self.severity = severity

    @classmethod
    def parse(cls, value: Union["LogLevel", str]) -> "LogLevel":
        """
        Resolve a level from an enum member or a name.

        Accepts the labels ("soft-warning"), member names ("SOFT_WARNING"),
        underscore variants ("soft_warning") and "warn" for WARNING.

        Raises:
            ValueError: If the name does not match a level.
        """
        if isinstance(value, cls):
            return value
        key = str(value).strip().lower().replace("_", "-")
        if key == "warn":
            return cls.WARNING
        for level in cls:
            if level.label == key:
                return level
        raise ValueError(f"Unknown log level: {value!r}")


@dataclass(frozen=True)
class LogEntry:
    """A single recorded log message."""

    level: LogLevel
    message: str
    timestamp: datetime


class ConsoleChannel(Protocol):
    """Anything that can show a formatted line to the operator."""

    def __call__(self, text: str) -> None:
        ...


class DiagnosticSink(Protocol):
    """Interface the connection manager reports through."""

    def emit(self, level: Union[LogLevel, str], message: str) -> None:
        ...


def stdout_console(text: str) -> None:
    """Default console channel: one line on stdout, flushed immediately."""
    print(text, flush=True)


def strip_markers(text: str) -> str:
    """Remove ANSI color sequences from a string."""
    return _MARKER_PATTERN.sub("", text)


class LevelFormatter:
    """Turns a message into its colored console form for a given level."""

    def format(self, level: LogLevel, message: str) -> str:
        return f"{level.prefix} {level.color}{message}{RESET}"


class LogSink:
    """Console + file logger for operator-facing messages."""

    LATEST_LOG_NAME = "latest.log"

    def __init__(
        self,
        log_dir: Optional[Union[str, Path]] = None,
        console: Optional[ConsoleChannel] = None,
        *,
        started_at: Optional[datetime] = None,
        file_mode: Optional[str] = None,
        formatter: Optional[LevelFormatter] = None,
        delete_on_startup: Optional[bool] = None,
    ) -> None:
        mode = (file_mode or Config.LOG_FILE_MODE).strip().lower()
        if mode not in LOG_FILE_MODES:
            raise ValueError(f"Unsupported log file mode: {mode!r}")

        self._log_dir = Path(log_dir if log_dir is not None else Config.LOG_DIR)
        self._console = console or stdout_console
        self._started_at = started_at or local_now()
        self._file_mode = mode
        self._formatter = formatter or LevelFormatter()
        self._history: List[LogEntry] = []
        self._lock = threading.Lock()

        if delete_on_startup is None:
            delete_on_startup = Config.LOG_DELETE_ON_STARTUP
        if delete_on_startup:
            self.delete_log_files()

    @property
    def started_at(self) -> datetime:
        return self._started_at

    @property
    def file_mode(self) -> str:
        return self._file_mode

    @property
    def latest_log_path(self) -> Path:
        return self._log_dir / self.LATEST_LOG_NAME

    @property
    def session_log_path(self) -> Path:
        return self._log_dir / f"{session_file_stamp(self._started_at)}.log"

    @property
    def history(self) -> List[LogEntry]:
        """Snapshot of every entry emitted so far."""
        with self._lock:
            return list(self._history)

    def emit(self, level: Union[LogLevel, str], message: str) -> None:
        """
        Log a message at the given level.

        Args:
            level: A LogLevel or its name ("info", "warning", ...).
            message: Message text without color markers.

        Raises:
            ValueError: If ``level`` is not a known level name.
        """
        log_level = LogLevel.parse(level)
        now = local_now()
        line = self._formatter.format(log_level, message)
        file_line = f"[{format_log_timestamp(now)}] : {strip_markers(line)}"

        with self._lock:
            self._console(line)
            self._history.append(LogEntry(log_level, message, now))
            self._write_to_log_files(file_line)

    # Same call shape as the one-method log sinks used by handlers
    log = emit

    def info(self, message: str) -> None:
        self.emit(LogLevel.INFO, message)

    def debug(self, message: str) -> None:
        self.emit(LogLevel.DEBUG, message)

    def soft_warn(self, message: str) -> None:
        """Log a warning that is less severe than warn()."""
        self.emit(LogLevel.SOFT_WARNING, message)

    def warn(self, message: str) -> None:
        self.emit(LogLevel.WARNING, message)

    def error(self, message: str) -> None:
        self.emit(LogLevel.ERROR, message)

    def send_message(self, message: str) -> None:
        """Send a raw line to the console without recording it."""
        self._console(message)

    def delete_log_files(self) -> None:
        """Remove latest.log and the session file, if present."""
        for path in (self.latest_log_path, self.session_log_path):
            try:
                path.unlink(missing_ok=True)
            except OSError as exc:
                self.warn(f"Failed to delete log file {path}: {exc}")

    def _write_to_log_files(self, line: str) -> None:
        # Caller holds self._lock. Must not call emit(): a broken log
        # directory would recurse forever.
        open_mode = "w" if self._file_mode == "overwrite" else "a"
        try:
            self._log_dir.mkdir(parents=True, exist_ok=True)
            for path in (self.latest_log_path, self.session_log_path):
                # Lone surrogates (e.g. undecodable paths in driver errors)
                # are written escaped instead of failing the write
                with open(path, open_mode, encoding="utf-8", errors="backslashreplace") as handle:
                    handle.write(line + "\n")
        except (OSError, ValueError) as exc:
            logger.warning("log_file_write_failed", log_dir=str(self._log_dir), error=str(exc))
            self.send_message(str(exc))


__all__ = [
    "ConsoleChannel",
    "DiagnosticSink",
    "LevelFormatter",
    "LogEntry",
    "LogLevel",
    "LogSink",
    "stdout_console",
    "strip_markers",
]
