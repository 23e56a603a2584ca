"""Shell audit log.

Every component of the job shell records what it did here: the
scheduler notes each admission pass, the reaper notes completions, the
controller notes kills and failed signals.  The log is what the ``log``
command prints, and what ``--debug`` echoes after each command.

- **LogLevel** — severity levels ordered for filtering (DEBUG < ERROR).
- **LogEntry** — a single structured record (level, message, source, pid).
- **Logger** — an append-only log with filtering and clearing.

Design choices:
    - **IntEnum for levels** so they compare naturally with ``<``.
    - **Frozen dataclass for entries** — log records are immutable.
    - **Filter returns a list, not a generator** — the log is small and
      callers usually iterate more than once.
"""

from dataclasses import dataclass
from enum import IntEnum


class LogLevel(IntEnum):
    """Severity levels for log entries."""

    DEBUG = 0
    INFO = 1
    WARNING = 2
    ERROR = 3


@dataclass(frozen=True)
class LogEntry:
    """A single structured log record.

    Attributes:
        level: The severity of this event.
        message: A human-readable description of what happened.
        source: The component that generated the event (e.g. "scheduler").
        pid: The job the event concerns, or None for table-wide events.

    """

    level: LogLevel
    message: str
    source: str
    pid: int | None = None

    def __str__(self) -> str:
        """Format as ``[LEVEL] source: message``."""
        return f"[{self.level.name}] {self.source}: {self.message}"


class Logger:
    """Append-only log buffer with filtering."""

    def __init__(self) -> None:
        """Create an empty logger."""
        self._entries: list[LogEntry] = []

    @property
    def entries(self) -> list[LogEntry]:
        """Return all log entries in chronological order."""
        return list(self._entries)

    def __len__(self) -> int:
        """Return the number of entries recorded so far."""
        return len(self._entries)

    def log(
        self,
        level: LogLevel,
        message: str,
        *,
        source: str,
        pid: int | None = None,
    ) -> None:
        """Append a new entry to the log.

        Args:
            level: Severity of the event.
            message: Human-readable event description.
            source: Component that generated the event.
            pid: Job the event concerns, if any.

        """
        self._entries.append(LogEntry(level=level, message=message, source=source, pid=pid))

    def debug(self, message: str, *, source: str, pid: int | None = None) -> None:
        """Append a DEBUG entry."""
        self.log(LogLevel.DEBUG, message, source=source, pid=pid)

    def info(self, message: str, *, source: str, pid: int | None = None) -> None:
        """Append an INFO entry."""
        self.log(LogLevel.INFO, message, source=source, pid=pid)

    def warning(self, message: str, *, source: str, pid: int | None = None) -> None:
        """Append a WARNING entry."""
        self.log(LogLevel.WARNING, message, source=source, pid=pid)

    def error(self, message: str, *, source: str, pid: int | None = None) -> None:
        """Append an ERROR entry."""
        self.log(LogLevel.ERROR, message, source=source, pid=pid)

    def filter(
        self,
        *,
        min_level: LogLevel | None = None,
        source: str | None = None,
        pid: int | None = None,
    ) -> list[LogEntry]:
        """Return entries matching the given criteria.

        Args:
            min_level: If set, only return entries at or above this level.
            source: If set, only return entries from this source.
            pid: If set, only return entries about this job.

        Returns:
            A filtered list of log entries.

        """
        result = self._entries
        if min_level is not None:
            result = [e for e in result if e.level >= min_level]
        if source is not None:
            result = [e for e in result if e.source == source]
        if pid is not None:
            result = [e for e in result if e.pid == pid]
        return result if result is not self._entries else list(result)

    def since(self, index: int) -> list[LogEntry]:
        """Return the entries appended after the first *index* entries."""
        return self._entries[index:]

    def clear(self) -> None:
        """Remove all log entries."""
        self._entries.clear()
