"""Rotating dual-sink telemetry logger.

Writes two files into one directory:

- ``session.log``: narrative lines ``[YYYY-MM-DD HH:MM:SS] [LEVEL] message``
- ``metrics.csv``: rows ``timestamp,elapsed_seconds,metric,values``

Usage:
    from crucible.telemetry import TelemetryLogger

    telemetry = TelemetryLogger()
    if telemetry.init("logs", level="INFO", rotation_mb=10, buffered=True):
        telemetry.info("CPU stress phase starting", threads=8)
        telemetry.metric("cpu_usage", 93.25, "%")
        telemetry.cleanup()

    # Or as a context manager
    with TelemetryLogger.open("logs") as telemetry:
        telemetry.metric("performance", cpu_percent=51.2, threads=4)

Every entry point except ``init`` and ``cleanup`` is a silent no-op while the
logger is uninitialized. One re-entrant lock guards the whole
check-rotate-write sequence, so workers, the monitor thread and the main
thread can share a single instance and never observe a half-rotated state.
"""

from __future__ import annotations

import threading
import time
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Any

from crucible.models.constants import (
    METRICS_CSV_HEADER,
    METRICS_LOG_NAME,
    SESSION_LOG_NAME,
)
from crucible.telemetry.sinks import FileSink
from crucible.utils.logger import Logger, LogLevel

BYTES_PER_MB = 1024 * 1024

TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"
ARCHIVE_STAMP_FORMAT = "%Y%m%d_%H%M%S"


class TelemetryInitError(Exception):
    """Raised by ``TelemetryLogger.open`` when initialization fails."""

    def __init__(self, directory: str | Path | None) -> None:
        self.directory = directory
        super().__init__(f"Failed to initialize telemetry logging in {directory}")


def _render(value: Any) -> str:
    if isinstance(value, float):
        text = f"{value:.2f}"
    elif isinstance(value, LogLevel):
        text = value.value
    else:
        text = str(value)
    # One record per line, always
    return text.replace("\r", " ").replace("\n", " ")


def format_fields(fields: dict[str, Any], separator: str = " ") -> str:
    """Render keyword fields as ``key=value`` pairs."""
    return separator.join(f"{key}={_render(value)}" for key, value in fields.items())


class TelemetryLogger:
    """Session and metric log for one test run.

    A handle object: create one per run and pass it to the suite, the
    coordinator and the monitor. It outlives them and is torn down with
    ``cleanup()``.
    """

    def __init__(
        self,
        now: Callable[[], datetime] = datetime.now,
        monotonic: Callable[[], float] = time.monotonic,
    ) -> None:
        """Create an uninitialized logger.

        Args:
            now: Wall-clock source for timestamps and archive names.
            monotonic: Clock for ``elapsed_seconds``.
        """
        self._now = now
        self._monotonic = monotonic
        self._lock = threading.RLock()
        self._diag = Logger.child("telemetry")

        self._initialized = False
        self._rotating = False
        self._directory: Path | None = None
        self._session: FileSink | None = None
        self._metrics: FileSink | None = None
        self._level = LogLevel.INFO
        self._buffered = True
        self._max_bytes = 0
        self._start = 0.0

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    @classmethod
    @contextmanager
    def open(
        cls,
        directory: str | Path | None,
        level: str | LogLevel = LogLevel.INFO,
        rotation_mb: int = 0,
        buffered: bool = True,
    ) -> Iterator[TelemetryLogger]:
        """Initialize a logger for the duration of a ``with`` block.

        Raises:
            TelemetryInitError: If ``init`` fails.
        """
        telemetry = cls()
        if not telemetry.init(directory, level, rotation_mb, buffered):
            raise TelemetryInitError(directory)
        try:
            yield telemetry
        finally:
            telemetry.cleanup()

    def init(
        self,
        directory: str | Path | None,
        level: str | LogLevel = LogLevel.INFO,
        rotation_mb: int = 0,
        buffered: bool = True,
    ) -> bool:
        """Create the directory, open both sinks and start the clock.

        Args:
            directory: Log directory; None or "" means the current directory.
            level: Lowest severity written to the session log.
            rotation_mb: Rotate once either sink exceeds this size; 0 disables.
            buffered: If False, every record is flushed immediately.

        Returns:
            True on success. False if already initialized (existing sinks
            are left untouched) or if the directory or files cannot be opened.
        """
        with self._lock:
            if self._initialized:
                self._diag.warning("Telemetry logger already initialized")
                return False

            level = LogLevel.parse(level)
            path = Path(directory) if directory else Path(".")

            try:
                path.mkdir(parents=True, exist_ok=True)
            except OSError as e:
                self._diag.error(f"Failed to create log directory {path}: {e}")
                return False

            session = FileSink(path / SESSION_LOG_NAME)
            metrics = FileSink(path / METRICS_LOG_NAME, header=METRICS_CSV_HEADER)
            try:
                session.open()
                metrics.open()
            except OSError as e:
                session.close()
                metrics.close()
                self._diag.error(f"Failed to open log files in {path}: {e}")
                return False

            self._directory = path
            self._session = session
            self._metrics = metrics
            self._level = level
            self._buffered = buffered
            self._max_bytes = max(0, rotation_mb) * BYTES_PER_MB
            self._start = self._monotonic()
            self._initialized = True

            try:
                self.info(
                    "Logging initialized",
                    level=level,
                    directory=path,
                    rotation_mb=rotation_mb,
                    buffering="enabled" if buffered else "disabled",
                )
            except Exception:
                self._release()
                raise
            return True

    def cleanup(self) -> None:
        """Flush and close both sinks and return to the uninitialized state."""
        with self._lock:
            if not self._initialized:
                return

            self.info("Logging system shutting down")
            self.flush()
            self._release()

    def _release(self) -> None:
        for sink in (self._session, self._metrics):
            if sink is None:
                continue
            try:
                sink.close()
            except OSError as e:
                self._diag.error(f"Failed to close {sink.path}: {e}")

        self._session = None
        self._metrics = None
        self._directory = None
        self._initialized = False

    # -------------------------------------------------------------------------
    # Accessors
    # -------------------------------------------------------------------------

    @property
    def is_initialized(self) -> bool:
        return self._initialized

    @property
    def level(self) -> LogLevel:
        return self._level

    def set_level(self, level: str | LogLevel) -> None:
        """Change the session log threshold, recording the change."""
        with self._lock:
            if not self._initialized:
                return
            level = LogLevel.parse(level)
            self.info("Changing log level", old=self._level, new=level)
            self._level = level

    def get_directory(self) -> Path | None:
        """Return the log directory, or None when uninitialized."""
        with self._lock:
            return self._directory if self._initialized else None

    def elapsed_seconds(self) -> float:
        """Seconds since ``init``; 0.0 when uninitialized."""
        if not self._initialized:
            return 0.0
        return self._monotonic() - self._start

    # -------------------------------------------------------------------------
    # Writing
    # -------------------------------------------------------------------------

    def log(self, level: str | LogLevel, message: str, /, **fields: Any) -> bool:
        """Append one line to the session log.

        Args:
            level: Record severity.
            message: Human-readable message.
            **fields: Extra ``key=value`` context appended after the message.

        Returns:
            True if the line was written.
        """
        with self._lock:
            if not self._initialized:
                return False
            level = LogLevel.parse(level)
            if level < self._level:
                return False

            self._rotate_if_needed()

            text = _render(message)
            if fields:
                text = f"{text} {format_fields(fields)}"
            line = f"[{self._now().strftime(TIMESTAMP_FORMAT)}] [{level.value}] {text}"

            flush = not self._buffered or level >= LogLevel.ERROR
            return self._write(self._session, line, flush)

    def debug(self, message: str, /, **fields: Any) -> bool:
        return self.log(LogLevel.DEBUG, message, **fields)

    def info(self, message: str, /, **fields: Any) -> bool:
        return self.log(LogLevel.INFO, message, **fields)

    def warning(self, message: str, /, **fields: Any) -> bool:
        return self.log(LogLevel.WARNING, message, **fields)

    def error(self, message: str, /, **fields: Any) -> bool:
        return self.log(LogLevel.ERROR, message, **fields)

    def critical(self, message: str, /, **fields: Any) -> bool:
        return self.log(LogLevel.CRITICAL, message, **fields)

    def metric(self, name: str, /, *values: Any, **fields: Any) -> bool:
        """Append one row to the metrics CSV.

        Positional ``values`` are written in order (floats with two
        decimals), followed by ``fields`` as ``key=value``; everything after
        the metric name forms the ``values`` column.

        Example:
            >>> telemetry.metric("cpu_usage", 23.456, "%")
            # 2025-03-20 10:00:05,5.0,cpu_usage,23.46,%

        Returns:
            True if the row was written.
        """
        with self._lock:
            if not self._initialized:
                return False

            self._rotate_if_needed()

            parts = [_render(value) for value in values]
            if fields:
                parts.append(format_fields(fields, separator=","))
            row = ",".join(
                [
                    self._now().strftime(TIMESTAMP_FORMAT),
                    f"{self.elapsed_seconds():.1f}",
                    _render(name),
                    ",".join(parts),
                ]
            )
            return self._write(self._metrics, row, not self._buffered)

    def flush(self) -> bool:
        """Force buffered records to disk.

        Returns:
            True if both sinks flushed; False when uninitialized or on error.
        """
        with self._lock:
            if not self._initialized:
                return False
            ok = True
            for sink in (self._session, self._metrics):
                if sink is None:
                    continue
                try:
                    sink.flush()
                except OSError as e:
                    self._diag.error(f"Failed to flush {sink.path}: {e}")
                    ok = False
            return ok

    # -------------------------------------------------------------------------
    # Rotation
    # -------------------------------------------------------------------------

    def rotate(self) -> bool:
        """Archive both sinks and start fresh ones.

        Both files are closed, renamed to ``session_<stamp>.log`` and
        ``metrics_<stamp>.csv`` (with ``_N`` appended if that name is taken),
        then reopened empty with the CSV header. A missing file is not an
        error. Any other rename failure fails the call and leaves the sinks
        closed; the next write reopens them.

        Returns:
            True if both sinks were rotated and reopened.
        """
        with self._lock:
            if not self._initialized:
                return False
            assert self._session is not None and self._metrics is not None

            stamp = self._now().strftime(ARCHIVE_STAMP_FORMAT)
            self._rotating = True
            try:
                self.flush()
                for sink in (self._session, self._metrics):
                    try:
                        sink.close()
                    except OSError as e:
                        self._diag.error(f"Failed to close {sink.path}: {e}")

                for sink in (self._session, self._metrics):
                    try:
                        sink.archive(stamp)
                    except OSError as e:
                        self._diag.error(f"Failed to rename {sink.path}: {e}")
                        return False

                if not self._ensure_open():
                    self._diag.error("Failed to open new log files after rotation")
                    return False

                self.info("Log files rotated")
                return True
            finally:
                self._rotating = False

    def _rotate_if_needed(self) -> None:
        if self._rotating or self._max_bytes == 0:
            return
        sizes = [s.size for s in (self._session, self._metrics) if s is not None]
        if any(size > self._max_bytes for size in sizes):
            self.rotate()

    def _ensure_open(self) -> bool:
        for sink in (self._session, self._metrics):
            if sink is None or sink.is_open:
                continue
            try:
                sink.open()
            except OSError as e:
                self._diag.error(f"Failed to reopen {sink.path}: {e}")
                return False
        return True

    def _write(self, sink: FileSink | None, line: str, flush: bool) -> bool:
        if sink is None or not self._ensure_open():
            return False
        try:
            sink.write(line)
            if flush:
                sink.flush()
        except OSError as e:
            self._diag.error(f"Failed to write {sink.path}: {e}")
            return False
        return True
