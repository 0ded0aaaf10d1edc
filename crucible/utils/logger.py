"""Diagnostic logging for crucible.

This is the process-level console log (what the tool is doing), as opposed
to the telemetry files written by ``crucible.telemetry.TelemetryLogger``.

Usage:
    from crucible.utils.logger import Logger

    # Configure once at startup (the CLI does this)
    Logger.configure(level="INFO", output="stderr")

    # Get a logger anywhere in the codebase
    log = Logger.get("stress")
    log.info("Starting CPU stress phase...")

    # Library code that must never fail on missing configuration
    Logger.child("telemetry").warning("Rotation failed")
"""

import logging
import sys
from enum import Enum
from pathlib import Path
from typing import TextIO


class LogLevel(Enum):
    """Log levels, ordered from most to least verbose."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"

    def to_logging_level(self) -> int:
        """Convert to Python logging level."""
        level: int = getattr(logging, self.value)
        return level

    @classmethod
    def parse(cls, level: "str | LogLevel") -> "LogLevel":
        """Accept a LogLevel or a case-insensitive level name."""
        if isinstance(level, LogLevel):
            return level
        return cls(level.strip().upper())

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, LogLevel):
            return NotImplemented
        return self.to_logging_level() < other.to_logging_level()

    def __ge__(self, other: object) -> bool:
        if not isinstance(other, LogLevel):
            return NotImplemented
        return self.to_logging_level() >= other.to_logging_level()


class LoggerNotConfiguredError(Exception):
    """Raised when trying to use Logger before calling Logger.configure()."""

    def __init__(self) -> None:
        super().__init__(
            "Logger not configured. Call Logger.configure() at application startup."
        )


class Logger:
    """Centralized diagnostic logging for crucible.

    Must be configured once before ``get``. ``child`` is the non-raising
    variant used inside the core, where an unconfigured logger falls back to
    Python's last-resort stderr handler.

    Example:
        >>> Logger.configure(level="DEBUG")
        >>> Logger.get("monitor").debug("Sampling every 5s")
    """

    _configured: bool = False
    _root_name: str = "crucible"

    @classmethod
    def configure(
        cls,
        level: str | LogLevel = "INFO",
        output: str | Path | TextIO | None = None,
        timestamps: bool = True,
    ) -> None:
        """Configure the diagnostic logger.

        Args:
            level: Level name or LogLevel.
            output: Where to send logs:
                - None or "stderr": sys.stderr (default)
                - "stdout": sys.stdout
                - Path: file path
                - TextIO: any file-like object
            timestamps: Include timestamps in messages.
        """
        level = LogLevel.parse(level)

        logger = logging.getLogger(cls._root_name)
        logger.setLevel(level.to_logging_level())

        for existing_handler in logger.handlers[:]:
            logger.removeHandler(existing_handler)
            existing_handler.close()

        new_handler: logging.Handler
        if output is None or output == "stderr":
            new_handler = logging.StreamHandler(sys.stderr)
        elif output == "stdout":
            new_handler = logging.StreamHandler(sys.stdout)
        elif isinstance(output, str | Path):
            new_handler = logging.FileHandler(str(output))
        elif hasattr(output, "write"):
            new_handler = logging.StreamHandler(output)
        else:
            raise ValueError(f"Invalid output: {type(output)}")

        new_handler.setLevel(level.to_logging_level())

        parts = ["%(asctime)s"] if timestamps else []
        parts += ["%(levelname)s", "[%(name)s]", "%(message)s"]
        new_handler.setFormatter(logging.Formatter(" ".join(parts)))

        logger.addHandler(new_handler)
        logger.propagate = False

        cls._configured = True

    @classmethod
    def get(cls, name: str | None = None) -> logging.Logger:
        """Get a configured logger, appending ``name`` to "crucible.".

        Raises:
            LoggerNotConfiguredError: If configure() hasn't been called.
        """
        if not cls._configured:
            raise LoggerNotConfiguredError()
        return cls.child(name)

    @classmethod
    def child(cls, name: str | None = None) -> logging.Logger:
        """Get a logger without requiring configuration."""
        if name:
            return logging.getLogger(f"{cls._root_name}.{name}")
        return logging.getLogger(cls._root_name)

    @classmethod
    def set_level(cls, level: str | LogLevel) -> None:
        """Change log level without reconfiguring.

        Raises:
            LoggerNotConfiguredError: If configure() hasn't been called.
        """
        if not cls._configured:
            raise LoggerNotConfiguredError()

        level = LogLevel.parse(level)
        logger = logging.getLogger(cls._root_name)
        logger.setLevel(level.to_logging_level())
        for handler in logger.handlers:
            handler.setLevel(level.to_logging_level())

    @classmethod
    def is_configured(cls) -> bool:
        """Check if logger has been configured."""
        return cls._configured
