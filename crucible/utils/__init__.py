"""Crucible utilities - shared helper functions and utilities."""

from crucible.utils.env import (
    EnvVarError,
    EnvVarTypeError,
    collect_overrides,
    get_env,
)
from crucible.utils.logger import (
    Logger,
    LoggerNotConfiguredError,
    LogLevel,
)

__all__ = [
    # Env
    "EnvVarError",
    "EnvVarTypeError",
    "LogLevel",
    # Logger
    "Logger",
    "LoggerNotConfiguredError",
    "collect_overrides",
    "get_env",
]
