"""Environment variable helpers for crucible settings.

Every runtime knob that the CLI exposes can also be supplied through a
``CRUCIBLE_*`` environment variable. These helpers read such variables with
type coercion and collect them into override dictionaries for the config
model.

Usage:
    from crucible.utils.env import get_env, collect_overrides

    level = get_env("CRUCIBLE_LOG_LEVEL", default="INFO")
    interval = get_env("CRUCIBLE_SAMPLE_INTERVAL", default=5, as_type=int)

    # {"duration_seconds": 60} when CRUCIBLE_DURATION=60 is set
    overrides = collect_overrides({"CRUCIBLE_DURATION": ("duration_seconds", int)})
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from typing import Any, TypeVar, overload

T = TypeVar("T")

ENV_PREFIX = "CRUCIBLE_"

_FALSE_STRINGS = ("false", "0", "", "no", "off")


class EnvVarError(Exception):
    """Base exception for environment variable errors."""

    pass


class EnvVarTypeError(EnvVarError):
    """Raised when an environment variable cannot be converted."""

    def __init__(self, name: str, value: str, expected_type: type) -> None:
        self.name = name
        self.value = value
        self.expected_type = expected_type
        super().__init__(f"Cannot convert {name}='{value}' to {expected_type.__name__}")


def _coerce(name: str, value: str, as_type: type) -> Any:
    try:
        if as_type is bool:
            return value.strip().lower() not in _FALSE_STRINGS
        if as_type is list:
            return [item.strip() for item in value.split(",") if item.strip()]
        return as_type(value)
    except (ValueError, TypeError) as e:
        raise EnvVarTypeError(name, value, as_type) from e


@overload
def get_env(name: str, *, default: T, as_type: type[T] | None = ...) -> T:
    ...


@overload
def get_env(name: str, *, as_type: type[T]) -> T | None:
    ...


@overload
def get_env(name: str) -> str | None:
    ...


def get_env(
    name: str,
    *,
    default: Any = None,
    as_type: type | None = None,
) -> Any:
    """Get an environment variable with optional type coercion.

    Args:
        name: Environment variable name.
        default: Returned when the variable is not set.
        as_type: Target type. ``bool`` treats "false", "0", "", "no" and
            "off" as False; ``list`` splits on commas.

    Returns:
        The converted value, or ``default`` when unset.

    Raises:
        EnvVarTypeError: If the value cannot be converted.
    """
    value = os.environ.get(name)
    if value is None:
        return default
    if as_type is not None:
        return _coerce(name, value, as_type)
    return value


def collect_overrides(mapping: Mapping[str, tuple[str, type]]) -> dict[str, Any]:
    """Build a field-override dict from the variables that are set.

    Args:
        mapping: Environment variable name -> (field name, type).

    Returns:
        Dictionary of field name -> converted value, for set variables only.
    """
    overrides: dict[str, Any] = {}
    for env_name, (field, as_type) in mapping.items():
        value = get_env(env_name, as_type=as_type)
        if value is not None:
            overrides[field] = value
    return overrides
