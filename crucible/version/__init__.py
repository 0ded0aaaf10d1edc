"""Crucible version information."""

from crucible.version.crucible_version import CRUCIBLE_VERSION, Version

__all__ = ["CRUCIBLE_VERSION", "Version"]
