"""Crucible - CPU stress testing with concurrent telemetry capture."""

from crucible.version.crucible_version import CRUCIBLE_VERSION, Version

__version__ = str(CRUCIBLE_VERSION)
__version_info__ = CRUCIBLE_VERSION

__all__ = [
    "CRUCIBLE_VERSION",
    "Version",
    "__version__",
    "__version_info__",
]
