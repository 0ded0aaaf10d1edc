"""Telemetry output for crucible test runs.

This module provides:
- TelemetryLogger: rotating session log plus metrics CSV, shared by threads
- FileSink: size-tracked append-only file used for each of the two outputs
"""

from crucible.telemetry.logger import (
    TelemetryInitError,
    TelemetryLogger,
    format_fields,
)
from crucible.telemetry.sinks import FileSink

__all__ = [
    "FileSink",
    "TelemetryInitError",
    "TelemetryLogger",
    "format_fields",
]
