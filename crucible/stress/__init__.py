"""Stress testing module for crucible.

This module provides:
- StressCoordinator: spawns and joins CPU stress workers per mode
- SampleCollector: samples CPU usage and temperature on its own thread
- CpuTestSuite: runs both concurrently for the configured mode(s)
- TestRunner: runs the suite of each enabled component
- RunResults: result emission (JSON/YAML/text)

Quick Start:
    from crucible.models import TestConfig
    from crucible.stress import TestRunner
    from crucible.telemetry import TelemetryLogger

    config = TestConfig(mode="stress", duration_seconds=60)
    with TelemetryLogger.open(config.log_directory) as telemetry:
        results = TestRunner(config, telemetry).run()
    results.emit_stdout()
"""

from crucible.stress.base import ComponentSuite
from crucible.stress.cancellation import CancellationToken
from crucible.stress.collector import SampleCollector
from crucible.stress.coordinator import StressCoordinator
from crucible.stress.cpu_suite import CpuTestSuite
from crucible.stress.results import OutputFormat, RunResults
from crucible.stress.runner import TestRunner

__all__ = [
    "CancellationToken",
    "ComponentSuite",
    "CpuTestSuite",
    "OutputFormat",
    "RunResults",
    "SampleCollector",
    "StressCoordinator",
    "TestRunner",
]
