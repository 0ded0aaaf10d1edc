"""Data models for crucible configuration and results."""

from crucible.models.config_models import TestConfig
from crucible.models.constants import Component, TestMode
from crucible.models.cpu_models import (
    CpuTopology,
    MonitorOutcome,
    StressOutcome,
    StressPlan,
    SuiteOutcome,
    UsageSnapshot,
    WorkerResult,
)

__all__ = [
    "Component",
    "CpuTopology",
    "MonitorOutcome",
    "StressOutcome",
    "StressPlan",
    "SuiteOutcome",
    "TestConfig",
    "TestMode",
    "UsageSnapshot",
    "WorkerResult",
]
