"""Constants for crucible models and commands."""

import sys

if sys.version_info >= (3, 11):  # noqa: UP036
    from enum import StrEnum
else:
    from backports.strenum import StrEnum  # noqa: UP035


class TestMode(StrEnum):
    """Stress test modes."""

    __test__ = False  # Tell pytest not to collect this as a test class

    BASELINE = "baseline"
    STRESS = "stress"
    LOAD = "load"
    SPIKE = "spike"
    ALL = "all"


class Component(StrEnum):
    """Hardware components that can be selected for testing."""

    CPU = "cpu"
    MEMORY = "memory"
    STORAGE = "storage"
    NETWORK = "network"
    IO = "io"


# Phase order used when running every mode in sequence
ALL_MODE_SEQUENCE = (TestMode.BASELINE, TestMode.LOAD, TestMode.STRESS, TestMode.SPIKE)

SPIKE_DURATION_SECONDS = 30

DEFAULT_DURATION_SECONDS = 300
DEFAULT_SAMPLE_INTERVAL_SECONDS = 5
DEFAULT_ROTATION_MB = 10
DEFAULT_SENSOR_CHIP = "coretemp"

SESSION_LOG_NAME = "session.log"
METRICS_LOG_NAME = "metrics.csv"
METRICS_CSV_HEADER = "timestamp,elapsed_seconds,metric,values"
