"""Pydantic model for the validated, immutable test configuration."""

from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator

from crucible.models.constants import (
    ALL_MODE_SEQUENCE,
    DEFAULT_DURATION_SECONDS,
    DEFAULT_ROTATION_MB,
    DEFAULT_SAMPLE_INTERVAL_SECONDS,
    DEFAULT_SENSOR_CHIP,
    SPIKE_DURATION_SECONDS,
    Component,
    TestMode,
)
from crucible.utils.env import collect_overrides
from crucible.utils.logger import LogLevel

# Environment variable -> (field, type) for TestConfig.from_env()
ENV_OVERRIDES: dict[str, tuple[str, type]] = {
    "CRUCIBLE_MODE": ("mode", str),
    "CRUCIBLE_DURATION": ("duration_seconds", int),
    "CRUCIBLE_SAMPLE_INTERVAL": ("sample_interval_seconds", float),
    "CRUCIBLE_INTENSITY": ("intensity", int),
    "CRUCIBLE_LOG_DIR": ("log_directory", str),
    "CRUCIBLE_VERBOSE": ("verbose", bool),
    "CRUCIBLE_ROTATION_MB": ("rotation_mb", int),
    "CRUCIBLE_BUFFERED": ("buffered", bool),
    "CRUCIBLE_SENSOR_CHIP": ("sensor_chip", str),
}


def phase_seconds(mode: TestMode, duration_seconds: int) -> int:
    """Return how long the stress phase for ``mode`` keeps workers busy."""
    if mode == TestMode.BASELINE:
        return 0
    if mode == TestMode.SPIKE:
        return SPIKE_DURATION_SECONDS
    if mode == TestMode.ALL:
        return sum(phase_seconds(m, duration_seconds) for m in ALL_MODE_SEQUENCE)
    return duration_seconds


class TestConfig(BaseModel):
    """Validated test configuration.

    Built once by the CLI (or tests) and never mutated by the core.
    """

    __test__ = False  # Tell pytest not to collect this as a test class

    model_config = ConfigDict(frozen=True)

    # Components to test
    cpu_enabled: bool = Field(True, description="Run the CPU suite")
    memory_enabled: bool = Field(True, description="Run the memory suite")
    storage_enabled: bool = Field(True, description="Run the storage suite")
    network_enabled: bool = Field(True, description="Run the network suite")
    io_enabled: bool = Field(True, description="Run the external I/O suite")

    # Test configuration
    mode: TestMode = Field(TestMode.ALL, description="Stress mode to run")
    duration_seconds: int = Field(
        DEFAULT_DURATION_SECONDS, gt=0, description="Test duration in seconds"
    )
    sample_interval_seconds: float = Field(
        DEFAULT_SAMPLE_INTERVAL_SECONDS,
        gt=0,
        description="Seconds between monitor samples",
    )
    intensity: int = Field(
        100, ge=1, le=100, description="Worker duty cycle percentage"
    )

    # Logging configuration
    log_directory: Path = Field(
        default_factory=Path.cwd, description="Directory for telemetry files"
    )
    verbose: bool = Field(False, description="Record DEBUG lines in the session log")
    rotation_mb: int = Field(
        DEFAULT_ROTATION_MB, ge=0, description="Rotate sinks above this size (0=off)"
    )
    buffered: bool = Field(True, description="Buffer telemetry writes")
    sensor_chip: str = Field(
        DEFAULT_SENSOR_CHIP, description="Substring matched against sensor chips"
    )

    @model_validator(mode="after")
    def _check_consistency(self) -> "TestConfig":
        if self.sample_interval_seconds > self.duration_seconds:
            raise ValueError(
                "sample_interval_seconds must not exceed duration_seconds "
                f"({self.sample_interval_seconds} > {self.duration_seconds})"
            )
        if not self.enabled_components():
            raise ValueError("at least one component must be enabled")
        return self

    @classmethod
    def from_env(cls, **values: Any) -> "TestConfig":
        """Build a config from CRUCIBLE_* variables, then explicit values.

        Explicit keyword values win over the environment.
        """
        merged = collect_overrides(ENV_OVERRIDES)
        merged.update({k: v for k, v in values.items() if v is not None})
        return cls(**merged)

    @property
    def log_level(self) -> LogLevel:
        """Session log threshold implied by ``verbose``."""
        return LogLevel.DEBUG if self.verbose else LogLevel.INFO

    def enabled_components(self) -> list[Component]:
        """Return enabled components in run order."""
        flags = {
            Component.CPU: self.cpu_enabled,
            Component.MEMORY: self.memory_enabled,
            Component.STORAGE: self.storage_enabled,
            Component.NETWORK: self.network_enabled,
            Component.IO: self.io_enabled,
        }
        return [component for component, enabled in flags.items() if enabled]

    def monitor_window_seconds(self) -> int:
        """Seconds the CPU monitor samples for: the longer of duration and stress."""
        return max(self.duration_seconds, phase_seconds(self.mode, self.duration_seconds))

    def estimate_duration_seconds(self) -> int:
        """Estimate wall-clock seconds for all enabled suites.

        Only the CPU suite does timed work; other components finish at once.
        """
        if Component.CPU not in self.enabled_components():
            return 0
        return self.monitor_window_seconds()

    def describe(self) -> dict[str, Any]:
        """Return a flat, log-friendly view of the configuration."""
        return {
            "components": ",".join(c.value for c in self.enabled_components()),
            "mode": self.mode.value,
            "duration_seconds": self.duration_seconds,
            "sample_interval_seconds": self.sample_interval_seconds,
            "intensity": self.intensity,
            "log_directory": str(self.log_directory),
            "rotation_mb": self.rotation_mb,
            "buffered": self.buffered,
        }
