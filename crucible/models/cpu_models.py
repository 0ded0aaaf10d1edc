"""CPU sampling types and result models for the CPU suite."""

from dataclasses import dataclass
from typing import Any

from pydantic import BaseModel, Field

from crucible.models.constants import TestMode

# ============================================================================
# Sampling Types
# ============================================================================


@dataclass(frozen=True)
class UsageSnapshot:
    """Cumulative CPU tick counters at one point in time.

    Only meaningful as a delta against another snapshot.
    """

    total_ticks: int
    idle_ticks: int

    def busy_percent_since(self, previous: "UsageSnapshot") -> float:
        """Percentage of non-idle ticks between ``previous`` and this snapshot.

        Returns 0.0 when no ticks elapsed. Clamped to [0, 100] so counter
        resets or jitter never yield out-of-range values.
        """
        total_delta = self.total_ticks - previous.total_ticks
        idle_delta = self.idle_ticks - previous.idle_ticks

        if total_delta <= 0:
            return 0.0

        percent = 100.0 * (1.0 - idle_delta / total_delta)
        return max(0.0, min(100.0, percent))


@dataclass(frozen=True)
class CpuTopology:
    """Physical core and logical thread counts."""

    cores: int
    threads: int


@dataclass(frozen=True)
class StressPlan:
    """Worker count and run length resolved for one stress mode."""

    mode: TestMode
    threads: int
    duration_seconds: int


# ============================================================================
# Outcome Models
# ============================================================================


class WorkerResult(BaseModel):
    """What one stress worker reports back through its result slot."""

    index: int = Field(..., ge=0, description="Worker index within the phase")
    iterations: int = Field(0, ge=0, description="Completed computation slices")
    error: str | None = Field(None, description="Exception text if the worker failed")

    @property
    def ok(self) -> bool:
        return self.error is None


class StressOutcome(BaseModel):
    """Result of one stress phase."""

    mode: TestMode = Field(..., description="Stress mode that was run")
    success: bool = Field(..., description="True when every worker ran and finished")
    threads_requested: int = Field(..., ge=0, description="Workers in the plan")
    threads_started: int = Field(..., ge=0, description="Workers actually started")
    duration_seconds: int = Field(..., ge=0, description="Planned run length")
    elapsed_seconds: float = Field(0.0, ge=0, description="Measured run length")
    workers: list[WorkerResult] = Field(default_factory=list)
    error: str | None = Field(None, description="Phase-level failure reason")

    @property
    def total_iterations(self) -> int:
        return sum(worker.iterations for worker in self.workers)


class MonitorOutcome(BaseModel):
    """Result of one monitor loop."""

    success: bool = Field(..., description="False only if sampling could not start")
    samples: int = Field(0, ge=0, description="Usage samples emitted")
    temperature_samples: int = Field(0, ge=0, description="Temperature samples emitted")
    failed_reads: int = Field(0, ge=0, description="Ticks skipped on read failure")
    max_usage_percent: float | None = Field(None, description="Highest usage seen")
    max_temperature_c: float | None = Field(None, description="Highest temperature")
    error: str | None = Field(None, description="Reason the loop could not run")


class SuiteOutcome(BaseModel):
    """Combined result of the CPU suite: stress phases plus the monitor."""

    success: bool
    topology: dict[str, int] = Field(default_factory=dict)
    phases: list[StressOutcome] = Field(default_factory=list)
    monitor: MonitorOutcome | None = None

    def summary(self) -> dict[str, Any]:
        """Flatten into a results-friendly dictionary."""
        result: dict[str, Any] = {
            "success": self.success,
            "cores": self.topology.get("cores"),
            "threads": self.topology.get("threads"),
            "phases": {
                phase.mode.value: {
                    "success": phase.success,
                    "threads": phase.threads_started,
                    "elapsed_seconds": round(phase.elapsed_seconds, 2),
                    "iterations": phase.total_iterations,
                }
                for phase in self.phases
            },
        }
        if self.monitor is not None:
            result["samples"] = self.monitor.samples
            result["max_usage_percent"] = self.monitor.max_usage_percent
            result["max_temperature_c"] = self.monitor.max_temperature_c
        return result
