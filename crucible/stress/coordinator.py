"""CPU stress coordinator: spawns, bounds and joins stress worker threads.

Mode policy:

    baseline  0 workers                  immediate success
    stress    topology.threads workers   duration_seconds
    load      topology.threads // 2      duration_seconds
    spike     topology.threads workers   fixed 30 seconds

Workers burn CPU in NumPy square-root kernels (which release the GIL, so
threads really occupy separate cores) and poll a shared CancellationToken
between kernels. The coordinator's only blocking point is the join barrier.

Known hazard: if starting worker k fails, workers 0..k-1 are cancelled and
joined before failure is reported. Their in-progress computation is simply
abandoned. The kernels have no side effects, so there is nothing to roll
back, but the phase's iteration counts are incomplete and must not be read
as a measurement.
"""

from __future__ import annotations

import threading
import time
from collections.abc import Callable
from typing import Any

import numpy as np

from crucible.models.constants import SPIKE_DURATION_SECONDS, TestMode
from crucible.models.cpu_models import (
    CpuTopology,
    StressOutcome,
    StressPlan,
    WorkerResult,
)
from crucible.stress.cancellation import CancellationToken
from crucible.telemetry import TelemetryLogger
from crucible.utils.logger import Logger

# Duty-cycle slice for intensity < 100
WORK_SLICE_SECONDS = 0.1
KERNEL_SIZE = 250_000

ThreadFactory = Callable[..., threading.Thread]


def make_sqrt_kernel(size: int = KERNEL_SIZE) -> Callable[[], float]:
    """Return a CPU-bound callable that sums square roots of ``size`` values."""
    values = np.arange(size, dtype=np.float64)
    scratch = np.empty_like(values)

    def kernel() -> float:
        np.sqrt(values, out=scratch)
        return float(scratch.sum())

    return kernel


class StressCoordinator:
    """Runs one stress phase at a time against a shared telemetry logger.

    Example:
        >>> coordinator = StressCoordinator(telemetry, intensity=100)
        >>> outcome = coordinator.run_stress(TestMode.LOAD, 60, topology)
        >>> outcome.success
        True
    """

    def __init__(
        self,
        telemetry: TelemetryLogger,
        intensity: int = 100,
        clock: Callable[[], float] = time.monotonic,
        thread_factory: ThreadFactory = threading.Thread,
        kernel_factory: Callable[[], Callable[[], Any]] = make_sqrt_kernel,
    ) -> None:
        """Initialize the coordinator.

        Args:
            telemetry: Shared logger for phase events.
            intensity: Worker duty cycle percentage (1-100).
            clock: Monotonic time source for deadlines.
            thread_factory: Creates worker threads (``threading.Thread``).
            kernel_factory: Builds one CPU-bound callable per worker.
        """
        if not 1 <= intensity <= 100:
            raise ValueError(f"intensity must be within 1-100, got {intensity}")
        self.telemetry = telemetry
        self.intensity = intensity
        self._clock = clock
        self._thread_factory = thread_factory
        self._kernel_factory = kernel_factory
        self._log = Logger.child("stress")

    @staticmethod
    def plan(mode: TestMode, duration_seconds: int, topology: CpuTopology) -> StressPlan:
        """Resolve worker count and run length for a single mode.

        Raises:
            ValueError: For ``TestMode.ALL``, which is a sequence of modes.
        """
        if mode == TestMode.BASELINE:
            return StressPlan(mode=mode, threads=0, duration_seconds=0)
        if mode == TestMode.STRESS:
            return StressPlan(mode, topology.threads, duration_seconds)
        if mode == TestMode.LOAD:
            return StressPlan(mode, topology.threads // 2, duration_seconds)
        if mode == TestMode.SPIKE:
            return StressPlan(mode, topology.threads, SPIKE_DURATION_SECONDS)
        raise ValueError(f"Invalid test mode for CPU stress test: {mode}")

    def run_stress(
        self, mode: TestMode, duration_seconds: int, topology: CpuTopology
    ) -> StressOutcome:
        """Run one stress phase and wait for every worker to finish.

        Returns:
            StressOutcome; ``success`` is False if a worker could not be
            started or raised.
        """
        plan = self.plan(mode, duration_seconds, topology)

        if plan.threads == 0:
            if mode != TestMode.BASELINE:
                self.telemetry.warning(
                    "No worker threads for CPU stress mode", mode=mode
                )
            return StressOutcome(
                mode=mode,
                success=True,
                threads_requested=0,
                threads_started=0,
                duration_seconds=plan.duration_seconds,
            )

        self.telemetry.info(
            "Starting CPU stress test",
            mode=mode,
            threads=plan.threads,
            duration_seconds=plan.duration_seconds,
            intensity=self.intensity,
        )

        started_at = self._clock()
        token = CancellationToken(started_at + plan.duration_seconds, self._clock)
        slots: list[WorkerResult | None] = [None] * plan.threads
        threads: list[threading.Thread] = []

        for index in range(plan.threads):
            try:
                thread = self._thread_factory(
                    target=self._worker,
                    args=(index, token, slots),
                    name=f"crucible-stress-{index}",
                    daemon=True,
                )
                thread.start()
            except Exception as e:
                self.telemetry.error(
                    "Failed to create CPU stress thread", index=index, reason=e
                )
                token.cancel()
                for started in threads:
                    started.join()
                return StressOutcome(
                    mode=mode,
                    success=False,
                    threads_requested=plan.threads,
                    threads_started=len(threads),
                    duration_seconds=plan.duration_seconds,
                    elapsed_seconds=self._clock() - started_at,
                    workers=[slot for slot in slots if slot is not None],
                    error=f"failed to start worker {index}: {e}",
                )
            threads.append(thread)

        for thread in threads:
            thread.join()

        workers = [
            slot if slot is not None else WorkerResult(index=i, error="no result")
            for i, slot in enumerate(slots)
        ]
        failed = [worker for worker in workers if not worker.ok]
        for worker in failed:
            self.telemetry.error(
                "CPU stress worker failed", index=worker.index, reason=worker.error
            )

        outcome = StressOutcome(
            mode=mode,
            success=not failed,
            threads_requested=plan.threads,
            threads_started=len(threads),
            duration_seconds=plan.duration_seconds,
            elapsed_seconds=self._clock() - started_at,
            workers=workers,
            error=f"{len(failed)} worker(s) failed" if failed else None,
        )
        self.telemetry.info(
            "CPU stress test completed",
            mode=mode,
            elapsed_seconds=outcome.elapsed_seconds,
            iterations=outcome.total_iterations,
        )
        return outcome

    def _worker(
        self,
        index: int,
        token: CancellationToken,
        slots: list[WorkerResult | None],
    ) -> None:
        iterations = 0
        busy_seconds = WORK_SLICE_SECONDS * self.intensity / 100
        idle_seconds = WORK_SLICE_SECONDS - busy_seconds
        try:
            kernel = self._kernel_factory()
            while not token.should_stop():
                slice_start = self._clock()
                while not token.should_stop():
                    kernel()
                    iterations += 1
                    if self._clock() - slice_start >= busy_seconds:
                        break
                if idle_seconds > 0:
                    token.wait(idle_seconds)
        except Exception as e:
            self._log.debug(f"Worker {index} raised: {e!r}")
            slots[index] = WorkerResult(index=index, iterations=iterations, error=str(e))
            return
        slots[index] = WorkerResult(index=index, iterations=iterations)
