"""Sample collector: periodic CPU usage and temperature telemetry.

Runs on its own thread next to the stress coordinator. The two never signal
each other; the collector stops on its own deadline and the caller joins it.
"""

from __future__ import annotations

import threading
import time
from collections.abc import Callable

from crucible.models.cpu_models import CpuTopology, MonitorOutcome
from crucible.stress.monitoring import CPUMonitor
from crucible.telemetry import TelemetryLogger


class SampleCollector:
    """Reads CPU counters on a drift-free schedule and emits metrics.

    Each tick writes a ``cpu_usage`` row (``<percent>,%``) and, when the
    sensor answers with a positive value, a ``cpu_temperature`` row
    (``<celsius>,C``). Dead hwmon entries report 0 and count as no reading.

    Example:
        >>> collector = SampleCollector(telemetry, get_cpu_monitor())
        >>> outcome = collector.monitor_loop(duration_seconds=60, sample_interval_seconds=5)
        >>> outcome.samples
        12
    """

    def __init__(
        self,
        telemetry: TelemetryLogger,
        monitor: CPUMonitor,
        topology: CpuTopology | None = None,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        """Create a collector.

        Args:
            telemetry: Shared logger receiving the metric rows.
            monitor: Platform counter and sensor reader.
            topology: Logged once at start when given.
            clock: Monotonic time source for the schedule.
            sleep: Blocking sleep used between samples.
        """
        self.telemetry = telemetry
        self.monitor = monitor
        self.topology = topology
        self._clock = clock
        self._sleep = sleep
        self._outcome: MonitorOutcome | None = None
        self._thread: threading.Thread | None = None

    def monitor_loop(
        self, duration_seconds: float, sample_interval_seconds: float
    ) -> MonitorOutcome:
        """Sample until the deadline, scheduling ticks at absolute times.

        Ticks fall at start, start + interval, start + 2*interval, ... and
        stop once the next tick would land at or past the deadline. Sampling
        overhead never shifts later ticks.

        Returns:
            MonitorOutcome with sample counts and peaks.
        """
        if sample_interval_seconds <= 0:
            raise ValueError("sample_interval_seconds must be greater than zero")

        if self.topology is not None:
            self.telemetry.info(
                "CPU info",
                cores=self.topology.cores,
                threads=self.topology.threads,
            )

        previous = self.monitor.read_usage()
        if previous is None:
            self.telemetry.error("Failed to get initial CPU usage")
            return MonitorOutcome(success=False, error="initial usage read failed")

        start = self._clock()
        deadline = start + duration_seconds
        next_sample_time = start

        samples = temperature_samples = failed_reads = 0
        max_usage: float | None = None
        max_temperature: float | None = None
        temperature_noted = False

        while next_sample_time < deadline:
            delay = next_sample_time - self._clock()
            if delay > 0:
                self._sleep(delay)
            next_sample_time += sample_interval_seconds

            current = self.monitor.read_usage()
            if current is None:
                self.telemetry.error("Failed to get CPU usage")
                failed_reads += 1
                continue

            usage = current.busy_percent_since(previous)
            previous = current
            self.telemetry.metric("cpu_usage", usage, "%")
            samples += 1
            max_usage = usage if max_usage is None else max(max_usage, usage)

            temperature = self.monitor.get_temperature()
            if temperature is None or temperature <= 0:
                if not temperature_noted:
                    self.telemetry.info(
                        "CPU temperature unavailable",
                        sensor_chip=self.monitor.sensor_chip,
                    )
                    temperature_noted = True
                continue

            self.telemetry.metric("cpu_temperature", temperature, "C")
            temperature_samples += 1
            max_temperature = (
                temperature if max_temperature is None else max(max_temperature, temperature)
            )

        self.telemetry.debug(
            "CPU monitoring finished", samples=samples, failed_reads=failed_reads
        )
        return MonitorOutcome(
            success=True,
            samples=samples,
            temperature_samples=temperature_samples,
            failed_reads=failed_reads,
            max_usage_percent=max_usage,
            max_temperature_c=max_temperature,
        )

    # -------------------------------------------------------------------------
    # Thread helpers
    # -------------------------------------------------------------------------

    def start(self, duration_seconds: float, sample_interval_seconds: float) -> None:
        """Run ``monitor_loop`` on a background thread."""
        if self._thread is not None:
            raise RuntimeError("collector already started")
        self._thread = threading.Thread(
            target=self._run,
            args=(duration_seconds, sample_interval_seconds),
            name="crucible-monitor",
            daemon=True,
        )
        self._thread.start()

    def join(self) -> MonitorOutcome:
        """Wait for the background loop and return its outcome."""
        if self._thread is None:
            raise RuntimeError("collector not started")
        self._thread.join()
        assert self._outcome is not None
        return self._outcome

    def _run(self, duration_seconds: float, sample_interval_seconds: float) -> None:
        try:
            self._outcome = self.monitor_loop(duration_seconds, sample_interval_seconds)
        except Exception as e:
            self.telemetry.error("CPU monitor stopped unexpectedly", reason=e)
            self._outcome = MonitorOutcome(success=False, error=str(e))
