"""CPU suite: stress phases on the calling thread, monitor on its own thread."""

from __future__ import annotations

from crucible.backends.system import System
from crucible.models.config_models import TestConfig
from crucible.models.constants import ALL_MODE_SEQUENCE, Component, TestMode
from crucible.models.cpu_models import SuiteOutcome
from crucible.stress.base import ComponentSuite
from crucible.stress.collector import SampleCollector
from crucible.stress.coordinator import StressCoordinator
from crucible.stress.monitoring import CPUMonitor, get_cpu_monitor
from crucible.telemetry import TelemetryLogger


class CpuTestSuite(ComponentSuite):
    """Runs the configured CPU stress mode(s) while sampling CPU metrics.

    The monitor thread starts first and samples for the whole window
    (the longer of the configured duration and the stress phases). Stress
    phases run in sequence on the calling thread. The suite joins the
    monitor only after the last phase returns.
    """

    component = Component.CPU

    def __init__(
        self,
        config: TestConfig,
        telemetry: TelemetryLogger,
        monitor: CPUMonitor | None = None,
        system: System | None = None,
        coordinator: StressCoordinator | None = None,
    ) -> None:
        self.config = config
        self.telemetry = telemetry
        self.monitor = monitor or get_cpu_monitor(config.sensor_chip)
        self.system = system or System()
        self.coordinator = coordinator or StressCoordinator(
            telemetry, intensity=config.intensity
        )

    def modes(self) -> tuple[TestMode, ...]:
        """Stress modes to run, in order."""
        if self.config.mode == TestMode.ALL:
            return ALL_MODE_SEQUENCE
        return (self.config.mode,)

    def run(self) -> SuiteOutcome:
        topology = self.system.get_topology()
        if topology is None:
            self.telemetry.error("Failed to get CPU information")
            return SuiteOutcome(success=False)

        collector = SampleCollector(self.telemetry, self.monitor, topology)
        collector.start(
            self.config.monitor_window_seconds(),
            self.config.sample_interval_seconds,
        )

        phases = []
        for mode in self.modes():
            self.telemetry.info(f"Running CPU {mode.value} test")
            phases.append(
                self.coordinator.run_stress(
                    mode, self.config.duration_seconds, topology
                )
            )

        monitor_outcome = collector.join()
        success = all(phase.success for phase in phases) and monitor_outcome.success

        return SuiteOutcome(
            success=success,
            topology={"cores": topology.cores, "threads": topology.threads},
            phases=phases,
            monitor=monitor_outcome,
        )
