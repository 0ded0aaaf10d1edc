"""Runner that executes the suite for each enabled component.

Usage:
    from crucible.stress.runner import TestRunner

    with TelemetryLogger.open(config.log_directory) as telemetry:
        results = TestRunner(config, telemetry).run()
    results.emit_stdout()
"""

import time
from collections.abc import Callable

from crucible.models.config_models import TestConfig
from crucible.models.constants import Component
from crucible.stress.base import ComponentSuite
from crucible.stress.cpu_suite import CpuTestSuite
from crucible.stress.results import RunResults
from crucible.telemetry import TelemetryLogger

SuiteFactory = Callable[[TestConfig, TelemetryLogger], ComponentSuite]

DEFAULT_SUITES: dict[Component, SuiteFactory] = {
    Component.CPU: CpuTestSuite,
}


class TestRunner:
    """Runs each enabled component's suite and collects results.

    Components without a registered suite are recorded as skipped. A suite
    that raises is recorded as an error and the runner moves on.
    """

    __test__ = False  # Tell pytest not to collect this as a test class

    def __init__(
        self,
        config: TestConfig,
        telemetry: TelemetryLogger,
        suites: dict[Component, SuiteFactory] | None = None,
    ) -> None:
        self.config = config
        self.telemetry = telemetry
        self.suites = DEFAULT_SUITES if suites is None else suites

    def log_config(self) -> None:
        """Write the configuration and duration estimate to the session log."""
        self.telemetry.info("Starting performance test with configuration:")
        for key, value in self.config.describe().items():
            self.telemetry.info(f"  {key}: {value}")
        self.telemetry.info(
            "Estimated test duration",
            seconds=self.config.estimate_duration_seconds(),
        )

    def run(self) -> RunResults:
        results = RunResults()
        self.log_config()
        started = time.monotonic()

        for component in self.config.enabled_components():
            name = component.value
            factory = self.suites.get(component)
            if factory is None:
                self.telemetry.warning(f"No {name} test suite available, skipping")
                results.add_skipped(name, "no test suite for this component")
                continue

            self.telemetry.info(f"Starting {name} tests")
            try:
                outcome = factory(self.config, self.telemetry).run()
            except Exception as e:
                self.telemetry.error(f"{name} tests aborted", reason=e)
                results.add_error(name, str(e))
                continue

            if outcome.success:
                results.add_result(name, outcome.summary())
            else:
                results.add_error(name, f"{name} tests failed", outcome.summary())

        self.telemetry.info(
            "All tests completed", seconds=round(time.monotonic() - started)
        )
        return results
