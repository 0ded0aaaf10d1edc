#!/usr/bin/env python3
"""Demo script showing a short CPU load phase with live telemetry.

This script demonstrates:
1. Opening a rotating telemetry logger
2. Sampling CPU usage and temperature on a background thread
3. Running a load phase (half the logical threads) alongside it
4. Reading back the metrics file

Run with: python examples/telemetry_demo.py [log-dir]

Note: Temperature rows appear only where psutil exposes a sensor chip
whose name contains "coretemp" (most Intel Linux machines).
"""

from __future__ import annotations

import sys
import tempfile
from pathlib import Path


def main() -> None:
    """Run the telemetry demo."""
    from crucible.backends import System
    from crucible.models import TestMode
    from crucible.stress import SampleCollector, StressCoordinator
    from crucible.stress.monitoring import get_cpu_monitor
    from crucible.telemetry import TelemetryLogger

    log_dir = Path(sys.argv[1]) if len(sys.argv) > 1 else Path(tempfile.mkdtemp())

    print("=" * 60)
    print("Crucible Telemetry Demo")
    print("=" * 60)
    print()

    topology = System().get_topology()
    if topology is None:
        print("Could not determine CPU topology.")
        return
    print(f"CPU: {topology.cores} cores, {topology.threads} threads")
    print(f"Logs: {log_dir}")
    print()

    with TelemetryLogger.open(log_dir, rotation_mb=1, buffered=False) as telemetry:
        collector = SampleCollector(telemetry, get_cpu_monitor(), topology)
        collector.start(duration_seconds=6, sample_interval_seconds=1)

        print("Running a 5 second load phase...")
        outcome = StressCoordinator(telemetry).run_stress(TestMode.LOAD, 5, topology)
        monitor = collector.join()

    print(f"  workers started: {outcome.threads_started}")
    print(f"  kernel iterations: {outcome.total_iterations}")
    print(f"  usage samples: {monitor.samples}")
    if monitor.max_usage_percent is not None:
        print(f"  peak usage: {monitor.max_usage_percent:.1f}%")
    if monitor.max_temperature_c is not None:
        print(f"  peak temperature: {monitor.max_temperature_c:.1f}C")
    print()

    print("metrics.csv:")
    for line in (log_dir / "metrics.csv").read_text().splitlines():
        print(f"  {line}")


if __name__ == "__main__":
    main()
