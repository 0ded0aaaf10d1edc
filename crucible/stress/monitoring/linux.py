"""Linux CPU monitor reading /proc/stat tick counters."""

from pathlib import Path

from crucible.models.constants import DEFAULT_SENSOR_CHIP
from crucible.models.cpu_models import UsageSnapshot
from crucible.stress.monitoring.base import CPUMonitor

PROC_STAT_PATH = Path("/proc/stat")

# user nice system idle iowait irq softirq steal; guest time is already
# counted inside user and nice
_COUNTED_FIELDS = 8


def parse_proc_stat(text: str) -> UsageSnapshot | None:
    """Parse the aggregate "cpu" line of /proc/stat.

    Idle ticks are idle + iowait; total ticks sum the first eight counters.

    Returns:
        UsageSnapshot, or None if the aggregate line is missing or malformed
    """
    for line in text.splitlines():
        parts = line.split()
        if not parts or parts[0] != "cpu":
            continue
        try:
            counters = [int(value) for value in parts[1 : _COUNTED_FIELDS + 1]]
        except ValueError:
            return None
        if len(counters) < 4:
            return None
        counters += [0] * (_COUNTED_FIELDS - len(counters))
        idle = counters[3] + counters[4]
        return UsageSnapshot(total_ticks=sum(counters), idle_ticks=idle)
    return None


class LinuxCPUMonitor(CPUMonitor):
    """CPU monitoring for Linux systems.

    Uses:
    - /proc/stat: cumulative tick counters
    - psutil.sensors_temperatures(): hwmon chips (e.g. coretemp)
    """

    def __init__(
        self, sensor_chip: str = DEFAULT_SENSOR_CHIP, stat_path: Path = PROC_STAT_PATH
    ) -> None:
        super().__init__(sensor_chip)
        self.stat_path = stat_path

    def read_usage(self) -> UsageSnapshot | None:
        try:
            return parse_proc_stat(self.stat_path.read_text())
        except OSError:
            return None
