"""Cross-platform CPU monitor built on psutil.cpu_times()."""

import psutil

from crucible.models.cpu_models import UsageSnapshot
from crucible.stress.monitoring.base import CPUMonitor

# psutil reports seconds; scale to integer ticks at 100 Hz like USER_HZ
TICKS_PER_SECOND = 100

_BUSY_FIELDS = ("user", "nice", "system", "irq", "softirq", "steal")
_IDLE_FIELDS = ("idle", "iowait")


class PsutilCPUMonitor(CPUMonitor):
    """CPU monitoring on platforms without /proc/stat (macOS, Windows)."""

    def read_usage(self) -> UsageSnapshot | None:
        try:
            times = psutil.cpu_times()
        except (OSError, RuntimeError):
            return None

        busy = sum(getattr(times, name, 0.0) for name in _BUSY_FIELDS)
        idle = sum(getattr(times, name, 0.0) for name in _IDLE_FIELDS)

        return UsageSnapshot(
            total_ticks=int(round((busy + idle) * TICKS_PER_SECOND)),
            idle_ticks=int(round(idle * TICKS_PER_SECOND)),
        )
