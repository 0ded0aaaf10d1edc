"""Factory for creating platform-specific CPU monitors."""

import platform

from crucible.models.constants import DEFAULT_SENSOR_CHIP
from crucible.stress.monitoring.base import CPUMonitor


class CPUMonitorFactory:
    """Factory for creating CPU monitors for the current platform.

    Linux reads /proc/stat directly; every other platform goes through
    psutil.
    """

    @staticmethod
    def create(sensor_chip: str = DEFAULT_SENSOR_CHIP) -> CPUMonitor:
        """Create a CPU monitor for the current platform.

        Args:
            sensor_chip: Substring matched against temperature sensor chips.
        """
        if platform.system() == "Linux":
            from crucible.stress.monitoring.linux import LinuxCPUMonitor

            return LinuxCPUMonitor(sensor_chip=sensor_chip)

        from crucible.stress.monitoring.portable import PsutilCPUMonitor

        return PsutilCPUMonitor(sensor_chip=sensor_chip)


def get_cpu_monitor(sensor_chip: str = DEFAULT_SENSOR_CHIP) -> CPUMonitor:
    """Convenience wrapper around CPUMonitorFactory.create()."""
    return CPUMonitorFactory.create(sensor_chip)
