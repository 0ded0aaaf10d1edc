"""CPU counter and sensor reads for the sample collector.

Example:
    >>> from crucible.stress.monitoring import get_cpu_monitor
    >>> monitor = get_cpu_monitor(sensor_chip="coretemp")
    >>> before = monitor.read_usage()
    >>> after = monitor.read_usage()
    >>> after.busy_percent_since(before)
"""

from crucible.stress.monitoring.base import CPUMonitor, read_chip_temperature
from crucible.stress.monitoring.factory import CPUMonitorFactory, get_cpu_monitor

__all__ = ["CPUMonitor", "CPUMonitorFactory", "get_cpu_monitor", "read_chip_temperature"]
