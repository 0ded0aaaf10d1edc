"""Base class for CPU sampling - implemented per platform."""

from abc import ABC, abstractmethod

import psutil

from crucible.models.constants import DEFAULT_SENSOR_CHIP
from crucible.models.cpu_models import UsageSnapshot


def read_chip_temperature(chip_substring: str) -> float | None:
    """Read the current temperature of the first matching sensor chip.

    Finds the first chip whose name contains ``chip_substring``, takes its
    first temperature entry and returns the current (input) value.

    Returns:
        Temperature in Celsius, or None if any step finds nothing
    """
    sensors_temperatures = getattr(psutil, "sensors_temperatures", None)
    if sensors_temperatures is None:
        return None

    try:
        chips = sensors_temperatures()
    except (OSError, RuntimeError):
        return None

    for chip_name, entries in chips.items():
        if chip_substring not in chip_name:
            continue
        for entry in entries:
            if entry.current is not None:
                return float(entry.current)
        return None

    return None


class CPUMonitor(ABC):
    """Abstract base class for CPU counter and sensor reads."""

    def __init__(self, sensor_chip: str = DEFAULT_SENSOR_CHIP) -> None:
        self.sensor_chip = sensor_chip

    @abstractmethod
    def read_usage(self) -> UsageSnapshot | None:
        """
        Read cumulative CPU tick counters.

        Returns:
            UsageSnapshot, or None if the counters cannot be read
        """
        pass

    def get_temperature(self) -> float | None:
        """
        Get CPU temperature in Celsius from the configured sensor chip.

        Returns:
            Temperature in Celsius or None if unavailable
        """
        return read_chip_temperature(self.sensor_chip)
