"""
Utilizes psutil for CPU topology, with a /proc/cpuinfo fallback
"""

import os
from pathlib import Path

import psutil

from crucible.models.cpu_models import CpuTopology

CPUINFO_PATH = Path("/proc/cpuinfo")


def parse_cpuinfo(text: str) -> CpuTopology | None:
    """
    Count processors and cores in /proc/cpuinfo content.

    Threads are the number of "processor" entries; cores are the highest
    "core id" plus one. Cores fall back to threads when no core ids appear.

    Returns:
        CpuTopology, or None if no processor entries were found
    """
    threads = 0
    cores = 0
    for line in text.splitlines():
        key, _, value = line.partition(":")
        key = key.strip()
        if key == "processor":
            threads += 1
        elif key == "core id":
            try:
                cores = max(cores, int(value.strip()) + 1)
            except ValueError:
                continue

    if threads == 0:
        return None
    return CpuTopology(cores=cores or threads, threads=threads)


class System:
    def get_topology(self) -> CpuTopology | None:
        """
        Physical cores and logical threads on this machine

        Returns:
            CpuTopology, or None if the thread count cannot be determined
        """
        threads = psutil.cpu_count(logical=True)
        cores = psutil.cpu_count(logical=False)

        if not threads:
            try:
                return parse_cpuinfo(CPUINFO_PATH.read_text())
            except OSError:
                threads = os.cpu_count()
                if not threads:
                    return None

        return CpuTopology(cores=cores or threads, threads=threads)
