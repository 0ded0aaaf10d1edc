"""Hardware backends for crucible."""

from crucible.backends.system import System, parse_cpuinfo

__all__ = ["System", "parse_cpuinfo"]
