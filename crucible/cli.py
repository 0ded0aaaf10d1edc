#!/usr/bin/env python3
"""Crucible CLI - Command-line interface for Crucible."""

import click

from crucible.utils.env import get_env
from crucible.utils.logger import Logger


@click.group()
def crucible():
    """Crucible command-line tool for CPU stress testing with telemetry."""
    if not Logger.is_configured():
        # Default to INFO level; subcommands can adjust via set_level()
        Logger.configure(
            level=get_env("CRUCIBLE_LOG_LEVEL", default="INFO"), timestamps=True
        )


@crucible.command()
@click.option("--verbose", "-v", is_flag=True, help="Show detailed version information")
def version(verbose):
    """Display crucible version information."""
    from crucible.commands.version_cmd import run_version

    if verbose:
        Logger.set_level("DEBUG")

    run_version(verbose=verbose)


@crucible.command()
@click.option(
    "--components",
    "-c",
    default=None,
    help="Comma-separated components: cpu,memory,storage,network,io,all",
)
@click.option(
    "--mode",
    "-m",
    type=click.Choice(["baseline", "stress", "load", "spike", "all"], case_sensitive=False),
    default=None,
    help="Test mode (default: all)",
)
@click.option(
    "--duration",
    "-d",
    type=int,
    default=None,
    help="Test duration in seconds (default: 300)",
)
@click.option(
    "--sample-interval",
    "-s",
    type=float,
    default=None,
    help="Seconds between monitor samples (default: 5)",
)
@click.option(
    "--intensity",
    "-i",
    type=int,
    default=None,
    help="Worker duty cycle percentage, 1-100 (default: 100)",
)
@click.option(
    "--log-dir",
    "-l",
    type=click.Path(file_okay=False),
    default=None,
    help="Directory for session.log and metrics.csv (default: cwd)",
)
@click.option(
    "--rotate-mb",
    type=int,
    default=None,
    help="Rotate log files above this size in MB, 0 disables (default: 10)",
)
@click.option(
    "--buffer/--no-buffer",
    "buffered",
    default=None,
    help="Buffer telemetry writes (default: buffered)",
)
@click.option(
    "--sensor-chip",
    default=None,
    help="Temperature sensor chip name substring (default: coretemp)",
)
@click.option(
    "--output",
    "-o",
    "outputs",
    multiple=True,
    help="Output file(s) - format auto-detected (.json/.yaml). Repeatable.",
)
@click.option(
    "--format",
    "-f",
    "fmt",
    type=click.Choice(["json", "yaml", "text"], case_sensitive=False),
    default=None,
    help="Stdout format when no --output specified",
)
@click.option(
    "--verbose",
    "-v",
    is_flag=True,
    help="Record DEBUG lines in the session log",
)
def run(
    components,
    mode,
    duration,
    sample_interval,
    intensity,
    log_dir,
    rotate_mb,
    buffered,
    sensor_chip,
    outputs,
    fmt,
    verbose,
):
    r"""Run stress tests while recording telemetry.

    \b
    Examples:
      crucible run -c cpu -m stress -d 60     # One minute of full CPU stress
      crucible run -c cpu -m load -s 2        # Half the threads, 2s samples
      crucible run -c cpu -m spike            # Fixed 30s spike
      crucible run -c cpu -o results.yaml     # Save summary to YAML
    """
    from crucible.commands.run_cmd import run_tests

    if verbose:
        Logger.set_level("DEBUG")

    run_tests(
        components=components,
        mode=mode,
        duration=duration,
        sample_interval=sample_interval,
        intensity=intensity,
        log_dir=log_dir,
        rotate_mb=rotate_mb,
        buffered=buffered,
        sensor_chip=sensor_chip,
        outputs=outputs,
        fmt=fmt,
        verbose=verbose,
    )


if __name__ == "__main__":
    crucible()
