"""
Version command - displays crucible version information
"""

import click

from crucible.version import CRUCIBLE_VERSION


def run_version(verbose: bool = False) -> None:
    """
    Display crucible version information.

    Args:
        verbose: If True, show the full package hash and build date
    """
    if not verbose:
        click.echo(f"crucible {CRUCIBLE_VERSION}")
        return

    click.echo(f"crucible version {CRUCIBLE_VERSION.full_version()}")
    click.echo("\nDetailed version information:")
    click.echo(f"  Semantic Version: {CRUCIBLE_VERSION}")
    click.echo(f"  Build Date:       {CRUCIBLE_VERSION.date_string()}")
    click.echo(f"  Package Hash:     {CRUCIBLE_VERSION.hash}")
