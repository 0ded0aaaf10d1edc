"""Run command - executes the component suites with telemetry capture.

CLI Examples:
    crucible run                                   # All components, all modes
    crucible run -c cpu -m stress -d 60            # One minute of full CPU stress
    crucible run -c cpu -m load -s 2 --log-dir logs
    crucible run -c cpu -m spike -o results.json   # Save summary to JSON
"""

import sys
from pathlib import Path

import click
from pydantic import ValidationError

from crucible.models.config_models import TestConfig
from crucible.models.constants import Component
from crucible.stress import OutputFormat, TestRunner
from crucible.telemetry import TelemetryLogger
from crucible.utils.logger import Logger


def parse_components(components: str) -> dict[str, bool]:
    """Turn a comma-separated component list into ``*_enabled`` flags.

    "all" enables every component. Whitespace around names is ignored.

    Raises:
        click.BadParameter: For an unknown component name.
    """
    names = [name.strip().lower() for name in components.split(",") if name.strip()]
    valid = {component.value for component in Component}

    if "all" in names:
        selected = valid
    else:
        unknown = [name for name in names if name not in valid]
        if unknown:
            choices = ", ".join(sorted(valid | {"all"}))
            raise click.BadParameter(
                f"Unknown component(s) {', '.join(unknown)}. Valid: {choices}",
                param_hint="--components",
            )
        selected = set(names)

    return {f"{name}_enabled": name in selected for name in valid}


def get_output_format(output: str | None, fmt: str | None) -> OutputFormat:
    """Determine output format from filename or explicit format."""
    if fmt:
        return OutputFormat(fmt.lower())

    if output:
        suffix = Path(output).suffix.lower()
        if suffix == ".json":
            return OutputFormat.JSON
        elif suffix in (".yaml", ".yml"):
            return OutputFormat.YAML

    return OutputFormat.TEXT


def build_config(**options) -> TestConfig:
    """Validate CLI options (plus CRUCIBLE_* environment) into a TestConfig.

    Raises:
        click.UsageError: If validation fails.
    """
    components = options.pop("components", None)
    if components:
        options.update(parse_components(components))

    try:
        return TestConfig.from_env(**options)
    except ValidationError as e:
        problems = "; ".join(
            f"{'.'.join(str(p) for p in err['loc']) or 'config'}: {err['msg']}"
            for err in e.errors()
        )
        raise click.UsageError(f"Invalid configuration: {problems}") from e


def run_tests(
    components: str | None,
    mode: str | None,
    duration: int | None,
    sample_interval: float | None,
    intensity: int | None,
    log_dir: str | None,
    rotate_mb: int | None,
    buffered: bool | None,
    sensor_chip: str | None,
    outputs: tuple[str, ...],
    fmt: str | None,
    verbose: bool,
) -> None:
    """Run the enabled suites based on CLI arguments."""
    log = Logger.get("run")

    config = build_config(
        components=components,
        mode=mode,
        duration_seconds=duration,
        sample_interval_seconds=sample_interval,
        intensity=intensity,
        log_directory=log_dir,
        rotation_mb=rotate_mb,
        buffered=buffered,
        sensor_chip=sensor_chip,
        verbose=verbose or None,
    )

    telemetry = TelemetryLogger()
    if not telemetry.init(
        config.log_directory,
        level=config.log_level,
        rotation_mb=config.rotation_mb,
        buffered=config.buffered,
    ):
        raise click.ClickException(
            f"Failed to initialize logging to {config.log_directory}"
        )

    click.echo("\n" + "=" * 60)
    click.echo("  CRUCIBLE")
    click.echo("=" * 60)
    for key, value in config.describe().items():
        click.echo(f"  {key:<24} {value}")
    click.echo(f"\nEstimated duration: {config.estimate_duration_seconds()}s")
    click.echo("\n" + "-" * 60 + "\n")

    try:
        results = TestRunner(config, telemetry).run()
    finally:
        telemetry.cleanup()

    log.debug(f"Telemetry written to {config.log_directory}")

    for out_path in outputs:
        results.emit(out_path, get_output_format(out_path, None))
        click.echo(f"Results saved to: {out_path}")

    if not outputs or fmt:
        results.emit(sys.stdout, get_output_format(None, fmt))

    if not results.success:
        for name, error in results.errors.items():
            click.echo(f"  {name}: {error}", err=True)
        sys.exit(1)
