"""Run results collection and emission.

Supports multiple output formats: JSON, YAML, and text.

Usage:
    from crucible.stress.results import RunResults, OutputFormat

    results = RunResults()
    results.add_result("cpu", suite_outcome.summary())
    results.add_skipped("memory", "no test suite for this component")

    results.emit("results.json", OutputFormat.JSON)
    results.emit(sys.stdout, OutputFormat.TEXT)
"""

import json
import sys
from datetime import datetime, timezone
from enum import Enum
from io import StringIO
from pathlib import Path
from typing import Any, TextIO

import yaml


class OutputFormat(Enum):
    """Supported output formats for run results."""

    JSON = "json"
    YAML = "yaml"
    TEXT = "text"


class RunResults:
    """Per-component outcomes of one crucible run.

    Components end up in exactly one of three buckets: results (suite
    succeeded), errors (suite failed or raised) or skipped (no suite).
    """

    def __init__(self) -> None:
        self._results: dict[str, Any] = {}
        self._errors: dict[str, str] = {}
        self._skipped: dict[str, str] = {}
        self._metadata: dict[str, Any] = {
            "timestamp_start": datetime.now(timezone.utc).isoformat(),
            "timestamp_end": None,
            "crucible_version": self._get_version(),
        }

    def _get_version(self) -> str:
        try:
            from crucible import __version__

            return str(__version__)
        except (ImportError, AttributeError):
            return "unknown"

    def add_result(self, component: str, result: dict[str, Any]) -> None:
        self._results[component] = result

    def add_error(self, component: str, error: str, result: dict[str, Any] | None = None) -> None:
        """Record a failed component, keeping its partial result if any."""
        self._errors[component] = error
        if result is not None:
            self._results[component] = result

    def add_skipped(self, component: str, reason: str) -> None:
        self._skipped[component] = reason

    def finalize(self) -> None:
        """Mark results as complete, setting end timestamp."""
        self._metadata["timestamp_end"] = datetime.now(timezone.utc).isoformat()

    @property
    def success(self) -> bool:
        """True when no component failed."""
        return not self._errors

    @property
    def results(self) -> dict[str, Any]:
        return self._results.copy()

    @property
    def errors(self) -> dict[str, str]:
        return self._errors.copy()

    @property
    def skipped(self) -> dict[str, str]:
        return self._skipped.copy()

    def to_dict(self) -> dict[str, Any]:
        return {
            "metadata": self._metadata,
            "results": self._results,
            "errors": self._errors or None,
            "skipped": self._skipped or None,
            "summary": self._generate_summary(),
        }

    def _generate_summary(self) -> dict[str, Any]:
        failed = len(self._errors)
        passed = len([name for name in self._results if name not in self._errors])
        return {
            "components_run": passed + failed,
            "passed": passed,
            "failed": failed,
            "skipped": len(self._skipped),
        }

    # -------------------------------------------------------------------------
    # Emission Methods
    # -------------------------------------------------------------------------

    def emit(
        self,
        output: str | Path | TextIO,
        format: OutputFormat = OutputFormat.JSON,
        indent: int = 2,
    ) -> None:
        """Emit results to a file path or stream."""
        self.finalize()

        if format == OutputFormat.JSON:
            content = json.dumps(self.to_dict(), indent=indent, default=str)
        elif format == OutputFormat.YAML:
            content = yaml.safe_dump(
                json.loads(json.dumps(self.to_dict(), default=str)),
                indent=indent,
                default_flow_style=False,
                sort_keys=False,
            )
        elif format == OutputFormat.TEXT:
            content = self._to_text()
        else:
            raise ValueError(f"Unknown format: {format}")

        if isinstance(output, str | Path):
            Path(output).write_text(content)
        else:
            output.write(content)
            if output is not sys.stdout and output is not sys.stderr:
                output.flush()

    def _to_text(self) -> str:
        output = StringIO()
        data = self.to_dict()

        output.write("\n" + "=" * 60 + "\n")
        output.write("  CRUCIBLE TEST RESULTS\n")
        output.write("=" * 60 + "\n\n")

        meta = data["metadata"]
        output.write(f"Started:  {meta['timestamp_start']}\n")
        output.write(f"Finished: {meta['timestamp_end']}\n")
        output.write(f"Version:  {meta['crucible_version']}\n\n")

        summary = data["summary"]
        output.write("-" * 40 + "\n")
        output.write(f"Components Run: {summary['components_run']}\n")
        output.write(f"Passed:         {summary['passed']}\n")
        output.write(f"Failed:         {summary['failed']}\n")
        output.write(f"Skipped:        {summary['skipped']}\n")
        output.write("-" * 40 + "\n\n")

        for component, result in data["results"].items():
            output.write(f"[{component.upper()}]\n")
            self._format_result_text(output, result, indent="  ")
            output.write("\n")

        if data["errors"]:
            output.write("ERRORS\n")
            for component, error in data["errors"].items():
                output.write(f"  {component}: {error}\n")
            output.write("\n")

        if data["skipped"]:
            output.write("SKIPPED\n")
            for component, reason in data["skipped"].items():
                output.write(f"  {component}: {reason}\n")
            output.write("\n")

        output.write("=" * 60 + "\n")
        return output.getvalue()

    def _format_result_text(self, output: StringIO, result: dict[str, Any], indent: str) -> None:
        for key, value in result.items():
            if isinstance(value, dict):
                output.write(f"{indent}{key}:\n")
                self._format_result_text(output, value, indent + "  ")
            elif isinstance(value, float):
                output.write(f"{indent}{key}: {value:.2f}\n")
            else:
                output.write(f"{indent}{key}: {value}\n")

    # -------------------------------------------------------------------------
    # Convenience Methods
    # -------------------------------------------------------------------------

    def emit_json(self, path: str | Path) -> None:
        self.emit(path, OutputFormat.JSON)

    def emit_yaml(self, path: str | Path) -> None:
        self.emit(path, OutputFormat.YAML)

    def emit_stdout(self) -> None:
        """Emit human-readable results to stdout."""
        self.emit(sys.stdout, OutputFormat.TEXT)

    def __len__(self) -> int:
        return len(self._results)

    def __contains__(self, component: str) -> bool:
        return component in self._results
