from __future__ import annotations

from pathlib import Path
from typing import Annotated

import typer

from covreporter.cli._shared import configure_runtime, read_results_or_exit
from covreporter.cli.exit_codes import EXIT_CONFIG, EXIT_NOINPUT, EXIT_OK, EXIT_THRESHOLD
from covreporter.config import CoverageConfig, load_config
from covreporter.errors import ConfigError
from covreporter.model.thresholds import Threshold, parse_threshold
from covreporter.reporter import CoverageReporter


def _load_config_or_exit(config_path: Path | None) -> CoverageConfig:
    try:
        return load_config(config_path, cwd=Path.cwd())
    except ConfigError as exc:
        typer.echo(f"ERROR: {exc}", err=True)
        raise typer.Exit(code=EXIT_CONFIG) from exc


def _parse_threshold_option(expression: str | None) -> Threshold | None:
    if expression is None:
        return None
    try:
        return parse_threshold(expression)
    except ValueError as exc:
        raise typer.BadParameter(str(exc), param_hint="--threshold") from exc


def run_cmd(
    results: Annotated[
        list[Path] | None,
        typer.Argument(help="Per-test coverage files: Istanbul JSON, test-result JSON or Cobertura XML."),
    ] = None,
    config_path: Annotated[
        Path | None,
        typer.Option("-c", "--config", help="Configuration file (JSON, TOML or pyproject.toml)."),
    ] = None,
    root_dir: Annotated[
        Path | None,
        typer.Option("--root-dir", help="Base directory for --collect-coverage-from globs."),
    ] = None,
    coverage_directory: Annotated[
        Path | None,
        typer.Option("--coverage-directory", help="Directory reports are written to."),
    ] = None,
    reporters: Annotated[
        list[str] | None,
        typer.Option("-r", "--reporter", help="Report format to write (repeatable)."),
    ] = None,
    collect_coverage_from: Annotated[
        list[str] | None,
        typer.Option(
            "--collect-coverage-from",
            help="Glob of files that must appear in the report even if untested (repeatable).",
        ),
    ] = None,
    map_coverage: Annotated[
        bool | None,
        typer.Option("--map-coverage/--no-map-coverage", help="Project coverage through source maps."),
    ] = None,
    use_stderr: Annotated[
        bool | None,
        typer.Option("--use-stderr/--no-use-stderr", help="Send console reports to stderr."),
    ] = None,
    threshold: Annotated[
        str | None,
        typer.Option(
            "--threshold",
            help="Global thresholds, e.g. 'statements=80,branches=-10' (negative = max uncovered).",
        ),
    ] = None,
    verbose: Annotated[bool, typer.Option("-v", "--verbose", help="Emit diagnostic logging")] = False,
    quiet: Annotated[bool, typer.Option("-q", "--quiet", help="Suppress INFO logs, emit only errors")] = False,
) -> None:
    """Merge coverage from test runs, write reports and enforce thresholds."""
    configure_runtime(quiet=quiet, verbose=verbose)

    config = _load_config_or_exit(config_path).with_overrides(
        root_dir=root_dir.resolve() if root_dir else None,
        coverage_directory=coverage_directory.resolve() if coverage_directory else None,
        coverage_reporters=tuple(reporters) if reporters else None,
        collect_coverage_from=tuple(collect_coverage_from) if collect_coverage_from else None,
        map_coverage=map_coverage,
        use_stderr=use_stderr,
        coverage_threshold=_parse_threshold_option(threshold),
    )

    if not results and not config.collect_coverage_from:
        typer.echo("ERROR: no coverage inputs given and no collectCoverageFrom configured", err=True)
        raise typer.Exit(code=EXIT_NOINPUT)

    reporter = CoverageReporter(config)
    for result in read_results_or_exit(results or []):
        reporter.on_test_result(result)
    outcome = reporter.on_run_complete()

    if outcome.error is not None:
        raise typer.Exit(code=EXIT_THRESHOLD)
    raise typer.Exit(code=EXIT_OK)


def register(app: typer.Typer) -> None:
    app.command("run")(run_cmd)


__all__ = ["register"]
