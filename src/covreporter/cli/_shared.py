from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING

import typer

from covreporter._meta import logger
from covreporter.cli.exit_codes import EXIT_DATAERR, EXIT_GENERIC, EXIT_NOINPUT
from covreporter.config import LOG_FORMAT
from covreporter.errors import InvalidCoverageDataError
from covreporter.inputs.cobertura import read_cobertura
from covreporter.inputs.istanbul import TestResult, read_test_result

if TYPE_CHECKING:
    from collections.abc import Sequence


def configure_runtime(*, quiet: bool, verbose: bool) -> None:
    """Configure logging based on *quiet*/*verbose*."""
    level = logging.ERROR if quiet else (logging.DEBUG if verbose else logging.INFO)
    logging.basicConfig(level=level, format=LOG_FORMAT)


def read_result(path: Path) -> TestResult:
    """Read one test completion: Istanbul JSON or Cobertura XML."""
    if path.suffix.lower() == ".xml":
        return TestResult(test_file_path=str(path), coverage=read_cobertura(path))
    return read_test_result(path)


def read_results_or_exit(paths: Sequence[Path]) -> list[TestResult]:
    """Read every input, mapping failures onto exit codes."""
    results: list[TestResult] = []
    for path in paths:
        try:
            results.append(read_result(path))
        except FileNotFoundError as exc:
            typer.echo(f"ERROR: coverage input not found: {path}", err=True)
            raise typer.Exit(code=EXIT_NOINPUT) from exc
        except InvalidCoverageDataError as exc:
            typer.echo(f"ERROR: {exc}", err=True)
            raise typer.Exit(code=EXIT_DATAERR) from exc
        except (OSError, UnicodeDecodeError) as exc:
            typer.echo(f"ERROR: failed to read {path}: {exc}", err=True)
            raise typer.Exit(code=EXIT_GENERIC) from exc
        logger.debug("read coverage input %s", path)
    return results


def write_output(text: str, destination: Path | None) -> None:
    """Write output to stdout or a file (PATH or '-' for stdout)."""
    if destination is None or destination == Path("-"):
        typer.echo(text)
        return
    destination.parent.mkdir(parents=True, exist_ok=True)
    destination.write_text(text, encoding="utf-8")


__all__ = ["configure_runtime", "read_result", "read_results_or_exit", "write_output"]
