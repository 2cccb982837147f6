"""Hand a coverage map to every selected report writer."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from rich.console import Console

from covreporter._meta import logger
from covreporter.output.base import WriterContext
from covreporter.output.registry import REPORTERS, UnknownReporterError, resolve_reporter, select_reporters

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence
    from pathlib import Path

    from covreporter.engine.project import SourceFinder
    from covreporter.model.coverage import CoverageMap
    from covreporter.output.base import Writer


@dataclass(frozen=True, slots=True)
class ReporterFailure:
    name: str
    error: str


def emit_reports(
    coverage_map: CoverageMap,
    names: Sequence[str],
    *,
    directory: Path,
    source_finder: SourceFinder | None = None,
    use_stderr: bool = False,
    console: Console | None = None,
    root_dir: Path | None = None,
    registry: Mapping[str, Writer] = REPORTERS,
) -> list[ReporterFailure]:
    """Run each selected writer; a failing writer never stops the others.

    Returns one :class:`ReporterFailure` per unknown name or failed writer.
    """
    context = WriterContext(
        directory=directory,
        console=console or Console(stderr=use_stderr),
        source_finder=source_finder,
        root_dir=root_dir,
    )
    failures: list[ReporterFailure] = []
    for name in select_reporters(names, use_stderr=use_stderr):
        try:
            writer = resolve_reporter(name, registry)
        except UnknownReporterError as exc:
            logger.error("unknown coverage reporter: %s", exc)  # noqa: TRY400
            failures.append(ReporterFailure(name=name, error=str(exc)))
            continue
        try:
            writer(coverage_map, context)
        except Exception as exc:
            logger.exception("failed to write %s coverage report", name)
            failures.append(ReporterFailure(name=name, error=f"{type(exc).__name__}: {exc}"))
    return failures


__all__ = ["ReporterFailure", "emit_reports"]
