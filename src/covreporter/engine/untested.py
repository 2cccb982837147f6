"""Zero-coverage records for files that no test executed."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol

from covreporter._meta import logger
from covreporter.inputs.files import read_source_text

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable
    from pathlib import Path

    from covreporter.config import CoverageConfig
    from covreporter.engine.project import SourceMapStore
    from covreporter.model.coverage import CoverageMap, FileCoverage


@dataclass(frozen=True, slots=True)
class EmptyCoverage:
    """What an empty-coverage generator produces for one file."""

    coverage: FileCoverage
    source_map_path: str | None = None


class EmptyCoverageGenerator(Protocol):
    def __call__(self, source: str, path: str, config: CoverageConfig) -> EmptyCoverage | None: ...


@dataclass(frozen=True, slots=True)
class SynthesisFailure:
    path: str
    error: str


def add_untested_files(
    model: CoverageMap,
    candidates: Iterable[str | Path],
    generator: EmptyCoverageGenerator,
    *,
    config: CoverageConfig,
    source_map_store: SourceMapStore | None = None,
    read_source: Callable[[str], str] = read_source_text,
) -> list[SynthesisFailure]:
    """Insert a zero-hit record for every candidate missing from *model*.

    Existing records are never replaced. A candidate that cannot be read or
    whose generator raises is logged and reported in the returned list; the
    remaining candidates are still processed.
    """
    failures: list[SynthesisFailure] = []
    added = 0
    for candidate in candidates:
        path = str(candidate)
        if path in model:
            continue
        try:
            source = read_source(path)
            result = generator(source, path, config)
        except Exception as exc:
            logger.exception("failed to collect coverage from %s", path)
            failures.append(SynthesisFailure(path=path, error=f"{type(exc).__name__}: {exc}"))
            continue
        if result is None:
            logger.debug("no instrumentable code in %s", path)
            continue

        record = result.coverage.zeroed()
        record.path = path
        model.files[path] = record
        added += 1
        if result.source_map_path and source_map_store is not None:
            source_map_store.register_url(path, result.source_map_path)

    logger.debug("added %d untested file(s) to the coverage map", added)
    return failures


__all__ = ["EmptyCoverage", "EmptyCoverageGenerator", "SynthesisFailure", "add_untested_files"]
