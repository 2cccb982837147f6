"""Run-level coverage aggregation.

A :class:`CoverageReporter` lives for exactly one test run. The runner calls
:meth:`CoverageReporter.on_test_result` once per completed test file (never
concurrently) and :meth:`CoverageReporter.on_run_complete` once at the end.
Reports are always written before thresholds are evaluated, so a threshold
failure never suppresses output.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from rich.console import Console

from covreporter._meta import logger
from covreporter.engine.merge import merge
from covreporter.engine.project import SourceMapStore
from covreporter.engine.untested import add_untested_files
from covreporter.errors import CoverageThresholdError
from covreporter.inputs.empty import generate_line_coverage
from covreporter.inputs.files import match_files_with_glob
from covreporter.inputs.istanbul import TestResult
from covreporter.model.coverage import CoverageMap
from covreporter.model.thresholds import ThresholdsResult, evaluate
from covreporter.output.emit import emit_reports
from covreporter.output.registry import REPORTERS

if TYPE_CHECKING:
    from collections.abc import Callable, Mapping, Sequence
    from pathlib import Path

    from covreporter.config import CoverageConfig
    from covreporter.engine.project import SourceFinder
    from covreporter.engine.untested import EmptyCoverageGenerator, SynthesisFailure
    from covreporter.model.metrics import CoverageSummary
    from covreporter.output.base import Writer
    from covreporter.output.emit import ReporterFailure


@dataclass(frozen=True, slots=True)
class RunOutcome:
    """Everything a finished run knows about coverage."""

    coverage_map: CoverageMap
    summary: CoverageSummary
    thresholds: ThresholdsResult | None = None
    reporter_failures: tuple[ReporterFailure, ...] = ()
    synthesis_failures: tuple[SynthesisFailure, ...] = ()
    error: CoverageThresholdError | None = None

    @property
    def passed(self) -> bool:
        return self.error is None


class CoverageReporter:
    """Aggregation context for one test run."""

    def __init__(
        self,
        config: CoverageConfig,
        *,
        generate_empty_coverage: EmptyCoverageGenerator = generate_line_coverage,
        resolve_files: Callable[[Sequence[str], Path], list[str]] = match_files_with_glob,
        registry: Mapping[str, Writer] = REPORTERS,
        console: Console | None = None,
    ) -> None:
        self._config = config
        self._generate_empty_coverage = generate_empty_coverage
        self._resolve_files = resolve_files
        self._registry = registry
        self._console = console or Console(stderr=config.use_stderr)
        self._coverage_map = CoverageMap()
        self._source_map_store = SourceMapStore()
        self._error: CoverageThresholdError | None = None

    def on_test_result(self, result: TestResult) -> None:
        """Merge one test file's coverage and register its source maps."""
        if result.coverage is None:
            return
        merge(self._coverage_map, result.coverage)
        # The reporter now owns the merged counts; drop the per-test copy.
        result.coverage = None
        for source_path, map_location in result.source_maps.items():
            self._source_map_store.register_url(source_path, map_location)
        logger.debug("merged coverage from %s", result.test_file_path)

    def on_run_complete(self) -> RunOutcome:
        """Fill in untested files, write reports, then enforce thresholds."""
        config = self._config
        synthesis_failures = self._add_untested_files()

        coverage_map = self._coverage_map
        source_finder: SourceFinder | None = None
        if config.map_coverage:
            coverage_map, source_finder = self._source_map_store.transform_coverage(coverage_map)

        reporter_failures = emit_reports(
            coverage_map,
            config.coverage_reporters,
            directory=config.output_directory,
            source_finder=source_finder,
            use_stderr=config.use_stderr,
            console=self._console,
            root_dir=config.root_dir,
            registry=self._registry,
        )

        summary = coverage_map.summary()
        thresholds = self._check_threshold(summary)
        return RunOutcome(
            coverage_map=coverage_map,
            summary=summary,
            thresholds=thresholds,
            reporter_failures=tuple(reporter_failures),
            synthesis_failures=tuple(synthesis_failures),
            error=self._error,
        )

    def _add_untested_files(self) -> list[SynthesisFailure]:
        config = self._config
        if not config.collect_coverage_from:
            return []
        logger.info("Running coverage on untested files...")
        files = self._resolve_files(config.collect_coverage_from, config.root_dir)
        return add_untested_files(
            self._coverage_map,
            files,
            self._generate_empty_coverage,
            config=config,
            source_map_store=self._source_map_store,
        )

    def _check_threshold(self, summary: CoverageSummary) -> ThresholdsResult | None:
        threshold = self._config.coverage_threshold
        if threshold is None:
            return None
        result = evaluate(summary, threshold, scope="global")
        if not result.passed:
            error = CoverageThresholdError(result.failures)
            self._console.print(str(error), style="bold red", markup=False, highlight=False)
            self._error = error
        return result

    def get_coverage_map(self) -> CoverageMap:
        return self._coverage_map

    def get_last_error(self) -> CoverageThresholdError | None:
        return self._error


__all__ = ["CoverageReporter", "RunOutcome", "TestResult"]
