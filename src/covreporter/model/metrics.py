from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from covreporter.model.types import FULL_COVERAGE, METRICS, Metric

if TYPE_CHECKING:
    from covreporter.model.coverage import FileCoverage


def pct(covered: int, total: int, *, full: float = float(FULL_COVERAGE)) -> float:
    """Return the coverage percentage, defaulting to `full` when no total exists."""
    return full if total == 0 else (covered / total) * full


@dataclass(frozen=True, slots=True)
class CoverageMetric:
    """Totals for a single metric."""

    total: int = 0
    covered: int = 0

    @property
    def uncovered(self) -> int:
        return self.total - self.covered

    @property
    def pct(self) -> float:
        return round(pct(self.covered, self.total), 2)

    def __add__(self, other: CoverageMetric) -> CoverageMetric:
        return CoverageMetric(total=self.total + other.total, covered=self.covered + other.covered)

    def to_dict(self) -> dict[str, float | int]:
        return {"total": self.total, "covered": self.covered, "skipped": 0, "pct": self.pct}


@dataclass(frozen=True, slots=True)
class CoverageSummary:
    """Per-metric totals for a file or a whole coverage map."""

    statements: CoverageMetric = field(default_factory=CoverageMetric)
    branches: CoverageMetric = field(default_factory=CoverageMetric)
    lines: CoverageMetric = field(default_factory=CoverageMetric)
    functions: CoverageMetric = field(default_factory=CoverageMetric)

    def metric(self, name: Metric | str) -> CoverageMetric:
        return getattr(self, Metric(name).value)

    def __add__(self, other: CoverageSummary) -> CoverageSummary:
        return CoverageSummary(
            statements=self.statements + other.statements,
            branches=self.branches + other.branches,
            lines=self.lines + other.lines,
            functions=self.functions + other.functions,
        )

    def to_dict(self) -> dict[str, dict[str, float | int]]:
        return {m.value: self.metric(m).to_dict() for m in METRICS}


def summarize_file(fc: FileCoverage) -> CoverageSummary:
    """Count total/covered items per metric; each branch arm counts on its own."""
    lines = fc.line_coverage()
    arms = [hits for counts in fc.b.values() for hits in counts]
    return CoverageSummary(
        statements=CoverageMetric(total=len(fc.s), covered=sum(1 for h in fc.s.values() if h > 0)),
        branches=CoverageMetric(total=len(arms), covered=sum(1 for h in arms if h > 0)),
        lines=CoverageMetric(total=len(lines), covered=sum(1 for h in lines.values() if h > 0)),
        functions=CoverageMetric(total=len(fc.f), covered=sum(1 for h in fc.f.values() if h > 0)),
    )


__all__ = ["CoverageMetric", "CoverageSummary", "pct", "summarize_file"]
