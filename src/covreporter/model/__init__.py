"""Domain model for covreporter (pure types + policy; no IO)."""

from .coverage import CoverageMap, FileCoverage
from .metrics import CoverageMetric, CoverageSummary, pct
from .thresholds import Threshold, ThresholdFailure, ThresholdKind, ThresholdsResult, evaluate, parse_threshold
from .types import METRICS, BranchMeta, FunctionMeta, Metric, Position, Range

__all__ = [
    "METRICS",
    "BranchMeta",
    "CoverageMap",
    "CoverageMetric",
    "CoverageSummary",
    "FileCoverage",
    "FunctionMeta",
    "Metric",
    "Position",
    "Range",
    "Threshold",
    "ThresholdFailure",
    "ThresholdKind",
    "ThresholdsResult",
    "evaluate",
    "parse_threshold",
    "pct",
]
