from __future__ import annotations

import re
from dataclasses import dataclass
from enum import StrEnum
from typing import TYPE_CHECKING, Any

from covreporter.model.types import FULL_COVERAGE, METRICS, Metric

if TYPE_CHECKING:
    from collections.abc import Mapping

    from covreporter.model.metrics import CoverageSummary

_THRESHOLD_PATTERN = re.compile(r"^[a-zA-Z_-]+=")

_ALIASES: dict[str, Metric] = {
    "stmt": Metric.STATEMENTS,
    "statement": Metric.STATEMENTS,
    "statements": Metric.STATEMENTS,
    "br": Metric.BRANCHES,
    "branch": Metric.BRANCHES,
    "branches": Metric.BRANCHES,
    "fn": Metric.FUNCTIONS,
    "func": Metric.FUNCTIONS,
    "function": Metric.FUNCTIONS,
    "functions": Metric.FUNCTIONS,
    "line": Metric.LINES,
    "lines": Metric.LINES,
}


class ThresholdKind(StrEnum):
    """How a rule value is interpreted, decided by its sign."""

    PERCENTAGE = "percentage"  # value >= 0: minimum percentage
    UNCOVERED = "uncovered"  # value < 0: maximum uncovered items


@dataclass(frozen=True, slots=True)
class Threshold:
    """Per-metric coverage rules.

    Fields
    ------
    statements, branches, lines, functions:
        ``None`` leaves the metric unchecked. A non-negative value is the
        minimum required percentage. A negative value ``-N`` allows at most
        ``N`` uncovered items of that kind.
    """

    statements: float | None = None
    branches: float | None = None
    lines: float | None = None
    functions: float | None = None

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> Threshold:
        values: dict[str, float | None] = {}
        for metric in METRICS:
            raw = data.get(metric.value)
            values[metric.value] = None if raw is None else float(raw)
        return cls(**values)

    def rule(self, metric: Metric) -> float | None:
        return getattr(self, metric.value)

    def is_empty(self) -> bool:
        return all(self.rule(m) is None for m in METRICS)


@dataclass(frozen=True, slots=True)
class ThresholdFailure:
    """Details of a failed threshold evaluation."""

    metric: Metric
    kind: ThresholdKind
    required: float
    actual: float
    scope: str = "global"

    @property
    def message(self) -> str:
        if self.kind is ThresholdKind.UNCOVERED:
            return (
                f"Uncovered count for {self.metric} ({_fmt(self.actual)}) "
                f"exceeds {self.scope} threshold ({_fmt(self.required)})"
            )
        return (
            f"Coverage for {self.metric} ({_fmt(self.actual)}%) "
            f"does not meet {self.scope} threshold ({_fmt(self.required)}%)"
        )


@dataclass(frozen=True, slots=True)
class ThresholdsResult:
    """Outcome of evaluating a threshold against a summary."""

    passed: bool
    failures: list[ThresholdFailure]

    @property
    def messages(self) -> list[str]:
        return [f.message for f in self.failures]


def parse_threshold(expression: str) -> Threshold:
    """Parse a threshold expression like 'statements=90,branches=80,functions=-5'."""
    if not expression or not expression.strip():
        msg = "threshold expression must be non-empty"
        raise ValueError(msg)

    values: dict[str, float] = {}
    tokens = [token.strip() for token in re.split(r"[,\s]+", expression) if token.strip()]
    for token in tokens:
        if "=" not in token or not _THRESHOLD_PATTERN.match(token):
            msg = f"invalid threshold token: {token!r}"
            raise ValueError(msg)

        key, raw_value = token.split("=", 1)
        key = key.strip().lower()
        try:
            metric = _ALIASES[key]
        except KeyError as exc:
            msg = f"unknown threshold metric: {key!r}"
            raise ValueError(msg) from exc
        if metric.value in values:
            msg = f"duplicate constraint in {token!r}"
            raise ValueError(msg)
        values[metric.value] = _parse_value(raw_value.strip().rstrip("%"), token=token)

    return Threshold(**values)


def evaluate(summary: CoverageSummary, threshold: Threshold, *, scope: str = "global") -> ThresholdsResult:
    """Evaluate *threshold* against *summary*, collecting every failing metric."""
    failures: list[ThresholdFailure] = []
    for metric in METRICS:
        rule = threshold.rule(metric)
        if rule is None:
            continue
        totals = summary.metric(metric)
        if rule < 0:
            limit = -rule
            if totals.uncovered > limit:
                failures.append(
                    ThresholdFailure(
                        metric=metric,
                        kind=ThresholdKind.UNCOVERED,
                        required=limit,
                        actual=totals.uncovered,
                        scope=scope,
                    )
                )
        elif totals.pct < rule:
            failures.append(
                ThresholdFailure(
                    metric=metric,
                    kind=ThresholdKind.PERCENTAGE,
                    required=rule,
                    actual=totals.pct,
                    scope=scope,
                )
            )
    return ThresholdsResult(passed=not failures, failures=failures)


def _parse_value(value: str, *, token: str) -> float:
    try:
        number = float(value)
    except ValueError as exc:
        msg = f"invalid threshold value in {token!r}: {value!r}"
        raise ValueError(msg) from exc
    if number < 0:
        if not number.is_integer():
            msg = f"uncovered-count threshold must be an integer in {token!r}: {value}"
            raise ValueError(msg)
        return number
    if number > float(FULL_COVERAGE):
        msg = f"percentage out of range in {token!r}: {number}"
        raise ValueError(msg)
    return number


def _fmt(value: float) -> str:
    return f"{value:g}"


__all__ = [
    "Threshold",
    "ThresholdFailure",
    "ThresholdKind",
    "ThresholdsResult",
    "evaluate",
    "parse_threshold",
]
