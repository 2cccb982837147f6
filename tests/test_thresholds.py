from __future__ import annotations

import pytest

from covreporter.errors import CoverageThresholdError
from covreporter.model.metrics import CoverageMetric, CoverageSummary
from covreporter.model.thresholds import (
    Threshold,
    ThresholdFailure,
    ThresholdKind,
    ThresholdsResult,
    evaluate,
    parse_threshold,
)
from covreporter.model.types import Metric


@pytest.mark.parametrize(
    ("expression", "expected"),
    [
        ("stmt=80", Threshold(statements=80.0)),
        ("br=75% fn=-5", Threshold(branches=75.0, functions=-5.0)),
        ("statements=90, branches=80, lines=70", Threshold(statements=90.0, branches=80.0, lines=70.0)),
        ("LINES=100 FUNC=0", Threshold(lines=100.0, functions=0.0)),
    ],
)
def test_parse_threshold(expression: str, expected: Threshold) -> None:
    assert parse_threshold(expression) == expected


@pytest.mark.parametrize(
    ("expression", "pattern"),
    [
        ("", "non-empty"),
        (" ", "non-empty"),
        ("stmt", "invalid threshold token"),
        ("foo=10", "unknown threshold metric"),
        ("stmt=abc", "invalid threshold value"),
        ("stmt=101", "percentage out of range"),
        ("br=-1.5", "must be an integer"),
        ("stmt=80 statements=90", "duplicate constraint"),
    ],
)
def test_parse_threshold_rejects_invalid_input(expression: str, pattern: str) -> None:
    with pytest.raises(ValueError, match=pattern):
        parse_threshold(expression)


def test_percentage_below_threshold_fails() -> None:
    summary = CoverageSummary(statements=CoverageMetric(total=4, covered=3))

    result = evaluate(summary, Threshold(statements=80))

    assert not result.passed
    assert result.failures == [
        ThresholdFailure(
            metric=Metric.STATEMENTS,
            kind=ThresholdKind.PERCENTAGE,
            required=80,
            actual=75.0,
        )
    ]
    assert result.messages == ["Coverage for statements (75%) does not meet global threshold (80%)"]


def test_percentage_at_threshold_passes() -> None:
    summary = CoverageSummary(lines=CoverageMetric(total=5, covered=4))

    assert evaluate(summary, Threshold(lines=80)) == ThresholdsResult(passed=True, failures=[])


def test_uncovered_count_over_limit_fails() -> None:
    summary = CoverageSummary(branches=CoverageMetric(total=10, covered=7))

    result = evaluate(summary, Threshold(branches=-2))

    assert result.messages == ["Uncovered count for branches (3) exceeds global threshold (2)"]
    assert result.failures[0].kind is ThresholdKind.UNCOVERED


def test_uncovered_count_equal_to_limit_passes() -> None:
    summary = CoverageSummary(branches=CoverageMetric(total=10, covered=8))

    assert evaluate(summary, Threshold(branches=-2)).passed


def test_metric_without_items_meets_full_threshold() -> None:
    summary = CoverageSummary(statements=CoverageMetric(total=3, covered=3))

    assert evaluate(summary, Threshold(statements=100, branches=100, functions=100)).passed


def test_every_failing_metric_is_reported_in_order() -> None:
    summary = CoverageSummary(
        statements=CoverageMetric(total=10, covered=5),
        branches=CoverageMetric(total=4, covered=1),
        functions=CoverageMetric(total=2, covered=0),
    )

    result = evaluate(summary, Threshold(statements=60, branches=-1, functions=50), scope="src/")

    assert [f.metric for f in result.failures] == [Metric.STATEMENTS, Metric.BRANCHES, Metric.FUNCTIONS]
    assert result.messages[1] == "Uncovered count for branches (3) exceeds src/ threshold (1)"


def test_unset_rules_are_not_checked() -> None:
    summary = CoverageSummary(statements=CoverageMetric(total=10, covered=0))

    assert evaluate(summary, Threshold(branches=90)).passed


def test_threshold_from_mapping_ignores_unset_metrics() -> None:
    threshold = Threshold.from_mapping({"statements": 70, "branches": None})

    assert threshold == Threshold(statements=70.0)
    assert not threshold.is_empty()
    assert Threshold.from_mapping({}).is_empty()


def test_threshold_error_joins_messages() -> None:
    summary = CoverageSummary(
        statements=CoverageMetric(total=10, covered=5),
        lines=CoverageMetric(total=10, covered=5),
    )
    result = evaluate(summary, Threshold(statements=70, lines=60.5))

    error = CoverageThresholdError(result.failures)

    assert error.failures == tuple(result.failures)
    assert str(error) == (
        "Coverage for statements (50%) does not meet global threshold (70%)\n"
        "Coverage for lines (50%) does not meet global threshold (60.5%)"
    )
