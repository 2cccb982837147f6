"""Centralised exception hierarchy for covreporter."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Sequence

    from covreporter.model.thresholds import ThresholdFailure


class CovReporterError(Exception):
    """Base class for all custom covreporter exceptions."""


class InvalidCoverageDataError(CovReporterError):
    """A coverage record (JSON or XML) was found but is not well formed."""


class ConfigError(CovReporterError):
    """The run configuration could not be loaded or failed validation."""


class SourceMapError(CovReporterError):
    """A registered source map could not be loaded or decoded."""


class CoverageThresholdError(CovReporterError):
    """One or more coverage thresholds were not met."""

    def __init__(self, failures: Sequence[ThresholdFailure]) -> None:
        self.failures = tuple(failures)
        super().__init__("\n".join(f.message for f in self.failures))


__all__ = [
    "ConfigError",
    "CovReporterError",
    "CoverageThresholdError",
    "InvalidCoverageDataError",
    "SourceMapError",
]
