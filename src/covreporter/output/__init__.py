"""Report writers and the emitter that drives them."""

from __future__ import annotations

from covreporter.output.base import Writer, WriterContext
from covreporter.output.emit import ReporterFailure, emit_reports
from covreporter.output.registry import REPORTERS, UnknownReporterError, resolve_reporter, select_reporters

__all__ = [
    "REPORTERS",
    "ReporterFailure",
    "UnknownReporterError",
    "Writer",
    "WriterContext",
    "emit_reports",
    "resolve_reporter",
    "select_reporters",
]
