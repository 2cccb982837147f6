from __future__ import annotations

import json
from typing import TYPE_CHECKING

from covreporter._meta import logger

if TYPE_CHECKING:
    from covreporter.model.coverage import CoverageMap
    from covreporter.output.base import WriterContext

COVERAGE_FINAL = "coverage-final.json"
COVERAGE_SUMMARY = "coverage-summary.json"


def write_json(coverage_map: CoverageMap, context: WriterContext) -> None:
    """Write the full coverage map as Istanbul JSON."""
    path = context.output_path(COVERAGE_FINAL)
    path.write_text(json.dumps(coverage_map.to_dict(), sort_keys=True), encoding="utf-8")
    logger.debug("wrote %s", path)


def write_json_summary(coverage_map: CoverageMap, context: WriterContext) -> None:
    """Write per-file and total summaries."""
    payload: dict[str, object] = {"total": coverage_map.summary().to_dict()}
    for path in coverage_map:
        payload[path] = coverage_map.files[path].summary().to_dict()
    out = context.output_path(COVERAGE_SUMMARY)
    out.write_text(json.dumps(payload, indent=2, sort_keys=True), encoding="utf-8")
    logger.debug("wrote %s", out)


__all__ = ["write_json", "write_json_summary"]
