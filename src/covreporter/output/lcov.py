"""LCOV tracefile writer (``lcov.info``)."""

from __future__ import annotations

from typing import TYPE_CHECKING

from covreporter._meta import logger

if TYPE_CHECKING:
    from covreporter.model.coverage import CoverageMap, FileCoverage
    from covreporter.output.base import WriterContext

LCOV_INFO = "lcov.info"


def _file_records(fc: FileCoverage) -> list[str]:
    out = ["TN:", f"SF:{fc.path}"]

    out.extend(f"FN:{meta.decl.start.line},{meta.name}" for meta in fc.fn_map.values())
    for key, meta in fc.fn_map.items():
        out.append(f"FNDA:{fc.f.get(key, 0)},{meta.name}")
    out.append(f"FNF:{len(fc.f)}")
    out.append(f"FNH:{sum(1 for hits in fc.f.values() if hits > 0)}")

    lines = fc.line_coverage()
    out.extend(f"DA:{line},{lines[line]}" for line in sorted(lines))
    out.append(f"LF:{len(lines)}")
    out.append(f"LH:{sum(1 for hits in lines.values() if hits > 0)}")

    arms_total = arms_hit = 0
    for block, (key, meta) in enumerate(fc.branch_map.items()):
        for arm, hits in enumerate(fc.b.get(key, [])):
            out.append(f"BRDA:{meta.line},{block},{arm},{hits if hits > 0 else '-'}")
            arms_total += 1
            arms_hit += hits > 0
    out.append(f"BRF:{arms_total}")
    out.append(f"BRH:{arms_hit}")
    out.append("end_of_record")
    return out


def format_lcov(coverage_map: CoverageMap) -> str:
    lines: list[str] = []
    for path in coverage_map:
        lines.extend(_file_records(coverage_map.files[path]))
    return "\n".join(lines) + "\n"


def write_lcov(coverage_map: CoverageMap, context: WriterContext) -> None:
    path = context.output_path(LCOV_INFO)
    path.write_text(format_lcov(coverage_map), encoding="utf-8")
    logger.debug("wrote %s", path)


__all__ = ["format_lcov", "write_lcov"]
