from __future__ import annotations

import time
import xml.etree.ElementTree as ET  # noqa: S405 - building, not parsing
from collections import defaultdict
from pathlib import Path
from typing import TYPE_CHECKING

from covreporter._meta import __version__, logger

if TYPE_CHECKING:
    from covreporter.model.coverage import CoverageMap, FileCoverage
    from covreporter.model.metrics import CoverageMetric
    from covreporter.output.base import WriterContext

COBERTURA_XML = "cobertura-coverage.xml"


def _rate(metric: CoverageMetric) -> str:
    return f"{metric.pct / 100:.4f}"


def _branch_counts_by_line(fc: FileCoverage) -> dict[int, tuple[int, int]]:
    per_line: dict[int, tuple[int, int]] = {}
    for key, meta in fc.branch_map.items():
        counts = fc.b.get(key, [])
        covered, total = per_line.get(meta.line, (0, 0))
        per_line[meta.line] = (covered + sum(1 for h in counts if h > 0), total + len(counts))
    return per_line


def _class_element(fc: FileCoverage, context: WriterContext) -> ET.Element:
    summary = fc.summary()
    name = Path(fc.path).name
    cls = ET.Element(
        "class",
        name=name,
        filename=context.display_path(fc.path),
        **{"line-rate": _rate(summary.lines), "branch-rate": _rate(summary.branches)},
    )
    methods = ET.SubElement(cls, "methods")
    for key, meta in fc.fn_map.items():
        method = ET.SubElement(
            methods,
            "method",
            name=meta.name,
            hits=str(fc.f.get(key, 0)),
            signature="()V",
        )
        method_lines = ET.SubElement(method, "lines")
        ET.SubElement(method_lines, "line", number=str(meta.line), hits=str(fc.f.get(key, 0)))

    lines_elem = ET.SubElement(cls, "lines")
    branches = _branch_counts_by_line(fc)
    for line, hits in sorted(fc.line_coverage().items()):
        attrs = {"number": str(line), "hits": str(hits), "branch": "false"}
        if line in branches:
            covered, total = branches[line]
            percent = round(100 * covered / total) if total else 100
            attrs["branch"] = "true"
            attrs["condition-coverage"] = f"{percent}% ({covered}/{total})"
        ET.SubElement(lines_elem, "line", attrs)
    return cls


def format_cobertura(coverage_map: CoverageMap, context: WriterContext) -> str:
    summary = coverage_map.summary()
    root = ET.Element(
        "coverage",
        {
            "lines-valid": str(summary.lines.total),
            "lines-covered": str(summary.lines.covered),
            "line-rate": _rate(summary.lines),
            "branches-valid": str(summary.branches.total),
            "branches-covered": str(summary.branches.covered),
            "branch-rate": _rate(summary.branches),
            "timestamp": str(int(time.time() * 1000)),
            "complexity": "0",
            "version": __version__,
        },
    )
    sources = ET.SubElement(root, "sources")
    ET.SubElement(sources, "source").text = str(context.root_dir or "")

    by_package: dict[str, list[FileCoverage]] = defaultdict(list)
    for path in coverage_map:
        parent = Path(context.display_path(path)).parent.as_posix()
        by_package[parent].append(coverage_map.files[path])

    packages = ET.SubElement(root, "packages")
    for package_name in sorted(by_package):
        files = by_package[package_name]
        package_summary = sum((fc.summary() for fc in files[1:]), files[0].summary())
        package = ET.SubElement(
            packages,
            "package",
            {
                "name": "main" if package_name == "." else package_name.replace("/", "."),
                "line-rate": _rate(package_summary.lines),
                "branch-rate": _rate(package_summary.branches),
            },
        )
        classes = ET.SubElement(package, "classes")
        for fc in files:
            classes.append(_class_element(fc, context))

    ET.indent(root)
    return '<?xml version="1.0" ?>\n' + ET.tostring(root, encoding="unicode") + "\n"


def write_cobertura(coverage_map: CoverageMap, context: WriterContext) -> None:
    path = context.output_path(COBERTURA_XML)
    path.write_text(format_cobertura(coverage_map, context), encoding="utf-8")
    logger.debug("wrote %s", path)


__all__ = ["format_cobertura", "write_cobertura"]
