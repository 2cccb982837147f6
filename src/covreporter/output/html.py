from __future__ import annotations

from html import escape
from pathlib import PurePosixPath
from typing import TYPE_CHECKING
from urllib.parse import quote

from covreporter._meta import logger
from covreporter.model.metrics import CoverageSummary
from covreporter.model.types import Metric

if TYPE_CHECKING:
    from covreporter.model.coverage import CoverageMap, FileCoverage
    from covreporter.output.base import WriterContext

HTML_DIR = "html"

_STYLE = """
body { font-family: sans-serif; margin: 2em; }
table { border-collapse: collapse; }
td, th { padding: 2px 8px; border-bottom: 1px solid #ddd; text-align: right; }
td.file, th.file { text-align: left; }
.high { background: #dfd; } .medium { background: #ffd; } .low { background: #fdd; }
pre { margin: 0; }
tr.hit td.hits { background: #dfd; } tr.miss td { background: #fdd; }
""".strip()

_METRICS = (Metric.STATEMENTS, Metric.BRANCHES, Metric.FUNCTIONS, Metric.LINES)


def _page_parts(display: str) -> list[str]:
    """Return path parts for a file, safe to join under the output dir."""
    parts = [p.replace(":", "") for p in PurePosixPath(display).parts if p not in {"/", ""}]
    return ["__" if p == ".." else p for p in parts]


def _page_name(display: str) -> str:
    return "/".join(_page_parts(display)) + ".html"


def _band(pct: float, context: WriterContext) -> str:
    if pct >= context.green:
        return "high"
    if pct >= context.yellow:
        return "medium"
    return "low"


def _summary_cells(summary: CoverageSummary, context: WriterContext) -> list[str]:
    cells = []
    for metric in _METRICS:
        totals = summary.metric(metric)
        cells.append(
            f'<td class="{_band(totals.pct, context)}">{totals.pct:g}% ({totals.covered}/{totals.total})</td>'
        )
    return cells


def _page(title: str, body: list[str], *, depth: int = 0) -> str:
    up = "../" * depth
    parts = [
        "<!DOCTYPE html>",
        "<html>",
        "<head>",
        '<meta charset="utf-8"/>',
        f"<title>{escape(title)}</title>",
        f"<style>{_STYLE}</style>",
        "</head>",
        "<body>",
        f'<p><a href="{up}index.html">All files</a></p>',
        *body,
        "</body>",
        "</html>",
    ]
    return "\n".join(parts)


def _group_by_directory(coverage_map: CoverageMap, context: WriterContext) -> dict[str, list[str]]:
    """Map each page directory (``""`` for the top level) to the files it holds."""
    groups: dict[str, list[str]] = {}
    for path in coverage_map:
        directory = "/".join(_page_parts(context.display_path(path))[:-1])
        groups.setdefault(directory, []).append(path)
    return groups


def _index_row(label: str, href: str, summary: CoverageSummary, context: WriterContext) -> str:
    cells = "".join(_summary_cells(summary, context))
    return f'<tr><td class="file"><a href="{quote(href)}">{escape(label)}</a></td>{cells}</tr>'


def _render_index(
    title: str,
    total: CoverageSummary,
    rows: list[str],
    context: WriterContext,
    *,
    depth: int = 0,
) -> str:
    header = "".join(f"<th>{m.value.capitalize()}</th>" for m in _METRICS)
    body = [
        f"<h1>{escape(title)}</h1>",
        "<table>",
        f'<tr><th class="file">File</th>{header}</tr>',
        '<tr><td class="file"><strong>All files</strong></td>' + "".join(_summary_cells(total, context)) + "</tr>",
        *rows,
        "</table>",
    ]
    return _page(title, body, depth=depth)


def _render_root_index(
    coverage_map: CoverageMap,
    groups: dict[str, list[str]],
    context: WriterContext,
) -> str:
    rows = []
    for directory in sorted(d for d in groups if d):
        rollup = sum((coverage_map.files[p].summary() for p in groups[directory]), CoverageSummary())
        rows.append(_index_row(f"{directory}/", f"{directory}/index.html", rollup, context))
    for path in groups.get("", []):
        name = _page_name(context.display_path(path))
        rows.append(_index_row(name.removesuffix(".html"), name, coverage_map.files[path].summary(), context))
    return _render_index("Coverage report", coverage_map.summary(), rows, context)


def _render_directory_index(
    coverage_map: CoverageMap,
    directory: str,
    paths: list[str],
    context: WriterContext,
) -> str:
    rows = []
    total = CoverageSummary()
    for path in paths:
        summary = coverage_map.files[path].summary()
        total += summary
        name = _page_parts(context.display_path(path))[-1]
        rows.append(_index_row(name, f"{name}.html", summary, context))
    return _render_index(f"{directory}/", total, rows, context, depth=directory.count("/") + 1)


def _render_file(fc: FileCoverage, context: WriterContext, *, depth: int) -> str:
    display = context.display_path(fc.path)
    try:
        source_lines = context.read_source(fc.path).splitlines()
    except (OSError, UnicodeDecodeError) as exc:
        logger.warning("html report: source for %s unavailable: %s", fc.path, exc)
        source_lines = []

    hits_by_line = fc.line_coverage()
    body: list[str] = []
    if depth:
        directory = "/".join(_page_parts(display)[:-1])
        body.append(f'<p><a href="index.html">{escape(directory)}/</a></p>')
    body += [
        f"<h1>{escape(display)}</h1>",
        "<table>",
        "<tr>" + "".join(_summary_cells(fc.summary(), context)) + "</tr>",
        "</table>",
        "<table>",
    ]
    if not source_lines:
        body.append('<tr><td class="file">source not available</td></tr>')
    for lineno, code in enumerate(source_lines, start=1):
        hits = hits_by_line.get(lineno)
        css = "" if hits is None else (' class="hit"' if hits > 0 else ' class="miss"')
        shown = "" if hits is None else f"{hits}x"
        body.append(
            f'<tr{css}><td>{lineno}</td><td class="hits">{shown}</td>'
            f'<td class="file"><pre>{escape(code)}</pre></td></tr>'
        )
    body.append("</table>")
    return _page(display, body, depth=depth)


def write_html(coverage_map: CoverageMap, context: WriterContext) -> None:
    """Write a top-level index, one index per directory and one annotated page per file."""
    groups = _group_by_directory(coverage_map, context)
    index = context.output_path(HTML_DIR, "index.html")
    index.write_text(_render_root_index(coverage_map, groups, context), encoding="utf-8")
    for directory, paths in groups.items():
        if directory:
            page = context.output_path(HTML_DIR, *directory.split("/"), "index.html")
            page.write_text(_render_directory_index(coverage_map, directory, paths, context), encoding="utf-8")
        for path in paths:
            name = _page_name(context.display_path(path))
            page = context.output_path(HTML_DIR, *name.split("/"))
            depth = name.count("/")
            page.write_text(_render_file(coverage_map.files[path], context, depth=depth), encoding="utf-8")
    logger.debug("wrote html report to %s", index.parent)


__all__ = ["write_html"]
