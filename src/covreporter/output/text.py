from __future__ import annotations

from typing import TYPE_CHECKING

from rich import box
from rich.table import Table
from rich.text import Text

from covreporter.model.types import Metric

if TYPE_CHECKING:
    from covreporter.model.coverage import CoverageMap
    from covreporter.model.metrics import CoverageMetric, CoverageSummary
    from covreporter.output.base import WriterContext

_COLUMN_ORDER = (Metric.STATEMENTS, Metric.BRANCHES, Metric.FUNCTIONS, Metric.LINES)
_COLUMN_TITLES = {
    Metric.STATEMENTS: "% Stmts",
    Metric.BRANCHES: "% Branch",
    Metric.FUNCTIONS: "% Funcs",
    Metric.LINES: "% Lines",
}


# --------------------------- Formatting --------------------------------------
def _style_percent(pct: float, green: float, yellow: float) -> str:
    text = f"{pct:g}"
    if pct >= green:
        return f"[green]{text}[/green]"
    if pct >= yellow:
        return f"[yellow]{text}[/yellow]"
    return f"[red]{text}[/red]"


def compress_lines(lines: list[int]) -> str:
    """Return ``[1, 2, 3, 7]`` as ``"1-3,7"``."""
    parts: list[str] = []
    start = prev = None
    for n in lines:
        if prev is not None and n == prev + 1:
            prev = n
            continue
        if start is not None:
            parts.append(str(start) if start == prev else f"{start}-{prev}")
        start = prev = n
    if start is not None:
        parts.append(str(start) if start == prev else f"{start}-{prev}")
    return ",".join(parts)


def _row(
    label: str | Text, summary: CoverageSummary, context: WriterContext, uncovered: str
) -> list[str | Text]:
    cells: list[str | Text] = [label]
    cells.extend(_style_percent(summary.metric(m).pct, context.green, context.yellow) for m in _COLUMN_ORDER)
    cells.append(uncovered)
    return cells


# --------------------------- Writers -----------------------------------------
def write_text(coverage_map: CoverageMap, context: WriterContext) -> None:
    """Print a per-file coverage table to the console."""
    table = Table(box=box.SIMPLE_HEAVY, header_style="bold", expand=False)
    table.add_column("File", style="cyan", overflow="fold")
    for metric in _COLUMN_ORDER:
        table.add_column(_COLUMN_TITLES[metric], justify="right")
    table.add_column("Uncovered Line #s", overflow="fold")

    table.add_row(*_row("All files", coverage_map.summary(), context, ""), style="bold")
    table.add_section()
    for path in coverage_map:
        fc = coverage_map.files[path]
        label = Text(context.display_path(path))
        table.add_row(*_row(label, fc.summary(), context, compress_lines(fc.uncovered_lines())))

    context.console.print(table)


def _summary_line(metric: Metric, totals: CoverageMetric, context: WriterContext) -> str:
    label = f"{metric.value.capitalize():<12} : "
    return f"{label}{_style_percent(totals.pct, context.green, context.yellow)}% ( {totals.covered}/{totals.total} )"


def write_text_summary(coverage_map: CoverageMap, context: WriterContext) -> None:
    """Print the four global percentages to the console."""
    summary = coverage_map.summary()
    context.console.print()
    context.console.rule("Coverage summary")
    for metric in _COLUMN_ORDER:
        context.console.print(_summary_line(metric, summary.metric(metric), context))
    context.console.rule()


__all__ = ["compress_lines", "write_text", "write_text_summary"]
