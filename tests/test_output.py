from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import TYPE_CHECKING

import pytest
from defusedxml import ElementTree

from covreporter.model.coverage import CoverageMap
from covreporter.output import REPORTERS, ReporterFailure, WriterContext, emit_reports, select_reporters
from covreporter.output.cobertura import format_cobertura
from covreporter.output.html import write_html
from covreporter.output.lcov import format_lcov
from covreporter.output.registry import UnknownReporterError, resolve_reporter
from covreporter.output.text import compress_lines, write_text, write_text_summary

if TYPE_CHECKING:
    from collections.abc import Callable

    from rich.console import Console

    from covreporter.model.coverage import FileCoverage


@pytest.fixture
def sample_map(file_coverage: Callable[..., FileCoverage]) -> CoverageMap:
    return CoverageMap(
        {
            "/proj/src/a.js": file_coverage("/proj/src/a.js", {1: 1, 2: 1}, functions=[1]),
            "/proj/src/b.js": file_coverage("/proj/src/b.js", {1: 1, 2: 0}, branches=[[2, 0]]),
            "/proj/lib/c.js": file_coverage("/proj/lib/c.js", {1: 0}),
        }
    )


# --------------------------------------------------------------------------- #
# selection                                                                   #
# --------------------------------------------------------------------------- #


@pytest.mark.parametrize(
    ("names", "use_stderr", "expected"),
    [
        (["json"], False, ["json", "text-summary"]),
        (["json", "text"], False, ["json", "text"]),
        (["text-summary", "lcov"], False, ["text-summary", "lcov"]),
        (["json"], True, ["json"]),
        (["json", "json"], False, ["json", "text-summary"]),
        ([], False, []),
    ],
)
def test_select_reporters(names: list[str], use_stderr: bool, expected: list[str]) -> None:
    assert select_reporters(names, use_stderr=use_stderr) == expected


def test_resolve_reporter_suggests_close_match() -> None:
    with pytest.raises(UnknownReporterError, match="Did you mean 'lcov'"):
        resolve_reporter("lcvo")
    assert resolve_reporter("lcovonly") is REPORTERS["lcov"]


# --------------------------------------------------------------------------- #
# emitter                                                                     #
# --------------------------------------------------------------------------- #


def test_failing_writer_does_not_stop_others(
    tmp_path: Path,
    sample_map: CoverageMap,
    caplog: pytest.LogCaptureFixture,
) -> None:
    def boom(coverage_map: CoverageMap, context: WriterContext) -> None:
        msg = "disk full"
        raise RuntimeError(msg)

    registry = {"boom": boom, "json": REPORTERS["json"]}
    with caplog.at_level(logging.ERROR, logger="covreporter"):
        failures = emit_reports(
            sample_map,
            ["boom", "json"],
            directory=tmp_path,
            use_stderr=True,
            registry=registry,
        )

    assert failures == [ReporterFailure(name="boom", error="RuntimeError: disk full")]
    assert (tmp_path / "coverage-final.json").is_file()
    assert "failed to write boom coverage report" in caplog.text


def test_unknown_reporter_is_reported_and_skipped(tmp_path: Path, sample_map: CoverageMap) -> None:
    failures = emit_reports(sample_map, ["jsno", "lcov"], directory=tmp_path, use_stderr=True)

    assert [f.name for f in failures] == ["jsno"]
    assert "Did you mean 'json'" in failures[0].error
    assert (tmp_path / "lcov.info").is_file()


def test_text_summary_is_appended_for_console(
    tmp_path: Path,
    sample_map: CoverageMap,
    console: Console,
) -> None:
    failures = emit_reports(sample_map, ["json"], directory=tmp_path, console=console)

    assert failures == []
    assert "Coverage summary" in console.file.getvalue()


def test_no_reporters_writes_nothing(tmp_path: Path, sample_map: CoverageMap, console: Console) -> None:
    assert emit_reports(sample_map, [], directory=tmp_path / "out", console=console) == []
    assert not (tmp_path / "out").exists()
    assert console.file.getvalue() == ""


# --------------------------------------------------------------------------- #
# writers                                                                     #
# --------------------------------------------------------------------------- #


def test_json_writers(tmp_path: Path, sample_map: CoverageMap) -> None:
    context = WriterContext(directory=tmp_path)
    REPORTERS["json"](sample_map, context)
    REPORTERS["json-summary"](sample_map, context)

    final = json.loads((tmp_path / "coverage-final.json").read_text(encoding="utf-8"))
    assert sorted(final) == ["/proj/lib/c.js", "/proj/src/a.js", "/proj/src/b.js"]
    assert final["/proj/src/b.js"]["b"] == {"0": [2, 0]}

    summary = json.loads((tmp_path / "coverage-summary.json").read_text(encoding="utf-8"))
    assert summary["total"]["statements"] == {"total": 5, "covered": 3, "skipped": 0, "pct": 60.0}
    assert summary["/proj/lib/c.js"]["lines"]["pct"] == 0.0


def test_format_lcov(file_coverage: Callable[..., FileCoverage]) -> None:
    cmap = CoverageMap({"/a.js": file_coverage("/a.js", {1: 1, 2: 0}, functions=[1], branches=[[2, 0]])})

    assert format_lcov(cmap).splitlines() == [
        "TN:",
        "SF:/a.js",
        "FN:1,fn0",
        "FNDA:1,fn0",
        "FNF:1",
        "FNH:1",
        "DA:1,1",
        "DA:2,0",
        "LF:2",
        "LH:1",
        "BRDA:1,0,0,2",
        "BRDA:1,0,1,-",
        "BRF:2",
        "BRH:1",
        "end_of_record",
    ]


def test_format_cobertura(sample_map: CoverageMap) -> None:
    context = WriterContext(directory=Path("/unused"), root_dir=Path("/proj"))

    root = ElementTree.fromstring(format_cobertura(sample_map, context))

    assert root.get("lines-valid") == "5"
    assert root.get("lines-covered") == "3"
    assert root.get("line-rate") == "0.6000"
    assert sorted(p.get("name") for p in root.iter("package")) == ["lib", "src"]
    b_class = next(c for c in root.iter("class") if c.get("filename") == "src/b.js")
    first_line = b_class.find("./lines/line")
    assert first_line is not None
    assert first_line.get("branch") == "true"
    assert first_line.get("condition-coverage") == "50% (1/2)"


def test_write_html(tmp_path: Path, file_coverage: Callable[..., FileCoverage]) -> None:
    source = tmp_path / "src" / "a.js"
    source.parent.mkdir()
    source.write_text("const a = 1;\nif (a < 2) {}\n", encoding="utf-8")
    missing = tmp_path / "src" / "gone.js"
    top = tmp_path / "top.js"
    top.write_text("run();\n", encoding="utf-8")
    cmap = CoverageMap(
        {
            str(source): file_coverage(str(source), {1: 1, 2: 0}),
            str(missing): file_coverage(str(missing), {1: 0}),
            str(top): file_coverage(str(top), {1: 1}),
        }
    )
    out = tmp_path / "coverage"

    write_html(cmap, WriterContext(directory=out, root_dir=tmp_path))

    index = (out / "html" / "index.html").read_text(encoding="utf-8")
    assert 'href="src/index.html"' in index
    assert 'href="top.js.html"' in index
    assert 'href="src/a.js.html"' not in index
    assert "(2/4)" in index
    assert "(1/3)" in index

    src_index = (out / "html" / "src" / "index.html").read_text(encoding="utf-8")
    assert 'href="a.js.html"' in src_index
    assert 'href="gone.js.html"' in src_index
    assert 'href="../index.html"' in src_index
    assert "(1/3)" in src_index

    page = (out / "html" / "src" / "a.js.html").read_text(encoding="utf-8")
    assert "if (a &lt; 2) {}" in page
    assert 'class="miss"' in page
    assert 'href="../index.html"' in page
    assert 'href="index.html"' in page
    assert "source not available" in (out / "html" / "src" / "gone.js.html").read_text(encoding="utf-8")


def test_write_html_nested_directory_links(tmp_path: Path, file_coverage: Callable[..., FileCoverage]) -> None:
    cmap = CoverageMap({"/proj/src/lib/deep.js": file_coverage("/proj/src/lib/deep.js", {1: 1})})
    context = WriterContext(directory=tmp_path, root_dir=Path("/proj"), source_finder=lambda path: "x;\n")

    write_html(cmap, context)

    assert 'href="src/lib/index.html"' in (tmp_path / "html" / "index.html").read_text(encoding="utf-8")
    lib_index = (tmp_path / "html" / "src" / "lib" / "index.html").read_text(encoding="utf-8")
    assert 'href="deep.js.html"' in lib_index
    assert 'href="../../index.html"' in lib_index
    page = (tmp_path / "html" / "src" / "lib" / "deep.js.html").read_text(encoding="utf-8")
    assert 'href="../../index.html"' in page


def test_write_html_uses_source_finder(tmp_path: Path, file_coverage: Callable[..., FileCoverage]) -> None:
    cmap = CoverageMap({"/src/a.ts": file_coverage("/src/a.ts", {1: 1})})
    context = WriterContext(directory=tmp_path, source_finder=lambda path: "let mapped = true;\n")

    write_html(cmap, context)

    assert "let mapped = true;" in (tmp_path / "html" / "src" / "a.ts.html").read_text(encoding="utf-8")


def test_write_text_table(
    tmp_path: Path,
    console: Console,
    file_coverage: Callable[..., FileCoverage],
) -> None:
    cmap = CoverageMap({"/proj/a.js": file_coverage("/proj/a.js", {1: 0, 2: 0, 3: 0, 5: 1, 7: 0})})

    write_text(cmap, WriterContext(directory=tmp_path, console=console, root_dir=Path("/proj")))

    out = console.file.getvalue()
    assert "All files" in out
    assert "a.js" in out
    assert "1-3,7" in out
    assert "% Stmts" in out


@pytest.mark.parametrize("name", ["pages/[id].js", "pages/[/x].js"])
def test_write_text_prints_bracketed_paths_literally(
    tmp_path: Path,
    console: Console,
    file_coverage: Callable[..., FileCoverage],
    name: str,
) -> None:
    path = f"/app/{name}"
    cmap = CoverageMap({path: file_coverage(path, {1: 1})})

    write_text(cmap, WriterContext(directory=tmp_path, console=console, root_dir=Path("/app")))

    assert name in console.file.getvalue()


def test_write_text_summary(tmp_path: Path, console: Console, sample_map: CoverageMap) -> None:
    write_text_summary(sample_map, WriterContext(directory=tmp_path, console=console))

    out = console.file.getvalue()
    assert "Statements   : 60% ( 3/5 )" in out
    assert "Branches     : 50% ( 1/2 )" in out
    assert "Functions    : 100% ( 1/1 )" in out


@pytest.mark.parametrize(
    ("lines", "expected"),
    [
        ([], ""),
        ([4], "4"),
        ([1, 2, 3, 7], "1-3,7"),
        ([1, 3, 4, 5, 9, 10], "1,3-5,9-10"),
    ],
)
def test_compress_lines(lines: list[int], expected: str) -> None:
    assert compress_lines(lines) == expected
