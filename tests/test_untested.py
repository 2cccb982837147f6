from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import pytest

from covreporter.config import CoverageConfig
from covreporter.engine.project import SourceMapStore
from covreporter.engine.untested import EmptyCoverage, add_untested_files
from covreporter.inputs.empty import detect_line_tag, generate_line_coverage
from covreporter.model.coverage import CoverageMap
from covreporter.model.metrics import CoverageMetric

if TYPE_CHECKING:
    from collections.abc import Callable
    from pathlib import Path

    from covreporter.model.coverage import FileCoverage


@pytest.fixture
def config(tmp_path: Path) -> CoverageConfig:
    return CoverageConfig(root_dir=tmp_path)


def _read_stub(path: str) -> str:
    return f"// {path}\n"


def test_untested_file_gets_zero_hit_record(
    config: CoverageConfig,
    file_coverage: Callable[..., FileCoverage],
) -> None:
    def generator(source: str, path: str, cfg: CoverageConfig) -> EmptyCoverage:
        # Generators may hand back non-zero counters; they must not leak into the map.
        return EmptyCoverage(file_coverage("ignored", {1: 5, 2: 1, 3: 0}, functions=[2]))

    model = CoverageMap()
    failures = add_untested_files(model, ["/src/c.js"], generator, config=config, read_source=_read_stub)

    assert failures == []
    fc = model.files["/src/c.js"]
    assert fc.path == "/src/c.js"
    assert fc.s == {"0": 0, "1": 0, "2": 0}
    assert fc.f == {"0": 0}
    assert fc.summary().statements == CoverageMetric(total=3, covered=0)
    assert fc.summary().statements.pct == 0.0


def test_existing_records_are_never_replaced(
    config: CoverageConfig,
    file_coverage: Callable[..., FileCoverage],
) -> None:
    calls: list[str] = []

    def generator(source: str, path: str, cfg: CoverageConfig) -> EmptyCoverage:
        calls.append(path)
        return EmptyCoverage(file_coverage(path, {1: 0}))

    model = CoverageMap({"/src/a.js": file_coverage("/src/a.js", {1: 4})})
    add_untested_files(model, ["/src/a.js", "/src/b.js"], generator, config=config, read_source=_read_stub)

    assert calls == ["/src/b.js"]
    assert model.files["/src/a.js"].s == {"0": 4}


def test_failing_candidate_is_logged_and_skipped(
    config: CoverageConfig,
    file_coverage: Callable[..., FileCoverage],
    caplog: pytest.LogCaptureFixture,
) -> None:
    def read_source(path: str) -> str:
        if path.endswith("broken.js"):
            msg = "unexpected token"
            raise SyntaxError(msg)
        return ""

    def generator(source: str, path: str, cfg: CoverageConfig) -> EmptyCoverage:
        return EmptyCoverage(file_coverage(path, {1: 0}))

    model = CoverageMap()
    with caplog.at_level(logging.ERROR, logger="covreporter"):
        failures = add_untested_files(
            model,
            ["/src/broken.js", "/src/ok.js"],
            generator,
            config=config,
            read_source=read_source,
        )

    assert list(model) == ["/src/ok.js"]
    assert len(failures) == 1
    assert failures[0].path == "/src/broken.js"
    assert "SyntaxError: unexpected token" in failures[0].error
    assert "failed to collect coverage from /src/broken.js" in caplog.text


def test_generator_returning_none_adds_nothing(config: CoverageConfig) -> None:
    model = CoverageMap()

    failures = add_untested_files(
        model,
        ["/src/types.d.ts"],
        lambda source, path, cfg: None,
        config=config,
        read_source=_read_stub,
    )

    assert failures == []
    assert len(model) == 0


def test_source_map_path_is_registered(
    config: CoverageConfig,
    file_coverage: Callable[..., FileCoverage],
) -> None:
    store = SourceMapStore()

    def generator(source: str, path: str, cfg: CoverageConfig) -> EmptyCoverage:
        return EmptyCoverage(file_coverage(path, {1: 0}), source_map_path="/dist/c.js.map")

    add_untested_files(
        CoverageMap(),
        ["/dist/c.js"],
        generator,
        config=config,
        source_map_store=store,
        read_source=_read_stub,
    )

    assert "/dist/c.js" in store


def test_unreadable_file_is_reported(tmp_path: Path, config: CoverageConfig) -> None:
    missing = tmp_path / "missing.js"

    failures = add_untested_files(CoverageMap(), [missing], generate_line_coverage, config=config)

    assert [f.path for f in failures] == [str(missing)]
    assert "FileNotFoundError" in failures[0].error


def test_line_generator_on_real_file(tmp_path: Path, config: CoverageConfig) -> None:
    source = tmp_path / "calc.py"
    source.write_text(
        "# helpers\n\ndef add(a, b):\n    return a + b\n\nTOTAL = add(1, 2)\n",
        encoding="utf-8",
    )
    model = CoverageMap()

    add_untested_files(model, [source], generate_line_coverage, config=config)

    fc = model.files[str(source)]
    assert sorted(fc.line_coverage()) == [3, 4, 6]
    assert [meta.name for meta in fc.fn_map.values()] == ["add"]
    assert fc.b == {}
    assert fc.summary().statements.pct == 0.0


@pytest.mark.parametrize(
    ("code", "expected"),
    [
        ("", "blank"),
        ("   ", "blank"),
        ("// note", "comment"),
        ("# note", "comment"),
        ("x = 1  # pragma: no cover", "no-cover"),
        ("/* istanbul ignore next */", "no-cover"),
        ("function run() {", "def"),
        ("async def fetch():", "def"),
        ("return 1;", None),
    ],
)
def test_detect_line_tag(code: str, expected: str | None) -> None:
    assert detect_line_tag(code) == expected
