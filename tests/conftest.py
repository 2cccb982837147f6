from __future__ import annotations

import io
import json
from collections.abc import Callable, Mapping, Sequence
from pathlib import Path
from typing import Any

import pytest
from click.testing import CliRunner
from rich.console import Console

from covreporter.model.coverage import FileCoverage
from covreporter.model.types import BranchMeta, FunctionMeta, Range


@pytest.fixture
def cli_runner() -> CliRunner:
    """Return a Click CLI runner for invoking the command-line interface."""
    return CliRunner()


@pytest.fixture
def file_coverage() -> Callable[..., FileCoverage]:
    """Build a :class:`FileCoverage` from compact hit specs.

    ``statements`` maps a line number to the hits of one statement on that
    line; ``functions`` lists function hits (function ``i`` is named ``fn{i}``
    and declared on line ``i + 1``); ``branches`` lists the arm hits of each
    branch, all placed on line 1.
    """

    def build(
        path: str,
        statements: Mapping[int, int] | None = None,
        *,
        functions: Sequence[int] = (),
        branches: Sequence[Sequence[int]] = (),
    ) -> FileCoverage:
        fc = FileCoverage(path=path)
        for idx, (line, hits) in enumerate((statements or {}).items()):
            fc.statement_map[str(idx)] = Range.on_line(line, end=10)
            fc.s[str(idx)] = hits
        for idx, hits in enumerate(functions):
            rng = Range.on_line(idx + 1, end=5)
            fc.fn_map[str(idx)] = FunctionMeta(name=f"fn{idx}", decl=rng, loc=rng, line=idx + 1)
            fc.f[str(idx)] = hits
        for idx, arms in enumerate(branches):
            locations = tuple(Range.on_line(1, start=arm, end=arm + 1) for arm in range(len(arms)))
            fc.branch_map[str(idx)] = BranchMeta(
                type="if", loc=Range.on_line(1, end=10), locations=locations, line=1
            )
            fc.b[str(idx)] = list(arms)
        return fc

    return build


@pytest.fixture
def json_file(tmp_path: Path) -> Callable[..., Path]:
    def write(name: str, data: Any) -> Path:
        path = tmp_path / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(data), encoding="utf-8")
        return path

    return write


@pytest.fixture
def console() -> Console:
    """A plain, wide console writing into an in-memory buffer."""
    return Console(file=io.StringIO(), width=200, color_system=None, force_terminal=False)
