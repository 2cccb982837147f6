"""Coverage data model (pure data; no IO).

A :class:`CoverageMap` maps absolute file paths to :class:`FileCoverage`
records. Each record holds the Istanbul-style item maps (statements,
functions, branches) keyed by file-local ids, plus the hit counters for those
ids. Line coverage is not stored; it is derived from the statement map.

Item ids are stable across repeated executions of the same, unmodified file,
which is what makes summing counters from different executions meaningful.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from covreporter.model.metrics import CoverageSummary, summarize_file
from covreporter.model.types import BranchMeta, FunctionMeta, Range

if TYPE_CHECKING:
    from collections.abc import Iterator, Mapping


@dataclass(slots=True)
class FileCoverage:
    """Coverage record for a single source file."""

    path: str
    statement_map: dict[str, Range] = field(default_factory=dict)
    fn_map: dict[str, FunctionMeta] = field(default_factory=dict)
    branch_map: dict[str, BranchMeta] = field(default_factory=dict)
    s: dict[str, int] = field(default_factory=dict)
    f: dict[str, int] = field(default_factory=dict)
    b: dict[str, list[int]] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any], *, path: str | None = None) -> FileCoverage:
        """Build a record from its Istanbul JSON shape.

        Counters without a matching map entry (and vice versa) are kept as-is;
        a missing counter is read as zero hits.
        """
        statement_map = {str(k): Range.from_dict(v) for k, v in (data.get("statementMap") or {}).items()}
        fn_map = {str(k): FunctionMeta.from_dict(v) for k, v in (data.get("fnMap") or {}).items()}
        branch_map = {str(k): BranchMeta.from_dict(v) for k, v in (data.get("branchMap") or {}).items()}
        s = {str(k): int(v) for k, v in (data.get("s") or {}).items()}
        f = {str(k): int(v) for k, v in (data.get("f") or {}).items()}
        b = {str(k): [int(n) for n in v] for k, v in (data.get("b") or {}).items()}
        for key in statement_map:
            s.setdefault(key, 0)
        for key in fn_map:
            f.setdefault(key, 0)
        for key, meta in branch_map.items():
            b.setdefault(key, [0] * len(meta.locations))
        return cls(
            path=str(path if path is not None else data.get("path", "")),
            statement_map=statement_map,
            fn_map=fn_map,
            branch_map=branch_map,
            s=s,
            f=f,
            b=b,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "path": self.path,
            "statementMap": {k: v.to_dict() for k, v in self.statement_map.items()},
            "fnMap": {k: v.to_dict() for k, v in self.fn_map.items()},
            "branchMap": {k: v.to_dict() for k, v in self.branch_map.items()},
            "s": dict(self.s),
            "f": dict(self.f),
            "b": {k: list(v) for k, v in self.b.items()},
        }

    def copy(self) -> FileCoverage:
        """Return a deep copy; the map values are immutable and shared."""
        return FileCoverage(
            path=self.path,
            statement_map=dict(self.statement_map),
            fn_map=dict(self.fn_map),
            branch_map=dict(self.branch_map),
            s=dict(self.s),
            f=dict(self.f),
            b={k: list(v) for k, v in self.b.items()},
        )

    def zeroed(self) -> FileCoverage:
        """Return a copy with every hit counter reset to zero."""
        out = self.copy()
        out.s = dict.fromkeys(out.s, 0)
        out.f = dict.fromkeys(out.f, 0)
        out.b = {k: [0] * len(v) for k, v in out.b.items()}
        return out

    def line_coverage(self) -> dict[int, int]:
        """Return ``{line: hits}`` derived from the statements starting on each line."""
        lines: dict[int, int] = {}
        for key, rng in self.statement_map.items():
            line = rng.start.line
            hits = self.s.get(key, 0)
            if hits > lines.get(line, -1):
                lines[line] = hits
        return lines

    def uncovered_lines(self) -> list[int]:
        return sorted(line for line, hits in self.line_coverage().items() if hits == 0)

    def summary(self) -> CoverageSummary:
        return summarize_file(self)


@dataclass(slots=True)
class CoverageMap:
    """Aggregate coverage for a whole run, keyed by absolute file path."""

    files: dict[str, FileCoverage] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> CoverageMap:
        """Build a map from Istanbul JSON (``{path: file coverage}``)."""
        out = cls()
        for path, raw in data.items():
            out.files[str(path)] = FileCoverage.from_dict(raw, path=str(path))
        return out

    def to_dict(self) -> dict[str, Any]:
        return {path: self.files[path].to_dict() for path in sorted(self.files)}

    def __contains__(self, path: object) -> bool:
        return str(path) in self.files

    def __len__(self) -> int:
        return len(self.files)

    def __iter__(self) -> Iterator[str]:
        return iter(sorted(self.files))

    def file_coverage_for(self, path: str) -> FileCoverage:
        try:
            return self.files[path]
        except KeyError as exc:
            msg = f"no coverage recorded for {path!r}"
            raise KeyError(msg) from exc

    def add_file_coverage(self, coverage: FileCoverage) -> None:
        """Insert *coverage* under its own path; existing records are left alone."""
        self.files.setdefault(coverage.path, coverage)

    def copy(self) -> CoverageMap:
        return CoverageMap(files={path: fc.copy() for path, fc in self.files.items()})

    def summary(self) -> CoverageSummary:
        """Return the global summary over every file in the map."""
        total = CoverageSummary()
        for fc in self.files.values():
            total += fc.summary()
        return total


__all__ = ["CoverageMap", "FileCoverage"]
