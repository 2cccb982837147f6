"""Shared value types and enumerations used across covreporter."""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import Any

# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------


class Metric(StrEnum):
    """The four coverage categories tracked per file."""

    STATEMENTS = "statements"
    BRANCHES = "branches"
    LINES = "lines"
    FUNCTIONS = "functions"


# Evaluation and reporting order.
METRICS: tuple[Metric, ...] = (
    Metric.STATEMENTS,
    Metric.BRANCHES,
    Metric.LINES,
    Metric.FUNCTIONS,
)

FULL_COVERAGE: int = 100


# ---------------------------------------------------------------------------
# Locations
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class Position:
    """A source position: 1-based line, 0-based column."""

    line: int
    column: int = 0

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> Position:
        data = data or {}
        return cls(line=int(data.get("line") or 0), column=int(data.get("column") or 0))

    def to_dict(self) -> dict[str, int]:
        return {"line": self.line, "column": self.column}


@dataclass(frozen=True, slots=True)
class Range:
    start: Position
    end: Position

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> Range:
        data = data or {}
        return cls(start=Position.from_dict(data.get("start")), end=Position.from_dict(data.get("end")))

    @classmethod
    def on_line(cls, line: int, *, start: int = 0, end: int = 0) -> Range:
        return cls(Position(line, start), Position(line, end))

    def to_dict(self) -> dict[str, dict[str, int]]:
        return {"start": self.start.to_dict(), "end": self.end.to_dict()}


@dataclass(frozen=True, slots=True)
class FunctionMeta:
    name: str
    decl: Range
    loc: Range
    line: int

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> FunctionMeta:
        decl = Range.from_dict(data.get("decl"))
        loc = Range.from_dict(data.get("loc") or data.get("decl"))
        line = int(data.get("line") or decl.start.line)
        return cls(name=str(data.get("name") or "(anonymous)"), decl=decl, loc=loc, line=line)

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "decl": self.decl.to_dict(),
            "loc": self.loc.to_dict(),
            "line": self.line,
        }


@dataclass(frozen=True, slots=True)
class BranchMeta:
    type: str
    loc: Range
    locations: tuple[Range, ...]
    line: int

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> BranchMeta:
        locations = tuple(Range.from_dict(loc) for loc in data.get("locations") or ())
        loc = Range.from_dict(data.get("loc") or (data.get("locations") or [None])[0])
        line = int(data.get("line") or loc.start.line)
        return cls(type=str(data.get("type") or "branch"), loc=loc, locations=locations, line=line)

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.type,
            "loc": self.loc.to_dict(),
            "locations": [loc.to_dict() for loc in self.locations],
            "line": self.line,
        }


__all__ = [
    "FULL_COVERAGE",
    "METRICS",
    "BranchMeta",
    "FunctionMeta",
    "Metric",
    "Position",
    "Range",
]
