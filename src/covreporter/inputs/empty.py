"""Default empty-coverage generator used for files no test executed.

This is a line heuristic, not a parser: every line that carries code becomes
one statement, and lines that open a function definition also become a
function. Branches cannot be known without parsing, so none are produced.
Callers with a real instrumenter should pass their own generator.
"""

from __future__ import annotations

import re
from typing import TYPE_CHECKING

from covreporter.engine.untested import EmptyCoverage
from covreporter.model.coverage import FileCoverage
from covreporter.model.types import FunctionMeta, Range

if TYPE_CHECKING:
    from covreporter.config import CoverageConfig

_COMMENT_PREFIXES = ("#", "//", "/*", "*")
_FUNCTION_RE = re.compile(r"^(?:async\s+def|def|function)\b\s*\*?\s*(?P<name>[A-Za-z_$][\w$]*)?")


def detect_line_tag(code: str) -> str | None:
    """Lightweight tag heuristic for a single source line."""
    s = code.strip()
    if not s:
        return "blank"
    if "pragma: no cover" in s or "istanbul ignore" in s:
        return "no-cover"
    if s.startswith(_COMMENT_PREFIXES):
        return "comment"
    if _FUNCTION_RE.match(s):
        return "def"
    return None


def generate_line_coverage(source: str, path: str, config: CoverageConfig) -> EmptyCoverage | None:
    """Return a zero-hit record with one statement per code line of *source*."""
    fc = FileCoverage(path=path)
    for lineno, code in enumerate(source.splitlines(), start=1):
        tag = detect_line_tag(code)
        if tag in {"blank", "comment", "no-cover"}:
            continue
        indent = len(code) - len(code.lstrip())
        rng = Range.on_line(lineno, start=indent, end=len(code.rstrip()))
        key = str(len(fc.statement_map))
        fc.statement_map[key] = rng
        fc.s[key] = 0
        if tag == "def":
            m = _FUNCTION_RE.match(code.strip())
            name = (m.group("name") if m else None) or f"(anonymous_{len(fc.fn_map)})"
            fn_key = str(len(fc.fn_map))
            fc.fn_map[fn_key] = FunctionMeta(name=name, decl=rng, loc=rng, line=lineno)
            fc.f[fn_key] = 0
    return EmptyCoverage(coverage=fc)


__all__ = ["detect_line_tag", "generate_line_coverage"]
