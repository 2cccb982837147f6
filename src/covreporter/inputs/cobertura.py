"""Read Cobertura-style coverage XML into coverage records.

Cobertura reports carry line hits and per-line branch condition counts only.
Each ``<line>`` becomes one statement; a branch line with
``condition-coverage="50% (1/2)"`` becomes one branch with two arms, the
covered arms counted once each. Function data is not carried over.
"""

from __future__ import annotations

import re
from pathlib import Path
from typing import TYPE_CHECKING

from defusedxml import DefusedXmlException, ElementTree

from covreporter.engine.merge import merge
from covreporter.errors import InvalidCoverageDataError
from covreporter.model.coverage import CoverageMap, FileCoverage
from covreporter.model.types import BranchMeta, Range

if TYPE_CHECKING:
    from xml.etree.ElementTree import Element  # noqa: S405

_COND_RE = re.compile(r"\(\s*(?P<covered>\d+)\s*/\s*(?P<total>\d+)\s*\)")


def read_root(path: Path) -> Element:
    """Parse coverage XML and return the root element."""
    try:
        root = ElementTree.parse(path).getroot()
    except (ElementTree.ParseError, DefusedXmlException) as exc:
        msg = f"{path}: failed to parse coverage XML: {exc}"
        raise InvalidCoverageDataError(msg) from exc
    tag = (root.tag or "").split("}")[-1]
    if tag.lower() != "coverage":
        msg = f"unexpected root tag {root.tag!r} in {path}"
        raise InvalidCoverageDataError(msg)
    return root


def parse_condition_coverage(text: str) -> tuple[int, int] | None:
    if not text:
        return None
    m = _COND_RE.search(text.strip())
    if not m:
        return None
    return int(m.group("covered")), int(m.group("total"))


def _source_root(root: Element, *, default: Path) -> Path:
    for source in root.findall("./sources/source"):
        text = (source.text or "").strip()
        if text:
            return Path(text)
    return default


def _class_coverage(cls: Element, path: str) -> FileCoverage:
    fc = FileCoverage(path=path)
    for line_elem in cls.findall("./lines/line"):
        try:
            number = int(line_elem.get("number", ""))
            hits = int(line_elem.get("hits", ""))
        except ValueError:
            continue
        key = str(number)
        fc.statement_map[key] = Range.on_line(number)
        fc.s[key] = fc.s.get(key, 0) + hits

        if line_elem.get("branch") != "true":
            continue
        counts = parse_condition_coverage(line_elem.get("condition-coverage", "") or "")
        if counts is None or counts[1] == 0:
            continue
        covered, total = counts
        rng = Range.on_line(number)
        fc.branch_map[key] = BranchMeta(type="cobertura", loc=rng, locations=(rng,) * total, line=number)
        fc.b[key] = [1] * covered + [0] * (total - covered)
    return fc


def read_cobertura(path: Path) -> CoverageMap:
    """Return the coverage recorded in the Cobertura XML file at *path*."""
    root = read_root(path)
    base = _source_root(root, default=path.resolve().parent)
    out = CoverageMap()
    for cls in root.findall(".//class"):
        filename = cls.get("filename")
        if not filename:
            continue
        fpath = Path(filename)
        resolved = str((fpath if fpath.is_absolute() else base / fpath).resolve())
        merge(out, {resolved: _class_coverage(cls, resolved)})
    return out


__all__ = ["parse_condition_coverage", "read_cobertura", "read_root"]
