"""File discovery and source reading for ``collectCoverageFrom``."""

from __future__ import annotations

from dataclasses import dataclass
from fnmatch import fnmatch
from pathlib import Path
from typing import TYPE_CHECKING

from covreporter._meta import logger

if TYPE_CHECKING:
    from collections.abc import Sequence


def read_source_text(path: str | Path) -> str:
    """Return the text of *path*.

    Unlike the report-side helpers this does not swallow errors: a file that
    cannot be read or decoded must surface as a failure for that file.
    """
    return Path(path).read_text(encoding="utf-8")


def split_patterns(patterns: Sequence[str]) -> tuple[tuple[str, ...], tuple[str, ...]]:
    """Split globs into (include, exclude); ``!``-prefixed globs exclude."""
    include: list[str] = []
    exclude: list[str] = []
    for raw in patterns:
        pat = raw.strip()
        if not pat:
            continue
        if pat.startswith("!"):
            exclude.append(pat[1:].removeprefix("./"))
        else:
            include.append(pat.removeprefix("./"))
    return tuple(dict.fromkeys(include)), tuple(dict.fromkeys(exclude))


@dataclass(frozen=True, slots=True)
class PathFilter:
    """Exclude filter for discovered files.

    Patterns are treated as globs matched against:
      - the base-relative posix path (preferred)
      - the raw posix path (fallback)
    """

    exclude: tuple[str, ...]
    base: Path

    def _labels(self, path: Path) -> tuple[str, str]:
        try:
            rel_s = path.resolve().relative_to(self.base.resolve()).as_posix()
        except (OSError, RuntimeError, ValueError):
            rel_s = path.as_posix()
        return rel_s, path.as_posix()

    def allow(self, path: Path) -> bool:
        rel_s, raw = self._labels(path)
        return not any(fnmatch(rel_s, pat) or fnmatch(raw, pat) for pat in self.exclude)


def match_files_with_glob(patterns: Sequence[str], root_dir: Path) -> list[str]:
    """Return absolute paths of files under *root_dir* matching *patterns*.

    The result is de-duplicated and sorted so synthesis order is stable.
    """
    include, exclude = split_patterns(patterns)
    path_filter = PathFilter(exclude=exclude, base=root_dir)
    seen: set[str] = set()
    for pat in include:
        base, rel_pat = root_dir, pat
        if Path(pat).is_absolute():
            base = Path(Path(pat).anchor)
            rel_pat = Path(pat).relative_to(base).as_posix()
        for p in base.glob(rel_pat):
            if not p.is_file() or not path_filter.allow(p):
                continue
            seen.add(str(p.resolve()))
    logger.debug("collectCoverageFrom matched %d file(s)", len(seen))
    return sorted(seen)


__all__ = ["PathFilter", "match_files_with_glob", "read_source_text", "split_patterns"]
