"""Project coverage locations through source maps onto original sources.

Every statement, function and branch recorded against a generated file with
a registered source map is rewritten to original coordinates. Items whose
start and end do not land in the same original file are dropped. Items from
several generated locations that land on the same original range collapse
into one item with summed hits.
"""

from __future__ import annotations

from functools import partial
from pathlib import Path
from typing import TYPE_CHECKING, Any, Protocol

from covreporter._meta import logger
from covreporter.errors import SourceMapError
from covreporter.inputs.sourcemap import SourceMap
from covreporter.model.coverage import CoverageMap, FileCoverage
from covreporter.model.types import BranchMeta, FunctionMeta, Position, Range

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable


class SourceFinder(Protocol):
    def __call__(self, path: str) -> str: ...


class _MappedFile:
    """Accumulates projected items for one original source file."""

    def __init__(self, path: str) -> None:
        self.coverage = FileCoverage(path=path)
        self._statements: dict[Range, str] = {}
        self._functions: dict[Range, str] = {}
        self._branches: dict[tuple[str, tuple[Range, ...]], str] = {}

    def add_statement(self, rng: Range, hits: int) -> None:
        fc = self.coverage
        key = self._statements.get(rng)
        if key is None:
            key = self._statements[rng] = str(len(self._statements))
            fc.statement_map[key] = rng
            fc.s[key] = 0
        fc.s[key] += hits

    def add_function(self, meta: FunctionMeta, hits: int) -> None:
        fc = self.coverage
        key = self._functions.get(meta.decl)
        if key is None:
            key = self._functions[meta.decl] = str(len(self._functions))
            fc.fn_map[key] = meta
            fc.f[key] = 0
        fc.f[key] += hits

    def add_branch(self, meta: BranchMeta, counts: list[int]) -> None:
        fc = self.coverage
        ident = (meta.type, meta.locations)
        key = self._branches.get(ident)
        if key is None:
            key = self._branches[ident] = str(len(self._branches))
            fc.branch_map[key] = meta
            fc.b[key] = [0] * len(counts)
        fc.b[key] = [a + b for a, b in zip(fc.b[key], counts, strict=False)]

    def add_file(self, fc: FileCoverage) -> None:
        """Add an unmapped record whose path is also a projection target."""
        for key, rng in fc.statement_map.items():
            self.add_statement(rng, fc.s.get(key, 0))
        for key, meta in fc.fn_map.items():
            self.add_function(meta, fc.f.get(key, 0))
        for key, meta in fc.branch_map.items():
            self.add_branch(meta, fc.b.get(key, [0] * len(meta.locations)))


def _map_range(smap: SourceMap, rng: Range) -> tuple[str, Range] | None:
    start = smap.lookup(rng.start.line, rng.start.column)
    # Range ends are exclusive; look up the last covered column.
    end = smap.lookup(rng.end.line, max(rng.end.column - 1, 0))
    if start is None or end is None or start.source != end.source:
        return None
    return start.source, Range(Position(start.line, start.column), Position(end.line, end.column + 1))


def _project_file(fc: FileCoverage, smap: SourceMap, targets: dict[str, _MappedFile]) -> None:
    def target(source: str) -> _MappedFile:
        return targets.setdefault(source, _MappedFile(source))

    for key, rng in fc.statement_map.items():
        mapped = _map_range(smap, rng)
        if mapped is not None:
            target(mapped[0]).add_statement(mapped[1], fc.s.get(key, 0))

    for key, meta in fc.fn_map.items():
        decl = _map_range(smap, meta.decl)
        if decl is None:
            continue
        loc = _map_range(smap, meta.loc)
        loc_range = loc[1] if loc is not None and loc[0] == decl[0] else decl[1]
        projected = FunctionMeta(name=meta.name, decl=decl[1], loc=loc_range, line=decl[1].start.line)
        target(decl[0]).add_function(projected, fc.f.get(key, 0))

    for key, meta in fc.branch_map.items():
        mapped_locations = [_map_range(smap, loc) for loc in meta.locations]
        if not mapped_locations or any(m is None for m in mapped_locations):
            continue
        sources = {m[0] for m in mapped_locations if m is not None}
        if len(sources) != 1:
            continue
        locations = tuple(m[1] for m in mapped_locations if m is not None)
        loc = _map_range(smap, meta.loc)
        loc_range = loc[1] if loc is not None and loc[0] in sources else locations[0]
        projected = BranchMeta(type=meta.type, loc=loc_range, locations=locations, line=loc_range.start.line)
        target(sources.pop()).add_branch(projected, fc.b.get(key, [0] * len(locations)))


class SourceMapStore:
    """Source maps registered per generated file for one run.

    Maps are decoded lazily on first lookup. A map that cannot be loaded or
    decoded is logged once and its generated file is left unprojected.
    """

    def __init__(self) -> None:
        self._loaders: dict[str, Callable[[], SourceMap]] = {}
        self._maps: dict[str, SourceMap | None] = {}

    def __contains__(self, path: object) -> bool:
        return str(path) in self._loaders

    def register_url(self, path: str, url: str) -> None:
        """Register a map file path or ``data:`` URL for generated file *path*."""
        self._loaders[path] = partial(SourceMap.load, url)
        self._maps.pop(path, None)

    def register_map(self, path: str, data: dict[str, Any]) -> None:
        """Register an already-parsed map for generated file *path*."""
        base_dir = Path(path).resolve().parent
        self._loaders[path] = partial(SourceMap.from_dict, data, base_dir=base_dir)
        self._maps.pop(path, None)

    def get(self, path: str) -> SourceMap | None:
        """Return the decoded map for *path*, or ``None`` when absent or unloadable."""
        if path in self._maps:
            return self._maps[path]
        loader = self._loaders.get(path)
        if loader is None:
            return None
        try:
            smap: SourceMap | None = loader()
        except SourceMapError as exc:
            logger.warning("ignoring source map for %s: %s", path, exc)
            smap = None
        self._maps[path] = smap
        return smap

    def transform_coverage(self, model: CoverageMap) -> tuple[CoverageMap, SourceFinder]:
        """Return the projected coverage map and a finder for original sources."""
        targets: dict[str, _MappedFile] = {}
        unmapped: list[tuple[str, FileCoverage]] = []
        used_maps: list[SourceMap] = []
        for path in sorted(model.files):
            fc = model.files[path]
            smap = self.get(path)
            if smap is None:
                unmapped.append((path, fc))
                continue
            used_maps.append(smap)
            _project_file(fc, smap, targets)

        out = CoverageMap()
        for path, fc in unmapped:
            if path in targets:
                targets[path].add_file(fc)
            else:
                out.files[path] = fc.copy()
        for source, mapped in targets.items():
            out.files[source] = mapped.coverage
        logger.debug("projected %d file(s) through source maps", len(model) - len(unmapped))
        return out, _make_source_finder(used_maps)


def _make_source_finder(maps: Iterable[SourceMap]) -> SourceFinder:
    contents: dict[str, str] = {}
    for smap in maps:
        for source in smap.sources:
            text = smap.source_content(source)
            if text is not None:
                contents.setdefault(source, text)

    def find(path: str) -> str:
        if path in contents:
            return contents[path]
        return Path(path).read_text(encoding="utf-8")

    return find


__all__ = ["SourceFinder", "SourceMapStore"]
