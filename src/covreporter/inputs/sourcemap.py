"""Source Map v3 decoding and position lookup.

Only the parts needed to re-project coverage locations are implemented:
decoding the ``mappings`` string and looking up the original position for a
generated ``(line, column)``. Indexed ("sections") maps are not supported.
"""

from __future__ import annotations

import base64
import binascii
import json
import posixpath
from bisect import bisect_left, bisect_right
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from urllib.parse import unquote

from covreporter.errors import SourceMapError

_BASE64 = "ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz0123456789+/"
_BASE64_VALUES = {ch: i for i, ch in enumerate(_BASE64)}
_VLQ_SHIFT = 5
_VLQ_CONTINUATION = 1 << _VLQ_SHIFT
_VLQ_MASK = _VLQ_CONTINUATION - 1


class Bias(Enum):
    GREATEST_LOWER_BOUND = "glb"
    LEAST_UPPER_BOUND = "lub"


@dataclass(frozen=True, slots=True)
class Segment:
    generated_column: int
    source: int
    original_line: int  # 0-based, as stored in the map
    original_column: int


@dataclass(frozen=True, slots=True)
class OriginalPosition:
    source: str
    line: int  # 1-based
    column: int  # 0-based


def decode_vlq(text: str) -> list[int]:
    """Decode one base64 VLQ segment into its signed integers."""
    values: list[int] = []
    shift = 0
    acc = 0
    for ch in text:
        try:
            digit = _BASE64_VALUES[ch]
        except KeyError as exc:
            msg = f"invalid base64 VLQ character {ch!r}"
            raise SourceMapError(msg) from exc
        acc += (digit & _VLQ_MASK) << shift
        if digit & _VLQ_CONTINUATION:
            shift += _VLQ_SHIFT
            continue
        negative = acc & 1
        acc >>= 1
        values.append(-acc if negative else acc)
        acc = 0
        shift = 0
    if shift:
        msg = f"truncated base64 VLQ segment {text!r}"
        raise SourceMapError(msg)
    return values


def decode_mappings(mappings: str) -> list[list[Segment]]:
    """Decode a ``mappings`` string into per-generated-line sorted segments.

    Segments without a source (one-field segments) are dropped since they
    cannot be projected anywhere.
    """
    lines: list[list[Segment]] = []
    source = original_line = original_column = 0
    for line_text in mappings.split(";"):
        generated_column = 0
        segments: list[Segment] = []
        for raw in line_text.split(","):
            if not raw:
                continue
            fields = decode_vlq(raw)
            generated_column += fields[0]
            if len(fields) < 4:  # noqa: PLR2004
                continue
            source += fields[1]
            original_line += fields[2]
            original_column += fields[3]
            segments.append(Segment(generated_column, source, original_line, original_column))
        segments.sort(key=lambda seg: seg.generated_column)
        lines.append(segments)
    return lines


def _resolve_source(source: str, *, source_root: str, base_dir: Path | None) -> str:
    source = source.removeprefix("file://")
    if source_root and not posixpath.isabs(source):
        source = posixpath.join(source_root.removeprefix("file://"), source)
    path = Path(source)
    if not path.is_absolute() and base_dir is not None:
        path = base_dir / path
    return posixpath.normpath(path.as_posix())


class SourceMap:
    """A decoded source map for one generated file."""

    def __init__(
        self,
        sources: list[str],
        lines: list[list[Segment]],
        *,
        sources_content: list[str | None] | None = None,
    ) -> None:
        self.sources = sources
        self._lines = lines
        self._columns = [[seg.generated_column for seg in segs] for segs in lines]
        contents = list(sources_content or [])
        contents.extend([None] * (len(sources) - len(contents)))
        self._contents = dict(zip(sources, contents, strict=False))

    @classmethod
    def from_dict(cls, data: object, *, base_dir: Path | None = None) -> SourceMap:
        if not isinstance(data, dict):
            msg = f"source map must be a JSON object, not {type(data).__name__}"
            raise SourceMapError(msg)
        if "sections" in data:
            msg = "indexed source maps are not supported"
            raise SourceMapError(msg)
        if data.get("version") not in {3, "3", None}:
            msg = f"unsupported source map version {data.get('version')!r}"
            raise SourceMapError(msg)
        raw_sources = data.get("sources") or []
        sources_content = data.get("sourcesContent")
        if not isinstance(raw_sources, list) or not isinstance(sources_content, list | None):
            msg = "source map 'sources' and 'sourcesContent' must be arrays"
            raise SourceMapError(msg)
        source_root = str(data.get("sourceRoot") or "")
        sources = [_resolve_source(str(s), source_root=source_root, base_dir=base_dir) for s in raw_sources]
        return cls(
            sources,
            decode_mappings(str(data.get("mappings", ""))),
            sources_content=sources_content,
        )

    @classmethod
    def load(cls, location: str) -> SourceMap:
        """Load a map from a file path or a ``data:`` URL."""
        if location.startswith("data:"):
            header, _, payload = location.partition(",")
            try:
                text = base64.b64decode(payload).decode("utf-8") if header.endswith(";base64") else unquote(payload)
            except (binascii.Error, ValueError) as exc:
                msg = f"failed to decode source map data URL {location[:80]!r}: {exc}"
                raise SourceMapError(msg) from exc
            base_dir = None
        else:
            path = Path(location.removeprefix("file://"))
            try:
                text = path.read_text(encoding="utf-8")
            except (OSError, UnicodeDecodeError) as exc:
                msg = f"{path}: failed to read source map: {exc}"
                raise SourceMapError(msg) from exc
            base_dir = path.resolve().parent
        try:
            data = json.loads(text)
        except json.JSONDecodeError as exc:
            msg = f"failed to parse source map {location[:80]!r}: {exc}"
            raise SourceMapError(msg) from exc
        return cls.from_dict(data, base_dir=base_dir)

    def source_content(self, source: str) -> str | None:
        return self._contents.get(source)

    def original_position_for(
        self,
        line: int,
        column: int,
        *,
        bias: Bias = Bias.GREATEST_LOWER_BOUND,
    ) -> OriginalPosition | None:
        """Look up a generated 1-based *line* and 0-based *column*."""
        idx = line - 1
        if idx < 0 or idx >= len(self._lines) or not self._lines[idx]:
            return None
        columns = self._columns[idx]
        if bias is Bias.GREATEST_LOWER_BOUND:
            pos = bisect_right(columns, column) - 1
            if pos < 0:
                return None
        else:
            pos = bisect_left(columns, column)
            if pos >= len(columns):
                return None
        seg = self._lines[idx][pos]
        if seg.source >= len(self.sources):
            return None
        return OriginalPosition(self.sources[seg.source], seg.original_line + 1, seg.original_column)

    def lookup(self, line: int, column: int) -> OriginalPosition | None:
        """Greatest-lower-bound lookup, falling back to least-upper-bound."""
        found = self.original_position_for(line, column, bias=Bias.GREATEST_LOWER_BOUND)
        if found is None:
            found = self.original_position_for(line, column, bias=Bias.LEAST_UPPER_BOUND)
        return found


__all__ = ["Bias", "OriginalPosition", "SourceMap", "decode_mappings", "decode_vlq"]
