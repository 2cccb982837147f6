"""Base types and interface for report writers."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Protocol

from rich.console import Console

if TYPE_CHECKING:
    from covreporter.engine.project import SourceFinder
    from covreporter.model.coverage import CoverageMap


@dataclass(slots=True)
class WriterContext:
    """Container for options shared by all writers."""

    directory: Path
    console: Console = field(default_factory=Console)
    source_finder: SourceFinder | None = None
    root_dir: Path | None = None
    # Percentages at or above `green` render green, at or above `yellow` yellow.
    green: float = 80.0
    yellow: float = 50.0

    def output_path(self, *parts: str) -> Path:
        """Return a path inside the output directory, creating its parents."""
        path = self.directory.joinpath(*parts)
        path.parent.mkdir(parents=True, exist_ok=True)
        return path

    def display_path(self, path: str) -> str:
        """Return *path* relative to ``root_dir`` when it lies inside it."""
        p = Path(path)
        if self.root_dir is not None:
            try:
                return p.relative_to(self.root_dir).as_posix()
            except ValueError:
                pass
        return p.as_posix()

    def read_source(self, path: str) -> str:
        if self.source_finder is not None:
            return self.source_finder(path)
        return Path(path).read_text(encoding="utf-8")


class Writer(Protocol):
    def __call__(self, coverage_map: CoverageMap, context: WriterContext) -> None: ...


__all__ = ["Writer", "WriterContext"]
