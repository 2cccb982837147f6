"""Aggregation engine: merging, untested-file synthesis and source-map projection."""

from .merge import merge, merge_file_coverage
from .project import SourceFinder, SourceMapStore
from .untested import EmptyCoverage, EmptyCoverageGenerator, SynthesisFailure, add_untested_files

__all__ = [
    "EmptyCoverage",
    "EmptyCoverageGenerator",
    "SourceFinder",
    "SourceMapStore",
    "SynthesisFailure",
    "add_untested_files",
    "merge",
    "merge_file_coverage",
]
