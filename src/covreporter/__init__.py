from covreporter._meta import __version__, logger
from covreporter.config import CoverageConfig, load_config
from covreporter.engine.merge import merge
from covreporter.model.coverage import CoverageMap, FileCoverage
from covreporter.model.thresholds import Threshold
from covreporter.reporter import CoverageReporter, RunOutcome, TestResult

__all__ = [
    "CoverageConfig",
    "CoverageMap",
    "CoverageReporter",
    "FileCoverage",
    "RunOutcome",
    "TestResult",
    "Threshold",
    "__version__",
    "load_config",
    "logger",
    "merge",
]
