from __future__ import annotations

import logging
from importlib.metadata import version

__version__ = version("covreporter")

logger = logging.getLogger("covreporter")

__all__ = ["__version__", "logger"]
