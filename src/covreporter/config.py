"""Central configuration and constants for ``covreporter``."""

from __future__ import annotations

import json
import tomllib
from dataclasses import dataclass, field, replace
from functools import cache
from importlib import resources
from pathlib import Path
from typing import TYPE_CHECKING, Any

from jsonschema import ValidationError, validate

from covreporter._meta import logger
from covreporter.errors import ConfigError
from covreporter.model.thresholds import Threshold

if TYPE_CHECKING:
    from collections.abc import Mapping

# Default logging format used by the CLI entry point.
LOG_FORMAT = "%(levelname)s: %(message)s"

DEFAULT_REPORTERS: tuple[str, ...] = ("json", "text", "lcov")

PYPROJECT_TABLE = ("tool", "covreporter")

_SCHEMA_FILES: dict[str, str] = {
    "config": "config.schema.json",
    "coverage": "coverage.schema.json",
}


@cache
def get_schema(name: str) -> dict[str, object]:
    """Load and cache one of the bundled JSON schemas."""
    try:
        filename = _SCHEMA_FILES[name]
    except KeyError as exc:
        choices = ", ".join(sorted(_SCHEMA_FILES))
        msg = f"Unsupported schema: {name!r}. Available schemas: {choices}"
        raise ValueError(msg) from exc
    return json.loads(resources.files("covreporter.data").joinpath(filename).read_text(encoding="utf-8"))


@dataclass(frozen=True, slots=True)
class CoverageConfig:
    """Run configuration consumed by the reporter.

    Field names mirror the camelCase configuration keys: ``rootDir``,
    ``coverageDirectory``, ``coverageReporters``, ``useStderr``,
    ``coverageThreshold``, ``collectCoverageFrom`` and ``mapCoverage``.
    """

    root_dir: Path = field(default_factory=Path.cwd)
    coverage_directory: Path | None = None
    coverage_reporters: tuple[str, ...] = DEFAULT_REPORTERS
    use_stderr: bool = False
    coverage_threshold: Threshold | None = None
    collect_coverage_from: tuple[str, ...] = ()
    map_coverage: bool = False

    @property
    def output_directory(self) -> Path:
        return self.coverage_directory or (self.root_dir / "coverage")

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any], *, base: Path) -> CoverageConfig:
        """Validate *data* against the config schema and build a config.

        Relative ``rootDir``/``coverageDirectory`` values resolve against
        *base* (the directory holding the configuration file).
        """
        try:
            validate(dict(data), get_schema("config"))
        except ValidationError as exc:
            location = "/".join(str(p) for p in exc.absolute_path) or "<root>"
            msg = f"invalid configuration at {location}: {exc.message}"
            raise ConfigError(msg) from exc

        root_dir = (base / data.get("rootDir", ".")).resolve()
        coverage_directory = data.get("coverageDirectory")
        threshold_data = (data.get("coverageThreshold") or {}).get("global")
        threshold = Threshold.from_mapping(threshold_data) if threshold_data else None

        return cls(
            root_dir=root_dir,
            coverage_directory=(root_dir / coverage_directory).resolve() if coverage_directory else None,
            coverage_reporters=tuple(data.get("coverageReporters", DEFAULT_REPORTERS)),
            use_stderr=bool(data.get("useStderr", False)),
            coverage_threshold=None if threshold is None or threshold.is_empty() else threshold,
            collect_coverage_from=tuple(data.get("collectCoverageFrom", ())),
            map_coverage=bool(data.get("mapCoverage", False)),
        )

    def with_overrides(self, **changes: Any) -> CoverageConfig:
        """Return a copy with the non-``None`` entries of *changes* applied."""
        return replace(self, **{k: v for k, v in changes.items() if v is not None})


def _read_config_file(path: Path) -> dict[str, Any]:
    try:
        if path.suffix == ".toml":
            with path.open("rb") as fh:
                data = tomllib.load(fh)
            if path.name == "pyproject.toml":
                for key in PYPROJECT_TABLE:
                    data = data.get(key, {})
            return data
        return json.loads(path.read_text(encoding="utf-8"))
    except (tomllib.TOMLDecodeError, json.JSONDecodeError) as exc:
        msg = f"{path}: failed to parse configuration: {exc}"
        raise ConfigError(msg) from exc
    except OSError as exc:
        msg = f"{path}: failed to read configuration: {exc}"
        raise ConfigError(msg) from exc


def load_config(path: Path | None = None, *, cwd: Path | None = None) -> CoverageConfig:
    """Load configuration from *path*, or from ``pyproject.toml`` in *cwd*.

    Without an explicit path and without a ``[tool.covreporter]`` table the
    defaults are returned, rooted at *cwd*.
    """
    cwd = (cwd or Path.cwd()).resolve()
    if path is None:
        candidate = cwd / "pyproject.toml"
        if not candidate.is_file():
            logger.debug("no configuration file found; using defaults")
            return CoverageConfig(root_dir=cwd)
        path = candidate

    data = _read_config_file(path)
    if not isinstance(data, dict):
        msg = f"{path}: configuration must be a table/object"
        raise ConfigError(msg)
    logger.debug("loaded configuration from %s", path)
    return CoverageConfig.from_mapping(data, base=path.resolve().parent)


__all__ = [
    "DEFAULT_REPORTERS",
    "LOG_FORMAT",
    "CoverageConfig",
    "get_schema",
    "load_config",
]
