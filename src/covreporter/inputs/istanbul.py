from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from jsonschema import ValidationError, validate

from covreporter.config import get_schema
from covreporter.errors import InvalidCoverageDataError
from covreporter.model.coverage import CoverageMap

if TYPE_CHECKING:
    from pathlib import Path

_ENVELOPE_KEYS = frozenset({"testFilePath", "coverage", "sourceMaps"})


@dataclass(slots=True)
class TestResult:
    """What one completed test file hands to the reporter."""

    __test__ = False  # not a pytest test class

    test_file_path: str
    coverage: CoverageMap | None = None
    source_maps: dict[str, str] = field(default_factory=dict)


def _is_envelope(data: dict[str, Any]) -> bool:
    return "coverage" in data and set(data) <= _ENVELOPE_KEYS


def parse_test_result(data: object, *, origin: str) -> TestResult:
    """Validate *data* and return it as a :class:`TestResult`.

    Accepts either a bare Istanbul coverage map or an envelope of the form
    ``{"testFilePath": ..., "coverage": {...}, "sourceMaps": {...}}``.
    """
    try:
        validate(data, get_schema("coverage"))
    except ValidationError as exc:
        location = "/".join(str(p) for p in exc.absolute_path) or "<root>"
        msg = f"{origin}: invalid coverage data at {location}: {exc.message}"
        raise InvalidCoverageDataError(msg) from exc
    if not isinstance(data, dict):  # pragma: no cover - rejected by the schema
        msg = f"{origin}: coverage data must be an object"
        raise InvalidCoverageDataError(msg)

    if _is_envelope(data):
        raw = data.get("coverage")
        return TestResult(
            test_file_path=str(data.get("testFilePath", origin)),
            coverage=CoverageMap.from_dict(raw) if raw is not None else None,
            source_maps=dict(data.get("sourceMaps") or {}),
        )
    return TestResult(test_file_path=origin, coverage=CoverageMap.from_dict(data))


def read_test_result(path: Path) -> TestResult:
    """Read one Istanbul JSON file (coverage map or test-result envelope)."""
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        msg = f"{path}: failed to parse coverage JSON: {exc}"
        raise InvalidCoverageDataError(msg) from exc
    return parse_test_result(data, origin=str(path))


__all__ = ["TestResult", "parse_test_result", "read_test_result"]
