"""Writer registry for covreporter report formats."""

from __future__ import annotations

import difflib
from typing import TYPE_CHECKING

from covreporter._meta import logger
from covreporter.output.cobertura import write_cobertura
from covreporter.output.html import write_html
from covreporter.output.json import write_json, write_json_summary
from covreporter.output.lcov import write_lcov
from covreporter.output.text import write_text, write_text_summary

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence

    from covreporter.output.base import Writer

TEXT = "text"
TEXT_SUMMARY = "text-summary"

REPORTERS: dict[str, Writer] = {
    "cobertura": write_cobertura,
    "html": write_html,
    "json": write_json,
    "json-summary": write_json_summary,
    "lcov": write_lcov,
    "lcovonly": write_lcov,
    TEXT: write_text,
    TEXT_SUMMARY: write_text_summary,
}


class UnknownReporterError(ValueError):
    """A configured reporter name does not match any registered writer."""


def resolve_reporter(name: str, registry: Mapping[str, Writer] = REPORTERS) -> Writer:
    """Resolve *name* to its writer."""
    try:
        writer = registry[name]
    except KeyError as err:
        choices = sorted(registry)
        suggestion = difflib.get_close_matches(name, choices, n=1)
        hint = f". Did you mean {suggestion[0]!r}?" if suggestion else ""
        msg = f"{name!r} is not one of {', '.join(choices)}{hint}"
        raise UnknownReporterError(msg) from err

    logger.debug("selected reporter %s", name)
    return writer


def select_reporters(names: Sequence[str], *, use_stderr: bool) -> list[str]:
    """Return the reporter names to run, in order and without duplicates.

    When any reporter is configured but no plain-text one is, and console
    output is not redirected to stderr, ``text-summary`` is appended so the
    console always shows a coverage result.
    """
    selected = list(dict.fromkeys(names))
    if selected and not use_stderr and TEXT not in selected and TEXT_SUMMARY not in selected:
        selected.append(TEXT_SUMMARY)
    return selected


__all__ = ["REPORTERS", "UnknownReporterError", "resolve_reporter", "select_reporters"]
