"""Merge per-test coverage records into a run-wide coverage map.

Merging behaves like addition: it is commutative and associative, and an
absent file is the identity element. Hit counters for the same item id are
summed, so submitting the same execution twice double-counts its hits.
"""

from __future__ import annotations

from itertools import zip_longest
from typing import TYPE_CHECKING

from covreporter.model.coverage import CoverageMap, FileCoverage

if TYPE_CHECKING:
    from collections.abc import Mapping


def _sum_counts(left: dict[str, int], right: dict[str, int]) -> dict[str, int]:
    out = dict(left)
    for key, hits in right.items():
        out[key] = out.get(key, 0) + hits
    return out


def _sum_branch_counts(left: dict[str, list[int]], right: dict[str, list[int]]) -> dict[str, list[int]]:
    out = {key: list(counts) for key, counts in left.items()}
    for key, counts in right.items():
        if key in out:
            out[key] = [a + b for a, b in zip_longest(out[key], counts, fillvalue=0)]
        else:
            out[key] = list(counts)
    return out


def merge_file_coverage(left: FileCoverage, right: FileCoverage) -> FileCoverage:
    """Return a new record combining *left* and *right*; neither input is modified.

    Item maps are unioned. Where both sides describe the same id, the
    descriptions are expected to match (ids are stable for an unmodified
    file), and the left-hand one is kept.
    """
    return FileCoverage(
        path=left.path,
        statement_map={**right.statement_map, **left.statement_map},
        fn_map={**right.fn_map, **left.fn_map},
        branch_map={**right.branch_map, **left.branch_map},
        s=_sum_counts(left.s, right.s),
        f=_sum_counts(left.f, right.f),
        b=_sum_branch_counts(left.b, right.b),
    )


def merge(model: CoverageMap, incoming: CoverageMap | Mapping[str, FileCoverage]) -> CoverageMap:
    """Fold *incoming* into *model* in place and return *model*.

    New files are inserted as deep copies so later merges never write through
    to the caller's records.
    """
    records = incoming.files if isinstance(incoming, CoverageMap) else incoming
    for path, record in records.items():
        existing = model.files.get(path)
        if existing is None:
            fresh = record.copy()
            fresh.path = path
            model.files[path] = fresh
        else:
            model.files[path] = merge_file_coverage(existing, record)
    return model


__all__ = ["merge", "merge_file_coverage"]
