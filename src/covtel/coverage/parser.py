"""Istanbul ``coverage-summary.json`` parser.

Istanbul (used by Jest, Vitest, NYC) writes the ``json-summary`` report as:

{
  "total": {
    "lines": {"total": 10, "covered": 8, "skipped": 0, "pct": 80},
    "statements": {...}, "functions": {...}, "branches": {...}
  },
  "/abs/path/to/file.ts": {
    "lines": {"total": 10, "covered": 8, "skipped": 0, "pct": 80},
    ...
  }
}

``pct`` is the string "Unknown" when nothing was instrumented.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from covtel.core.errors import AttributionError, ParseError
from covtel.coverage.models import (
    TOTAL_KEY,
    UNKNOWN_PCT,
    CoverageDimension,
    CoverageMetric,
    CoverageSummary,
)


def _is_number(value: Any) -> bool:
    return isinstance(value, int | float) and not isinstance(value, bool)


def has_coverage_data(total: dict[str, Any]) -> bool:
    """A summary is usable only when its aggregate line percentage is numeric."""
    lines = total.get("lines")
    if not isinstance(lines, dict):
        return False
    return _is_number(lines.get("pct"))


def parse_metric(entry: Any, dimension: CoverageDimension, *, path: str) -> CoverageMetric:
    """Validate one dimension of one file entry.

    Raises:
        AttributionError: Dimension missing, or measures not numeric.
    """
    if not isinstance(entry, dict):
        raise AttributionError.invalid_entry(path, "entry is not an object")
    raw = entry.get(dimension.value)
    if raw is None:
        raise AttributionError.missing_dimension(path, dimension.value)
    if not isinstance(raw, dict):
        raise AttributionError.invalid_metric(path, dimension.value, "not an object")

    pct, total, covered = raw.get("pct"), raw.get("total"), raw.get("covered")
    if pct == UNKNOWN_PCT:
        raise AttributionError.invalid_metric(path, dimension.value, "pct is Unknown")
    for name, value in (("pct", pct), ("total", total), ("covered", covered)):
        if not _is_number(value):
            raise AttributionError.invalid_metric(
                path, dimension.value, f"{name} is not a number: {value!r}"
            )

    skipped = raw.get("skipped")
    return CoverageMetric(
        pct=float(pct),
        total=int(total),
        covered=int(covered),
        skipped=int(skipped) if _is_number(skipped) else None,
    )


class IstanbulSummaryParser:
    """Parser for Istanbul json-summary reports."""

    def parse(self, path: Path) -> CoverageSummary:
        """Parse a summary file into a CoverageSummary.

        Raises:
            ParseError: File unreadable, not JSON, wrong shape, or the
                aggregate line percentage is not numeric.
        """
        try:
            with path.open(encoding="utf-8") as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            raise ParseError.invalid_json(str(path), str(e)) from e
        except (OSError, UnicodeDecodeError) as e:
            raise ParseError.read_failed(str(path), str(e)) from e

        if not isinstance(data, dict):
            raise ParseError.invalid_shape(str(path), "top level is not an object")
        total = data.get(TOTAL_KEY)
        if not isinstance(total, dict) or not isinstance(total.get("lines"), dict):
            raise ParseError.invalid_shape(str(path), "missing total.lines")
        if "pct" not in total["lines"]:
            raise ParseError.invalid_shape(str(path), "missing total.lines.pct")
        if not has_coverage_data(total):
            raise ParseError.no_coverage_data(str(path))

        files = {key: value for key, value in data.items() if key != TOTAL_KEY}
        return CoverageSummary(path=path, total=total, files=files)
