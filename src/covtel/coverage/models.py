"""Coverage summary data model.

Mirrors the Istanbul ``coverage-summary.json`` layout: one entry per
source file plus an aggregate ``total`` entry, each holding the same
four dimensions.
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any

TOTAL_KEY = "total"
UNKNOWN_PCT = "Unknown"


class CoverageDimension(str, Enum):
    """Axis along which coverage is measured."""

    LINES = "lines"
    STATEMENTS = "statements"
    FUNCTIONS = "functions"
    BRANCHES = "branches"


class CoverageMeasure(str, Enum):
    """Numeric statistic reported per dimension."""

    PCT = "pct"
    TOTAL = "total"
    COVERED = "covered"


@dataclass(frozen=True, slots=True)
class CoverageMetric:
    """pct/total/covered triple for one dimension of one file."""

    pct: float
    total: int
    covered: int
    skipped: int | None = None

    def value(self, measure: CoverageMeasure) -> float | int:
        return getattr(self, measure.value)  # type: ignore[no-any-return]


@dataclass(frozen=True, slots=True)
class CoverageSummary:
    """Parsed contents of one summary file.

    ``files`` keeps the raw per-file entries keyed by the path exactly as
    written in the report; they are validated dimension by dimension during
    attribution so one bad dimension never hides the others.
    """

    path: Path
    total: dict[str, Any]
    files: dict[str, Any] = field(default_factory=dict)

    @property
    def total_line_pct(self) -> float:
        return float(self.total["lines"]["pct"])

    def __iter__(self) -> Iterator[tuple[str, Any]]:
        return iter(self.files.items())

    def __len__(self) -> int:
        return len(self.files)
