"""Join per-file coverage with ownership and application labels."""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field

import structlog

from covtel.attribution.models import AttributedCoverage, AttributionLabels
from covtel.attribution.naming import application_name
from covtel.attribution.ownership import OwnershipResolver
from covtel.core.errors import AttributionError
from covtel.coverage.models import TOTAL_KEY, CoverageDimension, CoverageSummary
from covtel.coverage.parser import parse_metric

log = structlog.get_logger(__name__)

DIMENSIONS: tuple[CoverageDimension, ...] = (
    CoverageDimension.LINES,
    CoverageDimension.STATEMENTS,
    CoverageDimension.FUNCTIONS,
    CoverageDimension.BRANCHES,
)


@dataclass
class AttributionResult:
    """Labeled records of one summary. Iterating yields the records."""

    records: list[AttributedCoverage] = field(default_factory=list)
    errors: list[AttributionError] = field(default_factory=list)
    files: int = 0

    def __iter__(self) -> Iterator[AttributedCoverage]:
        return iter(self.records)

    def __len__(self) -> int:
        return len(self.records)


def strip_workspace_prefix(path: str, prefix: str) -> str:
    """Remove the first literal occurrence of ``prefix`` from ``path``.

    Report keys are absolute paths inside the CI sandbox; removing the
    runner root leaves the repository-relative part.
    """
    if not prefix:
        return path
    index = path.find(prefix)
    if index == -1:
        return path
    if index != 0:
        log.debug("attribution.prefix_not_leading", path=path, prefix=prefix, index=index)
    return path[:index] + path[index + len(prefix) :]


def build_labels(
    raw_path: str, workspace_root_prefix: str, resolver: OwnershipResolver
) -> AttributionLabels:
    relative = strip_workspace_prefix(raw_path, workspace_root_prefix)
    return AttributionLabels(
        coverage_path=relative,
        owner_team=resolver.resolve(relative),
        application_name=application_name(relative),
    )


def attribute(
    summary: CoverageSummary,
    workspace_root_prefix: str,
    resolver: OwnershipResolver,
) -> AttributionResult:
    """Label every file entry of ``summary`` and split it into dimensions.

    A bad dimension is logged and skipped on its own; the remaining
    dimensions and files are still attributed.
    """
    result = AttributionResult()
    for raw_path, entry in summary.files.items():
        if raw_path == TOTAL_KEY:
            continue
        result.files += 1
        labels = build_labels(raw_path, workspace_root_prefix, resolver)

        if not isinstance(entry, dict):
            err = AttributionError.invalid_entry(raw_path, "entry is not an object")
            log.warning("attribution.entry_skipped", **err.to_dict())
            result.errors.append(err)
            continue

        for dimension in DIMENSIONS:
            try:
                metric = parse_metric(entry, dimension, path=raw_path)
            except AttributionError as e:
                log.warning("attribution.dimension_skipped", **e.to_dict())
                result.errors.append(e)
                continue
            result.records.append(AttributedCoverage(dimension, metric, labels))

    log.debug(
        "attribution.complete",
        summary=str(summary.path),
        files=result.files,
        records=len(result.records),
        skipped=len(result.errors),
    )
    return result
