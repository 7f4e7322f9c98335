"""Coverage summary discovery and parsing."""

from covtel.coverage.discovery import DiscoveryResult, discover_summaries, find_summary_files
from covtel.coverage.models import (
    CoverageDimension,
    CoverageMeasure,
    CoverageMetric,
    CoverageSummary,
)
from covtel.coverage.parser import IstanbulSummaryParser, has_coverage_data, parse_metric

__all__ = [
    "CoverageDimension",
    "CoverageMeasure",
    "CoverageMetric",
    "CoverageSummary",
    "DiscoveryResult",
    "IstanbulSummaryParser",
    "discover_summaries",
    "find_summary_files",
    "has_coverage_data",
    "parse_metric",
]
