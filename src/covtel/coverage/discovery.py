"""Discovery of coverage summary files under a root folder."""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field
from pathlib import Path

import structlog

from covtel.config.models import DEFAULT_SUMMARY_FILE_NAME
from covtel.core.errors import CovtelError, DiscoveryError, ErrorCode, ParseError
from covtel.coverage.models import CoverageSummary
from covtel.coverage.parser import IstanbulSummaryParser

log = structlog.get_logger(__name__)


@dataclass
class DiscoveryResult:
    """Valid summaries plus the diagnostics for everything that was skipped.

    Iterating yields the summaries only.
    """

    root: Path
    files_found: int = 0
    summaries: list[CoverageSummary] = field(default_factory=list)
    errors: list[CovtelError] = field(default_factory=list)

    def __iter__(self) -> Iterator[CoverageSummary]:
        return iter(self.summaries)

    def __len__(self) -> int:
        return len(self.summaries)


def find_summary_files(root: Path, filename: str = DEFAULT_SUMMARY_FILE_NAME) -> list[Path]:
    """Equivalent of ``<root>/**/<filename>``, sorted for stable output."""
    if not root.is_dir():
        return []
    return sorted(p for p in root.rglob(filename) if p.is_file())


def discover_summaries(
    root: Path | str,
    filename: str = DEFAULT_SUMMARY_FILE_NAME,
    *,
    parser: IstanbulSummaryParser | None = None,
) -> DiscoveryResult:
    """Find and parse every summary file below ``root``.

    Finding nothing is not an error for the run: a diagnostic is logged and
    an empty result returned. Files that fail to parse, or carry no coverage
    data, are skipped one by one.
    """
    root = Path(root)
    parser = parser or IstanbulSummaryParser()
    result = DiscoveryResult(root=root)

    files = find_summary_files(root, filename)
    result.files_found = len(files)
    if not files:
        err = DiscoveryError.no_summaries(str(root), filename)
        log.warning("discovery.no_summaries", **err.to_dict())
        result.errors.append(err)
        return result

    for path in files:
        try:
            summary = parser.parse(path)
        except ParseError as e:
            if e.code == ErrorCode.PARSE_NO_COVERAGE_DATA:
                log.info("discovery.no_coverage_data", path=str(path))
            else:
                log.warning("discovery.skipped", **e.to_dict())
            result.errors.append(e)
            continue
        log.debug("discovery.summary_loaded", path=str(path), files=len(summary))
        result.summaries.append(summary)

    log.info(
        "discovery.complete",
        root=str(root),
        files_found=result.files_found,
        summaries=len(result.summaries),
        skipped=len(result.errors),
    )
    return result
