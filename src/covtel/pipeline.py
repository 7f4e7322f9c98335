"""Coverage-to-telemetry pipeline.

initialize emitter -> discover summaries -> attribute and record -> flush
and shut down. The flush/shutdown step always runs once the emitter is up,
so observations buffered before a failure are still delivered.
"""

from __future__ import annotations

from dataclasses import dataclass, field

import structlog

from covtel.attribution.attributor import attribute
from covtel.attribution.ownership import OwnershipResolver, empty_ruleset, load_ruleset
from covtel.config.models import PipelineConfig
from covtel.core.annotations import is_github_actions, report_failure
from covtel.core.errors import (
    CovtelError,
    ExportError,
    InternalError,
    OwnershipError,
)
from covtel.core.logging import clear_run_id, set_run_id
from covtel.coverage.discovery import discover_summaries
from covtel.telemetry.emitter import MetricEmitter

log = structlog.get_logger(__name__)


@dataclass
class PipelineResult:
    """What one run did.

    ``errors`` holds the skipped-file and skipped-record diagnostics; they do
    not make the run fail. ``failure`` is the error that stopped the run.
    """

    summaries: int = 0
    files: int = 0
    observations: int = 0
    flushed: bool = False
    errors: list[CovtelError] = field(default_factory=list)
    failure: CovtelError | None = None

    @property
    def ok(self) -> bool:
        return self.failure is None and self.flushed


def build_resolver(config: PipelineConfig) -> OwnershipResolver:
    """Ownership resolver for the run; an unreadable ruleset owns nothing."""
    try:
        ruleset = load_ruleset(config.codeowners_path)
    except OwnershipError as e:
        log.warning("pipeline.codeowners_unavailable", **e.to_dict())
        ruleset = empty_ruleset()
    return OwnershipResolver(ruleset, config.codeowners_team_prefix)


def _report(result: PipelineResult, error: CovtelError) -> None:
    result.failure = error
    log.error("pipeline.failed", **error.to_dict())
    if is_github_actions():
        report_failure(error.message, error.to_dict())


def run_pipeline(
    config: PipelineConfig,
    *,
    emitter: MetricEmitter | None = None,
    resolver: OwnershipResolver | None = None,
) -> PipelineResult:
    """Run once. Never raises; failures end up in the returned result.

    Args:
        config: Resolved configuration for this run.
        emitter: Uninitialized emitter to use (a fresh one by default).
        resolver: Ownership resolver (built from config.codeowners_path by default).
    """
    set_run_id()
    try:
        return _execute(config, emitter or MetricEmitter(), resolver)
    finally:
        clear_run_id()


def _execute(
    config: PipelineConfig,
    emitter: MetricEmitter,
    resolver: OwnershipResolver | None,
) -> PipelineResult:
    result = PipelineResult()
    log.info("pipeline.started", coverage_folder=config.coverage_folder)

    try:
        emitter.initialize(
            config.service_name,
            config.otel_collector_url or "",
            export_interval_millis=config.export_interval_millis,
            protocol=config.exporter_protocol,
        )
    except ExportError as e:
        _report(result, e)
        return result

    try:
        resolver = resolver or build_resolver(config)
        discovery = discover_summaries(config.coverage_folder, config.summary_file_name)
        result.errors.extend(discovery.errors)

        for summary in discovery:
            log.info(
                "pipeline.processing", path=str(summary.path), line_pct=summary.total_line_pct
            )
            attribution = attribute(summary, config.runner_root, resolver)
            result.errors.extend(attribution.errors)
            result.summaries += 1
            result.files += attribution.files
            for record in attribution:
                result.observations += emitter.record(record)

        log.info(
            "pipeline.recorded",
            summaries=result.summaries,
            files=result.files,
            observations=result.observations,
        )
    except CovtelError as e:
        _report(result, e)
    except Exception as e:
        _report(result, InternalError.unexpected(str(e), type=type(e).__name__))
    finally:
        result.flushed = emitter.flush_and_shutdown(config.flush_timeout_millis)
        if emitter.last_error is not None:
            result.errors.append(emitter.last_error)
            if not result.flushed and result.failure is None:
                _report(result, emitter.last_error)

    log.info("pipeline.finished", ok=result.ok, flushed=result.flushed)
    return result
