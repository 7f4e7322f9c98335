"""Tests for the OpenTelemetry metric emitter.

Uses an in-memory exporter behind the real SDK reader, and mocks where
only call ordering matters.
"""

from __future__ import annotations

from unittest.mock import MagicMock, patch

import pytest

from covtel.attribution.models import AttributedCoverage, AttributionLabels
from covtel.core.errors import ErrorCode, ExportError
from covtel.coverage.models import CoverageDimension, CoverageMetric
from covtel.telemetry.emitter import (
    INSTRUMENTS,
    EmitterState,
    MetricEmitter,
    _is_insecure_endpoint,
    build_exporter,
)
from tests.support import CapturingExporter, FailingExporter

ENDPOINT = "http://collector:4318/v1/metrics"

LABELS = AttributionLabels(
    coverage_path="/apps/web/src/index.ts",
    owner_team="web",
    application_name="web",
)


def coverage(
    dimension: CoverageDimension = CoverageDimension.LINES,
    pct: float = 80.0,
    total: int = 10,
    covered: int = 8,
    labels: AttributionLabels = LABELS,
) -> AttributedCoverage:
    metric = CoverageMetric(pct=pct, total=total, covered=covered)
    return AttributedCoverage(dimension, metric, labels)


def ready_emitter(exporter: CapturingExporter) -> MetricEmitter:
    emitter = MetricEmitter(exporter=exporter)
    # Long interval: only the explicit flush and shutdown export.
    emitter.initialize("web-frontend", ENDPOINT, export_interval_millis=60_000)
    return emitter


# =============================================================================
# State machine
# =============================================================================


class TestLifecycle:
    def test_starts_uninitialized(self) -> None:
        assert MetricEmitter().state is EmitterState.UNINITIALIZED

    def test_initialize_makes_ready(self, exporter: CapturingExporter) -> None:
        emitter = ready_emitter(exporter)
        try:
            assert emitter.state is EmitterState.READY
        finally:
            emitter.flush_and_shutdown()

    def test_initialize_twice_is_rejected(self, exporter: CapturingExporter) -> None:
        emitter = ready_emitter(exporter)
        try:
            with pytest.raises(ExportError) as exc_info:
                emitter.initialize("web-frontend", ENDPOINT)
            assert exc_info.value.code == ErrorCode.EXPORT_INVALID_STATE
        finally:
            emitter.flush_and_shutdown()

    def test_record_before_initialize_is_rejected(self) -> None:
        with pytest.raises(ExportError) as exc_info:
            MetricEmitter().record(coverage())
        assert exc_info.value.code == ErrorCode.EXPORT_INVALID_STATE

    def test_record_after_shutdown_is_rejected(self, exporter: CapturingExporter) -> None:
        emitter = ready_emitter(exporter)
        emitter.flush_and_shutdown()

        with pytest.raises(ExportError):
            emitter.record(coverage())

    def test_shutdown_reaches_final_state(self, exporter: CapturingExporter) -> None:
        emitter = ready_emitter(exporter)

        assert emitter.flush_and_shutdown() is True
        assert emitter.state is EmitterState.SHUTDOWN

    def test_flush_without_initialize_is_noop(self) -> None:
        emitter = MetricEmitter()
        assert emitter.flush_and_shutdown() is True
        assert emitter.state is EmitterState.UNINITIALIZED

    def test_second_flush_is_noop(self, exporter: CapturingExporter) -> None:
        emitter = ready_emitter(exporter)
        emitter.flush_and_shutdown()

        assert emitter.flush_and_shutdown() is True
        assert exporter.events.count("shutdown") == 1

    def test_init_failure_is_export_error(self) -> None:
        with (
            patch("covtel.telemetry.emitter.build_exporter", side_effect=RuntimeError("no grpc")),
            pytest.raises(ExportError) as exc_info,
        ):
            MetricEmitter().initialize("svc", ENDPOINT, protocol="grpc")

        assert exc_info.value.code == ErrorCode.EXPORT_INIT_FAILED
        assert exc_info.value.details["endpoint"] == ENDPOINT


# =============================================================================
# Recording
# =============================================================================


class TestRecord:
    def test_each_dimension_produces_three_observations(self, exporter: CapturingExporter) -> None:
        emitter = ready_emitter(exporter)

        assert emitter.record(coverage(pct=80.0, total=10, covered=8)) == 3
        emitter.flush_and_shutdown()

        points = exporter.points()
        by_name = {name: point for name, _attrs, point in points}
        assert sorted(by_name) == sorted(name for name, _d, _u in INSTRUMENTS.values())
        assert by_name["test_coverage_percentage"].sum == 80.0
        assert by_name["test_coverage_total"].sum == 10
        assert by_name["test_coverage_covered"].sum == 8
        assert all(point.count == 1 for point in by_name.values())
        assert emitter.observations == 3

    def test_observations_carry_labels_and_type_only(self, exporter: CapturingExporter) -> None:
        emitter = ready_emitter(exporter)

        emitter.record(coverage(CoverageDimension.BRANCHES))
        emitter.flush_and_shutdown()

        expected = {
            "coverage_path": "/apps/web/src/index.ts",
            "owner_team": "web",
            "application_name": "web",
            "coverage_type": "branches",
        }
        assert [attrs for _name, attrs, _point in exporter.points()] == [expected] * 3

    def test_dimensions_are_separate_series(self, exporter: CapturingExporter) -> None:
        emitter = ready_emitter(exporter)

        for dimension in CoverageDimension:
            emitter.record(coverage(dimension))
        emitter.flush_and_shutdown()

        points = exporter.points()
        assert len(points) == 12
        assert {attrs["coverage_type"] for _n, attrs, _p in points} == {
            "lines",
            "statements",
            "functions",
            "branches",
        }

    def test_resource_has_service_name(self, exporter: CapturingExporter) -> None:
        emitter = ready_emitter(exporter)
        emitter.record(coverage())
        emitter.flush_and_shutdown()

        assert exporter.resource_attributes()["service.name"] == "web-frontend"

    def test_nothing_recorded_exports_no_points(self, exporter: CapturingExporter) -> None:
        emitter = ready_emitter(exporter)

        assert emitter.flush_and_shutdown() is True
        assert exporter.points() == []
        assert exporter.events[-1] == "shutdown"


# =============================================================================
# Flush before shutdown
# =============================================================================


class TestFlushAndShutdown:
    def test_flush_completes_before_shutdown(self) -> None:
        provider = MagicMock()
        provider.force_flush.return_value = True
        with patch("covtel.telemetry.emitter.MeterProvider", return_value=provider):
            emitter = MetricEmitter(exporter=CapturingExporter())
            emitter.initialize("svc", ENDPOINT, export_interval_millis=60_000)

            assert emitter.flush_and_shutdown(timeout_millis=5000) is True

        calls = [c[0] for c in provider.method_calls if c[0] in ("force_flush", "shutdown")]
        assert calls == ["force_flush", "shutdown"]
        provider.force_flush.assert_called_once_with(timeout_millis=5000)
        provider.shutdown.assert_called_once_with(timeout_millis=5000)

    def test_slow_export_still_precedes_shutdown(self) -> None:
        exporter = CapturingExporter(export_delay=0.05)
        emitter = ready_emitter(exporter)
        emitter.record(coverage())

        emitter.flush_and_shutdown()

        assert exporter.events[0] == "export"
        assert exporter.events[-1] == "shutdown"
        assert exporter.events.count("shutdown") == 1
        assert exporter.points()

    def test_shutdown_runs_when_flush_raises(self) -> None:
        provider = MagicMock()
        provider.force_flush.side_effect = RuntimeError("collector unreachable")
        with patch("covtel.telemetry.emitter.MeterProvider", return_value=provider):
            emitter = MetricEmitter(exporter=CapturingExporter())
            emitter.initialize("svc", ENDPOINT, export_interval_millis=60_000)

            assert emitter.flush_and_shutdown() is False

        provider.shutdown.assert_called_once()
        assert emitter.state is EmitterState.SHUTDOWN
        assert emitter.last_error is not None
        assert emitter.last_error.code == ErrorCode.EXPORT_FLUSH_FAILED

    def test_shutdown_failure_is_recorded(self) -> None:
        provider = MagicMock()
        provider.force_flush.return_value = True
        provider.shutdown.side_effect = RuntimeError("already closed")
        with patch("covtel.telemetry.emitter.MeterProvider", return_value=provider):
            emitter = MetricEmitter(exporter=CapturingExporter())
            emitter.initialize("svc", ENDPOINT, export_interval_millis=60_000)

            assert emitter.flush_and_shutdown() is True

        assert emitter.state is EmitterState.SHUTDOWN
        assert emitter.last_error is not None
        assert emitter.last_error.code == ErrorCode.EXPORT_SHUTDOWN_FAILED

    @pytest.mark.parametrize(
        "error", [None, ConnectionError("collector down")], ids=["failure-result", "raises"]
    )
    def test_rejected_export_fails_the_flush(self, error: Exception | None) -> None:
        exporter = FailingExporter(error)
        emitter = ready_emitter(exporter)
        emitter.record(coverage())

        assert emitter.flush_and_shutdown() is False

        assert "export" in exporter.events
        assert exporter.events[-1] == "shutdown"
        assert emitter.state is EmitterState.SHUTDOWN
        assert emitter.last_error is not None
        assert emitter.last_error.code == ErrorCode.EXPORT_FLUSH_FAILED

    def test_nothing_recorded_means_nothing_rejected(self) -> None:
        emitter = ready_emitter(FailingExporter())

        assert emitter.flush_and_shutdown() is True
        assert emitter.last_error is None

    def test_missing_provider_is_an_invalid_state(self, exporter: CapturingExporter) -> None:
        emitter = ready_emitter(exporter)
        provider, emitter._provider = emitter._provider, None

        with pytest.raises(ExportError) as exc_info:
            emitter.flush_and_shutdown()

        assert exc_info.value.code == ErrorCode.EXPORT_INVALID_STATE
        assert provider is not None
        provider.shutdown()


class TestBuildExporter:
    def test_insecure_endpoint_detection(self) -> None:
        assert _is_insecure_endpoint("http://localhost:4317") is True
        assert _is_insecure_endpoint("https://collector:4317") is False

    def test_http_exporter(self) -> None:
        from opentelemetry.exporter.otlp.proto.http.metric_exporter import OTLPMetricExporter

        assert isinstance(build_exporter(ENDPOINT), OTLPMetricExporter)

    def test_grpc_exporter(self) -> None:
        from opentelemetry.exporter.otlp.proto.grpc.metric_exporter import OTLPMetricExporter

        assert isinstance(build_exporter("http://collector:4317", "grpc"), OTLPMetricExporter)
