"""OpenTelemetry metric emitter for attributed coverage.

One emitter owns one MeterProvider for the lifetime of a run:

    emitter = MetricEmitter()
    emitter.initialize("web-frontend", "http://collector:4318/v1/metrics")
    for record in attribution:
        emitter.record(record)
    emitter.flush_and_shutdown()

States: UNINITIALIZED -> READY -> FLUSHING -> SHUTDOWN. ``initialize`` must
be called exactly once before any ``record``. ``flush_and_shutdown`` blocks
until the final export has been attempted and the provider released, so
the process may exit as soon as it returns.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

import structlog
from opentelemetry.sdk.metrics import MeterProvider
from opentelemetry.sdk.metrics.export import (
    MetricExporter,
    MetricExportResult,
    MetricsData,
    PeriodicExportingMetricReader,
)
from opentelemetry.sdk.resources import SERVICE_NAME, Resource

from covtel.attribution.models import AttributedCoverage
from covtel.config.models import ExporterProtocol
from covtel.core.errors import ExportError
from covtel.coverage.models import CoverageMeasure

log = structlog.get_logger(__name__)

METER_NAME = "test_coverage"

# measure -> (instrument name, description, unit)
INSTRUMENTS: dict[CoverageMeasure, tuple[str, str, str]] = {
    CoverageMeasure.PCT: (
        "test_coverage_percentage",
        "Code coverage - percentage code covered",
        "%",
    ),
    CoverageMeasure.TOTAL: (
        "test_coverage_total",
        "Code coverage - total lines of code",
        "1",
    ),
    CoverageMeasure.COVERED: (
        "test_coverage_covered",
        "Code coverage - covered lines of code",
        "1",
    ),
}


class EmitterState(Enum):
    UNINITIALIZED = "uninitialized"
    READY = "ready"
    FLUSHING = "flushing"
    SHUTDOWN = "shutdown"


def _is_insecure_endpoint(endpoint: str) -> bool:
    """Determine if endpoint should use insecure connection."""
    return endpoint.startswith("http://")


def build_exporter(endpoint: str, protocol: ExporterProtocol = "http/protobuf") -> MetricExporter:
    """OTLP metric exporter for the configured transport."""
    if protocol == "grpc":
        from opentelemetry.exporter.otlp.proto.grpc.metric_exporter import (
            OTLPMetricExporter as GrpcMetricExporter,
        )

        return GrpcMetricExporter(endpoint=endpoint, insecure=_is_insecure_endpoint(endpoint))

    from opentelemetry.exporter.otlp.proto.http.metric_exporter import (
        OTLPMetricExporter as HttpMetricExporter,
    )

    return HttpMetricExporter(endpoint=endpoint)


class _OutcomeTrackingExporter(MetricExporter):
    """Delegating exporter that remembers whether the last export failed.

    The periodic reader logs and discards export failures, so the outcome
    has to be observed here for a flush to be able to report it.
    """

    def __init__(self, inner: MetricExporter) -> None:
        super().__init__(
            preferred_temporality=inner._preferred_temporality,
            preferred_aggregation=inner._preferred_aggregation,
        )
        self._inner = inner
        self.failure: str | None = None

    def export(
        self,
        metrics_data: MetricsData,
        timeout_millis: float = 10_000,
        **kwargs: Any,
    ) -> MetricExportResult:
        try:
            result = self._inner.export(metrics_data, timeout_millis=timeout_millis, **kwargs)
        except Exception as e:
            self.failure = f"{type(e).__name__}: {e}"
            raise
        # Temporality is cumulative, so a later success delivers everything.
        if result is MetricExportResult.SUCCESS:
            self.failure = None
        else:
            self.failure = f"exporter returned {result.name}"
        return result

    def force_flush(self, timeout_millis: float = 10_000) -> bool:
        return self._inner.force_flush(timeout_millis=timeout_millis)

    def shutdown(self, timeout_millis: float = 30_000, **kwargs: Any) -> None:
        self._inner.shutdown(timeout_millis=timeout_millis, **kwargs)


class MetricEmitter:
    """Owns the metrics channel and the three coverage histograms."""

    def __init__(self, exporter: MetricExporter | None = None) -> None:
        self._exporter = exporter
        self._state = EmitterState.UNINITIALIZED
        self._provider: MeterProvider | None = None
        self._channel: _OutcomeTrackingExporter | None = None
        self._instruments: dict[CoverageMeasure, Any] = {}
        self._observations = 0
        self.last_error: ExportError | None = None

    @property
    def state(self) -> EmitterState:
        return self._state

    @property
    def observations(self) -> int:
        """Observations recorded so far."""
        return self._observations

    def initialize(
        self,
        service_name: str,
        endpoint: str,
        *,
        export_interval_millis: int = 1000,
        protocol: ExporterProtocol = "http/protobuf",
        exporter: MetricExporter | None = None,
    ) -> None:
        """Create the provider, periodic reader and histograms.

        Args:
            service_name: ``service.name`` resource attribute.
            endpoint: OTLP endpoint the exporter pushes to.
            export_interval_millis: Periodic export interval.
            protocol: OTLP transport when no exporter is given.
            exporter: Use this exporter instead of building an OTLP one.
                Defaults to the exporter given to the constructor.

        Raises:
            ExportError: Called twice, or the exporter could not be built.
        """
        if self._state is not EmitterState.UNINITIALIZED:
            raise ExportError.invalid_state("initialize", self._state.value)

        try:
            channel = _OutcomeTrackingExporter(
                exporter or self._exporter or build_exporter(endpoint, protocol)
            )
            reader = PeriodicExportingMetricReader(
                channel, export_interval_millis=export_interval_millis
            )
            resource = Resource.create({SERVICE_NAME: service_name})
            # Lifecycle is managed explicitly by flush_and_shutdown.
            provider = MeterProvider(
                resource=resource, metric_readers=[reader], shutdown_on_exit=False
            )
            meter = provider.get_meter(METER_NAME)
            instruments = {
                measure: meter.create_histogram(name, unit=unit, description=description)
                for measure, (name, description, unit) in INSTRUMENTS.items()
            }
        except Exception as e:
            raise ExportError.init_failed(endpoint, str(e)) from e

        self._provider = provider
        self._channel = channel
        self._instruments = instruments
        self._state = EmitterState.READY
        log.info(
            "emitter.initialized",
            service=service_name,
            endpoint=endpoint,
            export_interval_millis=export_interval_millis,
        )

    def record(self, record: AttributedCoverage) -> int:
        """Record pct, total and covered of one dimension. Returns the count.

        Values are buffered by the SDK; export happens on the reader thread.

        Raises:
            ExportError: Emitter is not READY.
        """
        if self._state is not EmitterState.READY:
            raise ExportError.invalid_state("record", self._state.value)

        attributes = record.attributes()
        for measure, histogram in self._instruments.items():
            histogram.record(record.metric.value(measure), attributes=attributes)
        self._observations += len(self._instruments)
        return len(self._instruments)

    def flush_and_shutdown(self, timeout_millis: int = 30000) -> bool:
        """Push buffered observations, then release the provider.

        Shutdown always runs after the flush has returned, including when the
        flush failed. Errors are logged and kept in ``last_error``.

        Returns:
            True when the flush completed and the exporter accepted the data.
        """
        if self._state in (EmitterState.UNINITIALIZED, EmitterState.SHUTDOWN):
            log.debug("emitter.nothing_to_flush", state=self._state.value)
            return True
        if self._state is EmitterState.FLUSHING:
            raise ExportError.invalid_state("flush", self._state.value)

        provider, channel = self._provider, self._channel
        if provider is None or channel is None:
            raise ExportError.invalid_state("flush", "missing its provider")
        self._state = EmitterState.FLUSHING
        flushed = False
        try:
            if not provider.force_flush(timeout_millis=timeout_millis):
                self._fail(ExportError.flush_failed("timed out"), "emitter.flush_failed")
            elif channel.failure is not None:
                self._fail(ExportError.flush_failed(channel.failure), "emitter.flush_failed")
            else:
                flushed = True
                log.info("emitter.flushed", observations=self._observations)
        except Exception as e:
            self._fail(ExportError.flush_failed(str(e)), "emitter.flush_failed")
        finally:
            try:
                provider.shutdown(timeout_millis=timeout_millis)
                log.info("emitter.shutdown")
            except Exception as e:
                self._fail(ExportError.shutdown_failed(str(e)), "emitter.shutdown_failed")
            self._provider = None
            self._channel = None
            self._instruments = {}
            self._state = EmitterState.SHUTDOWN
        return flushed

    def _fail(self, error: ExportError, event: str) -> None:
        self.last_error = error
        log.error(event, **error.to_dict())
