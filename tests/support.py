"""Shared builders for coverage reports and an in-memory metric exporter."""

from __future__ import annotations

import time
from typing import Any

from opentelemetry.sdk.metrics.export import (
    MetricExporter,
    MetricExportResult,
    MetricsData,
)


def metric(pct: Any = 80, total: Any = 10, covered: Any = 8, skipped: Any = 0) -> dict[str, Any]:
    return {"total": total, "covered": covered, "skipped": skipped, "pct": pct}


def file_entry(**overrides: Any) -> dict[str, Any]:
    """Per-file entry with all four dimensions; overrides replace dimensions."""
    entry: dict[str, Any] = {
        "lines": metric(80, 10, 8),
        "statements": metric(75, 12, 9),
        "functions": metric(50, 4, 2),
        "branches": metric(25, 8, 2),
    }
    entry.update(overrides)
    return entry


def summary_data(files: dict[str, Any], total_pct: Any = 80) -> dict[str, Any]:
    return {"total": file_entry(lines=metric(total_pct, 10, 8)), **files}


class CapturingExporter(MetricExporter):
    """Metric exporter that keeps every export in memory.

    ``events`` records export/shutdown calls in order; ``export_delay``
    simulates a slow collector.
    """

    def __init__(self, export_delay: float = 0.0) -> None:
        super().__init__(preferred_temporality=None, preferred_aggregation=None)
        self.exports: list[MetricsData] = []
        self.events: list[str] = []
        self._export_delay = export_delay

    def export(
        self,
        metrics_data: MetricsData,
        timeout_millis: float = 10_000,
        **kwargs: Any,
    ) -> MetricExportResult:
        if self._export_delay:
            time.sleep(self._export_delay)
        self.exports.append(metrics_data)
        self.events.append("export")
        return MetricExportResult.SUCCESS

    def force_flush(self, timeout_millis: float = 10_000) -> bool:
        return True

    def shutdown(self, timeout_millis: float = 30_000, **kwargs: Any) -> None:
        self.events.append("shutdown")

    def points(self) -> list[tuple[str, dict[str, Any], Any]]:
        """(metric name, attributes, data point) of the latest non-empty export.

        Cumulative temporality means each export carries every point so far.
        """
        for metrics_data in reversed(self.exports):
            found = [
                (m.name, dict(point.attributes or {}), point)
                for resource_metrics in metrics_data.resource_metrics
                for scope_metrics in resource_metrics.scope_metrics
                for m in scope_metrics.metrics
                for point in m.data.data_points
            ]
            if found:
                return found
        return []

    def resource_attributes(self) -> dict[str, Any]:
        for metrics_data in reversed(self.exports):
            for resource_metrics in metrics_data.resource_metrics:
                return dict(resource_metrics.resource.attributes)
        return {}


class FailingExporter(CapturingExporter):
    """Collector that rejects every export, by result or by raising."""

    def __init__(self, error: Exception | None = None) -> None:
        super().__init__()
        self._error = error

    def export(
        self,
        metrics_data: MetricsData,
        timeout_millis: float = 10_000,
        **kwargs: Any,
    ) -> MetricExportResult:
        self.events.append("export")
        if self._error is not None:
            raise self._error
        return MetricExportResult.FAILURE
