"""Metric emission to an OpenTelemetry collector."""

from covtel.telemetry.emitter import (
    INSTRUMENTS,
    METER_NAME,
    EmitterState,
    MetricEmitter,
    build_exporter,
)

__all__ = [
    "INSTRUMENTS",
    "METER_NAME",
    "EmitterState",
    "MetricEmitter",
    "build_exporter",
]
