"""OTel provider setup (console and OTLP exporters)."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

try:
    from opentelemetry import metrics, trace
    from opentelemetry.sdk.metrics import MeterProvider
    from opentelemetry.sdk.metrics.export import (
        ConsoleMetricExporter,
        PeriodicExportingMetricReader,
    )
    from opentelemetry.sdk.resources import Resource
    from opentelemetry.sdk.trace import TracerProvider
    from opentelemetry.sdk.trace.export import (
        BatchSpanProcessor,
        ConsoleSpanExporter,
    )

    _HAS_OTEL = True
except ImportError:
    _HAS_OTEL = False

logger = logging.getLogger(__name__)

_tracer_provider: Any = None
_meter_provider: Any = None


@dataclass(frozen=True, slots=True)
class ObservabilityConfig:
    """Configuration for OTel exporters."""

    enabled: bool = False
    exporter: str = "console"  # console | otlp
    otlp_endpoint: str = "http://localhost:4317"
    service_name: str = "stepwise"

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> ObservabilityConfig:
        return cls(
            enabled=bool(raw.get("enabled", False)),
            exporter=str(raw.get("exporter", "console")),
            otlp_endpoint=str(raw.get("otlp_endpoint", "http://localhost:4317")),
            service_name=str(raw.get("service_name", "stepwise")),
        )


def _span_exporter(config: ObservabilityConfig) -> Any:
    if config.exporter == "otlp":
        try:
            from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter

            return OTLPSpanExporter(endpoint=config.otlp_endpoint)
        except ImportError:
            logger.warning("OTLP exporter not installed; falling back to console spans")
    return ConsoleSpanExporter()


def _metric_exporter(config: ObservabilityConfig) -> Any:
    if config.exporter == "otlp":
        try:
            from opentelemetry.exporter.otlp.proto.grpc.metric_exporter import OTLPMetricExporter

            return OTLPMetricExporter(endpoint=config.otlp_endpoint)
        except ImportError:
            logger.warning("OTLP exporter not installed; falling back to console metrics")
    return ConsoleMetricExporter()


def configure_exporters(config: ObservabilityConfig) -> bool:
    """Set up OTel TracerProvider and MeterProvider.

    Returns True if OTel was configured, False if unavailable or disabled.
    """
    global _tracer_provider, _meter_provider

    if not _HAS_OTEL or not config.enabled:
        return False

    resource = Resource.create({"service.name": config.service_name})

    tp = TracerProvider(resource=resource)
    tp.add_span_processor(BatchSpanProcessor(_span_exporter(config)))
    trace.set_tracer_provider(tp)
    _tracer_provider = tp

    reader = PeriodicExportingMetricReader(_metric_exporter(config))
    mp = MeterProvider(resource=resource, metric_readers=[reader])
    metrics.set_meter_provider(mp)
    _meter_provider = mp

    return True


def shutdown() -> None:
    """Shut down OTel providers gracefully."""
    global _tracer_provider, _meter_provider

    if _tracer_provider is not None:
        try:
            _tracer_provider.shutdown()
        except Exception as exc:
            logger.debug("Tracer provider shutdown failed: %s", exc)
        _tracer_provider = None

    if _meter_provider is not None:
        try:
            _meter_provider.shutdown()
        except Exception as exc:
            logger.debug("Meter provider shutdown failed: %s", exc)
        _meter_provider = None
