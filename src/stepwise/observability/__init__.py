"""OpenTelemetry-based observability for stepwise."""

from stepwise.observability.exporters import ObservabilityConfig, configure_exporters, shutdown
from stepwise.observability.metrics import (
    record_access_denied,
    record_instruction,
    record_model_call,
    record_tool_call,
    timed_model_call,
)
from stepwise.observability.tracing import get_tracer, span

__all__ = [
    "ObservabilityConfig",
    "configure_exporters",
    "get_tracer",
    "record_access_denied",
    "record_instruction",
    "record_model_call",
    "record_tool_call",
    "shutdown",
    "span",
    "timed_model_call",
]
