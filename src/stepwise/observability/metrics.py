"""Metrics recording — counters, histograms, with no-op fallback."""

from __future__ import annotations

import time
from collections.abc import Generator
from contextlib import contextmanager
from typing import Any

try:
    from opentelemetry import metrics

    _HAS_OTEL = True
except ImportError:
    _HAS_OTEL = False

# Lazily-created instruments
_meter: Any = None
_instruction_counter: Any = None
_tool_call_counter: Any = None
_access_denied_counter: Any = None
_model_call_counter: Any = None
_model_latency_histogram: Any = None


def _ensure_instruments() -> None:
    """Create meter and instruments on first use."""
    global _meter, _instruction_counter, _tool_call_counter
    global _access_denied_counter, _model_call_counter, _model_latency_histogram

    if not _HAS_OTEL or _meter is not None:
        return

    _meter = metrics.get_meter("stepwise")
    _instruction_counter = _meter.create_counter(
        "stepwise.instructions",
        description="Instructions executed by the step interpreter",
    )
    _tool_call_counter = _meter.create_counter(
        "stepwise.tool_calls",
        description="Tool calls dispatched",
    )
    _access_denied_counter = _meter.create_counter(
        "stepwise.access_denied",
        description="Tool calls rejected by access control",
    )
    _model_call_counter = _meter.create_counter(
        "stepwise.model_calls",
        description="Model invocations",
    )
    _model_latency_histogram = _meter.create_histogram(
        "stepwise.model_latency",
        description="Model invocation latency",
        unit="ms",
    )


def record_instruction(kind: str, *, agent: str = "") -> None:
    """Record one executed instruction."""
    if not _HAS_OTEL:
        return
    _ensure_instruments()
    _instruction_counter.add(1, {"kind": kind, "agent": agent})


def record_tool_call(tool_name: str, *, is_error: bool = False, agent: str = "") -> None:
    """Record a dispatched tool call."""
    if not _HAS_OTEL:
        return
    _ensure_instruments()
    _tool_call_counter.add(
        1, {"tool": tool_name, "error": str(is_error).lower(), "agent": agent},
    )


def record_access_denied(tool_name: str, *, agent: str = "") -> None:
    """Record a tool call rejected by access control."""
    if not _HAS_OTEL:
        return
    _ensure_instruments()
    _access_denied_counter.add(1, {"tool": tool_name, "agent": agent})


def record_model_call(latency_ms: float, *, model: str = "", agent: str = "") -> None:
    """Record one model invocation and its latency in milliseconds."""
    if not _HAS_OTEL:
        return
    _ensure_instruments()
    attrs = {"model": model, "agent": agent}
    _model_call_counter.add(1, attrs)
    _model_latency_histogram.record(latency_ms, attrs)


@contextmanager
def timed_model_call(*, model: str = "", agent: str = "") -> Generator[None, None, None]:
    """Context manager that measures a model call and records it."""
    start = time.monotonic()
    yield
    elapsed_ms = (time.monotonic() - start) * 1000
    record_model_call(elapsed_ms, model=model, agent=agent)


def reset_instruments() -> None:
    """Reset module-level instruments — useful for test isolation."""
    global _meter, _instruction_counter, _tool_call_counter
    global _access_denied_counter, _model_call_counter, _model_latency_histogram
    _meter = None
    _instruction_counter = None
    _tool_call_counter = None
    _access_denied_counter = None
    _model_call_counter = None
    _model_latency_histogram = None
