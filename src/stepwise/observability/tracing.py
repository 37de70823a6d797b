"""Tracer, span context manager, no-op fallback."""

from __future__ import annotations

from collections.abc import Generator
from contextlib import contextmanager
from typing import Any

try:
    from opentelemetry import trace

    _HAS_OTEL = True
except ImportError:
    _HAS_OTEL = False


class _NoOpSpan:
    """No-op span used when OTel is not installed."""

    def set_attribute(self, key: str, value: Any) -> None:
        pass

    def set_status(self, status: Any, description: str | None = None) -> None:
        pass

    def record_exception(self, exception: BaseException) -> None:
        pass

    def add_event(self, name: str, attributes: dict[str, Any] | None = None) -> None:
        pass

    def end(self) -> None:
        pass


class _NoOpTracer:
    """No-op tracer used when OTel is not installed."""

    def start_span(self, name: str, **kwargs: Any) -> _NoOpSpan:
        return _NoOpSpan()

    @contextmanager
    def start_as_current_span(
        self, name: str, **kwargs: Any,
    ) -> Generator[_NoOpSpan, None, None]:
        yield _NoOpSpan()


def get_tracer(name: str = "stepwise") -> Any:
    """Return an OTel Tracer or a no-op fallback."""
    if _HAS_OTEL:
        return trace.get_tracer(name)
    return _NoOpTracer()


@contextmanager
def span(
    name: str,
    attributes: dict[str, Any] | None = None,
) -> Generator[Any, None, None]:
    """Context manager that creates an OTel span or no-op."""
    if _HAS_OTEL:
        tracer = trace.get_tracer("stepwise")
        with tracer.start_as_current_span(name, attributes=attributes) as s:
            yield s
    else:
        yield _NoOpSpan()
