"""Test fixtures including MockInvoker for deterministic testing."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import pytest

from stepwise.types.providers import ChatMessage
from stepwise.types.tools import ToolContext, ToolResultData


@dataclass
class InvokerCall:
    """One recorded call to MockInvoker.complete()."""

    model: str
    system: str
    messages: list[ChatMessage] = field(default_factory=list)


class MockInvoker:
    """A deterministic model invoker for testing.

    Responses are returned in order; once they run out ``default`` is
    returned. An Exception instance in the script is raised instead.

    Usage:
        invoker = MockInvoker(["First answer", "Second answer"])
        invoker = MockInvoker(["ok"], delay=0.01)  # track concurrency
    """

    def __init__(
        self,
        responses: list[str | Exception] | None = None,
        *,
        default: str = "Done.",
        delay: float = 0.0,
    ) -> None:
        self._responses = list(responses or [])
        self._index = 0
        self._default = default
        self._delay = delay
        self.calls: list[InvokerCall] = []
        self.in_flight = 0
        self.max_in_flight = 0

    async def complete(self, model: str, system: str, messages: list[ChatMessage]) -> str:
        self.calls.append(InvokerCall(model=model, system=system, messages=list(messages)))
        if self._index < len(self._responses):
            response = self._responses[self._index]
            self._index += 1
        else:
            response = self._default

        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            if self._delay:
                await asyncio.sleep(self._delay)
        finally:
            self.in_flight -= 1

        if isinstance(response, Exception):
            raise response
        return response

    @property
    def call_count(self) -> int:
        return len(self.calls)


class MockDispatcher:
    """A tool dispatcher that returns scripted results and records calls."""

    def __init__(self, results: dict[str, ToolResultData | Exception] | None = None) -> None:
        self._results = dict(results or {})
        self.calls: list[tuple[str, dict[str, Any], ToolContext | None]] = []

    async def execute(
        self, name: str, args: dict[str, Any], ctx: ToolContext | None = None,
    ) -> ToolResultData:
        self.calls.append((name, dict(args), ctx))
        result = self._results.get(name)
        if isinstance(result, Exception):
            raise result
        if result is None:
            return ToolResultData.ok(f"{name} ok")
        return result

    @property
    def called_names(self) -> list[str]:
        return [name for name, _, _ in self.calls]


@pytest.fixture
def mock_invoker() -> MockInvoker:
    """A mock invoker that answers every call with the same text."""
    return MockInvoker(default="I can help with that.")


@pytest.fixture
def mock_dispatcher() -> MockDispatcher:
    return MockDispatcher()


@pytest.fixture
def isolated_home(tmp_path: Path, monkeypatch) -> Path:
    """Point ~ at a temp dir and clear provider env vars."""
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setattr(Path, "home", classmethod(lambda cls: home))
    for var in (
        "OPENROUTER_API_KEY", "OPENAI_API_KEY", "ANTHROPIC_API_KEY",
        "STEPWISE_PROVIDER", "STEPWISE_MODEL", "STEPWISE_OTEL_ENABLED",
    ):
        monkeypatch.delenv(var, raising=False)
    return home
