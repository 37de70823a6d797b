"""Configuration types for stepwise."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from stepwise.types.hooks import Hook

DEFAULT_PROVIDER = "openrouter"
DEFAULT_MODEL = "anthropic/claude-3.5-haiku"


@dataclass(frozen=True, slots=True)
class EngineConfig:
    """Tunables of the step interpreter."""

    default_model: str = DEFAULT_MODEL
    step_all_limit: int = 10
    step_all_min_length: int = 100
    step_all_sentinel: str = "TOOL:"
    max_generate_n: int = 16
    generate_concurrency: int | None = None  # None = all n at once
    summary_length: int = 100
    model_timeout: float | None = None  # seconds
    tool_timeout: float | None = None  # seconds


@dataclass(slots=True)
class RunConfig:
    """Resolved configuration for a stepwise.run() invocation."""

    provider: str = DEFAULT_PROVIDER
    model: str | None = None
    api_key: str | None = None
    base_url: str | None = None
    cwd: str | None = None
    engine: EngineConfig = field(default_factory=EngineConfig)
    deny_tools: tuple[str, ...] = ()
    hooks: list[Hook] = field(default_factory=list)
    agent_dirs: tuple[str, ...] = ()
    observability: dict[str, Any] = field(default_factory=dict)
