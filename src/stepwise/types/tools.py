"""Tool definition types and protocols."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Protocol, runtime_checkable


@dataclass(frozen=True, slots=True)
class ToolParam:
    """A declared parameter of a tool or agent."""

    name: str
    type: str  # "string", "integer", "number", "boolean", "array", "object"
    description: str
    required: bool = True
    enum: tuple[str, ...] | None = None
    default: Any = None
    items: dict[str, Any] | None = None  # For array types: JSON Schema for items


@dataclass(frozen=True, slots=True)
class ToolDef:
    """Definition of a dispatchable tool."""

    name: str
    description: str
    parameters: tuple[ToolParam, ...] = ()


@dataclass(frozen=True, slots=True)
class ToolResultData:
    """Uniform outcome of a tool call."""

    success: bool
    summary: str
    full_result: str = ""

    @classmethod
    def ok(cls, summary: str, full_result: str | None = None) -> ToolResultData:
        return cls(success=True, summary=summary, full_result=full_result or summary)

    @classmethod
    def error(cls, summary: str, full_result: str | None = None) -> ToolResultData:
        return cls(success=False, summary=summary, full_result=full_result or summary)


@dataclass(slots=True)
class ToolContext:
    """Context passed to tool execute methods."""

    cwd: Path
    agent_name: str = ""
    extra: dict[str, Any] = field(default_factory=dict)


@runtime_checkable
class Tool(Protocol):
    """Protocol that all tools must implement."""

    @property
    def definition(self) -> ToolDef:
        """Return the tool definition."""
        ...

    async def execute(self, args: dict[str, Any], ctx: ToolContext) -> ToolResultData:
        """Execute the tool with the given arguments and context."""
        ...


@runtime_checkable
class ToolDispatcher(Protocol):
    """Anything that can execute a tool by name."""

    async def execute(
        self, name: str, args: dict[str, Any], ctx: ToolContext | None = None,
    ) -> ToolResultData:
        ...
