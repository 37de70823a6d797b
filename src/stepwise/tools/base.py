"""Base tool class with shared logic."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from stepwise.types.tools import ToolContext, ToolDef, ToolResultData


class BaseTool(ABC):
    """Base class for all tools."""

    @property
    @abstractmethod
    def definition(self) -> ToolDef:
        ...

    @abstractmethod
    async def execute(self, args: dict[str, Any], ctx: ToolContext) -> ToolResultData:
        ...

    def _error(self, summary: str, full_result: str | None = None) -> ToolResultData:
        return ToolResultData.error(summary, full_result)

    def _ok(self, summary: str, full_result: str | None = None) -> ToolResultData:
        return ToolResultData.ok(summary, full_result)
