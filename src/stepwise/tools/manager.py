"""ToolManager — registry and dispatcher for all tools."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

from stepwise.errors import ConfigurationError, ModelInvocationError
from stepwise.registry import Registry
from stepwise.tools.base import BaseTool
from stepwise.tools.bash import BashTool
from stepwise.types.tools import ToolContext, ToolDef, ToolResultData

logger = logging.getLogger(__name__)


class ToolManager(Registry[BaseTool]):
    """Registers tools and dispatches execution requests.

    Usage::

        manager = ToolManager()
        manager.register_defaults()
        result = await manager.execute("bash", {"command": "ls"})
    """

    def _key(self, item: BaseTool) -> str:
        return item.definition.name

    def _describe(self, item: BaseTool) -> str:
        return item.definition.description

    def register_defaults(self) -> None:
        """Create and register the built-in tools."""
        self.register_builtin(BashTool())

    def get_definitions(self) -> list[ToolDef]:
        """Return all registered tool definitions."""
        return [tool.definition for tool in self.all()]

    # ------------------------------------------------------------------
    # Dispatch
    # ------------------------------------------------------------------

    async def execute(
        self,
        name: str,
        args: dict[str, Any],
        ctx: ToolContext | None = None,
    ) -> ToolResultData:
        """Dispatch a tool call by name.

        Returns a failed ToolResultData if the tool is not found or raises
        an unexpected exception. Configuration and model failures from
        agent tools propagate.
        """
        tool = self.get(name)
        if tool is None:
            return ToolResultData.error(
                f"Unknown tool: {name}",
                f"Unknown tool: '{name}'. Available tools: {sorted(self.names())}",
            )

        ctx = ctx or ToolContext(cwd=Path.cwd())
        try:
            return await tool.execute(args, ctx)
        except (ConfigurationError, ModelInvocationError):
            raise
        except Exception as exc:  # noqa: BLE001
            logger.warning("Tool %s raised %s: %s", name, type(exc).__name__, exc)
            return ToolResultData.error(
                f"Tool error: {name}",
                f"Tool '{name}' raised an unexpected error: {exc}",
            )

    # ------------------------------------------------------------------
    # Filtering
    # ------------------------------------------------------------------

    def filter(self, names: list[str] | tuple[str, ...]) -> ToolManager:
        """Return a new ToolManager containing only the named tools.

        Tools not present in this manager are silently omitted.
        """
        filtered = ToolManager()
        for name in names:
            reg = self.get_registered(name)
            if reg is not None:
                filtered.register(reg.definition, reg.source, reg.metadata)
        return filtered
