"""Agent tool — exposes a registered agent as a dispatchable tool."""

from __future__ import annotations

import json
from collections.abc import Awaitable, Callable
from typing import Any

from stepwise.tools.base import BaseTool
from stepwise.types.agents import AgentDef
from stepwise.types.state import AgentContext, AgentResult
from stepwise.types.tools import ToolContext, ToolDef, ToolParam, ToolResultData

AgentRunner = Callable[[str, dict[str, Any], AgentContext], Awaitable[AgentResult]]

AGENT_TOOL_PREFIX = "agent:"

_CONTEXT_PARAMS = (
    ToolParam(
        name="context",
        type="string",
        description="Relevant conversation snippet for the sub-agent.",
        required=False,
    ),
    ToolParam(
        name="intent",
        type="string",
        description="What the user is ultimately trying to achieve.",
        required=False,
    ),
)


class AgentTool(BaseTool):
    """Run a sub-agent with its own fresh state and return its result.

    The tool is named ``agent:<name>`` so allow-lists can grant access to
    individual sub-agents. A sub-run that cannot reach its model raises
    through the dispatcher; every other failure is a failed tool result.
    """

    def __init__(self, agent: AgentDef, runner: AgentRunner) -> None:
        self._agent = agent
        self._runner = runner

    @property
    def definition(self) -> ToolDef:
        return ToolDef(
            name=f"{AGENT_TOOL_PREFIX}{self._agent.name}",
            description=self._agent.spawner_prompt or self._agent.description,
            parameters=self._agent.parameters + _CONTEXT_PARAMS,
        )

    async def execute(self, args: dict[str, Any], ctx: ToolContext) -> ToolResultData:
        params = {k: v for k, v in args.items() if k not in ("context", "intent")}
        context = AgentContext(
            conversation_context=str(args.get("context", "")),
            user_intent=args.get("intent"),
        )
        result = await self._runner(self._agent.name, params, context)

        if isinstance(result.data, str):
            full = result.data
        elif result.data is None:
            full = result.summary
        else:
            full = json.dumps(result.data, indent=2, default=str)

        if result.success:
            return self._ok(result.summary, full)
        return self._error(result.summary, full)
