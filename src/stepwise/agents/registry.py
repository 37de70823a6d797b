"""Agent registry: built-in and user-defined agent definitions."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from pathlib import Path
from typing import TYPE_CHECKING, Any

from stepwise.agents.builtin import AGENTS
from stepwise.agents.loader import load_agent_dirs
from stepwise.agents.params import validate_params
from stepwise.errors import AgentNotFoundError
from stepwise.registry import Registry
from stepwise.types.agents import AgentDef
from stepwise.types.state import AgentContext, AgentResult

if TYPE_CHECKING:
    from stepwise.core.interpreter import StepInterpreter

logger = logging.getLogger(__name__)


class AgentRegistry(Registry[AgentDef]):
    """Holds the agents that can be run by name.

    Usage::

        registry = AgentRegistry()
        registry.register_defaults()
        registry.load_user_agents(["~/.stepwise/agents"])
        result = await registry.execute("planner", {"prompt": "..."}, None, interpreter)
    """

    def register_defaults(self) -> None:
        """Register the built-in agents."""
        for agent in AGENTS.values():
            self.register_builtin(agent)

    def load_user_agents(self, dirs: Iterable[str | Path]) -> int:
        """Load YAML agents from *dirs*; they replace built-ins of the same name."""
        count = 0
        for agent in load_agent_dirs(dirs):
            if agent.name in self and not self.is_user_defined(agent.name):
                logger.info("User agent %s overrides a built-in agent", agent.name)
            self.register_user(agent)
            count += 1
        return count

    def get_agent_def(self, name: str) -> AgentDef:
        """Get an agent definition by name. Raises AgentNotFoundError if not found."""
        agent = self.get(name)
        if agent is None:
            available = ", ".join(sorted(self.names()))
            raise AgentNotFoundError(f"Unknown agent: {name!r}. Available: {available}")
        return agent

    def list_agents(self) -> list[AgentDef]:
        """Return all registered agents, internal ones excluded."""
        return [agent for agent in self.all() if not self.is_internal(agent.name)]

    def schemas(self) -> dict[str, dict[str, Any]]:
        """JSON-Schema style description of each agent's parameters."""
        result: dict[str, dict[str, Any]] = {}
        for agent in self.list_agents():
            properties: dict[str, Any] = {}
            required: list[str] = []
            for param in agent.parameters:
                prop: dict[str, Any] = {"type": param.type, "description": param.description}
                if param.enum is not None:
                    prop["enum"] = list(param.enum)
                if param.default is not None:
                    prop["default"] = param.default
                if param.items is not None:
                    prop["items"] = param.items
                properties[param.name] = prop
                if param.required:
                    required.append(param.name)
            result[agent.name] = {
                "description": agent.spawner_prompt or agent.description,
                "parameters": {
                    "type": "object",
                    "properties": properties,
                    "required": required,
                },
            }
        return result

    async def execute(
        self,
        name: str,
        params: dict[str, Any],
        context: AgentContext | None,
        interpreter: StepInterpreter,
    ) -> AgentResult:
        """Validate *params* and run the named agent.

        Unknown agents and invalid parameters are reported as a failed
        AgentResult. ``params["prompt"]`` becomes the run's prompt.
        """
        agent = self.get(name)
        if agent is None:
            return AgentResult(success=False, summary=f"Unknown agent: {name}")

        validated, errors = validate_params(params, agent.parameters)
        if errors:
            logger.info("Rejected parameters for agent %s: %s", name, "; ".join(errors))
            return AgentResult(
                success=False,
                summary=f"Invalid parameters: {'; '.join(errors)}",
                data={"errors": errors},
            )

        prompt = validated.get("prompt")
        return await interpreter.run(
            agent,
            validated,
            prompt=str(prompt) if prompt is not None else None,
            context=context,
        )
