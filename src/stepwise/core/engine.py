"""Engine: wires config, invoker, tools, hooks and agents into one run."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any

from stepwise.agents.params import validate_params
from stepwise.agents.registry import AgentRegistry
from stepwise.core.config import load_run_config
from stepwise.core.interpreter import StepInterpreter
from stepwise.hooks.manager import HookManager
from stepwise.observability.exporters import (
    ObservabilityConfig,
    configure_exporters,
    shutdown,
)
from stepwise.permissions.rules import PermissionConfig
from stepwise.providers.registry import create_invoker
from stepwise.registry import RegistrySource
from stepwise.tools.agent import AgentTool
from stepwise.tools.manager import ToolManager
from stepwise.types.agents import AgentDef
from stepwise.types.config import RunConfig
from stepwise.types.hooks import Hook
from stepwise.types.providers import ModelInvoker
from stepwise.types.state import AgentContext, AgentResult

logger = logging.getLogger(__name__)


async def run(
    agent: AgentDef | str,
    params: dict[str, Any] | None = None,
    prompt: str | None = None,
    context: AgentContext | None = None,
    *,
    provider: str | None = None,
    model: str | None = None,
    api_key: str | None = None,
    base_url: str | None = None,
    tools: ToolManager | None = None,
    registry: AgentRegistry | None = None,
    hooks: list[Hook] | None = None,
    cwd: str | None = None,
    _invoker: ModelInvoker | None = None,
) -> AgentResult:
    """Run an agent once and return its result.

    This is the primary SDK entry point.

    Args:
        agent: An AgentDef, or the name of a registered agent.
        params: Parameter map handed to the control program.
        prompt: The user's request. Falls back to ``params["prompt"]``.
        context: Conversation context and user intent from a caller.
        provider: Provider name ("openrouter", "openai", "anthropic").
        model: Model ID used by agents that do not pin one.
        api_key: Provider API key (or set via env var).
        base_url: Override provider base URL.
        tools: Tool dispatcher. Defaults to the built-in tools.
        registry: Agents available by name and as ``agent:<name>`` tools.
            Defaults to the built-ins plus user agent files.
        hooks: Extra hooks on top of the configured ``[[hooks]]``.
        cwd: Working directory for tools and project config.
        _invoker: Injected model invoker for testing (private).

    Raises:
        AgentNotFoundError: *agent* names no registered agent.
        ConfigurationError: No API key or an unknown provider.
        ModelInvocationError: A model call failed or timed out.
    """
    resolved_cwd = str(Path(cwd).resolve()) if cwd else str(Path.cwd())
    config = load_run_config(
        resolved_cwd, provider=provider, model=model, api_key=api_key, base_url=base_url,
    )

    if registry is None:
        registry = AgentRegistry()
        registry.register_defaults()
        registry.load_user_agents(config.agent_dirs)

    agent_def = agent if isinstance(agent, AgentDef) else registry.get_agent_def(agent)

    call_params = dict(params or {})
    if prompt is None and call_params.get("prompt") is not None:
        prompt = str(call_params["prompt"])
    validated, errors = validate_params(call_params, agent_def.parameters)
    if errors:
        return AgentResult(
            success=False,
            summary=f"Invalid parameters: {'; '.join(errors)}",
            data={"errors": errors},
        )

    invoker = _invoker if _invoker is not None else create_invoker(
        config.provider, config.api_key, config.base_url,
    )

    otel_configured = _init_observability(config.observability)
    try:
        interpreter = _build_interpreter(
            invoker, tools=tools, registry=registry, config=config, extra_hooks=hooks,
        )
        logger.debug("Running agent %s with provider %s", agent_def.name, config.provider)
        return await interpreter.run(agent_def, validated, prompt=prompt, context=context)
    finally:
        if otel_configured:
            shutdown()


def _build_interpreter(
    invoker: ModelInvoker,
    *,
    tools: ToolManager | None,
    registry: AgentRegistry,
    config: RunConfig,
    extra_hooks: list[Hook] | None,
) -> StepInterpreter:
    """Assemble the dispatcher and interpreter for one run.

    Every listed agent is exposed as an ``agent:<name>`` tool that runs
    through the same interpreter with a fresh state.
    """
    if tools is None:
        manager = ToolManager()
        manager.register_defaults()
    else:
        # Copy so agent tools are not added to the caller's manager.
        manager = tools.filter(tools.names())

    all_hooks = list(config.hooks) + list(extra_hooks or [])
    interpreter = StepInterpreter(
        invoker,
        manager,
        config=config.engine,
        permissions=PermissionConfig.from_patterns(config.deny_tools),
        hook_manager=HookManager(all_hooks) if all_hooks else None,
        cwd=config.cwd,
    )

    async def run_sub_agent(
        name: str, sub_params: dict[str, Any], sub_context: AgentContext,
    ) -> AgentResult:
        return await registry.execute(name, sub_params, sub_context, interpreter)

    for sub_agent in registry.list_agents():
        tool = AgentTool(sub_agent, run_sub_agent)
        if tool.definition.name not in manager:
            manager.register(tool, RegistrySource.AGENT)

    return interpreter


def _init_observability(raw: dict[str, Any]) -> bool:
    """Initialize OTel if configured. Returns True if configured."""
    otel = ObservabilityConfig.from_dict(raw)
    enabled = otel.enabled or os.environ.get("STEPWISE_OTEL_ENABLED", "").lower() == "true"
    if not enabled:
        return False

    return configure_exporters(
        ObservabilityConfig(
            enabled=True,
            exporter=os.environ.get("STEPWISE_OTEL_EXPORTER", otel.exporter),
            otlp_endpoint=os.environ.get("OTEL_EXPORTER_OTLP_ENDPOINT", otel.otlp_endpoint),
            service_name=otel.service_name,
        )
    )
