"""The step interpreter — drives an agent's control program to completion."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Generator, Iterator
from pathlib import Path
from typing import Any

from stepwise.core.control import CONTROL_HANDLERS
from stepwise.core.output import extract_result
from stepwise.core.prompts import build_system_prompt, build_user_message
from stepwise.errors import ConfigurationError, ModelInvocationError
from stepwise.hooks.events import build_hook_context
from stepwise.hooks.manager import HookManager
from stepwise.observability.metrics import (
    record_access_denied,
    record_instruction,
    record_tool_call,
    timed_model_call,
)
from stepwise.observability.tracing import span
from stepwise.permissions.access import check_tool_access, is_control_tool
from stepwise.permissions.rules import PermissionConfig, PermissionDecision
from stepwise.types.agents import AgentDef
from stepwise.types.config import EngineConfig
from stepwise.types.hooks import HookEvent
from stepwise.types.instructions import (
    STEP,
    GenerateN,
    Instruction,
    Step,
    StepAll,
    StepText,
    ToolCall,
)
from stepwise.types.providers import ChatMessage, ModelInvoker
from stepwise.types.state import (
    AgentContext,
    AgentResult,
    AgentState,
    StepContext,
    StepResult,
)
from stepwise.types.tools import ToolContext, ToolDispatcher, ToolResultData

logger = logging.getLogger(__name__)


def _single_step(ctx: StepContext) -> Iterator[Instruction]:
    """Control program used when an agent defines none."""
    yield STEP


class StepInterpreter:
    """Runs agents against a model invoker and a tool dispatcher.

    One interpreter may serve many concurrent runs; every run owns a
    fresh :class:`AgentState`.

    Usage::

        interpreter = StepInterpreter(invoker, tool_manager)
        result = await interpreter.run(agent, {"query": "x"}, prompt="Find x")
    """

    def __init__(
        self,
        invoker: ModelInvoker,
        dispatcher: ToolDispatcher | None = None,
        *,
        config: EngineConfig | None = None,
        permissions: PermissionConfig | None = None,
        hook_manager: HookManager | None = None,
        cwd: str | Path | None = None,
    ) -> None:
        self._invoker = invoker
        self._dispatcher = dispatcher
        self._config = config or EngineConfig()
        self._permissions = permissions
        self._hook_manager = hook_manager
        self._cwd = Path(cwd or ".").resolve()

    @property
    def config(self) -> EngineConfig:
        return self._config

    # ------------------------------------------------------------------
    # Run
    # ------------------------------------------------------------------

    async def run(
        self,
        agent: AgentDef,
        params: dict[str, Any] | None = None,
        prompt: str | None = None,
        context: AgentContext | None = None,
    ) -> AgentResult:
        """Execute *agent*'s control program and extract its result.

        Raises ConfigurationError or ModelInvocationError when the model
        cannot be called. Every other failure is reported as data.
        """
        params = dict(params or {})
        state = AgentState()
        self._seed(agent, state, prompt, context)

        await self._fire_hook(HookEvent.AGENT_START, agent)
        logger.debug("Starting agent %s", agent.name)

        step_ctx = StepContext(
            params=params,
            prompt=prompt,
            state=state,
            logger=logging.getLogger(f"stepwise.agent.{agent.name}"),
        )
        program = (agent.handle_steps or _single_step)(step_ctx)
        if not isinstance(program, Generator):
            raise TypeError(
                f"handle_steps of agent {agent.name!r} must be a generator function, "
                f"got {type(program).__name__}"
            )

        instructions = 0
        with span("stepwise.run", {"agent": agent.name}) as run_span:
            try:
                instruction = next(program)
                while True:
                    instructions += 1
                    step_result = await self._execute(agent, state, instruction)
                    instruction = program.send(step_result)
            except StopIteration:
                pass
            finally:
                program.close()
            run_span.set_attribute("instructions", instructions)

        result = extract_result(agent, state, self._config.summary_length)
        logger.debug(
            "Agent %s finished after %d instructions (success=%s)",
            agent.name, instructions, result.success,
        )
        await self._fire_hook(
            HookEvent.AGENT_STOP, agent, result=result.summary, is_error=not result.success,
        )
        return result

    def _seed(
        self,
        agent: AgentDef,
        state: AgentState,
        prompt: str | None,
        context: AgentContext | None,
    ) -> None:
        """System prompt, instructions prompt, then the composed user message."""
        if agent.system_prompt:
            state.add_message("system", agent.system_prompt)
        if agent.instructions_prompt:
            state.add_message("system", agent.instructions_prompt)
        user_message = build_user_message(prompt, context)
        if user_message:
            state.add_message("user", user_message)

    # ------------------------------------------------------------------
    # Instruction dispatch
    # ------------------------------------------------------------------

    async def _execute(
        self, agent: AgentDef, state: AgentState, instruction: Instruction,
    ) -> StepResult:
        kind = type(instruction).__name__
        logger.debug("Agent %s: executing %s", agent.name, kind)
        record_instruction(kind, agent=agent.name)

        with span("stepwise.instruction", {"agent": agent.name, "kind": kind}):
            match instruction:
                case Step():
                    text = await self._invoke(agent, state)
                    state.add_message("assistant", text)
                    return StepResult(state=state, tool_result=text)

                case StepAll():
                    text = await self._step_all(agent, state)
                    return StepResult(state=state, tool_result=text, steps_complete=True)

                case GenerateN(n=n):
                    responses = await self._generate_n(agent, state, n)
                    return StepResult(state=state, n_responses=responses)

                case StepText(text=text):
                    state.add_message("assistant", text)
                    return StepResult(state=state)

                case ToolCall():
                    result = await self._tool_call(agent, state, instruction)
                    return StepResult(state=state, tool_result=result)

                case _:
                    raise TypeError(
                        f"Agent {agent.name!r} yielded {instruction!r}, "
                        "which is not an instruction"
                    )

    async def _step_all(self, agent: AgentDef, state: AgentState) -> str | None:
        """Repeat single steps until a short or tool-free response, or the cap.

        Best-effort heuristic: a response counts as wanting more work only
        if it is long and mentions the sentinel token.
        """
        cfg = self._config
        text: str | None = None
        for iteration in range(1, cfg.step_all_limit + 1):
            text = await self._invoke(agent, state)
            state.add_message("assistant", text)
            if len(text) < cfg.step_all_min_length or cfg.step_all_sentinel not in text:
                return text
            logger.debug("Agent %s: StepAll iteration %d wants more", agent.name, iteration)

        logger.info(
            "Agent %s: StepAll stopped at the %d-iteration limit",
            agent.name, cfg.step_all_limit,
        )
        return text

    async def _generate_n(self, agent: AgentDef, state: AgentState, n: int) -> list[str]:
        """Fan out *n* model calls over the same state; nothing is appended."""
        cap = self._config.max_generate_n
        if n > cap:
            logger.warning(
                "Agent %s requested GenerateN(%d); clamping to %d", agent.name, n, cap,
            )
            n = cap
        if n <= 0:
            return []

        limit = self._config.generate_concurrency
        semaphore = asyncio.Semaphore(limit) if limit else None

        async def one() -> str:
            if semaphore is None:
                return await self._invoke(agent, state)
            async with semaphore:
                return await self._invoke(agent, state)

        tasks = [asyncio.ensure_future(one()) for _ in range(n)]
        try:
            return list(await asyncio.gather(*tasks))
        except BaseException:
            for task in tasks:
                task.cancel()
            raise

    # ------------------------------------------------------------------
    # Tool calls
    # ------------------------------------------------------------------

    async def _tool_call(
        self, agent: AgentDef, state: AgentState, call: ToolCall,
    ) -> ToolResultData:
        name = call.tool_name

        if is_control_tool(name):
            result = CONTROL_HANDLERS[name](state, dict(call.input))
            state.tool_results.append(result)
            return result

        if check_tool_access(agent, name, self._permissions) is PermissionDecision.DENY:
            logger.info("Agent %s denied access to tool %s", agent.name, name)
            record_access_denied(name, agent=agent.name)
            result = ToolResultData.error(
                f"Access denied: {name}",
                f'Agent "{agent.name}" is not allowed to use tool "{name}"',
            )
            state.tool_results.append(result)
            return result

        await self._fire_hook(HookEvent.PRE_TOOL_USE, agent, tool_name=name, tool_args=call.input)
        result = await self._dispatch(agent, call)
        await self._fire_hook(
            HookEvent.POST_TOOL_USE, agent,
            tool_name=name, tool_args=call.input,
            result=result.full_result, is_error=not result.success,
        )
        record_tool_call(name, is_error=not result.success, agent=agent.name)

        state.tool_results.append(result)
        if call.include_in_history:
            state.add_message(
                "user", f'Tool "{name}" result: {result.summary}\n{result.full_result}',
            )
        return result

    async def _dispatch(self, agent: AgentDef, call: ToolCall) -> ToolResultData:
        """Forward to the dispatcher; timeouts and crashes become failed results."""
        if self._dispatcher is None:
            return ToolResultData.error(
                f"Unknown tool: {call.tool_name}", "No tool dispatcher is configured",
            )

        ctx = ToolContext(cwd=self._cwd, agent_name=agent.name)
        timeout = self._config.tool_timeout
        try:
            coro = self._dispatcher.execute(call.tool_name, dict(call.input), ctx)
            if timeout is not None:
                return await asyncio.wait_for(coro, timeout=timeout)
            return await coro
        except (ConfigurationError, ModelInvocationError):
            raise
        except TimeoutError:
            return ToolResultData.error(
                f"Tool timed out: {call.tool_name}",
                f'Tool "{call.tool_name}" did not finish within {timeout}s',
            )
        except Exception as e:
            logger.warning("Tool %s raised %s: %s", call.tool_name, type(e).__name__, e)
            return ToolResultData.error(
                f"Tool error: {call.tool_name}", f"Tool error: {type(e).__name__}: {e}",
            )

    # ------------------------------------------------------------------
    # Model calls
    # ------------------------------------------------------------------

    async def _invoke(self, agent: AgentDef, state: AgentState) -> str:
        """One model call with the current state. Failures abort the run."""
        model = agent.model or self._config.default_model
        system = build_system_prompt(state, agent.step_prompt)
        messages = [ChatMessage(role=m.role, content=m.content) for m in state.conversation()]
        timeout = self._config.model_timeout

        try:
            with timed_model_call(model=model, agent=agent.name):
                coro = self._invoker.complete(model, system, messages)
                if timeout is not None:
                    text = await asyncio.wait_for(coro, timeout=timeout)
                else:
                    text = await coro
        except (ConfigurationError, ModelInvocationError):
            raise
        except TimeoutError as e:
            raise ModelInvocationError(
                f"Model call for agent {agent.name!r} timed out after {timeout}s",
                agent=agent.name, model=model,
            ) from e
        except Exception as e:
            raise ModelInvocationError(
                f"Model call for agent {agent.name!r} failed: {type(e).__name__}: {e}",
                agent=agent.name, model=model,
            ) from e

        return text.strip()

    # ------------------------------------------------------------------
    # Hooks
    # ------------------------------------------------------------------

    async def _fire_hook(
        self,
        event: HookEvent,
        agent: AgentDef,
        *,
        tool_name: str | None = None,
        tool_args: dict[str, Any] | None = None,
        result: str | None = None,
        is_error: bool = False,
    ) -> None:
        """Fire hooks for an event, if a hook manager is configured."""
        if self._hook_manager is None:
            return
        ctx = build_hook_context(
            event,
            agent_name=agent.name,
            tool_name=tool_name,
            tool_args=tool_args,
            result=result,
            is_error=is_error,
            cwd=self._cwd,
        )
        await self._hook_manager.fire(ctx)
