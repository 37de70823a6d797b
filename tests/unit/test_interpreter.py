"""Tests for stepwise.core.interpreter — driving control programs."""

from __future__ import annotations

import asyncio
import logging

import pytest

from stepwise.core.interpreter import StepInterpreter
from stepwise.errors import ConfigurationError, ModelInvocationError
from stepwise.permissions.rules import PermissionConfig
from stepwise.types.agents import AgentDef, OutputMode
from stepwise.types.config import EngineConfig
from stepwise.types.instructions import (
    STEP,
    STEP_ALL,
    GenerateN,
    StepText,
    ToolCall,
)
from stepwise.types.state import AgentContext, SubgoalStatus
from stepwise.types.tools import ToolResultData
from tests.conftest import MockDispatcher, MockInvoker

LONG_WITH_SENTINEL = "Working through the plan. " * 5 + "TOOL: continue"


def _agent(program=None, **kwargs) -> AgentDef:
    kwargs.setdefault("name", "test")
    kwargs.setdefault("description", "test agent")
    return AgentDef(handle_steps=program, **kwargs)


def _interpreter(invoker, dispatcher=None, **config) -> StepInterpreter:
    return StepInterpreter(invoker, dispatcher, config=EngineConfig(**config))


class TestSingleStep:
    @pytest.mark.asyncio
    async def test_default_program_runs_one_step(self):
        invoker = MockInvoker(["Hello there"])
        result = await _interpreter(invoker).run(_agent(), prompt="Hi")

        assert invoker.call_count == 1
        assert result.success is True
        assert result.data == "Hello there"
        assert result.summary == "Hello there"

    @pytest.mark.asyncio
    async def test_response_is_stripped(self):
        invoker = MockInvoker(["  padded \n"])
        result = await _interpreter(invoker).run(_agent(), prompt="Hi")
        assert result.data == "padded"

    @pytest.mark.asyncio
    async def test_summary_is_truncated(self):
        invoker = MockInvoker(["a" * 250])
        result = await _interpreter(invoker, summary_length=100).run(_agent())
        assert result.summary == "a" * 100
        assert result.data == "a" * 250

    @pytest.mark.asyncio
    async def test_agent_model_overrides_default(self):
        invoker = MockInvoker(["ok"])
        await _interpreter(invoker, default_model="base").run(_agent(model="special"))
        assert invoker.calls[0].model == "special"

    @pytest.mark.asyncio
    async def test_engine_default_model(self):
        invoker = MockInvoker(["ok"])
        await _interpreter(invoker, default_model="base").run(_agent())
        assert invoker.calls[0].model == "base"


class TestSeeding:
    @pytest.mark.asyncio
    async def test_prompt_sections_in_order(self):
        invoker = MockInvoker(["ok"])
        context = AgentContext(conversation_context="We talked about X", user_intent="Ship X")
        await _interpreter(invoker).run(_agent(), prompt="Do X", context=context)

        messages = invoker.calls[0].messages
        assert len(messages) == 1
        assert messages[0].role == "user"
        content = messages[0].content
        assert content.index("## Context") < content.index("## User Intent")
        assert content.index("## User Intent") < content.index("## Request")
        assert "Do X" in content

    @pytest.mark.asyncio
    async def test_no_prompt_no_user_message(self):
        invoker = MockInvoker(["ok"])
        await _interpreter(invoker).run(_agent())
        assert invoker.calls[0].messages == []

    @pytest.mark.asyncio
    async def test_system_prompt_assembly(self):
        invoker = MockInvoker(["ok"])
        agent = _agent(
            system_prompt="You are terse.",
            instructions_prompt="Answer in English.",
            step_prompt="Stay on task.",
        )
        await _interpreter(invoker).run(agent, prompt="Hi")

        assert invoker.calls[0].system == (
            "You are terse.\n\nAnswer in English.\n\n"
            "<system_reminder>Stay on task.</system_reminder>"
        )

    @pytest.mark.asyncio
    async def test_system_messages_not_in_conversation(self):
        invoker = MockInvoker(["ok"])
        await _interpreter(invoker).run(_agent(system_prompt="sys"), prompt="Hi")
        assert all(m.role != "system" for m in invoker.calls[0].messages)


class TestStepText:
    @pytest.mark.asyncio
    async def test_appends_without_model_call(self):
        def program(ctx):
            yield StepText("scripted")

        invoker = MockInvoker()
        result = await _interpreter(invoker).run(_agent(program))

        assert invoker.call_count == 0
        assert result.data == "scripted"

    @pytest.mark.asyncio
    async def test_text_visible_to_next_step(self):
        def program(ctx):
            yield StepText("Thinking out loud")
            yield STEP

        invoker = MockInvoker(["final"])
        await _interpreter(invoker).run(_agent(program), prompt="go")

        last = invoker.calls[0].messages[-1]
        assert last.role == "assistant"
        assert last.content == "Thinking out loud"


class TestStepAll:
    @pytest.mark.asyncio
    async def test_short_response_stops(self):
        seen = {}

        def program(ctx):
            result = yield STEP_ALL
            seen["complete"] = result.steps_complete
            seen["text"] = result.tool_result

        invoker = MockInvoker(["short"])
        await _interpreter(invoker).run(_agent(program))

        assert invoker.call_count == 1
        assert seen == {"complete": True, "text": "short"}

    @pytest.mark.asyncio
    async def test_long_response_without_sentinel_stops(self):
        def program(ctx):
            yield STEP_ALL

        invoker = MockInvoker(["x" * 300])
        await _interpreter(invoker).run(_agent(program))
        assert invoker.call_count == 1

    @pytest.mark.asyncio
    async def test_continues_while_sentinel_present(self):
        def program(ctx):
            yield STEP_ALL

        invoker = MockInvoker([LONG_WITH_SENTINEL, LONG_WITH_SENTINEL, "All done."])
        agent = _agent(program, output_mode=OutputMode.ALL_MESSAGES)
        result = await _interpreter(invoker).run(agent)

        assert invoker.call_count == 3
        assert result.summary == "3 responses"
        assert result.data[-1] == "All done."

    @pytest.mark.asyncio
    async def test_iteration_cap(self):
        seen = {}

        def program(ctx):
            result = yield STEP_ALL
            seen["complete"] = result.steps_complete

        invoker = MockInvoker(default=LONG_WITH_SENTINEL)
        await _interpreter(invoker, step_all_limit=4).run(_agent(program))

        assert invoker.call_count == 4
        assert seen["complete"] is True

    @pytest.mark.asyncio
    async def test_each_iteration_sees_previous(self):
        def program(ctx):
            yield STEP_ALL

        invoker = MockInvoker([LONG_WITH_SENTINEL, "done"])
        await _interpreter(invoker).run(_agent(program), prompt="go")

        second = invoker.calls[1].messages
        assert second[-1].role == "assistant"
        assert second[-1].content == LONG_WITH_SENTINEL


class TestGenerateN:
    @pytest.mark.asyncio
    async def test_three_responses_state_unchanged(self):
        seen = {}

        def program(ctx):
            before = list(ctx.state.messages)
            result = yield GenerateN(3)
            seen["responses"] = result.n_responses
            seen["unchanged"] = ctx.state.messages == before

        invoker = MockInvoker(["a", "b", "c"])
        await _interpreter(invoker).run(_agent(program), prompt="ideas")

        assert invoker.call_count == 3
        assert sorted(seen["responses"]) == ["a", "b", "c"]
        assert seen["unchanged"] is True

    @pytest.mark.asyncio
    async def test_calls_run_concurrently(self):
        def program(ctx):
            yield GenerateN(3)

        invoker = MockInvoker(default="x", delay=0.05)
        await _interpreter(invoker).run(_agent(program))
        assert invoker.max_in_flight == 3

    @pytest.mark.asyncio
    async def test_concurrency_limit(self):
        def program(ctx):
            yield GenerateN(5)

        invoker = MockInvoker(default="x", delay=0.02)
        await _interpreter(invoker, generate_concurrency=2).run(_agent(program))

        assert invoker.call_count == 5
        assert invoker.max_in_flight <= 2

    @pytest.mark.asyncio
    async def test_clamped_to_maximum(self, caplog):
        seen = {}

        def program(ctx):
            result = yield GenerateN(50)
            seen["count"] = len(result.n_responses)

        invoker = MockInvoker(default="x")
        with caplog.at_level(logging.WARNING, logger="stepwise.core.interpreter"):
            await _interpreter(invoker, max_generate_n=4).run(_agent(program))

        assert seen["count"] == 4
        assert invoker.call_count == 4
        assert "clamping" in caplog.text

    @pytest.mark.asyncio
    async def test_zero_is_empty(self):
        seen = {}

        def program(ctx):
            result = yield GenerateN(0)
            seen["responses"] = result.n_responses

        invoker = MockInvoker()
        await _interpreter(invoker).run(_agent(program))

        assert invoker.call_count == 0
        assert seen["responses"] == []

    @pytest.mark.asyncio
    async def test_one_failure_fails_run(self):
        def program(ctx):
            yield GenerateN(3)

        invoker = MockInvoker(["a", RuntimeError("boom"), "c"])
        with pytest.raises(ModelInvocationError):
            await _interpreter(invoker).run(_agent(program))


class TestToolCalls:
    @pytest.mark.asyncio
    async def test_end_to_end_search(self):
        def program(ctx):
            yield ToolCall("search", {"q": "x"})
            yield STEP

        dispatcher = MockDispatcher({"search": ToolResultData.ok("3 results", "a\nb\nc")})
        invoker = MockInvoker(["Found three things."])
        agent = _agent(program, tool_names=("search",))

        result = await _interpreter(invoker, dispatcher).run(agent, prompt="find x")

        assert dispatcher.calls[0][0] == "search"
        assert dispatcher.calls[0][1] == {"q": "x"}
        last = invoker.calls[-1].messages[-1]
        assert last.role == "user"
        assert "3 results" in last.content
        assert 'Tool "search"' in last.content
        assert result.data == "Found three things."

    @pytest.mark.asyncio
    async def test_tool_result_sent_back(self):
        seen = {}

        def program(ctx):
            result = yield ToolCall("search", {"q": "x"})
            seen["result"] = result.tool_result

        dispatcher = MockDispatcher({"search": ToolResultData.ok("3 results")})
        await _interpreter(MockInvoker(), dispatcher).run(_agent(program))

        assert seen["result"].success is True
        assert seen["result"].summary == "3 results"

    @pytest.mark.asyncio
    async def test_exclude_from_history(self):
        def program(ctx):
            yield ToolCall("search", {}, include_in_history=False)
            yield STEP

        dispatcher = MockDispatcher()
        invoker = MockInvoker(["ok"])
        await _interpreter(invoker, dispatcher).run(_agent(program), prompt="go")

        assert dispatcher.called_names == ["search"]
        assert len(invoker.calls[0].messages) == 1

    @pytest.mark.asyncio
    async def test_results_recorded_in_state(self):
        seen = {}

        def program(ctx):
            yield ToolCall("search", {})
            yield ToolCall("set_output", {"data": 1})
            seen["count"] = len(ctx.state.tool_results)

        await _interpreter(MockInvoker(), MockDispatcher()).run(_agent(program))
        assert seen["count"] == 2

    @pytest.mark.asyncio
    async def test_denied_tool_never_dispatched(self):
        seen = {}

        def program(ctx):
            result = yield ToolCall("write_file", {"path": "x"})
            seen["result"] = result.tool_result
            yield STEP

        dispatcher = MockDispatcher()
        invoker = MockInvoker(["carried on"])
        agent = _agent(program, tool_names=("read_file",))
        result = await _interpreter(invoker, dispatcher).run(agent)

        assert dispatcher.calls == []
        assert seen["result"].success is False
        assert seen["result"].summary.startswith("Access denied:")
        assert result.data == "carried on"

    @pytest.mark.asyncio
    async def test_empty_allow_list_denies_everything(self):
        seen = {}

        def program(ctx):
            result = yield ToolCall("bash", {"command": "ls"})
            seen["summary"] = result.tool_result.summary

        dispatcher = MockDispatcher()
        await _interpreter(MockInvoker(), dispatcher).run(_agent(program, tool_names=()))

        assert dispatcher.calls == []
        assert seen["summary"] == "Access denied: bash"

    @pytest.mark.asyncio
    async def test_engine_deny_rule(self):
        def program(ctx):
            yield ToolCall("agent:planner", {})

        dispatcher = MockDispatcher()
        interpreter = StepInterpreter(
            MockInvoker(), dispatcher, permissions=PermissionConfig.from_patterns(["agent:*"]),
        )
        await interpreter.run(_agent(program))
        assert dispatcher.calls == []

    @pytest.mark.asyncio
    async def test_control_tools_bypass_allow_list(self):
        def program(ctx):
            yield ToolCall("set_output", {"data": {"ok": True}})

        result = await _interpreter(MockInvoker()).run(_agent(program, tool_names=()))
        assert result.data == {"ok": True}

    @pytest.mark.asyncio
    async def test_tool_exception_becomes_failed_result(self):
        seen = {}

        def program(ctx):
            result = yield ToolCall("flaky", {})
            seen["result"] = result.tool_result

        dispatcher = MockDispatcher({"flaky": RuntimeError("disk on fire")})
        await _interpreter(MockInvoker(), dispatcher).run(_agent(program))

        assert seen["result"].success is False
        assert "disk on fire" in seen["result"].full_result

    @pytest.mark.asyncio
    async def test_tool_timeout(self):
        seen = {}

        class SlowDispatcher(MockDispatcher):
            async def execute(self, name, args, ctx=None):
                await asyncio.sleep(1)
                return ToolResultData.ok("late")

        def program(ctx):
            result = yield ToolCall("slow", {})
            seen["result"] = result.tool_result

        await _interpreter(MockInvoker(), SlowDispatcher(), tool_timeout=0.01).run(_agent(program))

        assert seen["result"].success is False
        assert seen["result"].summary == "Tool timed out: slow"

    @pytest.mark.asyncio
    async def test_no_dispatcher(self):
        seen = {}

        def program(ctx):
            result = yield ToolCall("search", {})
            seen["summary"] = result.tool_result.summary

        await _interpreter(MockInvoker()).run(_agent(program))
        assert seen["summary"] == "Unknown tool: search"

    @pytest.mark.asyncio
    async def test_tool_context_carries_agent_name(self):
        def program(ctx):
            yield ToolCall("search", {})

        dispatcher = MockDispatcher()
        await _interpreter(MockInvoker(), dispatcher).run(_agent(program, name="finder"))
        assert dispatcher.calls[0][2].agent_name == "finder"


class TestControlToolsInRun:
    @pytest.mark.asyncio
    async def test_set_output_wins_over_mode(self):
        def program(ctx):
            yield STEP
            yield ToolCall("set_output", {"data": {"answer": 42}})

        invoker = MockInvoker(["not json"])
        agent = _agent(program, output_mode=OutputMode.STRUCTURED_OUTPUT)
        result = await _interpreter(invoker).run(agent)

        assert result.success is True
        assert result.summary == "Output set"
        assert result.data == {"answer": 42}

    @pytest.mark.asyncio
    async def test_update_unknown_subgoal_creates_it(self):
        seen = {}

        def program(ctx):
            yield ToolCall("update_subgoal", {"id": "g1", "status": "in_progress"})
            seen["subgoal"] = ctx.state.subgoals["g1"]

        await _interpreter(MockInvoker()).run(_agent(program))

        assert seen["subgoal"].objective == "g1"
        assert seen["subgoal"].status is SubgoalStatus.IN_PROGRESS

    @pytest.mark.asyncio
    async def test_add_message_visible_to_model(self):
        def program(ctx):
            yield ToolCall("add_message", {"role": "user", "content": "extra detail"})
            yield STEP

        invoker = MockInvoker(["ok"])
        await _interpreter(invoker).run(_agent(program))
        assert invoker.calls[0].messages[-1].content == "extra detail"


class TestOutputModes:
    @pytest.mark.asyncio
    async def test_structured_output_parsed(self):
        invoker = MockInvoker(['{"score": 7}'])
        agent = _agent(output_mode=OutputMode.STRUCTURED_OUTPUT)
        result = await _interpreter(invoker).run(agent)

        assert result.success is True
        assert result.data == {"score": 7}

    @pytest.mark.asyncio
    async def test_unparseable_structured_output(self):
        invoker = MockInvoker(["definitely not json"])
        agent = _agent(output_mode=OutputMode.STRUCTURED_OUTPUT)
        result = await _interpreter(invoker).run(agent)

        assert result.success is False
        assert result.summary == "Failed to parse structured output"
        assert result.data == "definitely not json"


class TestFailures:
    @pytest.mark.asyncio
    async def test_model_error_is_wrapped(self):
        invoker = MockInvoker([ConnectionError("network down")])
        with pytest.raises(ModelInvocationError) as exc_info:
            await _interpreter(invoker, default_model="m1").run(_agent(name="fragile"))

        assert exc_info.value.agent == "fragile"
        assert exc_info.value.model == "m1"
        assert isinstance(exc_info.value.__cause__, ConnectionError)

    @pytest.mark.asyncio
    async def test_configuration_error_passes_through(self):
        invoker = MockInvoker([ConfigurationError("no key")])
        with pytest.raises(ConfigurationError):
            await _interpreter(invoker).run(_agent())

    @pytest.mark.asyncio
    async def test_model_timeout(self):
        invoker = MockInvoker(default="late", delay=1.0)
        with pytest.raises(ModelInvocationError, match="timed out"):
            await _interpreter(invoker, model_timeout=0.01).run(_agent())

    @pytest.mark.asyncio
    async def test_program_closed_on_failure(self):
        seen = {"closed": False}

        def program(ctx):
            try:
                yield STEP
            finally:
                seen["closed"] = True

        invoker = MockInvoker([RuntimeError("boom")])
        with pytest.raises(ModelInvocationError):
            await _interpreter(invoker).run(_agent(program))
        assert seen["closed"] is True

    @pytest.mark.asyncio
    async def test_non_generator_program_rejected(self):
        def not_a_generator(ctx):
            return [STEP]

        with pytest.raises(TypeError, match="generator"):
            await _interpreter(MockInvoker()).run(_agent(not_a_generator))

    @pytest.mark.asyncio
    async def test_unknown_instruction_rejected(self):
        def program(ctx):
            yield "STEP"

        with pytest.raises(TypeError, match="not an instruction"):
            await _interpreter(MockInvoker()).run(_agent(program))


class TestStepContext:
    @pytest.mark.asyncio
    async def test_params_prompt_and_logger(self):
        seen = {}

        def program(ctx):
            seen["params"] = ctx.params
            seen["prompt"] = ctx.prompt
            seen["logger"] = ctx.logger.name
            yield STEP

        await _interpreter(MockInvoker()).run(
            _agent(program, name="ctxagent"), {"k": "v"}, prompt="p",
        )

        assert seen == {"params": {"k": "v"}, "prompt": "p", "logger": "stepwise.agent.ctxagent"}

    @pytest.mark.asyncio
    async def test_runs_are_isolated(self):
        def program(ctx):
            yield ToolCall("add_subgoal", {"id": "only", "objective": "once"})
            yield ToolCall("set_output", {"data": len(ctx.state.subgoals)})

        interpreter = _interpreter(MockInvoker())
        first, second = await asyncio.gather(
            interpreter.run(_agent(program)), interpreter.run(_agent(program)),
        )
        assert first.data == 1
        assert second.data == 1
