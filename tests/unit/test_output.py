"""Tests for stepwise.core.output and stepwise.core.prompts."""

from __future__ import annotations

import json

import pytest

from stepwise.core.output import extract_result, parse_structured
from stepwise.core.prompts import build_system_prompt, build_user_message
from stepwise.types.agents import AgentDef, OutputMode
from stepwise.types.state import AgentContext, AgentState


def _agent(mode: OutputMode) -> AgentDef:
    return AgentDef(name="a", description="", output_mode=mode)


def _state(*assistant: str) -> AgentState:
    state = AgentState()
    state.add_message("user", "question")
    for text in assistant:
        state.add_message("assistant", text)
    return state


class TestExtractResult:
    def test_last_message(self):
        result = extract_result(_agent(OutputMode.LAST_MESSAGE), _state("first", "second"))
        assert result.success is True
        assert result.data == "second"
        assert result.summary == "second"

    def test_last_message_without_assistant(self):
        result = extract_result(_agent(OutputMode.LAST_MESSAGE), _state())
        assert result.success is True
        assert result.summary == "Completed"
        assert result.data is None

    def test_all_messages(self):
        result = extract_result(_agent(OutputMode.ALL_MESSAGES), _state("a", "b", "c"))
        assert result.summary == "3 responses"
        assert result.data == ["a", "b", "c"]

    def test_structured_output(self):
        result = extract_result(_agent(OutputMode.STRUCTURED_OUTPUT), _state('{"k": [1, 2]}'))
        assert result.success is True
        assert result.summary == "Structured output"
        assert result.data == {"k": [1, 2]}

    def test_structured_output_unparseable(self):
        result = extract_result(_agent(OutputMode.STRUCTURED_OUTPUT), _state("nope"))
        assert result.success is False
        assert result.data == "nope"

    def test_structured_output_no_messages_is_empty_object(self):
        result = extract_result(_agent(OutputMode.STRUCTURED_OUTPUT), _state())
        assert result.success is True
        assert result.data == {}

    def test_output_set_wins(self):
        state = _state("ignored")
        state.set_output([1, 2, 3])
        for mode in OutputMode:
            result = extract_result(_agent(mode), state)
            assert result.summary == "Output set"
            assert result.data == [1, 2, 3]


class TestParseStructured:
    def test_plain(self):
        assert parse_structured('{"a": 1}') == {"a": 1}

    def test_fenced(self):
        assert parse_structured('```json\n{"a": 1}\n```') == {"a": 1}

    def test_bare_fence(self):
        assert parse_structured("```\n[1, 2]\n```") == [1, 2]

    def test_invalid(self):
        with pytest.raises(json.JSONDecodeError):
            parse_structured("not json")


class TestPrompts:
    def test_user_message_prompt_only(self):
        assert build_user_message("Do it", None) == "## Request\nDo it"

    def test_user_message_all_sections(self):
        context = AgentContext(conversation_context="ctx", user_intent="goal")
        assert build_user_message("Do it", context) == (
            "## Context\nctx\n\n## User Intent\ngoal\n\n## Request\nDo it"
        )

    def test_user_message_empty(self):
        assert build_user_message(None, AgentContext()) == ""

    def test_system_prompt_joins_system_messages(self):
        state = AgentState()
        state.add_message("system", "one")
        state.add_message("user", "hi")
        state.add_message("system", "two")
        assert build_system_prompt(state) == "one\n\ntwo"

    def test_step_prompt_reminder_only(self):
        assert build_system_prompt(AgentState(), "remember") == (
            "<system_reminder>remember</system_reminder>"
        )
