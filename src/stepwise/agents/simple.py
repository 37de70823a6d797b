"""Factory for single-step structured-output agents."""

from __future__ import annotations

import json
from collections.abc import Iterator

from stepwise.types.agents import AgentDef, OutputMode
from stepwise.types.instructions import STEP, Instruction, ToolCall
from stepwise.types.state import StepContext
from stepwise.types.tools import ToolParam


def format_params(params: dict, exclude: tuple[str, ...] = ("prompt",)) -> str:
    """Render the parameter map as a JSON block for the model."""
    shown = {k: v for k, v in params.items() if k not in exclude}
    return json.dumps(shown, indent=2, default=str)


def params_then_step(ctx: StepContext) -> Iterator[Instruction]:
    """Show the non-prompt parameters to the model, then take one step."""
    if any(key != "prompt" for key in ctx.params):
        yield ToolCall(
            "add_message",
            {"role": "user", "content": f"Parameters:\n{format_params(ctx.params)}"},
        )
    yield STEP


def define_simple_agent(
    name: str,
    description: str,
    system_prompt: str,
    parameters: tuple[ToolParam, ...] = (),
    *,
    spawner_prompt: str | None = None,
    instructions_prompt: str | None = None,
    model: str | None = None,
) -> AgentDef:
    """Create an agent that runs one model step and returns parsed JSON.

    The system prompt should describe the JSON shape to produce. Such
    agents use no tools; declared parameters other than ``prompt`` are
    shown to the model as a JSON block before the step.
    """
    return AgentDef(
        name=name,
        description=description,
        system_prompt=system_prompt,
        tool_names=(),
        instructions_prompt=instructions_prompt,
        output_mode=OutputMode.STRUCTURED_OUTPUT,
        handle_steps=params_then_step if parameters else None,
        model=model,
        parameters=parameters,
        spawner_prompt=spawner_prompt,
    )
