"""Built-in agent definitions."""

from __future__ import annotations

import json
from collections.abc import Iterator

from stepwise.agents.simple import define_simple_agent
from stepwise.core.output import parse_structured
from stepwise.types.agents import AgentDef, OutputMode
from stepwise.types.instructions import (
    STEP,
    STEP_ALL,
    GenerateN,
    Instruction,
    StepText,
    ToolCall,
)
from stepwise.types.state import StepContext, SubgoalStatus
from stepwise.types.tools import ToolParam

_PROMPT = ToolParam(
    name="prompt", type="string", description="What the agent should work on", required=False,
)


# ----------------------------------------------------------------------
# brainstorm: sample several candidates, then pick one
# ----------------------------------------------------------------------


def _brainstorm_steps(ctx: StepContext) -> Iterator[Instruction]:
    n = int(ctx.params.get("n", 3))
    result = yield GenerateN(n)
    candidates = result.n_responses or []
    ctx.logger.debug("Collected %d candidates", len(candidates))
    if not candidates:
        yield StepText("No ideas were generated.")
        return

    listing = "\n\n".join(f"Idea {i}:\n{text}" for i, text in enumerate(candidates, 1))
    yield ToolCall(
        "add_message",
        {
            "role": "user",
            "content": (
                f"{listing}\n\nPick the strongest idea. Reply with that idea, "
                "improved where you can, and one sentence on why it won."
            ),
        },
    )
    yield STEP


# ----------------------------------------------------------------------
# commander: run a shell command, then explain the output
# ----------------------------------------------------------------------


def _commander_steps(ctx: StepContext) -> Iterator[Instruction]:
    command = ctx.params["command"]
    timeout = ctx.params.get("timeout")
    args: dict = {"command": command}
    if timeout is not None:
        args["timeout"] = int(timeout * 1000)  # bash takes milliseconds

    result = yield ToolCall("bash", args)
    tool_result = result.tool_result
    if tool_result is not None and not tool_result.success:
        ctx.logger.info("Command failed: %s", tool_result.summary)
    yield STEP


# ----------------------------------------------------------------------
# planner: split the request into subgoals and work through them
# ----------------------------------------------------------------------


def _parse_plan(text: str | None, limit: int) -> list[str]:
    """Return the step list from a planning reply, or [] if unusable."""
    if not text:
        return []
    try:
        parsed = parse_structured(text)
    except json.JSONDecodeError:
        return []
    steps = parsed.get("steps") if isinstance(parsed, dict) else parsed
    if not isinstance(steps, list):
        return []
    return [str(s) for s in steps if str(s).strip()][:limit]


def _planner_steps(ctx: StepContext) -> Iterator[Instruction]:
    max_steps = int(ctx.params.get("max_steps", 5))
    request = ctx.prompt or ""

    yield ToolCall(
        "add_message",
        {
            "role": "user",
            "content": (
                f"Break the request into at most {max_steps} concrete steps. "
                'Reply with JSON only: {"steps": ["..."]}'
            ),
        },
    )
    result = yield STEP
    steps = _parse_plan(result.tool_result, max_steps)
    if not steps:
        ctx.logger.info("Planning reply was not a step list; using the request as one step")
        steps = [request or "Complete the request"]

    ids = [f"step-{i}" for i in range(1, len(steps) + 1)]
    for subgoal_id, objective in zip(ids, steps):
        yield ToolCall(
            "add_subgoal",
            {"id": subgoal_id, "objective": objective},
        )

    yield StepText("Plan:\n" + "\n".join(f"{i}. {s}" for i, s in enumerate(steps, 1)))

    for subgoal_id in ids:
        yield ToolCall("update_subgoal", {"id": subgoal_id, "status": "in_progress"})
    yield ToolCall(
        "add_message",
        {
            "role": "user",
            "content": (
                "Carry out the plan step by step. While more work remains, end your "
                "reply with a line starting with TOOL: naming the next step."
            ),
        },
    )
    result = yield STEP_ALL
    final = result.tool_result or ""

    for subgoal_id in ids:
        yield ToolCall(
            "update_subgoal",
            {"id": subgoal_id, "status": "completed", "log": "Finished during execution"},
        )

    subgoals = ctx.state.subgoals
    yield ToolCall(
        "set_output",
        {
            "data": {
                "plan": steps,
                "result": final,
                "subgoals": {sid: subgoals[sid].status.value for sid in ids},
                "completed": all(
                    subgoals[sid].status is SubgoalStatus.COMPLETED for sid in ids
                ),
            }
        },
    )


# ----------------------------------------------------------------------
# summarizer: condense supplied text
# ----------------------------------------------------------------------


def _summarizer_steps(ctx: StepContext) -> Iterator[Instruction]:
    style = ctx.params.get("style", "paragraph")
    text = ctx.params.get("text") or ctx.prompt or ""
    layout = "short bullet points" if style == "bullets" else "one paragraph"
    yield ToolCall(
        "add_message",
        {"role": "user", "content": f"Summarize in {layout}:\n\n{text}"},
    )
    if style == "bullets":
        yield StepText("Summary:")
    yield STEP


AGENTS: dict[str, AgentDef] = {
    "best_of_n": define_simple_agent(
        name="best_of_n",
        description="Choose the best of several candidate answers.",
        system_prompt=(
            "You judge candidate answers. Compare every candidate against the "
            "criteria and reply with JSON only: "
            '{"best_index": <0-based int>, "reason": "<one sentence>"}'
        ),
        parameters=(
            _PROMPT,
            ToolParam(
                name="candidates", type="array", description="Candidate answers",
                items={"type": "string"},
            ),
            ToolParam(
                name="criteria", type="string", description="What makes an answer good",
                required=False, default="correctness and clarity",
            ),
        ),
        spawner_prompt="Use to pick one answer out of several drafts.",
    ),
    "brainstorm": AgentDef(
        name="brainstorm",
        description="Generate several ideas in parallel and keep the best one.",
        system_prompt=(
            "You are a brainstorming partner. Offer one distinct, concrete idea "
            "per reply."
        ),
        tool_names=(),
        handle_steps=_brainstorm_steps,
        parameters=(
            _PROMPT,
            ToolParam(
                name="n", type="integer", description="How many ideas to sample",
                required=False, default=3,
            ),
        ),
        spawner_prompt="Use when several alternative ideas are wanted.",
    ),
    "commander": AgentDef(
        name="commander",
        description="Run a shell command and explain its output.",
        system_prompt=(
            "You run shell commands for the user. Explain what the command output "
            "shows in a few sentences and call out any errors."
        ),
        tool_names=("bash",),
        step_prompt="Base the explanation only on the command output above.",
        handle_steps=_commander_steps,
        parameters=(
            _PROMPT,
            ToolParam(name="command", type="string", description="Shell command to run"),
            ToolParam(
                name="timeout", type="number", description="Timeout in seconds",
                required=False,
            ),
        ),
        spawner_prompt="Use to inspect the workspace with a single shell command.",
    ),
    "planner": AgentDef(
        name="planner",
        description="Plan a task as subgoals and work through them.",
        system_prompt=(
            "You are a careful planner. Keep steps small and verifiable, and "
            "report progress plainly."
        ),
        tool_names=(),
        handle_steps=_planner_steps,
        output_mode=OutputMode.STRUCTURED_OUTPUT,
        parameters=(
            _PROMPT,
            ToolParam(
                name="max_steps", type="integer", description="Upper bound on plan length",
                required=False, default=5,
            ),
        ),
        spawner_prompt="Use for multi-step tasks that benefit from an explicit plan.",
    ),
    "summarizer": AgentDef(
        name="summarizer",
        description="Summarize a piece of text.",
        system_prompt="You write faithful, compact summaries. Never add facts.",
        tool_names=(),
        handle_steps=_summarizer_steps,
        output_mode=OutputMode.ALL_MESSAGES,
        parameters=(
            _PROMPT,
            ToolParam(
                name="text", type="string", description="Text to summarize",
                required=False,
            ),
            ToolParam(
                name="style", type="string", description="Summary layout",
                required=False, enum=("paragraph", "bullets"), default="paragraph",
            ),
        ),
        spawner_prompt="Use to condense long text.",
    ),
}

