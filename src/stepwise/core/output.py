"""Turn the final execution state into an AgentResult."""

from __future__ import annotations

import json
import re
from typing import Any

from stepwise.types.agents import AgentDef, OutputMode
from stepwise.types.state import AgentResult, AgentState

_FENCE_RE = re.compile(r"^```(?:json)?\s*\n(.*?)\n?```$", re.DOTALL)


def parse_structured(text: str) -> Any:
    """Parse JSON, tolerating a surrounding markdown code fence.

    Raises json.JSONDecodeError when the text is not JSON.
    """
    match = _FENCE_RE.match(text.strip())
    return json.loads(match.group(1) if match else text)


def extract_result(agent: AgentDef, state: AgentState, summary_length: int = 100) -> AgentResult:
    """Apply the agent's output mode to *state*.

    An output stored by ``set_output`` always wins over the declared mode.
    """
    if state.output_set:
        return AgentResult(success=True, summary="Output set", data=state.output)

    assistant = state.assistant_messages()
    last = assistant[-1].content if assistant else None

    match agent.output_mode:
        case OutputMode.LAST_MESSAGE:
            return AgentResult(
                success=True,
                summary=last[:summary_length] if last else "Completed",
                data=last,
            )

        case OutputMode.ALL_MESSAGES:
            return AgentResult(
                success=True,
                summary=f"{len(assistant)} responses",
                data=[m.content for m in assistant],
            )

        case OutputMode.STRUCTURED_OUTPUT:
            try:
                parsed = parse_structured(last or "{}")
            except json.JSONDecodeError:
                return AgentResult(
                    success=False,
                    summary="Failed to parse structured output",
                    data=last,
                )
            return AgentResult(success=True, summary="Structured output", data=parsed)

    raise ValueError(f"Unsupported output mode: {agent.output_mode!r}")
