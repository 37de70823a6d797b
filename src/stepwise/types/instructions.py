"""Instructions a control program can yield to the interpreter."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True, slots=True)
class ToolCall:
    """Dispatch a tool (or a control tool) by name."""

    tool_name: str
    input: dict[str, Any] = field(default_factory=dict)
    include_in_history: bool = True


@dataclass(frozen=True, slots=True)
class StepText:
    """Append literal text as an assistant message without calling the model."""

    text: str


@dataclass(frozen=True, slots=True)
class GenerateN:
    """Run ``n`` concurrent model calls against the current state."""

    n: int


@dataclass(frozen=True, slots=True)
class Step:
    """Run exactly one model call and append its response."""


@dataclass(frozen=True, slots=True)
class StepAll:
    """Run model calls until the stop heuristic fires or the cap is hit."""


STEP = Step()
STEP_ALL = StepAll()

Instruction = ToolCall | StepText | GenerateN | Step | StepAll
