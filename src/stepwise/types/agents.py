"""Agent definition types."""

from __future__ import annotations

from collections.abc import Callable, Generator
from dataclasses import dataclass
from enum import Enum

from stepwise.types.instructions import Instruction
from stepwise.types.state import StepContext, StepResult
from stepwise.types.tools import ToolParam

ControlProgram = Callable[[StepContext], Generator[Instruction, StepResult, None]]


class OutputMode(Enum):
    """How the final state is turned into a result."""

    LAST_MESSAGE = "last_message"
    ALL_MESSAGES = "all_messages"
    STRUCTURED_OUTPUT = "structured_output"


@dataclass(frozen=True, slots=True)
class AgentDef:
    """Declarative definition of an agent.

    ``handle_steps`` is a generator function. It receives a
    :class:`StepContext`, yields instructions and is resumed with the
    :class:`StepResult` of each one. ``None`` runs a single ``Step``.
    """

    name: str
    description: str
    system_prompt: str = ""
    tool_names: tuple[str, ...] | None = None  # None = unrestricted
    instructions_prompt: str | None = None
    step_prompt: str | None = None
    output_mode: OutputMode = OutputMode.LAST_MESSAGE
    handle_steps: ControlProgram | None = None
    model: str | None = None  # None = engine default
    parameters: tuple[ToolParam, ...] = ()
    spawner_prompt: str | None = None
