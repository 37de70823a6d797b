"""Execution state threaded through one interpreter run."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from stepwise.types.tools import ToolResultData


class SubgoalStatus(Enum):
    """Lifecycle of a tracked sub-task."""

    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    BLOCKED = "blocked"


@dataclass(frozen=True, slots=True)
class AgentMessage:
    """A role-tagged entry in the message log."""

    role: str  # "system", "user", "assistant"
    content: str


@dataclass(slots=True)
class Subgoal:
    """Bookkeeping record for a unit of work inside a run."""

    id: str
    objective: str
    status: SubgoalStatus = SubgoalStatus.PENDING
    plan: str | None = None
    logs: list[str] = field(default_factory=list)


@dataclass(slots=True)
class AgentState:
    """Mutable record owned by exactly one run."""

    messages: list[AgentMessage] = field(default_factory=list)
    tool_results: list[ToolResultData] = field(default_factory=list)
    subgoals: dict[str, Subgoal] = field(default_factory=dict)
    output: Any = None
    output_set: bool = False

    def add_message(self, role: str, content: str) -> None:
        self.messages.append(AgentMessage(role=role, content=content))

    def set_output(self, value: Any) -> None:
        self.output = value
        self.output_set = True

    def system_messages(self) -> list[AgentMessage]:
        return [m for m in self.messages if m.role == "system"]

    def conversation(self) -> list[AgentMessage]:
        """Non-system messages, in order."""
        return [m for m in self.messages if m.role != "system"]

    def assistant_messages(self) -> list[AgentMessage]:
        return [m for m in self.messages if m.role == "assistant"]


@dataclass(slots=True)
class StepResult:
    """What the interpreter sends back into the control program."""

    state: AgentState
    tool_result: Any = None
    steps_complete: bool = False
    n_responses: list[str] | None = None


@dataclass(slots=True)
class StepContext:
    """Handed to a control program when it starts."""

    params: dict[str, Any]
    prompt: str | None
    state: AgentState
    logger: logging.Logger


@dataclass(frozen=True, slots=True)
class AgentContext:
    """Context passed from a calling agent to a run."""

    conversation_context: str = ""
    user_intent: str | None = None


@dataclass(frozen=True, slots=True)
class AgentResult:
    """Final outcome of a run."""

    success: bool
    summary: str
    data: Any = None
