"""Type definitions for stepwise."""

from stepwise.types.agents import AgentDef, ControlProgram, OutputMode
from stepwise.types.config import EngineConfig, RunConfig
from stepwise.types.hooks import Hook, HookEvent, HookResult
from stepwise.types.instructions import (
    STEP,
    STEP_ALL,
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
    AgentMessage,
    AgentResult,
    AgentState,
    StepContext,
    StepResult,
    Subgoal,
    SubgoalStatus,
)
from stepwise.types.tools import (
    Tool,
    ToolContext,
    ToolDef,
    ToolDispatcher,
    ToolParam,
    ToolResultData,
)

__all__ = [
    "STEP",
    "STEP_ALL",
    "AgentContext",
    "AgentDef",
    "AgentMessage",
    "AgentResult",
    "AgentState",
    "ChatMessage",
    "ControlProgram",
    "EngineConfig",
    "GenerateN",
    "Hook",
    "HookEvent",
    "HookResult",
    "Instruction",
    "ModelInvoker",
    "OutputMode",
    "RunConfig",
    "Step",
    "StepAll",
    "StepContext",
    "StepResult",
    "StepText",
    "Subgoal",
    "SubgoalStatus",
    "Tool",
    "ToolCall",
    "ToolContext",
    "ToolDef",
    "ToolDispatcher",
    "ToolParam",
    "ToolResultData",
]
