"""Stepwise — step-by-step execution engine for agent control programs.

Usage:
    import stepwise
    from stepwise import STEP, AgentDef, ToolCall

    def handle_steps(ctx):
        yield ToolCall("bash", {"command": "git status --short"})
        yield STEP

    agent = AgentDef(
        name="status",
        description="Explain the working tree",
        tool_names=("bash",),
        handle_steps=handle_steps,
    )
    result = await stepwise.run(agent, prompt="What changed?")
    print(result.summary)
"""

from stepwise.agents.registry import AgentRegistry
from stepwise.agents.simple import define_simple_agent
from stepwise.core.engine import run
from stepwise.core.interpreter import StepInterpreter
from stepwise.errors import (
    AgentDefinitionError,
    AgentNotFoundError,
    ConfigurationError,
    ModelInvocationError,
    StepwiseError,
)
from stepwise.tools.manager import ToolManager
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
from stepwise.types.state import (
    AgentContext,
    AgentResult,
    AgentState,
    StepContext,
    StepResult,
    Subgoal,
    SubgoalStatus,
)
from stepwise.types.tools import ToolContext, ToolDef, ToolParam, ToolResultData

__version__ = "0.1.0"

__all__ = [
    # Core API
    "run",
    "StepInterpreter",
    "AgentRegistry",
    "ToolManager",
    "define_simple_agent",
    # Instructions
    "STEP",
    "STEP_ALL",
    "GenerateN",
    "Instruction",
    "Step",
    "StepAll",
    "StepText",
    "ToolCall",
    # Agents and state
    "AgentContext",
    "AgentDef",
    "AgentResult",
    "AgentState",
    "ControlProgram",
    "OutputMode",
    "StepContext",
    "StepResult",
    "Subgoal",
    "SubgoalStatus",
    # Configuration
    "EngineConfig",
    "Hook",
    "HookEvent",
    "HookResult",
    "RunConfig",
    # Tool types
    "ToolContext",
    "ToolDef",
    "ToolParam",
    "ToolResultData",
    # Errors
    "AgentDefinitionError",
    "AgentNotFoundError",
    "ConfigurationError",
    "ModelInvocationError",
    "StepwiseError",
]
