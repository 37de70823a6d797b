"""Built-in tool system."""

from stepwise.tools.agent import AGENT_TOOL_PREFIX, AgentTool
from stepwise.tools.base import BaseTool
from stepwise.tools.bash import BashTool
from stepwise.tools.manager import ToolManager

__all__ = [
    "AGENT_TOOL_PREFIX",
    "AgentTool",
    "BaseTool",
    "BashTool",
    "ToolManager",
]
