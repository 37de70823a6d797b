"""Per-agent tool access control.

Control tools are engine-level and never pass through here.
"""

from __future__ import annotations

from stepwise.permissions.rules import PermissionConfig, PermissionDecision, _matches_rule
from stepwise.types.agents import AgentDef

CONTROL_TOOLS = frozenset({"set_output", "add_message", "add_subgoal", "update_subgoal"})


def is_control_tool(name: str) -> bool:
    return name in CONTROL_TOOLS


def is_tool_allowed(tool_names: tuple[str, ...] | list[str] | None, name: str) -> bool:
    """None means unrestricted; otherwise *name* must appear verbatim."""
    if tool_names is None:
        return True
    return name in tool_names


def check_tool_access(
    agent: AgentDef,
    tool_name: str,
    rules: PermissionConfig | None = None,
) -> PermissionDecision:
    """Decide whether *agent* may dispatch *tool_name*.

    Evaluation order: engine deny rules, then the agent's allow-list.
    """
    if rules is not None:
        for rule in rules.deny_rules:
            if _matches_rule(rule, tool_name):
                return PermissionDecision.DENY
    if not is_tool_allowed(agent.tool_names, tool_name):
        return PermissionDecision.DENY
    return PermissionDecision.ALLOW
