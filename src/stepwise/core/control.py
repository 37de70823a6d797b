"""Control tools handled by the interpreter itself.

These never reach the tool dispatcher and are not subject to the
agent's allow-list. Bad input produces a failed result, never an
exception.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

from stepwise.types.state import AgentState, Subgoal, SubgoalStatus
from stepwise.types.tools import ToolResultData

_MESSAGE_ROLES = frozenset({"user", "assistant"})


def _parse_status(raw: Any) -> SubgoalStatus | None:
    """Return the status for *raw*, or None if it is not a valid status."""
    if isinstance(raw, SubgoalStatus):
        return raw
    try:
        return SubgoalStatus(raw)
    except ValueError:
        return None


def set_output(state: AgentState, args: dict[str, Any]) -> ToolResultData:
    """Store ``args["data"]`` (or the whole input) as the run's output."""
    state.set_output(args["data"] if "data" in args else dict(args))
    return ToolResultData.ok("Output set", "Output has been set")


def add_message(state: AgentState, args: dict[str, Any]) -> ToolResultData:
    role = args.get("role")
    if role not in _MESSAGE_ROLES:
        return ToolResultData.error(
            f"Invalid role: {role}",
            f"add_message only accepts roles {sorted(_MESSAGE_ROLES)}, got {role!r}",
        )
    state.add_message(role, str(args.get("content", "")))
    return ToolResultData.ok("Message added", f"Added {role} message")


def add_subgoal(state: AgentState, args: dict[str, Any]) -> ToolResultData:
    """Create a subgoal. Existing ids are left untouched and reported."""
    subgoal_id = args.get("id")
    objective = args.get("objective")
    if not subgoal_id or not objective:
        return ToolResultData.error("add_subgoal requires 'id' and 'objective'")
    subgoal_id = str(subgoal_id)
    objective = str(objective)

    if subgoal_id in state.subgoals:
        return ToolResultData.error(
            f"Subgoal already exists: {subgoal_id}",
            f'Subgoal "{subgoal_id}" already exists; use update_subgoal to change it',
        )

    status = _parse_status(args.get("status", SubgoalStatus.PENDING))
    if status is None:
        return ToolResultData.error(f"Invalid status: {args.get('status')}")

    log = args.get("log")
    state.subgoals[subgoal_id] = Subgoal(
        id=subgoal_id,
        objective=objective,
        status=status,
        plan=args.get("plan"),
        logs=[str(log)] if log else [],
    )
    return ToolResultData.ok(
        f"Subgoal added: {objective[:30]}",
        f'Added subgoal "{subgoal_id}": {objective}',
    )


def update_subgoal(state: AgentState, args: dict[str, Any]) -> ToolResultData:
    """Update a subgoal, creating it (objective = id) if it does not exist."""
    subgoal_id = args.get("id")
    if not subgoal_id:
        return ToolResultData.error("update_subgoal requires 'id'")
    subgoal_id = str(subgoal_id)

    status = None
    if args.get("status") is not None:
        status = _parse_status(args["status"])
        if status is None:
            return ToolResultData.error(f"Invalid status: {args['status']}")

    log = args.get("log")
    plan = args.get("plan")

    existing = state.subgoals.get(subgoal_id)
    if existing is None:
        state.subgoals[subgoal_id] = Subgoal(
            id=subgoal_id,
            objective=subgoal_id,
            status=status or SubgoalStatus.PENDING,
            plan=plan,
            logs=[str(log)] if log else [],
        )
    else:
        if status is not None:
            existing.status = status
        if plan:
            existing.plan = plan
        if log:
            existing.logs.append(str(log))

    detail = f'Updated subgoal "{subgoal_id}"'
    if status is not None:
        detail += f" status={status.value}"
    if log:
        detail += " +log"
    return ToolResultData.ok(f"Subgoal updated: {subgoal_id}", detail)


CONTROL_HANDLERS: dict[str, Callable[[AgentState, dict[str, Any]], ToolResultData]] = {
    "set_output": set_output,
    "add_message": add_message,
    "add_subgoal": add_subgoal,
    "update_subgoal": update_subgoal,
}
