"""Prompt assembly for seeding and model calls."""

from __future__ import annotations

from stepwise.types.state import AgentContext, AgentState


def build_user_message(prompt: str | None, context: AgentContext | None) -> str:
    """Compose the seeded user message from context, intent and prompt.

    Sections appear in a fixed order and are skipped when empty.
    """
    parts: list[str] = []

    if context is not None and context.conversation_context:
        parts.extend(["## Context", context.conversation_context, ""])

    if context is not None and context.user_intent:
        parts.extend(["## User Intent", context.user_intent, ""])

    if prompt:
        parts.extend(["## Request", prompt])

    return "\n".join(parts).strip()


def build_system_prompt(state: AgentState, step_prompt: str | None = None) -> str:
    """Join all system messages, then append the step reminder block."""
    system = "\n\n".join(m.content for m in state.system_messages())
    if step_prompt:
        reminder = f"<system_reminder>{step_prompt}</system_reminder>"
        system = f"{system}\n\n{reminder}" if system else reminder
    return system
