"""Model invoker protocol and chat message types."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol, runtime_checkable


@dataclass(frozen=True, slots=True)
class ChatMessage:
    """A conversation turn handed to a model invoker."""

    role: str  # "user" or "assistant"
    content: str


@runtime_checkable
class ModelInvoker(Protocol):
    """Protocol that all model invokers must implement.

    ``complete`` may be awaited several times concurrently.
    """

    async def complete(
        self,
        model: str,
        system: str,
        messages: list[ChatMessage],
    ) -> str:
        """Return the generated text for one inference step."""
        ...

