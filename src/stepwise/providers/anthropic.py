"""Anthropic/Claude model invoker."""

from __future__ import annotations

import logging
from typing import Any

from stepwise.providers.base import BaseInvoker
from stepwise.types.providers import ChatMessage

logger = logging.getLogger(__name__)


class AnthropicInvoker(BaseInvoker):
    """Invoker for Anthropic's Messages API.

    Parameters
    ----------
    api_key:
        Anthropic API key.
    base_url:
        Optional proxy endpoint.
    max_tokens:
        Upper bound on generated tokens per call.
    """

    provider_name = "anthropic"

    def __init__(
        self,
        api_key: str,
        base_url: str | None = None,
        max_tokens: int = 4096,
    ) -> None:
        super().__init__(max_tokens=max_tokens)
        from anthropic import AsyncAnthropic

        kwargs: dict[str, Any] = {"api_key": api_key}
        if base_url is not None:
            kwargs["base_url"] = base_url
        self._client = AsyncAnthropic(**kwargs)

    async def _complete(
        self,
        model: str,
        system: str,
        messages: list[ChatMessage],
    ) -> str:
        kwargs: dict[str, Any] = {
            "model": model,
            "max_tokens": self._max_tokens,
            "messages": self._to_anthropic_messages(messages),
        }
        if system:
            kwargs["system"] = system
        response = await self._client.messages.create(**kwargs)
        return "".join(
            block.text for block in response.content if getattr(block, "type", "") == "text"
        )

    @staticmethod
    def _to_anthropic_messages(messages: list[ChatMessage]) -> list[dict[str, Any]]:
        """Convert to Anthropic's format, merging consecutive same-role turns.

        The Messages API requires alternating roles and a leading user turn.
        """
        result: list[dict[str, Any]] = []
        for msg in messages:
            if result and result[-1]["role"] == msg.role:
                result[-1]["content"] += f"\n\n{msg.content}"
            else:
                result.append({"role": msg.role, "content": msg.content})
        if result and result[0]["role"] != "user":
            result.insert(0, {"role": "user", "content": "(continue)"})
        return result
