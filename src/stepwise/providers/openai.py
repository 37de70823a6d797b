"""OpenAI-compatible model invoker.

Defaults to OpenRouter (``https://openrouter.ai/api/v1``), which serves
models such as ``anthropic/claude-3.5-haiku`` behind the OpenAI wire
format. Any other OpenAI-compatible endpoint works via ``base_url``.
"""

from __future__ import annotations

import logging
from typing import Any

from stepwise.providers.base import BaseInvoker
from stepwise.types.providers import ChatMessage

logger = logging.getLogger(__name__)

OPENROUTER_BASE_URL = "https://openrouter.ai/api/v1"


class OpenAIInvoker(BaseInvoker):
    """Invoker for OpenAI-compatible chat completion APIs.

    Parameters
    ----------
    api_key:
        API key for the endpoint.
    base_url:
        Endpoint URL. ``None`` uses the official OpenAI endpoint.
    max_tokens:
        Upper bound on generated tokens per call.
    """

    provider_name = "openai"

    def __init__(
        self,
        api_key: str,
        base_url: str | None = None,
        max_tokens: int = 4096,
    ) -> None:
        super().__init__(max_tokens=max_tokens)
        from openai import AsyncOpenAI

        kwargs: dict[str, Any] = {"api_key": api_key}
        if base_url is not None:
            kwargs["base_url"] = base_url
        self._client = AsyncOpenAI(**kwargs)

    async def _complete(
        self,
        model: str,
        system: str,
        messages: list[ChatMessage],
    ) -> str:
        response = await self._client.chat.completions.create(
            model=model,
            messages=self._to_openai_messages(system, messages),  # type: ignore[arg-type]
            max_tokens=self._max_tokens,
        )
        if not response.choices:
            logger.warning("Model %s returned no choices", model)
            return ""
        return response.choices[0].message.content or ""

    @staticmethod
    def _to_openai_messages(system: str, messages: list[ChatMessage]) -> list[dict[str, Any]]:
        """System prompt first, then the conversation turns."""
        result: list[dict[str, Any]] = []
        if system:
            result.append({"role": "system", "content": system})
        result.extend({"role": m.role, "content": m.content} for m in messages)
        return result
