"""Model invokers for stepwise.

Public surface
--------------
- :class:`BaseInvoker`       — abstract base with retry/back-off
- :class:`OpenAIInvoker`     — OpenAI-compatible adapter (OpenRouter by default)
- :class:`AnthropicInvoker`  — Claude adapter (Anthropic SDK)
- :func:`create_invoker`     — factory keyed by provider name
- :data:`PROVIDERS`          — provider catalogue
"""

from __future__ import annotations

from stepwise.providers.anthropic import AnthropicInvoker
from stepwise.providers.base import BaseInvoker
from stepwise.providers.openai import OpenAIInvoker
from stepwise.providers.registry import PROVIDERS, create_invoker

__all__ = [
    "PROVIDERS",
    "AnthropicInvoker",
    "BaseInvoker",
    "OpenAIInvoker",
    "create_invoker",
]
