"""Provider catalogue and invoker factory."""

from __future__ import annotations

from dataclasses import dataclass

from stepwise.core.config import resolve_api_key
from stepwise.errors import ConfigurationError
from stepwise.providers.base import BaseInvoker
from stepwise.providers.openai import OPENROUTER_BASE_URL


@dataclass(frozen=True, slots=True)
class ProviderSpec:
    """How to build an invoker for a named provider."""

    name: str
    env_var: str
    default_base_url: str | None = None


PROVIDERS: dict[str, ProviderSpec] = {
    "openrouter": ProviderSpec("openrouter", "OPENROUTER_API_KEY", OPENROUTER_BASE_URL),
    "openai": ProviderSpec("openai", "OPENAI_API_KEY"),
    "anthropic": ProviderSpec("anthropic", "ANTHROPIC_API_KEY"),
}


def create_invoker(
    provider: str,
    api_key: str | None = None,
    base_url: str | None = None,
    *,
    max_tokens: int = 4096,
) -> BaseInvoker:
    """Instantiate the invoker for *provider*.

    Raises
    ------
    ConfigurationError
        When the provider is unknown or no API key can be resolved.
    """
    spec = PROVIDERS.get(provider)
    if spec is None:
        available = ", ".join(sorted(PROVIDERS))
        raise ConfigurationError(f"Unknown provider: {provider!r}. Available: {available}")

    key = resolve_api_key(provider, api_key)
    if not key:
        raise ConfigurationError(
            f"No API key for provider {provider!r}. Set {spec.env_var} or add "
            f"[providers.{provider}] api_key to ~/.stepwise/config.toml"
        )

    url = base_url or spec.default_base_url
    if provider == "anthropic":
        from stepwise.providers.anthropic import AnthropicInvoker

        return AnthropicInvoker(api_key=key, base_url=url, max_tokens=max_tokens)

    from stepwise.providers.openai import OpenAIInvoker

    return OpenAIInvoker(api_key=key, base_url=url, max_tokens=max_tokens)
