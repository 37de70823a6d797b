"""Configuration loading (TOML, env vars, .env)."""

from __future__ import annotations

import logging
import os
import tomllib
from dataclasses import fields
from pathlib import Path
from typing import Any

from dotenv import load_dotenv

from stepwise.hooks.manager import parse_hooks
from stepwise.types.config import DEFAULT_PROVIDER, EngineConfig, RunConfig

logger = logging.getLogger(__name__)

# Load .env from current directory (and parents), won't override existing env vars
load_dotenv()

ENV_MAP = {
    "openrouter": "OPENROUTER_API_KEY",
    "openai": "OPENAI_API_KEY",
    "anthropic": "ANTHROPIC_API_KEY",
}


def _config_home() -> Path:
    return Path.home() / ".stepwise"


def _read_toml(path: Path) -> dict[str, Any]:
    try:
        with open(path, "rb") as f:
            return tomllib.load(f)
    except (OSError, tomllib.TOMLDecodeError) as exc:
        logger.warning("Ignoring unreadable config %s: %s", path, exc)
        return {}


def _merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Recursively merge *override* into a copy of *base*."""
    merged = dict(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def load_toml_config(cwd: str | None = None) -> dict[str, Any]:
    """Load ``~/.stepwise/config.toml`` overlaid with ``<cwd>/.stepwise/config.toml``."""
    config: dict[str, Any] = {}
    user_path = _config_home() / "config.toml"
    if user_path.exists():
        config = _read_toml(user_path)

    project_path = Path(cwd or Path.cwd()) / ".stepwise" / "config.toml"
    if project_path.exists() and project_path != user_path:
        config = _merge(config, _read_toml(project_path))
    return config


def load_env_config() -> dict[str, Any]:
    """Load configuration from environment variables."""
    config: dict[str, Any] = {}
    if provider := os.environ.get("STEPWISE_PROVIDER"):
        config["provider"] = provider
    if model := os.environ.get("STEPWISE_MODEL"):
        config["model"] = model
    return config


def resolve_api_key(provider: str, explicit_key: str | None = None) -> str | None:
    """Resolve an API key from an explicit value, the environment, or the config file."""
    if explicit_key:
        return explicit_key

    env_var = ENV_MAP.get(provider)
    if env_var:
        val = os.environ.get(env_var)
        if val:
            return val

    config_path = _config_home() / "config.toml"
    if config_path.exists():
        key = _read_toml(config_path).get("providers", {}).get(provider, {}).get("api_key")
        if key:
            return str(key)

    return None


def parse_engine_config(raw: dict[str, Any], default_model: str | None = None) -> EngineConfig:
    """Build an EngineConfig from an ``[engine]`` table, ignoring unknown keys."""
    known = {f.name for f in fields(EngineConfig)}
    kwargs = {k: v for k, v in raw.items() if k in known}
    for key in sorted(set(raw) - known):
        logger.warning("Unknown [engine] setting ignored: %s", key)
    if default_model and "default_model" not in kwargs:
        kwargs["default_model"] = default_model
    return EngineConfig(**kwargs)


def load_run_config(
    cwd: str | None = None,
    *,
    provider: str | None = None,
    model: str | None = None,
    api_key: str | None = None,
    base_url: str | None = None,
) -> RunConfig:
    """Resolve a RunConfig: explicit arguments > environment > TOML > defaults."""
    toml_config = load_toml_config(cwd)
    env_config = load_env_config()
    defaults = toml_config.get("defaults", {})

    resolved_provider = (
        provider or env_config.get("provider") or defaults.get("provider") or DEFAULT_PROVIDER
    )
    resolved_model = model or env_config.get("model") or defaults.get("model")
    provider_table = toml_config.get("providers", {}).get(resolved_provider, {})

    agent_dirs = [str(_config_home() / "agents")]
    if cwd:
        agent_dirs.append(str(Path(cwd) / ".stepwise" / "agents"))

    return RunConfig(
        provider=resolved_provider,
        model=resolved_model,
        api_key=api_key or provider_table.get("api_key"),
        base_url=base_url or provider_table.get("base_url"),
        cwd=cwd,
        engine=parse_engine_config(toml_config.get("engine", {}), resolved_model),
        deny_tools=tuple(toml_config.get("permissions", {}).get("deny", ())),
        hooks=parse_hooks(toml_config.get("hooks", [])),
        agent_dirs=tuple(agent_dirs),
        observability=dict(toml_config.get("observability", {})),
    )
