"""CLI entry point for stepwise."""

from __future__ import annotations

import asyncio
import json
import logging
from pathlib import Path
from typing import TYPE_CHECKING, Any

import click

from stepwise.cli.output import format_data, print_agents, print_result
from stepwise.errors import StepwiseError

if TYPE_CHECKING:
    from stepwise.agents.registry import AgentRegistry


def _parse_params(pairs: tuple[str, ...]) -> dict[str, Any]:
    """Turn ``key=value`` pairs into a parameter map.

    Values are read as JSON when they parse (numbers, lists, booleans),
    otherwise kept as strings.
    """
    params: dict[str, Any] = {}
    for pair in pairs:
        key, sep, raw = pair.partition("=")
        if not sep or not key:
            raise click.BadParameter(f"expected key=value, got {pair!r}", param_hint="--param")
        try:
            params[key] = json.loads(raw)
        except json.JSONDecodeError:
            params[key] = raw
    return params


def _load_registry(cwd: str | None) -> AgentRegistry:
    from stepwise.agents.registry import AgentRegistry
    from stepwise.core.config import load_run_config

    config = load_run_config(cwd or str(Path.cwd()))
    registry = AgentRegistry()
    registry.register_defaults()
    registry.load_user_agents(config.agent_dirs)
    return registry


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Verbose output")
@click.option("--cwd", default=None, help="Working directory")
@click.pass_context
def cli(ctx: click.Context, verbose: bool, cwd: str | None) -> None:
    """Stepwise -- run agent control programs.

    \b
    Usage:
      stepwise agents
      stepwise run commander --param command="git status"
      stepwise run planner --prompt "Add a changelog" --json
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    ctx.ensure_object(dict)
    ctx.obj["cwd"] = cwd


@cli.command("agents")
@click.pass_context
def agents_cmd(ctx: click.Context) -> None:
    """List the agents that can be run."""
    registry = _load_registry(ctx.obj["cwd"])
    print_agents([(agent, registry.source_of(agent.name)) for agent in registry.list_agents()])


@cli.command("run")
@click.argument("agent")
@click.option("--param", "params", multiple=True, help="Agent parameter as key=value")
@click.option("--prompt", default=None, help="The request for the agent")
@click.option("--intent", default=None, help="What the user is ultimately trying to do")
@click.option("--context", "conversation", default="", help="Conversation context")
@click.option("--provider", "-p", default=None, help="LLM provider")
@click.option("--model", "-m", default=None, help="Model ID")
@click.option("--api-key", default=None, help="Provider API key")
@click.option("--base-url", default=None, help="Provider base URL")
@click.option("--json", "as_json", is_flag=True, help="Print the result as JSON")
@click.pass_context
def run_cmd(
    ctx: click.Context,
    agent: str,
    params: tuple[str, ...],
    prompt: str | None,
    intent: str | None,
    conversation: str,
    provider: str | None,
    model: str | None,
    api_key: str | None,
    base_url: str | None,
    as_json: bool,
) -> None:
    """Run AGENT once and print its result."""
    from stepwise.core.engine import run
    from stepwise.types.state import AgentContext

    cwd = ctx.obj["cwd"]
    try:
        result = asyncio.run(run(
            agent,
            _parse_params(params),
            prompt=prompt,
            context=AgentContext(conversation_context=conversation, user_intent=intent),
            provider=provider,
            model=model,
            api_key=api_key,
            base_url=base_url,
            registry=_load_registry(cwd),
            cwd=cwd,
        ))
    except StepwiseError as e:
        click.echo(f"Error: {e}", err=True)
        raise SystemExit(1)

    if as_json:
        click.echo(format_data({
            "success": result.success,
            "summary": result.summary,
            "data": result.data,
        }))
    else:
        print_result(result)

    if not result.success:
        raise SystemExit(1)


def main() -> None:
    """Entry point."""
    cli()


if __name__ == "__main__":
    main()
