"""Rich-powered terminal output for the CLI."""

from __future__ import annotations

import json

from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from stepwise.registry import RegistrySource
from stepwise.types.agents import AgentDef
from stepwise.types.state import AgentResult

STYLE_NAME = "bold #a78bfa"
STYLE_DETAIL = "#7c7c8a"
STYLE_OK = "#34d399"
STYLE_ERROR = "bold #f87171"


def print_agents(
    agents: list[tuple[AgentDef, RegistrySource | None]],
    console: Console | None = None,
) -> None:
    """Print a table of agents with their source and parameters."""
    console = console or Console()
    tbl = Table(show_edge=False, padding=(0, 1))
    tbl.add_column("Agent", style=STYLE_NAME, no_wrap=True)
    tbl.add_column("Source", style=STYLE_DETAIL, no_wrap=True)
    tbl.add_column("Parameters", style=STYLE_DETAIL)
    tbl.add_column("Description")

    for agent, source in sorted(agents, key=lambda pair: pair[0].name):
        params = ", ".join(
            p.name if p.required else f"[{p.name}]" for p in agent.parameters
        )
        tbl.add_row(
            agent.name,
            source.value if source is not None else "",
            Text(params),
            agent.description,
        )
    console.print(tbl)


def format_data(data: object) -> str:
    if isinstance(data, str):
        return data
    return json.dumps(data, indent=2, default=str)


def print_result(result: AgentResult, console: Console | None = None) -> None:
    """Print the data of a run, then its summary in a compact panel."""
    console = console or Console()
    if result.data is not None:
        console.print(format_data(result.data), markup=False, highlight=False)

    if result.success:
        label = Text("ok", style=STYLE_OK)
    else:
        label = Text("failed", style=STYLE_ERROR)
    line = Text.assemble(label, "  ", Text(result.summary, style=STYLE_DETAIL))
    Console(stderr=True).print(Panel(line, border_style="#3f3f50", expand=False, padding=(0, 1)))
