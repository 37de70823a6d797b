"""Load user-defined agents from YAML files.

Format::

    name: release-notes
    description: Draft release notes from the git log
    system_prompt: You write concise release notes.
    tool_names: [bash]
    output_mode: last_message
    parameters:
      - name: since
        type: string
        description: Git ref to start from
    steps:
      - tool: bash
        input: {command: "git log --oneline $since..HEAD"}
      - text: Here is what changed.
      - STEP

``steps`` entries are ``STEP``, ``STEP_ALL``, ``{text: ...}``,
``{generate_n: N}`` or ``{tool: NAME, input: {...}, include_in_history: bool}``.
String values inside ``input`` are ``$name`` templates filled from the
call parameters and ``$prompt``. Without ``steps`` the agent runs a
single step.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator
from pathlib import Path
from string import Template
from typing import Any

import yaml

from stepwise.errors import AgentDefinitionError
from stepwise.types.agents import AgentDef, ControlProgram, OutputMode
from stepwise.types.instructions import (
    STEP,
    STEP_ALL,
    GenerateN,
    Instruction,
    StepText,
    ToolCall,
)
from stepwise.types.state import StepContext
from stepwise.types.tools import ToolParam

logger = logging.getLogger(__name__)

AGENT_FILE_SUFFIXES = (".yaml", ".yml")

_KNOWN_KEYS = frozenset({
    "name", "description", "system_prompt", "tool_names", "instructions_prompt",
    "step_prompt", "output_mode", "model", "parameters", "spawner_prompt", "steps",
})


def _substitute(value: Any, mapping: dict[str, Any]) -> Any:
    if isinstance(value, str):
        return Template(value).safe_substitute(mapping)
    if isinstance(value, dict):
        return {k: _substitute(v, mapping) for k, v in value.items()}
    if isinstance(value, list):
        return [_substitute(v, mapping) for v in value]
    return value


def _parse_step(raw: Any, where: str) -> Instruction:
    """Turn one ``steps`` entry into an instruction template."""
    if isinstance(raw, str):
        match raw.strip().upper():
            case "STEP":
                return STEP
            case "STEP_ALL":
                return STEP_ALL
        raise AgentDefinitionError(f"{where}: unknown step {raw!r}")

    if not isinstance(raw, dict):
        raise AgentDefinitionError(f"{where}: step must be a string or mapping, got {raw!r}")

    if "text" in raw:
        return StepText(str(raw["text"]))
    if "generate_n" in raw:
        n = raw["generate_n"]
        if not isinstance(n, int) or isinstance(n, bool):
            raise AgentDefinitionError(f"{where}: generate_n must be an integer")
        return GenerateN(n)
    if "tool" in raw:
        tool_input = raw.get("input") or {}
        if not isinstance(tool_input, dict):
            raise AgentDefinitionError(f"{where}: tool input must be a mapping")
        return ToolCall(
            str(raw["tool"]),
            tool_input,
            include_in_history=bool(raw.get("include_in_history", True)),
        )
    raise AgentDefinitionError(f"{where}: cannot interpret step {raw!r}")


def _scripted_program(steps: list[Instruction]) -> ControlProgram:
    """Control program replaying *steps*, with tool input filled from params."""

    def handle_steps(ctx: StepContext) -> Iterator[Instruction]:
        mapping = dict(ctx.params)
        mapping["prompt"] = ctx.prompt or ""
        for step in steps:
            if isinstance(step, ToolCall):
                step = ToolCall(
                    step.tool_name,
                    _substitute(step.input, mapping),
                    include_in_history=step.include_in_history,
                )
            yield step

    return handle_steps


def _parse_param(raw: Any, where: str) -> ToolParam:
    if not isinstance(raw, dict) or "name" not in raw:
        raise AgentDefinitionError(f"{where}: each parameter needs a name")
    enum = raw.get("enum")
    return ToolParam(
        name=str(raw["name"]),
        type=str(raw.get("type", "string")),
        description=str(raw.get("description", "")),
        required=bool(raw.get("required", True)),
        enum=tuple(enum) if enum is not None else None,
        default=raw.get("default"),
        items=raw.get("items"),
    )


def parse_agent(data: Any, source: str = "<string>") -> AgentDef:
    """Build an AgentDef from already-parsed YAML data."""
    if not isinstance(data, dict):
        raise AgentDefinitionError(f"{source}: expected a mapping at top level")
    if not data.get("name"):
        raise AgentDefinitionError(f"{source}: missing 'name'")

    for key in sorted(set(data) - _KNOWN_KEYS):
        logger.warning("%s: unknown agent field ignored: %s", source, key)

    try:
        output_mode = OutputMode(data.get("output_mode", OutputMode.LAST_MESSAGE.value))
    except ValueError:
        raise AgentDefinitionError(
            f"{source}: output_mode must be one of {[m.value for m in OutputMode]}"
        ) from None

    tool_names = data.get("tool_names")
    if tool_names is not None:
        if not isinstance(tool_names, list):
            raise AgentDefinitionError(f"{source}: tool_names must be a list")
        tool_names = tuple(str(t) for t in tool_names)

    handle_steps = None
    raw_steps = data.get("steps")
    if raw_steps is not None:
        if not isinstance(raw_steps, list):
            raise AgentDefinitionError(f"{source}: steps must be a list")
        steps = [_parse_step(s, f"{source} step {i}") for i, s in enumerate(raw_steps, 1)]
        handle_steps = _scripted_program(steps)

    params = tuple(
        _parse_param(p, f"{source} parameter {i}")
        for i, p in enumerate(data.get("parameters") or [], 1)
    )

    return AgentDef(
        name=str(data["name"]),
        description=str(data.get("description", "")),
        system_prompt=str(data.get("system_prompt", "")),
        tool_names=tool_names,
        instructions_prompt=data.get("instructions_prompt"),
        step_prompt=data.get("step_prompt"),
        output_mode=output_mode,
        handle_steps=handle_steps,
        model=data.get("model"),
        parameters=params,
        spawner_prompt=data.get("spawner_prompt"),
    )


def load_agent_file(path: Path) -> AgentDef:
    """Parse one YAML agent file. Raises AgentDefinitionError."""
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    except (OSError, yaml.YAMLError) as e:
        raise AgentDefinitionError(f"{path}: {e}") from e
    return parse_agent(data, str(path))


def load_agent_dirs(dirs: Iterable[str | Path]) -> list[AgentDef]:
    """Load every agent file under *dirs*, in order.

    Broken files are logged and skipped so one bad definition does not
    hide the rest. Later directories win on name clashes.
    """
    agents: dict[str, AgentDef] = {}
    for directory in dirs:
        base = Path(directory).expanduser()
        if not base.is_dir():
            continue
        for path in sorted(base.iterdir()):
            if path.suffix not in AGENT_FILE_SUFFIXES or not path.is_file():
                continue
            try:
                agent = load_agent_file(path)
            except AgentDefinitionError as e:
                logger.warning("Skipping agent file: %s", e)
                continue
            agents[agent.name] = agent
            logger.debug("Loaded agent %s from %s", agent.name, path)
    return list(agents.values())
