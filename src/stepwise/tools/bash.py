"""Bash tool — executes shell commands asynchronously."""

from __future__ import annotations

import asyncio
import logging
from typing import Any

from stepwise.tools.base import BaseTool
from stepwise.types.tools import ToolContext, ToolDef, ToolParam, ToolResultData

logger = logging.getLogger(__name__)

_DEFAULT_TIMEOUT_MS = 120_000
_MAX_TIMEOUT_MS = 600_000
_MAX_OUTPUT_CHARS = 30_000

_DEFINITION = ToolDef(
    name="bash",
    description=(
        "Execute a shell command and return its combined stdout + stderr output. "
        "Output is truncated to 30 000 characters. "
        "Timeout is in milliseconds (default 120 000, max 600 000)."
    ),
    parameters=(
        ToolParam(
            name="command",
            type="string",
            description="The shell command to execute.",
            required=True,
        ),
        ToolParam(
            name="timeout",
            type="integer",
            description=(
                "Timeout in milliseconds before the process is killed. "
                f"Default {_DEFAULT_TIMEOUT_MS}, max {_MAX_TIMEOUT_MS}."
            ),
            required=False,
            default=_DEFAULT_TIMEOUT_MS,
        ),
    ),
)


def _summarize(output: str, exit_code: int) -> str:
    lines = output.count("\n") + (1 if output and not output.endswith("\n") else 0)
    return f"exit {exit_code}, {lines} lines"


class BashTool(BaseTool):
    """Runs a shell command in the tool context's working directory."""

    @property
    def definition(self) -> ToolDef:
        return _DEFINITION

    async def execute(self, args: dict[str, Any], ctx: ToolContext) -> ToolResultData:
        command: str = args.get("command", "")
        if not command:
            return self._error("command is required")

        raw_timeout = args.get("timeout", _DEFAULT_TIMEOUT_MS)
        try:
            timeout_ms = int(raw_timeout)
        except (TypeError, ValueError):
            timeout_ms = _DEFAULT_TIMEOUT_MS
        timeout_ms = max(1, min(timeout_ms, _MAX_TIMEOUT_MS))
        logger.debug("Agent %s running command: %s", ctx.agent_name or "-", command)

        try:
            proc = await asyncio.create_subprocess_shell(
                command,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.STDOUT,
                cwd=str(ctx.cwd),
            )
        except OSError as exc:
            return self._error("Failed to start process", f"Failed to start process: {exc}")

        try:
            stdout_bytes, _ = await asyncio.wait_for(
                proc.communicate(), timeout=timeout_ms / 1000.0,
            )
        except TimeoutError:
            try:
                proc.kill()
                await proc.wait()
            except ProcessLookupError:
                pass
            logger.info("Command timed out after %d ms: %s", timeout_ms, command)
            return self._error(
                "Command timed out",
                f"Command timed out after {timeout_ms} ms and was killed: {command}",
            )

        output = stdout_bytes.decode("utf-8", errors="replace") if stdout_bytes else ""
        if len(output) > _MAX_OUTPUT_CHARS:
            truncated = len(output) - _MAX_OUTPUT_CHARS
            output = output[:_MAX_OUTPUT_CHARS] + f"\n[...{truncated} characters truncated]"

        exit_code = proc.returncode if proc.returncode is not None else 0
        result_text = output if output.strip() else "Command completed with no output"
        summary = _summarize(output, exit_code)

        if exit_code != 0:
            result_text = result_text.rstrip("\n") + f"\n[Exit code: {exit_code}]"
            return self._error(summary, result_text)
        return self._ok(summary, result_text)
