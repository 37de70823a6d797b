"""Hook execution engine."""

from __future__ import annotations

import asyncio
import fnmatch
import json
import logging
import shlex
from typing import Any

from stepwise.hooks.events import HookContext
from stepwise.types.hooks import Hook, HookEvent, HookResult

logger = logging.getLogger(__name__)


class HookManager:
    """Registers and executes shell-command hooks for run lifecycle events."""

    def __init__(self, hooks: list[Hook] | None = None) -> None:
        self._hooks: list[Hook] = list(hooks) if hooks else []

    def register(self, hook: Hook) -> None:
        """Add a hook."""
        self._hooks.append(hook)

    def __len__(self) -> int:
        return len(self._hooks)

    def _matches(self, hook: Hook, ctx: HookContext) -> bool:
        """Check if a hook matches the given context."""
        hook_event = hook.event if isinstance(hook.event, str) else hook.event.value
        if hook_event != ctx.event.value:
            return False

        # Matchers only apply to tool events
        if hook.matcher:
            if not ctx.tool_name:
                return False
            return fnmatch.fnmatchcase(ctx.tool_name, hook.matcher)
        return True

    def _expand_command(self, command: str, ctx: HookContext) -> str:
        """Expand template variables in the hook command."""
        replacements: dict[str, str] = {
            "{agent}": ctx.agent_name,
            "{tool_name}": ctx.tool_name or "",
            "{cwd}": ctx.cwd,
            "{event}": ctx.event.value,
            "{is_error}": str(ctx.is_error).lower(),
            "{tool_args}": json.dumps(ctx.tool_args, default=str) if ctx.tool_args else "",
            "{result}": (ctx.result or "")[:1000],
        }

        result = command
        for key, value in replacements.items():
            result = result.replace(key, shlex.quote(value) if value else "''")
        return result

    async def fire(self, ctx: HookContext) -> list[HookResult]:
        """Fire all hooks that match the given context, in registration order."""
        results: list[HookResult] = []
        for hook in self._hooks:
            if self._matches(hook, ctx):
                result = await self._execute(hook, ctx)
                if not result.success:
                    logger.warning("Hook for %s failed: %s", ctx.event.value, result.error)
                results.append(result)
        return results

    async def _execute(self, hook: Hook, ctx: HookContext) -> HookResult:
        """Execute a single hook command."""
        command = self._expand_command(hook.command, ctx)

        try:
            proc = await asyncio.create_subprocess_shell(
                command,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                cwd=ctx.cwd or None,
            )
            try:
                stdout, stderr = await asyncio.wait_for(
                    proc.communicate(),
                    timeout=hook.timeout,
                )
            except TimeoutError:
                proc.kill()
                await proc.wait()
                raise
        except TimeoutError:
            return HookResult(
                success=False,
                error=f"Hook timed out after {hook.timeout}s: {command}",
            )
        except OSError as e:
            return HookResult(
                success=False,
                error=f"Hook failed: {type(e).__name__}: {e}",
            )

        output = stdout.decode("utf-8", errors="replace").strip()
        error = stderr.decode("utf-8", errors="replace").strip() or None
        success = proc.returncode == 0

        # JSON on stdout is surfaced as structured data
        data: dict[str, Any] = {}
        if output.startswith("{"):
            try:
                data = json.loads(output)
            except json.JSONDecodeError:
                pass

        return HookResult(
            success=success,
            output=output,
            error=error if not success else None,
            data=data,
        )


def parse_hooks(raw: list[dict[str, Any]]) -> list[Hook]:
    """Build Hook objects from ``[[hooks]]`` config tables, skipping bad entries."""
    hooks: list[Hook] = []
    valid_events = {e.value for e in HookEvent}
    for entry in raw:
        event = entry.get("event")
        command = entry.get("command")
        if event not in valid_events or not command:
            logger.warning("Ignoring invalid hook entry: %r", entry)
            continue
        hooks.append(Hook(
            event=HookEvent(event),
            command=str(command),
            matcher=entry.get("matcher"),
            timeout=float(entry.get("timeout", 30.0)),
        ))
    return hooks
