"""Validation of agent parameter maps against declared ToolParams."""

from __future__ import annotations

from typing import Any

from stepwise.types.tools import ToolParam

_TYPE_CHECKS: dict[str, Any] = {
    "string": lambda v: isinstance(v, str),
    "integer": lambda v: isinstance(v, int) and not isinstance(v, bool),
    "number": lambda v: isinstance(v, int | float) and not isinstance(v, bool),
    "boolean": lambda v: isinstance(v, bool),
    "array": lambda v: isinstance(v, list | tuple),
    "object": lambda v: isinstance(v, dict),
}


def validate_params(
    params: dict[str, Any],
    declared: tuple[ToolParam, ...],
) -> tuple[dict[str, Any], list[str]]:
    """Check *params* against *declared*.

    Returns the params with defaults filled in, and a list of error
    messages (empty when valid). Undeclared keys pass through unchanged.
    """
    validated = dict(params)
    errors: list[str] = []

    for param in declared:
        if param.name not in validated or validated[param.name] is None:
            if param.default is not None:
                validated[param.name] = param.default
            elif param.required:
                errors.append(f"missing required parameter '{param.name}'")
            continue

        value = validated[param.name]
        check = _TYPE_CHECKS.get(param.type)
        if check is not None and not check(value):
            errors.append(
                f"parameter '{param.name}' must be {param.type}, got {type(value).__name__}"
            )
            continue

        if param.enum is not None:
            values = value if param.type == "array" else [value]
            bad = [v for v in values if v not in param.enum]
            if bad:
                errors.append(
                    f"parameter '{param.name}' must be one of {list(param.enum)}, got {bad[0]!r}"
                )

    return validated, errors
