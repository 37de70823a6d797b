"""Permission decisions and deny rules."""

from __future__ import annotations

import fnmatch
from dataclasses import dataclass, field
from enum import Enum


class PermissionDecision(Enum):
    """Result of a permission check."""

    ALLOW = "allow"
    DENY = "deny"


@dataclass(frozen=True, slots=True)
class PermissionRule:
    """A single deny rule. ``tool`` is a name or glob pattern (e.g. "bash", "agent:*")."""

    tool: str
    decision: PermissionDecision = PermissionDecision.DENY


@dataclass(slots=True)
class PermissionConfig:
    """Engine-wide deny rules layered on top of per-agent allow-lists."""

    deny_rules: list[PermissionRule] = field(default_factory=list)

    def add_deny(self, tool: str) -> None:
        self.deny_rules.append(PermissionRule(tool=tool))

    @classmethod
    def from_patterns(cls, patterns: tuple[str, ...] | list[str]) -> PermissionConfig:
        config = cls()
        for pattern in patterns:
            config.add_deny(pattern)
        return config


def _matches_rule(rule: PermissionRule, tool_name: str) -> bool:
    """Check if a rule matches a tool name."""
    return fnmatch.fnmatchcase(tool_name, rule.tool)
