"""Exception hierarchy for stepwise.

Only configuration-class and model-invocation failures cross the run
boundary as exceptions. Everything else is reported as a failed
``ToolResultData`` or ``AgentResult``.
"""

from __future__ import annotations


class StepwiseError(Exception):
    """Base class for all stepwise errors."""


class ConfigurationError(StepwiseError):
    """The engine or an invoker is missing required configuration."""


class ModelInvocationError(StepwiseError):
    """A model call failed or timed out. Aborts the run."""

    def __init__(self, message: str, *, agent: str = "", model: str = "") -> None:
        super().__init__(message)
        self.agent = agent
        self.model = model


class AgentNotFoundError(StepwiseError, KeyError):
    """No agent is registered under the requested name."""

    def __str__(self) -> str:
        # KeyError quotes its argument; keep the plain message.
        return str(self.args[0]) if self.args else ""


class AgentDefinitionError(StepwiseError):
    """A user agent file could not be turned into an AgentDef."""
