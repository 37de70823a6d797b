"""Base model invoker with shared retry logic."""

from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Any

from stepwise.types.providers import ChatMessage

logger = logging.getLogger(__name__)

# Rate limits and server overload are worth retrying.
_RETRYABLE_STATUS_CODES: frozenset[int] = frozenset({429, 529})
_MAX_RETRIES: int = 3
_BACKOFF_BASE: float = 1.0  # seconds; doubled each retry


def _is_retryable(exc: BaseException) -> bool:
    """Return True when *exc* represents a transient error worth retrying."""
    if type(exc).__name__ in {"RateLimitError", "OverloadedError"}:
        return True
    status_code: int | None = getattr(exc, "status_code", None)
    return status_code is not None and status_code in _RETRYABLE_STATUS_CODES


class BaseInvoker(ABC):
    """Abstract base class for model invokers.

    Sub-classes implement :meth:`_complete`; :meth:`complete` adds
    retry with exponential back-off on transient provider errors.

    Parameters
    ----------
    max_tokens:
        Upper bound on generated tokens per call.
    """

    provider_name: str = ""

    def __init__(self, max_tokens: int = 4096) -> None:
        self._max_tokens = max_tokens

    async def complete(
        self,
        model: str,
        system: str,
        messages: list[ChatMessage],
    ) -> str:
        """Return the generated text for one inference step."""
        return await self._retry_with_backoff(self._complete, model, system, messages)

    @abstractmethod
    async def _complete(
        self,
        model: str,
        system: str,
        messages: list[ChatMessage],
    ) -> str:
        """Perform one provider call without retries."""
        ...

    async def _retry_with_backoff(
        self,
        coro_fn: Any,
        /,
        *args: Any,
        **kwargs: Any,
    ) -> Any:
        """Call *coro_fn* with exponential back-off on transient errors.

        Up to :data:`_MAX_RETRIES` additional attempts are made when the
        raised exception is identified as retryable by :func:`_is_retryable`.

        Raises
        ------
        Exception
            Re-raises the last exception when all retries are exhausted.
        """
        delay = _BACKOFF_BASE
        attempts = _MAX_RETRIES + 1

        for attempt in range(1, attempts + 1):
            try:
                return await coro_fn(*args, **kwargs)
            except Exception as exc:
                if not _is_retryable(exc) or attempt == attempts:
                    raise
                logger.warning(
                    "Transient error on attempt %d/%d (%s). Retrying in %.1fs.",
                    attempt,
                    attempts,
                    type(exc).__name__,
                    delay,
                )
                await asyncio.sleep(delay)
                delay *= 2.0

        raise RuntimeError("Unexpected state in _retry_with_backoff")  # pragma: no cover
