"""Retry / exponential backoff for Linear mutations.

``run_with_retries`` awaits a thunk up to ``max_retries + 1`` times. Between
attempts it sleeps ``base_delay * 2 ** (attempt - 1)`` seconds, i.e. 0.5s, 1s,
2s with the defaults. The last error is re-raised once the budget is spent.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import TypeVar

T = TypeVar("T")

logger = logging.getLogger(__name__)

Sleep = Callable[[float], Awaitable[None]]


@dataclass(frozen=True)
class RetryConfig:
    max_retries: int = 3
    base_delay: float = 0.5  # seconds


def backoff_delay(attempt: int, cfg: RetryConfig) -> float:
    """Delay before retrying after the given 1-based failed attempt."""
    return cfg.base_delay * (2 ** (attempt - 1))


async def run_with_retries(
    fn: Callable[[], Awaitable[T]],
    *,
    cfg: RetryConfig | None = None,
    sleep: Sleep = asyncio.sleep,
    label: str = "",
) -> T:
    cfg = cfg or RetryConfig()
    attempts = max(0, cfg.max_retries) + 1
    for attempt in range(1, attempts + 1):
        try:
            return await fn()
        except Exception as exc:
            if attempt >= attempts:
                raise
            delay = backoff_delay(attempt, cfg)
            logger.debug("%s failed (attempt %d/%d): %s; retrying in %.2fs", label, attempt, attempts, exc, delay)
            await sleep(delay)
    raise RuntimeError("retry logic exited unexpectedly")  # pragma: no cover


__all__ = ["RetryConfig", "backoff_delay", "run_with_retries"]
