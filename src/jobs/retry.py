# src/jobs/retry.py - v1
"""Retry policy with exponential backoff for final-embedding writes.

Transient failures are retried with delays base_delay_s * 2**attempt.
Failures whose message names a constraint violation are permanent and are
not retried.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable

from kgembed.core.errors import PersistenceError

logger = logging.getLogger(__name__)

_PERMANENT_MARKERS = ("constraint", "not-null", "foreign key")


@dataclass(frozen=True)
class RetryConfig:
    """Retry configuration for persistence writes."""

    max_retries: int = 3
    base_delay_s: float = 1.0
    backoff_factor: float = 2.0


def is_permanent(error: Exception) -> bool:
    msg = str(error).lower()
    return any(marker in msg for marker in _PERMANENT_MARKERS)


def compute_delay(config: RetryConfig, attempt: int) -> float:
    """Delay before retrying after the given failed attempt (0-based)."""
    return config.base_delay_s * (config.backoff_factor ** attempt)


async def persist_with_retry(
    fn: Callable[..., Awaitable[Any]],
    *args: Any,
    kind: str,
    key: str,
    config: RetryConfig | None = None,
    sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    **kwargs: Any,
) -> Any:
    """Run an async write, retrying transient failures.

    Args:
        fn: Async write to run.
        kind: "entity" or "relation", for error reporting.
        key: Id being written, for error reporting.
        config: Retry policy (defaults to RetryConfig()).
        sleep: Awaitable sleep, injectable for tests.

    Raises:
        PersistenceError: On a permanent failure or once max_retries attempts failed.
    """
    config = config or RetryConfig()
    attempts = 0

    while True:
        try:
            return await fn(*args, **kwargs)
        except Exception as e:
            attempts += 1
            if is_permanent(e) or attempts >= config.max_retries:
                raise PersistenceError(kind, key, e) from e

            delay = compute_delay(config, attempts - 1)
            logger.warning(
                "Writing %s %s failed (attempt %d/%d), retrying in %.1fs: %s",
                kind, key, attempts, config.max_retries, delay, e,
            )
            await sleep(delay)
