"""Bounded retry for transient store failures.

Only ``TransientStoreError`` is retried. Conflict, not-found and
precondition errors are definitive outcomes and propagate on first sight.
"""

import asyncio
from collections.abc import Awaitable, Callable
from typing import TypeVar

from scrum_poker.db.errors import TransientStoreError
from scrum_poker.observability.logging import get_logger
from scrum_poker.observability.metrics import TRANSIENT_RETRIES

logger = get_logger(__name__)

T = TypeVar("T")


async def retry_transient(
    operation: Callable[[], Awaitable[T]],
    *,
    attempts: int = 3,
    base_delay_seconds: float = 0.1,
    operation_name: str = "store_operation",
) -> T:
    """Run ``operation``, retrying transient failures with exponential backoff.

    Args:
        operation: Zero-argument coroutine factory; called once per attempt
        attempts: Total attempts including the first
        base_delay_seconds: Delay before the first retry; doubles each time
        operation_name: Label for logs and metrics

    Raises:
        TransientStoreError: If the last attempt also fails transiently
    """
    if attempts < 1:
        raise ValueError("attempts must be at least 1")

    for attempt in range(1, attempts + 1):
        try:
            return await operation()
        except TransientStoreError as e:
            if attempt == attempts:
                logger.error(
                    "transient_retry_exhausted",
                    operation=operation_name,
                    attempts=attempts,
                    error=str(e),
                )
                raise
            delay = base_delay_seconds * (2 ** (attempt - 1))
            logger.warning(
                "transient_store_error_retrying",
                operation=operation_name,
                attempt=attempt,
                delay_seconds=delay,
                error=str(e),
            )
            TRANSIENT_RETRIES.labels(operation=operation_name).inc()
            await asyncio.sleep(delay)

    raise AssertionError("unreachable")
