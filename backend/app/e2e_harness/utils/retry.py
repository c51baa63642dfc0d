"""
Retry Helper

Generic async retry with optional backoff, used by page objects for
clicks, fills and other interactions that may race with rendering.
Navigation has its own transient-only retry policy in the controller.
"""

import asyncio
import logging
from typing import Any, Awaitable, Callable, Optional, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_RETRIES = 3
DEFAULT_DELAY_MS = 1000
DEFAULT_MAX_DELAY_MS = 10000


async def with_retry(
    operation: Callable[[], Awaitable[T]],
    retries: int = DEFAULT_RETRIES,
    delay_ms: int = DEFAULT_DELAY_MS,
    backoff: float = 1.0,
    max_delay_ms: int = DEFAULT_MAX_DELAY_MS,
    retry_condition: Optional[Callable[[BaseException], bool]] = None,
    on_retry: Optional[Callable[[BaseException, int], Any]] = None,
    description: str = "operation",
    sleep: Optional[Callable[[float], Awaitable[Any]]] = None
) -> T:
    """
    Run an async operation until it succeeds or attempts run out.

    Args:
        operation: Zero-argument coroutine factory
        retries: Extra attempts after the first one
        delay_ms: Delay before the first retry
        backoff: Factor applied to the delay after each retry
        max_delay_ms: Upper bound for any single delay
        retry_condition: Returns False for errors that must not be retried
        on_retry: Called with (error, attempt) before each retry
        description: Label used in log messages
        sleep: Coroutine used for delays (seconds)

    Returns:
        The operation's result

    Raises:
        The last error raised by the operation
    """
    sleep = sleep or asyncio.sleep
    retries = max(0, retries)
    current_delay = delay_ms

    for attempt in range(1, retries + 2):
        try:
            logger.debug(f"Attempting {description} ({attempt}/{retries + 1})")
            result = await operation()
            if attempt > 1:
                logger.info(f"{description} succeeded after {attempt - 1} retries")
            return result
        except Exception as e:
            if attempt > retries or (retry_condition is not None and not retry_condition(e)):
                logger.error(f"{description} failed after {attempt - 1} retries: {e}")
                raise

            logger.warning(f"Retry {attempt}/{retries} for {description}: {e}")
            if on_retry is not None:
                on_retry(e, attempt)
            await sleep(current_delay / 1000)
            current_delay = min(current_delay * backoff, max_delay_ms)
