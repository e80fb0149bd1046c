"""
Bounded immediate retry for async operations.

Uploads from a build step are retried back to back: there is no backoff
delay and no jitter, only a fixed budget of attempts. The loop is explicit
so a long budget never grows the call stack.

Usage:
    from asset_uploader.utils.retry import retry_async

    result = await retry_async(
        lambda: store.put(bucket, region, key, body),
        max_attempts=4,
        exceptions=(RemoteStoreError,),
        on_attempt=lambda attempt: record.bump(),
    )
"""

from typing import Any, Awaitable, Callable, Optional, Tuple, Type

from asset_uploader.utils.logging import get_logger

# Module-level logger
logger = get_logger(__name__)


async def retry_async(
    operation: Callable[[], Awaitable[Any]],
    max_attempts: int = 1,
    exceptions: Tuple[Type[Exception], ...] = (Exception,),
    on_attempt: Optional[Callable[[int], None]] = None,
    on_failure: Optional[Callable[[int, Exception], None]] = None,
    name: Optional[str] = None,
) -> Any:
    """
    Await ``operation`` until it succeeds or ``max_attempts`` is spent.

    Args:
        operation: Zero-argument callable returning a fresh awaitable per attempt
        max_attempts: Maximum number of attempts (including the first), at least 1
        exceptions: Exception types that trigger another attempt
        on_attempt: Called with the 1-based attempt number before each attempt
        on_failure: Called with the attempt number and error after each failure
        name: Operation name for log lines

    Returns:
        The operation's result

    Raises:
        The last exception once every attempt has failed. Exceptions outside
        ``exceptions`` propagate immediately.

    Example:
        >>> attempts = []
        >>> async def flaky():
        ...     if len(attempts) < 3:
        ...         raise ConnectionError("reset")
        ...     return "ok"
        >>> await retry_async(flaky, max_attempts=4, on_attempt=attempts.append)
        'ok'
    """
    label = name or getattr(operation, "__name__", "operation")
    max_attempts = max(max_attempts, 1)
    last_exception: Optional[Exception] = None

    for attempt in range(1, max_attempts + 1):
        if on_attempt:
            on_attempt(attempt)

        if attempt == 1:
            logger.debug(f"Executing {label}")
        else:
            logger.debug(f"Retry attempt {attempt - 1}/{max_attempts - 1} for {label}")

        try:
            result = await operation()
        except exceptions as e:
            last_exception = e
            if on_failure:
                on_failure(attempt, e)

            if attempt < max_attempts:
                logger.debug(f"{label} failed on attempt {attempt}: {e}. Retrying now")
            else:
                logger.debug(
                    f"{label} failed after {max_attempts} attempts. Last error: {e}"
                )
            continue

        if attempt > 1:
            logger.debug(f"{label} succeeded on attempt {attempt}")
        return result

    # max_attempts >= 1, so the loop ran and failed at least once
    assert last_exception is not None
    raise last_exception
