"""
Resilience utilities for error handling.

This module provides:
- retry_with_backoff decorator for transient errors (fixed delay)
- partial failure reporting for fan-out operations
"""

import asyncio
from typing import Awaitable, Callable, TypeVar, ParamSpec
from functools import wraps

from .logging import get_logger

logger = get_logger(__name__)

# Type variables for generic decorator
P = ParamSpec('P')
T = TypeVar('T')


def retry_with_backoff(
    max_attempts: int = 2,
    delay: float = 1.0,
    exceptions: tuple = (Exception,)
):
    """
    Decorator for retrying coroutines after a fixed delay.

    Only exceptions listed in ``exceptions`` are retried; anything else
    propagates on the first attempt. After ``max_attempts`` failures the
    last exception propagates unchanged.

    Args:
        max_attempts: Total number of attempts including the first (default: 2)
        delay: Seconds to wait between attempts (default: 1.0)
        exceptions: Tuple of exception types to catch and retry

    Example:
        @retry_with_backoff(max_attempts=2, delay=1.0, exceptions=(httpx.TransportError,))
        async def post_event():
            return await client.post(url, content=body)
    """
    def decorator(func: Callable[P, Awaitable[T]]) -> Callable[P, Awaitable[T]]:
        @wraps(func)
        async def wrapper(*args: P.args, **kwargs: P.kwargs) -> T:
            for attempt in range(1, max_attempts + 1):
                try:
                    result = await func(*args, **kwargs)

                    if attempt > 1:
                        logger.info(
                            f"{func.__name__} succeeded on attempt {attempt}/{max_attempts}"
                        )

                    return result

                except exceptions as e:
                    if attempt == max_attempts:
                        logger.error(
                            f"{func.__name__} failed after {max_attempts} attempts: {e}"
                        )
                        raise

                    logger.warning(
                        f"{func.__name__} failed on attempt {attempt}/{max_attempts}: {e}. "
                        f"Retrying in {delay:.1f}s..."
                    )

                    await asyncio.sleep(delay)

            raise RuntimeError("max_attempts must be at least 1")

        return wrapper

    return decorator


def handle_partial_failure(
    operation_name: str,
    total_items: int,
    successful_items: int,
    errors: list,
    context: dict
) -> None:
    """
    Log the aggregate result of a fan-out operation.

    Args:
        operation_name: Name of the operation
        total_items: Total number of items processed
        successful_items: Number of successful items
        errors: List of error messages
        context: Additional context information
    """
    failed_items = total_items - successful_items

    if failed_items > 0:
        logger.warning(
            f"Partial failure in {operation_name}: "
            f"{successful_items}/{total_items} succeeded, {failed_items} failed",
            extra={
                "operation": operation_name,
                "total_items": total_items,
                "successful_items": successful_items,
                "failed_items": failed_items,
                "errors": errors[:10],
                **context
            }
        )
    else:
        logger.info(
            f"{operation_name} completed successfully: {successful_items}/{total_items}",
            extra={
                "operation": operation_name,
                "total_items": total_items,
                **context
            }
        )
