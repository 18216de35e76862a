"""Shared executor and retry policy for blocking provider calls."""

import asyncio
import logging
import random
from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Any, TypeVar

from requests.exceptions import ConnectionError as RequestsConnectionError
from requests.exceptions import HTTPError
from requests.exceptions import Timeout as RequestsTimeout

from valuation_mcp.config import (
    PROVIDER_BASE_DELAY,
    PROVIDER_MAX_DELAY,
    PROVIDER_MAX_RETRIES,
    PROVIDER_MAX_WORKERS,
)
from valuation_mcp.errors import ProviderError, ServerShuttingDownError

logger = logging.getLogger(__name__)

# Bounded concurrency for blocking provider calls
_executor = ThreadPoolExecutor(
    max_workers=PROVIDER_MAX_WORKERS, thread_name_prefix="provider"
)

# Shutdown coordination
shutdown_event = asyncio.Event()

T = TypeVar("T")


def is_retryable_error(error: Exception) -> bool:
    """
    Check if an error is transient.

    Rate limits, server errors, connection resets and read timeouts are
    retried. 4xx responses (a ticker page that does not exist) and
    ProviderError (page loaded but unusable) are not.
    """
    if isinstance(error, ProviderError):
        return False

    if isinstance(error, HTTPError) and error.response is not None:
        status_code = error.response.status_code
        return status_code == 429 or 500 <= status_code < 600

    if isinstance(error, (RequestsConnectionError, RequestsTimeout)):
        return True

    error_str = str(error).lower()
    retryable_patterns = [
        "rate limit",
        "too many requests",
        "connection",
        "timed out",
        "temporary",
    ]
    return any(pattern in error_str for pattern in retryable_patterns)


def calculate_backoff(attempt: int) -> float:
    """Calculate delay with exponential backoff and jitter."""
    delay = PROVIDER_BASE_DELAY * (2**attempt)
    # Add jitter (+/-25%)
    jitter = delay * 0.25 * (2 * random.random() - 1)
    return min(delay + jitter, PROVIDER_MAX_DELAY)


@dataclass
class RetryResult:
    """Result of a retry operation with attempt accounting."""

    result: Any
    attempts: int
    total_backoff_seconds: float


async def run_blocking(func: Callable[[], T]) -> T:
    """Run a blocking callable on the provider executor."""
    if shutdown_event.is_set():
        raise ServerShuttingDownError("Server is shutting down")
    loop = asyncio.get_running_loop()
    return await loop.run_in_executor(_executor, func)


async def retry_with_backoff(
    operation_name: str,
    sync_func: Callable[[], T],
    max_retries: int = PROVIDER_MAX_RETRIES,
) -> RetryResult:
    """
    Execute a synchronous function on the executor with retry logic.

    Args:
        operation_name: Name for logging (e.g., "investidor10(PETR4)")
        sync_func: Synchronous function to execute
        max_retries: Maximum number of retry attempts

    Returns:
        RetryResult with result and attempt count

    Raises:
        The last error when it is not retryable or retries are exhausted
        ServerShuttingDownError: If server is shutting down
    """
    total_backoff = 0.0

    for attempt in range(max_retries + 1):
        try:
            result = await run_blocking(sync_func)
            return RetryResult(
                result=result,
                attempts=attempt + 1,
                total_backoff_seconds=round(total_backoff, 2),
            )
        except ServerShuttingDownError:
            raise
        except Exception as e:
            if not is_retryable_error(e) or attempt >= max_retries:
                if attempt > 0:
                    logger.warning(
                        f"{operation_name}: Failed after {attempt + 1} attempts. Last error: {e}"
                    )
                raise

            delay = calculate_backoff(attempt)
            total_backoff += delay
            logger.info(
                f"{operation_name}: Attempt {attempt + 1} failed ({e}). "
                f"Retrying in {delay:.1f}s..."
            )
            await asyncio.sleep(delay)

    # Unreachable: the loop either returns or raises
    raise RuntimeError(f"{operation_name}: retry loop exited unexpectedly")


async def shutdown_executor() -> None:
    """Cleanup on server shutdown."""
    shutdown_event.set()
    _executor.shutdown(wait=False, cancel_futures=True)
