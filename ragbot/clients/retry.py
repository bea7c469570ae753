"""Retry policy for upstream calls (Azure OpenAI, Azure AI Search).

Every upstream call site goes through ``call_with_retry`` so that backoff,
jitter and the attempt cap are configured in one place.
"""

import asyncio
import logging
from typing import Awaitable, Callable, TypeVar

from azure.core.exceptions import (
    HttpResponseError,
    ServiceRequestError,
    ServiceResponseError,
)
from openai import (
    APIConnectionError,
    APITimeoutError,
    InternalServerError,
    RateLimitError,
)
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
    wait_random,
)

from ragbot.config.configuration import RetryConfig

logger = logging.getLogger(__name__)

T = TypeVar("T")


def is_transient_openai_error(exc: BaseException) -> bool:
    """Connection problems, timeouts, 429 and 5xx responses are worth retrying."""
    return isinstance(
        exc,
        (APIConnectionError, APITimeoutError, InternalServerError, RateLimitError, asyncio.TimeoutError),
    )


def is_transient_azure_error(exc: BaseException) -> bool:
    """Network failures, timeouts, 429 and 5xx responses from Azure AI Search."""
    if isinstance(exc, (ServiceRequestError, ServiceResponseError, asyncio.TimeoutError)):
        return True
    if isinstance(exc, HttpResponseError):
        status = exc.status_code or 0
        return status == 429 or status >= 500
    return False


def _retry_any(exc: BaseException) -> bool:
    return isinstance(exc, Exception)


def _log_before_sleep(operation_name: str, max_attempts: int) -> Callable[[RetryCallState], None]:
    def log_attempt(retry_state: RetryCallState) -> None:
        exc = retry_state.outcome.exception() if retry_state.outcome else None
        logger.warning(
            f"{operation_name} failed (attempt {retry_state.attempt_number}/{max_attempts}): {exc!r}; retrying"
        )

    return log_attempt


def build_retrying(
    retry_config: RetryConfig,
    is_transient: Callable[[BaseException], bool] = _retry_any,
    operation_name: str = "upstream call",
) -> AsyncRetrying:
    """Build the tenacity controller for one upstream call."""
    return AsyncRetrying(
        retry=retry_if_exception(is_transient),
        stop=stop_after_attempt(retry_config.max_attempts),
        wait=wait_exponential(
            multiplier=retry_config.initial_backoff_seconds,
            max=retry_config.max_backoff_seconds,
        )
        + wait_random(0, retry_config.jitter_seconds),
        before_sleep=_log_before_sleep(operation_name, retry_config.max_attempts),
        reraise=True,
    )


async def call_with_retry(
    operation: Callable[[], Awaitable[T]],
    retry_config: RetryConfig,
    is_transient: Callable[[BaseException], bool] = _retry_any,
    operation_name: str = "upstream call",
) -> T:
    """
    Run ``operation`` with exponential backoff plus jitter.

    Args:
        operation: Zero-argument coroutine factory, called once per attempt.
        retry_config: Attempt cap and backoff settings.
        is_transient: Predicate selecting the exceptions that are retried.
            Any other exception propagates immediately.
        operation_name: Label used in retry log messages.

    Returns:
        The value returned by the first successful attempt.

    Raises:
        Exception: The last exception once the attempt cap is exhausted.
    """
    async for attempt in build_retrying(retry_config, is_transient, operation_name):
        with attempt:
            return await operation()
