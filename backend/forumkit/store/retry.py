"""Retry policy with exponential backoff for record API requests."""

import logging

import httpx
import structlog
from tenacity import (
    AsyncRetrying,
    before_sleep_log,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

logger = structlog.get_logger(__name__)


def is_retryable(exc: BaseException) -> bool:
    """Transport failures and 5xx responses are worth another attempt; 4xx are not."""
    if isinstance(exc, httpx.HTTPStatusError):
        return exc.response.status_code >= 500
    return isinstance(exc, httpx.TransportError)


def http_retrying(
    max_attempts: int = 3,
    wait_min: float = 2,
    wait_max: float = 30,
) -> AsyncRetrying:
    """Build a fresh AsyncRetrying controller for one logical request.

    Args:
        max_attempts: Total attempts including the first one
        wait_min: Lower bound of the exponential backoff in seconds
        wait_max: Upper bound of the exponential backoff in seconds
    """
    return AsyncRetrying(
        stop=stop_after_attempt(max(1, max_attempts)),
        wait=wait_exponential(multiplier=1, min=wait_min, max=wait_max),
        retry=retry_if_exception(is_retryable),
        before_sleep=before_sleep_log(logger, logging.WARNING),
        reraise=True,
    )
