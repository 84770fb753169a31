"""Retry executor with exponential backoff for failable async operations."""
import asyncio
import logging
import re
from typing import Awaitable, Callable, Optional, TypeVar

import httpx
from pydantic import BaseModel, ConfigDict, Field

from resume_worker.config import Settings, settings as default_settings
from resume_worker.exceptions import NonRetryableError

logger = logging.getLogger(__name__)

T = TypeVar("T")

_NON_RETRYABLE_STATUS_CODES = {400, 401, 403, 404, 422}
_NON_RETRYABLE_MESSAGE = re.compile(r"40[134]|unauthorized|forbidden|not found|invalid", re.IGNORECASE)


class RetryPolicy(BaseModel):
    """Backoff parameters. Delays are in seconds."""

    model_config = ConfigDict(frozen=True)

    max_attempts: int = Field(default=3, ge=1)
    initial_delay: float = Field(default=1.0, ge=0)
    max_delay: float = Field(default=30.0, ge=0)
    backoff_multiplier: float = Field(default=2.0, ge=1)

    @classmethod
    def from_settings(cls, settings: Settings = default_settings) -> "RetryPolicy":
        return cls(
            max_attempts=settings.RETRY_MAX_ATTEMPTS,
            initial_delay=settings.RETRY_INITIAL_DELAY,
            max_delay=settings.RETRY_MAX_DELAY,
            backoff_multiplier=settings.RETRY_BACKOFF_MULTIPLIER,
        )

    def delay_for(self, attempt: int) -> float:
        """Delay to wait after the given (1-based) failed attempt."""
        return min(self.max_delay, self.initial_delay * self.backoff_multiplier ** (attempt - 1))


def is_non_retryable(error: BaseException) -> bool:
    """Whether an error is a client-side failure that retrying cannot fix."""
    if isinstance(error, NonRetryableError):
        return True
    if isinstance(error, httpx.HTTPStatusError):
        return error.response.status_code in _NON_RETRYABLE_STATUS_CODES
    return bool(_NON_RETRYABLE_MESSAGE.search(str(error)))


async def with_retry(
    operation: Callable[[], Awaitable[T]],
    label: str,
    policy: Optional[RetryPolicy] = None,
) -> T:
    """
    Run an async operation, retrying failures with exponential backoff.

    Args:
        operation: Zero-argument coroutine factory, called once per attempt
        label: Operation name used in log lines
        policy: Backoff parameters (defaults to the process-wide policy)

    Returns:
        The operation's result

    Raises:
        The last error once attempts are exhausted, or the first
        non-retryable error immediately.
    """
    policy = policy or RetryPolicy.from_settings()
    attempt = 0

    while True:
        attempt += 1
        try:
            return await operation()
        except Exception as e:
            if is_non_retryable(e):
                logger.error(f"Non-retryable error in {label}, bailing: {e}")
                raise
            if attempt >= policy.max_attempts:
                logger.error(f"{label} failed after {attempt} attempts: {e}")
                raise

            delay = policy.delay_for(attempt)
            logger.warning(
                f"Retrying {label} after failure "
                f"(attempt {attempt}/{policy.max_attempts}, next in {delay:.1f}s): {e}"
            )
            await asyncio.sleep(delay)
