"""
Error handler with retry logic for Rent Scout.

Implements exponential backoff with randomized jitter around remote calls.
"""

import asyncio
import logging
import random
from dataclasses import dataclass
from typing import Any, Callable, Optional

from .errors import is_rate_limit_error


logger = logging.getLogger(__name__)


@dataclass
class RetryConfig:
    """
    Configuration for retry behavior with exponential backoff.

    Attributes:
        max_retries: Retries after the first attempt (total attempts = max_retries + 1)
        initial_delay_seconds: Backoff delay before the first retry
        jitter_seconds: Jitter bound; each wait adds uniform(0, 1.5 * jitter_seconds)
    """
    max_retries: int = 4
    initial_delay_seconds: float = 1.0
    jitter_seconds: float = 1.0

    def get_backoff_delay(self, attempt: int) -> float:
        """
        Calculate the base backoff delay before a retry.

        The delay doubles with each retry:
        delay = initial_delay_seconds * (2 ^ attempt)

        Args:
            attempt: The retry number (0-indexed)

        Returns:
            Delay in seconds, without jitter
        """
        return self.initial_delay_seconds * (2 ** attempt)

    def get_jitter(self) -> float:
        """Random jitter in [0, 1.5 * jitter_seconds]."""
        return random.uniform(0, 1.5 * self.jitter_seconds)


class ErrorHandler:
    """
    Retry wrapper for remote operations.

    Retries only failures accepted by the retry predicate; anything else is
    propagated at once. When retries run out the original exception from the
    last attempt is re-raised unchanged.

    Attributes:
        config: Retry configuration
        is_retryable: Predicate classifying failures as retryable
    """

    def __init__(
        self,
        config: Optional[RetryConfig] = None,
        is_retryable: Callable[[BaseException], bool] = is_rate_limit_error
    ):
        """
        Initialize error handler.

        Args:
            config: Retry configuration (default: RetryConfig())
            is_retryable: Retry predicate (default: rate-limit/quota failures)
        """
        self.config = config or RetryConfig()
        self.is_retryable = is_retryable

    async def retry_with_backoff(
        self,
        operation: Callable,
        *args,
        **kwargs
    ) -> Any:
        """
        Execute operation with exponential backoff retry logic.

        Callers must make sure the operation is safe to repeat.

        Args:
            operation: Async callable to execute
            *args: Positional arguments for the operation
            **kwargs: Keyword arguments for the operation

        Returns:
            Result from successful operation execution

        Raises:
            Exception: The exception of the last attempt, unchanged
        """
        name = getattr(operation, '__name__', repr(operation))
        max_attempts = self.config.max_retries + 1

        for attempt in range(max_attempts):
            try:
                logger.debug(f"Attempt {attempt + 1}/{max_attempts} for operation {name}")
                result = await operation(*args, **kwargs)
                if attempt > 0:
                    logger.info(f"Operation {name} succeeded on attempt {attempt + 1}")
                return result

            except Exception as e:
                if not self.is_retryable(e):
                    logger.error(f"Operation {name} failed with non-retryable error: {type(e).__name__}: {e}")
                    raise

                logger.warning(
                    f"Operation failed: {name} | "
                    f"Attempt: {attempt + 1}/{max_attempts} | "
                    f"Error: {type(e).__name__}: {e}"
                )

                if attempt == max_attempts - 1:
                    logger.error(
                        f"Operation {name} still rate limited after {max_attempts} attempts"
                    )
                    raise

                delay = self.config.get_backoff_delay(attempt) + self.config.get_jitter()
                logger.info(f"Waiting {delay:.1f}s before retry...")
                await asyncio.sleep(delay)
