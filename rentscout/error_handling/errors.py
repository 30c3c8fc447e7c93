"""
Error taxonomy for Rent Scout.

Remote failures are split into transient (rate limit / quota) and terminal
causes so the session view model can report each one distinctly.
"""

import re
from dataclasses import dataclass
from enum import Enum


class RentScoutError(Exception):
    """Base class for application errors."""


class RateLimitExceededError(RentScoutError):
    """The remote data source refused the call because of rate limits or quota."""


class MalformedResponseError(RentScoutError):
    """The remote data source returned content that could not be parsed."""


class SettingsStorageError(RentScoutError):
    """Saved settings could not be read from or written to local storage."""


_RATE_LIMIT_PATTERN = re.compile(
    r"\b429\b|rate[ _-]?limit|resource[ _]exhausted|quota|too many requests",
    re.IGNORECASE,
)


def is_rate_limit_error(error: BaseException) -> bool:
    """
    Decide whether a failure is retryable.

    A failure is retryable iff it signals rate limiting or resource
    exhaustion, either by type or by the text of its message.

    Args:
        error: The exception raised by a remote call

    Returns:
        True for rate-limit/quota failures, False for everything else
    """
    if isinstance(error, RateLimitExceededError):
        return True
    if isinstance(error, (MalformedResponseError, SettingsStorageError)):
        return False
    return bool(_RATE_LIMIT_PATTERN.search(f"{type(error).__name__} {error}"))


class ErrorKind(str, Enum):
    RATE_LIMITED = "rate_limited"
    MALFORMED_RESPONSE = "malformed_response"
    REMOTE_FAILURE = "remote_failure"
    STORAGE = "storage"


@dataclass(frozen=True)
class SearchError:
    """User-facing failure reported in one region of the view model."""
    kind: ErrorKind
    message: str


def classify_error(error: BaseException) -> SearchError:
    """Map an exception onto the error taxonomy."""
    if isinstance(error, SettingsStorageError):
        return SearchError(ErrorKind.STORAGE, f"Saved settings are unavailable: {error}")
    if isinstance(error, MalformedResponseError):
        return SearchError(
            ErrorKind.MALFORMED_RESPONSE,
            "The data source returned a bad response format.",
        )
    if is_rate_limit_error(error):
        return SearchError(
            ErrorKind.RATE_LIMITED,
            "The data source is busy. Please try again later.",
        )
    return SearchError(ErrorKind.REMOTE_FAILURE, f"Request failed: {error}")
