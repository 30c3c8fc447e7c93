"""
Error handling module for Rent Scout.

Provides retry logic and the error taxonomy reported to the view model.
"""

from .error_handler import ErrorHandler, RetryConfig
from .errors import (
    ErrorKind,
    MalformedResponseError,
    RateLimitExceededError,
    RentScoutError,
    SearchError,
    SettingsStorageError,
    classify_error,
    is_rate_limit_error,
)

__all__ = [
    'ErrorHandler',
    'RetryConfig',
    'ErrorKind',
    'MalformedResponseError',
    'RateLimitExceededError',
    'RentScoutError',
    'SearchError',
    'SettingsStorageError',
    'classify_error',
    'is_rate_limit_error',
]
