"""
Retry decorator with exponential backoff for outbound HTTP lookups.

Used for identity-provider requests only. Email dispatch is never retried.
"""

import logging
import time
from dataclasses import dataclass
from functools import wraps
from typing import Callable, TypeVar

import requests

T = TypeVar("T")

logger = logging.getLogger(__name__)


@dataclass
class RetryConfig:
    """Configuration for retry behavior."""

    max_retries: int = 2
    base_delay: float = 0.5
    max_delay: float = 10.0
    exponential_base: float = 2.0
    retryable_status_codes: tuple[int, ...] = (429, 500, 502, 503, 504)

    def delay_for(self, attempt: int) -> float:
        """Backoff delay in seconds before retry number ``attempt + 1``."""
        return min(self.base_delay * (self.exponential_base**attempt), self.max_delay)

    def is_retryable(self, exc: requests.RequestException) -> bool:
        """
        HTTP errors are retryable only for the configured status codes.
        Other request exceptions (timeouts, connection errors) always are.
        """
        if isinstance(exc, requests.HTTPError):
            response = exc.response
            return response is not None and response.status_code in self.retryable_status_codes
        return True


def with_retry(config: RetryConfig | None = None):
    """
    Decorator for retry with exponential backoff.

    Example:
        @with_retry(RetryConfig(max_retries=3))
        def fetch_user(user_id):
            response = requests.get(url, timeout=10)
            response.raise_for_status()
            return response.json()
    """
    if config is None:
        config = RetryConfig()

    def decorator(func: Callable[..., T]) -> Callable[..., T]:
        @wraps(func)
        def wrapper(*args, **kwargs) -> T:
            attempt = 0
            while True:
                try:
                    return func(*args, **kwargs)
                except requests.RequestException as e:
                    if attempt >= config.max_retries or not config.is_retryable(e):
                        raise
                    delay = config.delay_for(attempt)
                    attempt += 1
                    logger.warning(
                        f"{func.__name__}: Retry {attempt}/{config.max_retries} "
                        f"after {delay:.1f}s ({type(e).__name__}: {e})"
                    )
                    time.sleep(delay)

        return wrapper

    return decorator
