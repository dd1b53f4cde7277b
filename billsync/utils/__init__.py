"""
Utilities package for BillSync.

This package contains reusable utility classes for:
- Rate limiting
- Retry logic
- Content hashing
"""

from .rate_limiter import RateLimiter
from .retry import (
    retry_async,
    calculate_backoff,
    is_retryable_error,
)
from .hash_utils import hash_bytes

__all__ = [
    "RateLimiter",
    "retry_async",
    "calculate_backoff",
    "is_retryable_error",
    "hash_bytes",
]
