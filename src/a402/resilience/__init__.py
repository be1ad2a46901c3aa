"""
Resilience Layer for A402.

Provides retry with backoff for chain round-trips.
"""

from .retry import execute_with_retry, is_transient_error

__all__ = [
    "execute_with_retry",
    "is_transient_error",
]
