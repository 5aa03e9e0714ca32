"""
Shared utilities for the chat backend services.
"""

from .utils.retry import CircuitBreaker, with_retry

__all__ = ["CircuitBreaker", "with_retry"]
