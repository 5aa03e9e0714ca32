"""
Retry and circuit breaker helpers.
"""

from .retry import CircuitBreaker, CircuitState, with_retry

__all__ = ["CircuitBreaker", "CircuitState", "with_retry"]
