"""
Retry helpers with exponential backoff and a circuit breaker, used when
connecting to the message broker.
"""

import asyncio
import logging
from enum import Enum
from typing import Any, Awaitable, Callable, Optional, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class CircuitState(str, Enum):
    CLOSED = "closed"
    OPEN = "open"
    HALF_OPEN = "half-open"


class CircuitBreaker:
    """Stops hammering a dependency after repeated failures."""

    def __init__(
        self,
        name: str,
        failure_threshold: int = 3,
        reset_timeout: float = 30.0
    ):
        self.name = name
        self.failure_threshold = failure_threshold
        self.reset_timeout = reset_timeout
        self.failures = 0
        self.opened_at: float = 0.0
        self.state = CircuitState.CLOSED

    @staticmethod
    def _now() -> float:
        return asyncio.get_running_loop().time()

    def record_failure(self) -> None:
        """Count a failure, opening the circuit at the threshold."""
        self.failures += 1
        if self.failures >= self.failure_threshold:
            self.state = CircuitState.OPEN
            self.opened_at = self._now()
            logger.warning(
                f"Circuit breaker for {self.name} opened after "
                f"{self.failures} failures"
            )

    def record_success(self) -> None:
        if self.state != CircuitState.CLOSED:
            logger.info(f"Circuit breaker for {self.name} closed")
        self.failures = 0
        self.state = CircuitState.CLOSED

    def is_open(self) -> bool:
        """True while calls should be skipped."""
        if self.state != CircuitState.OPEN:
            return False
        if self._now() - self.opened_at >= self.reset_timeout:
            self.state = CircuitState.HALF_OPEN
            logger.info(
                f"Circuit breaker for {self.name} entering half-open state"
            )
            return False
        return True


async def with_retry(
    operation: Callable[..., Awaitable[T]],
    max_attempts: int = 5,
    initial_delay: float = 1.0,
    max_delay: float = 30.0,
    exponential_base: float = 2.0,
    circuit_breaker: Optional[CircuitBreaker] = None,
    *args: Any,
    **kwargs: Any
) -> T:
    """
    Await ``operation(*args, **kwargs)`` until it succeeds.

    Args:
        operation: Coroutine function to call
        max_attempts: Number of attempts before giving up
        initial_delay: Delay before the second attempt, in seconds
        max_delay: Upper bound for the backoff delay, in seconds
        exponential_base: Multiplier applied to the delay after each failure
        circuit_breaker: Optional breaker shared by callers of one dependency

    Returns:
        Whatever the operation returns

    Raises:
        The last exception raised by the operation, or RuntimeError when the
        circuit stayed open for every attempt
    """
    delay = initial_delay
    last_exception: Optional[BaseException] = None

    for attempt in range(1, max_attempts + 1):
        if circuit_breaker and circuit_breaker.is_open():
            logger.warning(
                f"Circuit breaker for {circuit_breaker.name} is open, "
                f"skipping attempt {attempt}/{max_attempts}"
            )
        else:
            try:
                result = await operation(*args, **kwargs)
            except Exception as e:
                last_exception = e
                if circuit_breaker:
                    circuit_breaker.record_failure()
                if attempt == max_attempts:
                    logger.error(
                        f"Operation failed after {max_attempts} attempts: {e}"
                    )
                    raise
                logger.warning(
                    f"Operation failed (attempt {attempt}/{max_attempts}), "
                    f"retrying in {delay:.2f}s: {e}"
                )
            else:
                if circuit_breaker:
                    circuit_breaker.record_success()
                return result

        if attempt < max_attempts:
            await asyncio.sleep(delay)
            delay = min(delay * exponential_base, max_delay)

    if last_exception:
        raise last_exception
    raise RuntimeError("Circuit breaker stayed open for every attempt")
