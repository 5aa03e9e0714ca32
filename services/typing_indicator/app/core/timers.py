"""
One-shot timers driven by the asyncio event loop.
"""
import asyncio
from typing import Any, Callable, Optional, Protocol


class TimerFacility(Protocol):
    """Schedules callbacks on the loop that drives the tracker."""

    def schedule(self, callback: Callable[[], Any], duration_ms: int) -> Any:
        """Run ``callback`` once after ``duration_ms`` and return a handle."""
        ...

    def cancel(self, handle: Optional[Any]) -> None:
        """Cancel a pending handle; None and spent handles are ignored."""
        ...


class AsyncioTimerFacility:
    """TimerFacility backed by ``loop.call_later``."""

    def __init__(self, loop: Optional[asyncio.AbstractEventLoop] = None):
        self._loop = loop

    @property
    def loop(self) -> asyncio.AbstractEventLoop:
        # Bound lazily so the facility can be built before the loop starts
        if self._loop is None:
            self._loop = asyncio.get_running_loop()
        return self._loop

    def schedule(
        self, callback: Callable[[], Any], duration_ms: int
    ) -> asyncio.TimerHandle:
        return self.loop.call_later(duration_ms / 1000, callback)

    def cancel(self, handle: Optional[asyncio.TimerHandle]) -> None:
        if handle is not None:
            handle.cancel()
