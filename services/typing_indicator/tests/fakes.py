# fakes.py
"""
In-memory stand-ins for the bus and the timer facility, so tests can move
time forward deterministically.
"""
from typing import Any, Callable, Dict, List

from services.typing_indicator.app.core.events import EventType


class FakeTimerHandle:
    def __init__(self, due_ms: int, seq: int, callback: Callable[[], Any]):
        self.due_ms = due_ms
        self.seq = seq
        self.callback = callback
        self.cancelled = False
        self.fired = False

    def cancel(self) -> None:
        self.cancelled = True


class FakeTimerFacility:
    def __init__(self, start_ms: int = 0):
        self.now_ms = start_ms
        self.handles: List[FakeTimerHandle] = []
        self._seq = 0

    def schedule(self, callback, duration_ms: int) -> FakeTimerHandle:
        self._seq += 1
        handle = FakeTimerHandle(self.now_ms + duration_ms, self._seq, callback)
        self.handles.append(handle)
        return handle

    def cancel(self, handle) -> None:
        if handle is not None:
            handle.cancel()

    def pending(self) -> List[FakeTimerHandle]:
        return [h for h in self.handles if not h.cancelled and not h.fired]

    def advance_to(self, target_ms: int) -> None:
        """Fire due callbacks in order until the clock reaches target_ms."""
        while True:
            due = [h for h in self.pending() if h.due_ms <= target_ms]
            if not due:
                break
            handle = min(due, key=lambda h: (h.due_ms, h.seq))
            self.now_ms = handle.due_ms
            handle.fired = True
            handle.callback()
        self.now_ms = target_ms

    def advance(self, ms: int) -> None:
        self.advance_to(self.now_ms + ms)


class FakeBus:
    def __init__(self):
        self.handlers: Dict[EventType, Callable[[Any], Any]] = {}
        self.subscribe_calls = 0

    def subscribe(self, event_type: EventType, handler) -> None:
        self.subscribe_calls += 1
        self.handlers[event_type] = handler

    def publish(self, event_type: EventType, payload) -> Any:
        return self.handlers[event_type](payload)
