"""
Synchronous event channels.

A channel keeps an ordered list of handlers and calls each of them, in
registration order, on the thread that fires the event. A slow handler
therefore stalls whatever fired it.
"""

from __future__ import annotations

import threading
from typing import Any, Callable

Handler = Callable[[Any], None]


class EventChannel:
    """
    Ordered registry of handlers for one kind of event.

    Example:
        >>> channel = EventChannel("error")
        >>> seen = []
        >>> channel += seen.append
        >>> channel.fire("boom")
        >>> seen
        ['boom']
    """

    def __init__(self, name: str = "") -> None:
        self.name = name
        self._handlers: list[Handler] = []
        self._lock = threading.Lock()

    def __iadd__(self, handler: Handler) -> EventChannel:
        return self.add(handler)

    def __isub__(self, handler: Handler) -> EventChannel:
        return self.remove(handler)

    def __len__(self) -> int:
        return len(self._handlers)

    def __bool__(self) -> bool:
        return bool(self._handlers)

    def add(self, handler: Handler) -> EventChannel:
        if not callable(handler):
            raise TypeError(f"handler for {self.name or 'event'} is not callable: {handler!r}")
        with self._lock:
            self._handlers.append(handler)
        return self

    def remove(self, handler: Handler) -> EventChannel:
        with self._lock:
            if handler in self._handlers:
                self._handlers.remove(handler)
        return self

    def handlers(self) -> tuple[Handler, ...]:
        with self._lock:
            return tuple(self._handlers)

    def fire(self, event: Any) -> None:
        """
        Call every handler with ``event``.

        Handlers registered or removed while firing take effect from the
        next call. An exception raised by a handler propagates to the
        caller and skips the remaining handlers.
        """
        for handler in self.handlers():
            handler(event)

    def __repr__(self) -> str:
        return f"EventChannel({self.name!r}, handlers={len(self)})"
