"""Synchronous publish/subscribe bus for metric and alert events."""
import logging
import threading

from models.enums import EventKind

logger = logging.getLogger("perfmon.events")


class EventBus:
    """Fan-out of typed events to per-kind handler lists.

    Handlers run synchronously on the publishing thread in subscription
    order. A failing handler is logged and skipped.
    """

    def __init__(self):
        self._handlers = {kind: [] for kind in EventKind}
        self._lock = threading.Lock()

    def on(self, kind, handler):
        kind = EventKind(kind)
        with self._lock:
            self._handlers[kind].append(handler)
        return handler

    def off(self, kind, handler):
        kind = EventKind(kind)
        with self._lock:
            if handler in self._handlers[kind]:
                self._handlers[kind].remove(handler)

    def publish(self, event):
        with self._lock:
            handlers = list(self._handlers[event.kind])
        for handler in handlers:
            try:
                handler(event)
            except Exception as e:
                logger.warning(f"Event handler error on {event.kind.value}: {e}")
        return len(handlers)

    def handler_count(self, kind=None):
        with self._lock:
            if kind is None:
                return sum(len(h) for h in self._handlers.values())
            return len(self._handlers[EventKind(kind)])

    def clear(self):
        with self._lock:
            for handlers in self._handlers.values():
                handlers.clear()
