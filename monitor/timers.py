"""Named start/stop timers."""
import threading
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone

from monitor.errors import DuplicateTimer, TimerNotFound


@dataclass
class Timer:
    label: str
    tags: dict = field(default_factory=dict)
    started_at: datetime = None
    started_mono: float = 0.0


class TimerRegistry:
    """Thread-safe registry of running timers. Durations are in milliseconds.

    ``started_at`` comes from ``clock`` so it lines up with point timestamps;
    durations are measured on ``monotonic``.
    """

    def __init__(self, clock=None, monotonic=None):
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self._monotonic = monotonic or time.monotonic
        self._timers = {}
        self._lock = threading.Lock()

    def start(self, label, tags=None):
        with self._lock:
            if label in self._timers:
                raise DuplicateTimer(label)
            timer = Timer(
                label=label,
                tags=dict(tags or {}),
                started_at=self._clock(),
                started_mono=self._monotonic(),
            )
            self._timers[label] = timer
        return timer

    def stop(self, label):
        """Remove the timer and return (duration_ms, timer)."""
        with self._lock:
            timer = self._timers.pop(label, None)
        if timer is None:
            raise TimerNotFound(label)
        duration = (self._monotonic() - timer.started_mono) * 1000.0
        return duration, timer

    def active(self):
        with self._lock:
            return sorted(self._timers)

    def __contains__(self, label):
        with self._lock:
            return label in self._timers
