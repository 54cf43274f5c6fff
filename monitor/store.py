"""In-memory metric point store."""
import logging
import math
import numbers
import threading
from collections import deque
from datetime import datetime, timezone

from models.metrics import MetricPoint
from monitor.errors import InvalidMetric

logger = logging.getLogger("perfmon.store")

DEFAULT_MAX_POINTS = 10000


def as_utc(dt):
    """Return dt as an aware UTC datetime. Naive values are read as local time."""
    if dt is None:
        return None
    return dt.astimezone(timezone.utc)


def validate_metric(name, value):
    """Raise InvalidMetric unless name is a non-empty string and value a finite number."""
    if not isinstance(name, str) or not name.strip():
        raise InvalidMetric(f"Metric name must be a non-empty string, got {name!r}", name, value)
    if isinstance(value, bool) or not isinstance(value, numbers.Real):
        raise InvalidMetric(f"Metric {name} value must be numeric, got {value!r}", name, value)
    if not math.isfinite(value):
        raise InvalidMetric(f"Metric {name} value must be finite, got {value!r}", name, value)


class MetricSeries:
    """Lazy, restartable view over a snapshot of points.

    Filtering happens on iteration, so a series can be iterated any number
    of times and always yields the same points in insertion order.
    """

    def __init__(self, points, start=None, end=None, tags=None, limit=None):
        self._points = points
        self.start = as_utc(start)
        self.end = as_utc(end)
        self.tags = tags or {}
        self.limit = limit

    def _matches(self, point):
        if self.start is not None and point.timestamp < self.start:
            return False
        if self.end is not None and point.timestamp > self.end:
            return False
        for key, val in self.tags.items():
            if point.tags.get(key) != val:
                return False
        return True

    def __iter__(self):
        if self.limit:
            # "last N" needs the full match set first
            return iter([p for p in self._points if self._matches(p)][-self.limit:])
        return (p for p in self._points if self._matches(p))

    def __len__(self):
        return sum(1 for _ in self)

    def __bool__(self):
        return any(True for _ in self)

    def values(self):
        return [p.value for p in self]


class MetricStore:
    """Thread-safe, append-only store of metric points keyed by name.

    Each name keeps at most ``max_points`` points; the oldest are dropped
    first once the bound is reached.
    """

    def __init__(self, max_points=DEFAULT_MAX_POINTS, clock=None):
        self.max_points = max_points
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self._series = {}
        self._lock = threading.Lock()

    def append(self, name, value, tags=None, unit=None, timestamp=None):
        """Validate and store a point, returning it."""
        validate_metric(name, value)
        point = MetricPoint(
            name=name,
            value=float(value),
            tags={str(k): str(v) for k, v in (tags or {}).items()},
            unit=unit or None,
            timestamp=as_utc(timestamp or self._clock()),
        )
        with self._lock:
            series = self._series.get(name)
            if series is None:
                series = self._series[name] = deque(maxlen=self.max_points)
            series.append(point)
        return point

    def query(self, name=None, start=None, end=None, tags=None, limit=None):
        """Return the points for name with start <= timestamp <= end.

        With name=None, every name is included, grouped by name.
        """
        with self._lock:
            if name is None:
                snapshot = tuple(p for series in self._series.values() for p in series)
            else:
                snapshot = tuple(self._series.get(name, ()))
        return MetricSeries(snapshot, start=start, end=end, tags=tags, limit=limit)

    def cleanup(self, older_than):
        """Drop points with timestamp <= older_than. Returns the number removed."""
        older_than = as_utc(older_than)
        removed = 0
        with self._lock:
            for name in list(self._series):
                series = self._series[name]
                kept = [p for p in series if p.timestamp > older_than]
                removed += len(series) - len(kept)
                if kept:
                    self._series[name] = deque(kept, maxlen=self.max_points)
                else:
                    del self._series[name]
        if removed:
            logger.debug(f"Retention dropped {removed} points older than {older_than.isoformat()}")
        return removed

    def names(self):
        with self._lock:
            return sorted(self._series)

    def clear(self):
        with self._lock:
            self._series.clear()

    def __len__(self):
        with self._lock:
            return sum(len(s) for s in self._series.values())
