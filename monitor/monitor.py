"""PerformanceMonitor - in-process metrics recording, aggregation and alerting."""
import logging
import threading
from contextlib import contextmanager
from datetime import datetime, timedelta, timezone

from alerts.engine import AlertEngine
from models.enums import EventKind, MetricName
from models.events import MetricEvent
from models.metrics import SystemSample
from monitor.aggregation import compute_stats
from monitor.events import EventBus
from monitor.reports import ReportGenerator
from monitor.scheduler import MonitorScheduler
from monitor.store import DEFAULT_MAX_POINTS, MetricStore
from monitor.timers import TimerRegistry

logger = logging.getLogger("perfmon.monitor")


class PerformanceMonitor:
    """Engine facade owned by the caller.

    ``record`` holds one engine lock across the store append, the ``metric``
    event and alert evaluation, so concurrent breaching points trigger a
    rule at most once. Reads go through store snapshots.
    """

    def __init__(self, store=None, sampler=None, clock=None, max_age=timedelta(hours=24),
                 cleanup_interval=3600, sample_interval=None, eq_tolerance=0.0,
                 max_alert_history=1000, monotonic=None):
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self.store = store if store is not None else MetricStore(max_points=DEFAULT_MAX_POINTS, clock=self._clock)
        self.sampler = sampler
        self.max_age = max_age
        self.events = EventBus()
        self.alerts = AlertEngine(clock=self._clock, eq_tolerance=eq_tolerance,
                                  max_history=max_alert_history)
        self.timers = TimerRegistry(clock=self._clock, monotonic=monotonic)
        self.reports = ReportGenerator(self.store)
        self._lock = threading.RLock()
        self._stopped = False

        self.scheduler = None
        if cleanup_interval or (sample_interval and sampler is not None):
            self.scheduler = MonitorScheduler(
                self,
                cleanup_interval=cleanup_interval,
                sample_interval=sample_interval if sampler is not None else None,
            )
            self.scheduler.start()

    @classmethod
    def from_config(cls, config, sampler=None, **kwargs):
        """Build an engine from a loaded config dict (see config.load_config)."""
        retention = config.get("retention", {})
        mon = config.get("monitor", {})
        alerts_cfg = config.get("alerts", {})
        store = MetricStore(max_points=retention.get("max_points", DEFAULT_MAX_POINTS),
                            clock=kwargs.get("clock"))
        return cls(
            store=store,
            sampler=sampler,
            max_age=timedelta(hours=retention.get("max_age_hours", 24)),
            cleanup_interval=retention.get("cleanup_interval", 3600),
            sample_interval=mon.get("sample_interval"),
            eq_tolerance=alerts_cfg.get("eq_tolerance", 0.0),
            max_alert_history=alerts_cfg.get("max_history", 1000),
            **kwargs,
        )

    # ── Recording ──────────────────────────────────────

    def record(self, name, value, tags=None, unit=None):
        """Store a point, publish it and evaluate the alert rules bound to its name."""
        with self._lock:
            point = self.store.append(name, value, tags, unit)
            self.events.publish(MetricEvent(point))
            for event in self.alerts.evaluate(point):
                self.events.publish(event)
        return point

    def start_timer(self, label, tags=None):
        self.timers.start(label, tags)

    def end_timer(self, label, metric_name=None):
        """Stop a timer and return elapsed milliseconds, recording it when metric_name is given."""
        duration, timer = self.timers.stop(label)
        if metric_name:
            self.record(metric_name, duration, timer.tags, "ms")
        return duration

    @contextmanager
    def timed(self, label, metric_name=None, tags=None):
        self.start_timer(label, tags)
        try:
            yield
        finally:
            self.end_timer(label, metric_name)

    def active_timers(self):
        """Labels of the timers currently running, sorted."""
        return self.timers.active()

    def record_system_metrics(self, sampler=None):
        sampler = sampler or self.sampler
        if sampler is None:
            raise ValueError("No system sampler configured")
        sample = SystemSample(cpu=sampler.cpu(), memory=sampler.memory(), heap=sampler.heap())
        self.record(MetricName.SYSTEM_CPU.value, sample.cpu, {}, "ms")
        self.record(MetricName.SYSTEM_MEMORY.value, sample.memory, {}, "MB")
        self.record(MetricName.SYSTEM_HEAP.value, sample.heap, {}, "MB")
        return sample

    def record_request_metrics(self, r):
        tags = {"method": r.method, "endpoint": r.endpoint, "status": str(r.status)}
        self.record(MetricName.REQUEST_DURATION.value, r.duration, tags, "ms")
        self.record(MetricName.REQUEST_COUNT.value, 1, tags)

    def record_agent_metrics(self, r):
        tags = {
            "agent_id": r.agent_id,
            "provider": r.provider,
            "operation": r.operation,
            "success": str(r.success).lower(),
        }
        if r.error_type:
            tags["error_type"] = r.error_type

        self.record(MetricName.AGENT_DURATION.value, r.duration, tags, "ms")
        self.record(MetricName.AGENT_REQUESTS.value, 1, tags)
        if r.tokens_used is not None:
            self.record(MetricName.AGENT_TOKENS.value, r.tokens_used, tags)
        if r.cost is not None:
            self.record(MetricName.AGENT_COST.value, r.cost, tags, "USD")

    def record_cache_metrics(self, r):
        self.record(MetricName.CACHE_HITS.value, r.hits)
        self.record(MetricName.CACHE_MISSES.value, r.misses)
        self.record(MetricName.CACHE_HIT_RATE.value, r.hit_rate, {}, "percent")
        self.record(MetricName.CACHE_SIZE.value, r.size)
        self.record(MetricName.CACHE_EVICTIONS.value, r.evictions)

    # ── Queries ────────────────────────────────────────

    def query(self, name, start=None, end=None, tags=None, limit=None):
        return self.store.query(name, start, end, tags, limit)

    def stats(self, name, start=None, end=None):
        return compute_stats(self.store.query(name, start, end).values())

    def generate_report(self, start, end):
        return self.reports.generate(start, end)

    # ── Alerts ─────────────────────────────────────────

    def add_rule(self, rule):
        with self._lock:
            self.alerts.add_rule(rule)

    def remove_rule(self, rule_id):
        with self._lock:
            return self.alerts.remove_rule(rule_id)

    def get_rule(self, rule_id):
        return self.alerts.get_rule(rule_id)

    def active_alerts(self):
        return self.alerts.get_active_alerts()

    def alert_history(self, limit=None):
        return self.alerts.get_history(limit)

    # ── Events ─────────────────────────────────────────

    def on(self, kind, handler):
        return self.events.on(EventKind(kind), handler)

    def off(self, kind, handler):
        self.events.off(EventKind(kind), handler)

    # ── Lifecycle ──────────────────────────────────────

    def cleanup(self, older_than=None):
        """Apply retention: drop points older than max_age (or older_than)."""
        cutoff = older_than or (self._clock() - self.max_age)
        return self.store.cleanup(cutoff)

    @property
    def stopped(self):
        return self._stopped

    def stop(self):
        """Cancel background jobs and drop subscribers. Idempotent."""
        if self._stopped:
            return
        self._stopped = True
        if self.scheduler is not None:
            self.scheduler.stop()
        self.events.clear()
        logger.debug("Performance monitor stopped")
