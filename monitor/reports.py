"""Summary reports composed from stored metrics."""
import logging
from collections import Counter, defaultdict

from models.enums import MetricName
from models.metrics import EndpointUsage, Report, ReportSummary, SystemHealth
from monitor.aggregation import compute_stats

logger = logging.getLogger("perfmon.reports")

TOP_ENDPOINTS = 10


def _is_server_error(status):
    try:
        return int(status) >= 500
    except (TypeError, ValueError):
        return False


class ReportGenerator:
    """Read-only composition of aggregate queries over well-known metric names."""

    def __init__(self, store):
        self.store = store

    def _stats(self, name, start, end):
        return compute_stats(self.store.query(name, start, end).values())

    def _error_rate(self, start, end, total_requests):
        if total_requests <= 0:
            return 0.0
        requests = self.store.query(MetricName.REQUEST_COUNT.value, start, end)
        errors = sum(p.value for p in requests if _is_server_error(p.tags.get("status")))
        return errors / total_requests * 100

    def _top_endpoints(self, start, end):
        durations = defaultdict(list)
        for p in self.store.query(MetricName.REQUEST_DURATION.value, start, end):
            durations[p.tags.get("endpoint", "unknown")].append(p.value)
        usage = [
            EndpointUsage(endpoint=ep, count=len(vals), avg_duration=sum(vals) / len(vals))
            for ep, vals in durations.items()
        ]
        usage.sort(key=lambda u: (-u.count, u.endpoint))
        return usage[:TOP_ENDPOINTS]

    def _errors_by_type(self, start, end):
        counts = Counter()
        for p in self.store.query(MetricName.AGENT_REQUESTS.value, start, end):
            error_type = p.tags.get("error_type")
            if error_type:
                counts[error_type] += 1
        return dict(counts)

    def generate(self, start, end):
        requests = self._stats(MetricName.REQUEST_COUNT.value, start, end)
        summary = ReportSummary(
            total_requests=requests.sum,
            avg_response_time=self._stats(MetricName.REQUEST_DURATION.value, start, end).avg,
            error_rate=self._error_rate(start, end, requests.sum),
            total_agent_calls=self._stats(MetricName.AGENT_REQUESTS.value, start, end).sum,
            total_cost=self._stats(MetricName.AGENT_COST.value, start, end).sum,
        )
        health = SystemHealth(
            avg_cpu=self._stats(MetricName.SYSTEM_CPU.value, start, end).avg,
            avg_memory=self._stats(MetricName.SYSTEM_MEMORY.value, start, end).avg,
            avg_heap=self._stats(MetricName.SYSTEM_HEAP.value, start, end).avg,
        )
        report = Report(
            start=start,
            end=end,
            summary=summary,
            top_endpoints=self._top_endpoints(start, end),
            errors_by_type=self._errors_by_type(start, end),
            system_health=health,
        )
        logger.debug(f"Report {start.isoformat()} .. {end.isoformat()}: {summary.total_requests:g} requests")
        return report
