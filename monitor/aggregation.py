"""Aggregate statistics over metric values."""
import math

from models.enums import AggregationType
from models.metrics import Stats


def percentile(sorted_values, p):
    """Nearest-rank percentile of an ascending list; p is 0-100."""
    n = len(sorted_values)
    if n == 0:
        return 0.0
    # p * n / 100 keeps whole-number ranks exact (0.95 * 20 is not)
    idx = math.ceil(p * n / 100) - 1
    idx = min(max(idx, 0), n - 1)
    return sorted_values[idx]


def compute_stats(values):
    """Compute count/sum/avg/min/max/p95/p99. Empty input gives all zeros."""
    values = list(values)
    if not values:
        return Stats()
    ordered = sorted(values)
    total = math.fsum(ordered)
    count = len(ordered)
    return Stats(
        count=count,
        sum=total,
        avg=total / count,
        min=ordered[0],
        max=ordered[-1],
        p95=percentile(ordered, 95),
        p99=percentile(ordered, 99),
    )


def aggregate(values, aggregation):
    """Reduce values with a single aggregation; empty input gives 0."""
    aggregation = AggregationType(aggregation)
    values = list(values)
    if not values:
        return 0.0

    if aggregation == AggregationType.COUNT:
        return len(values)
    if aggregation == AggregationType.SUM:
        return math.fsum(values)
    if aggregation == AggregationType.AVERAGE:
        return math.fsum(values) / len(values)
    if aggregation == AggregationType.MIN:
        return min(values)
    if aggregation == AggregationType.MAX:
        return max(values)
    if aggregation == AggregationType.PERCENTILE_95:
        return percentile(sorted(values), 95)
    return percentile(sorted(values), 99)
