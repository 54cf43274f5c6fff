"""Enums for alert conditions, aggregations, events and well-known metric names."""
from enum import Enum


class Condition(str, Enum):
    GT = "gt"
    GTE = "gte"
    LT = "lt"
    LTE = "lte"
    EQ = "eq"


class AggregationType(str, Enum):
    SUM = "sum"
    AVERAGE = "average"
    MIN = "min"
    MAX = "max"
    COUNT = "count"
    PERCENTILE_95 = "p95"
    PERCENTILE_99 = "p99"


class EventKind(str, Enum):
    METRIC = "metric"
    ALERT = "alert"
    ALERT_RESOLVED = "alertResolved"


class MetricName(str, Enum):
    REQUEST_COUNT = "request.count"
    REQUEST_DURATION = "request.duration"
    AGENT_DURATION = "agent.duration"
    AGENT_REQUESTS = "agent.requests"
    AGENT_TOKENS = "agent.tokens"
    AGENT_COST = "agent.cost"
    CACHE_HITS = "cache.hits"
    CACHE_MISSES = "cache.misses"
    CACHE_HIT_RATE = "cache.hit_rate"
    CACHE_SIZE = "cache.size"
    CACHE_EVICTIONS = "cache.evictions"
    SYSTEM_CPU = "system.cpu"
    SYSTEM_MEMORY = "system.memory"
    SYSTEM_HEAP = "system.heap"
