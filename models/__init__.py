"""Data models."""
from models.enums import Condition, AggregationType, EventKind, MetricName
from models.metrics import (
    MetricPoint, Stats, Report, ReportSummary, SystemHealth, EndpointUsage,
    SystemSample, RequestMetricInput, AgentMetricInput, CacheMetricInput,
)
from models.alerts import AlertAction, AlertRule, Alert
from models.events import MetricEvent, AlertEvent, AlertResolvedEvent
