"""Dataclasses for metric points, statistics, reports and recorder inputs."""
from dataclasses import dataclass, field, asdict
from datetime import datetime, timezone
from typing import Optional


def utcnow():
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class MetricPoint:
    name: str
    value: float
    tags: dict = field(default_factory=dict)
    unit: Optional[str] = None
    timestamp: datetime = field(default_factory=utcnow)

    def to_dict(self):
        return {
            "name": self.name,
            "value": self.value,
            "tags": dict(self.tags),
            "unit": self.unit,
            "timestamp": self.timestamp.isoformat(),
        }


@dataclass
class Stats:
    count: int = 0
    sum: float = 0.0
    avg: float = 0.0
    min: float = 0.0
    max: float = 0.0
    p95: float = 0.0
    p99: float = 0.0

    def to_dict(self):
        return asdict(self)


@dataclass
class ReportSummary:
    total_requests: float = 0.0
    avg_response_time: float = 0.0
    error_rate: float = 0.0
    total_agent_calls: float = 0.0
    total_cost: float = 0.0


@dataclass
class SystemHealth:
    avg_cpu: float = 0.0
    avg_memory: float = 0.0
    avg_heap: float = 0.0


@dataclass
class EndpointUsage:
    endpoint: str = ""
    count: int = 0
    avg_duration: float = 0.0


@dataclass
class Report:
    start: datetime = field(default_factory=utcnow)
    end: datetime = field(default_factory=utcnow)
    summary: ReportSummary = field(default_factory=ReportSummary)
    top_endpoints: list = field(default_factory=list)
    errors_by_type: dict = field(default_factory=dict)
    system_health: SystemHealth = field(default_factory=SystemHealth)

    def to_dict(self):
        """Flatten into plain JSON-friendly structures."""
        return {
            "start": self.start.isoformat(),
            "end": self.end.isoformat(),
            "summary": asdict(self.summary),
            "top_endpoints": [asdict(e) for e in self.top_endpoints],
            "errors_by_type": dict(self.errors_by_type),
            "system_health": asdict(self.system_health),
        }


@dataclass
class SystemSample:
    cpu: float = 0.0
    memory: float = 0.0
    heap: float = 0.0


@dataclass
class RequestMetricInput:
    request_id: str
    method: str
    endpoint: str
    duration: float
    status: int
    timestamp: Optional[datetime] = None
    user_agent: Optional[str] = None
    ip: Optional[str] = None


@dataclass
class AgentMetricInput:
    agent_id: str
    provider: str
    operation: str
    duration: float
    success: bool
    tokens_used: Optional[int] = None
    cost: Optional[float] = None
    error_type: Optional[str] = None
    timestamp: Optional[datetime] = None


@dataclass
class CacheMetricInput:
    hits: int
    misses: int
    hit_rate: float
    size: int
    evictions: int
    timestamp: Optional[datetime] = None
