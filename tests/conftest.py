"""Shared test fixtures."""
import os
import sys
import pytest

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from datetime import datetime, timedelta, timezone
from models.alerts import AlertAction, AlertRule
from monitor.monitor import PerformanceMonitor


class FakeClock:
    """Manually advanced UTC clock."""

    def __init__(self, start=None):
        self.now = start or datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc)

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now = self.now + timedelta(seconds=seconds)
        return self.now


class FakeSampler:
    def __init__(self, cpu=25.0, memory=512.0, heap=256.0):
        self._cpu = cpu
        self._memory = memory
        self._heap = heap

    def cpu(self):
        return self._cpu

    def memory(self):
        return self._memory

    def heap(self):
        return self._heap


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def monitor():
    """Engine without background jobs."""
    m = PerformanceMonitor(cleanup_interval=None)
    yield m
    m.stop()


@pytest.fixture
def clocked_monitor(clock):
    m = PerformanceMonitor(clock=clock, cleanup_interval=None, sampler=FakeSampler())
    yield m
    m.stop()


@pytest.fixture
def make_rule():
    def _make(id="test-alert", metric="response.time", condition="gt", threshold=1000, **kwargs):
        kwargs.setdefault("name", id)
        kwargs.setdefault("actions", [AlertAction(type="log")])
        return AlertRule(id=id, metric=metric, condition=condition, threshold=threshold, **kwargs)
    return _make


@pytest.fixture
def rules_yaml(tmp_path):
    path = tmp_path / "rules.yaml"
    path.write_text(
        "rules:\n"
        "  - id: slow\n"
        "    name: Slow requests\n"
        "    metric: request.duration\n"
        "    condition: gt\n"
        "    threshold: 1000\n"
        "    actions:\n"
        "      - type: log\n"
        "  - id: bad_op\n"
        "    metric: request.duration\n"
        "    condition: between\n"
        "    threshold: 5\n"
        "  - id: no_threshold\n"
        "    metric: cache.hit_rate\n"
        "    condition: lt\n"
        "    threshold: lots\n"
        "  - id: low_hits\n"
        "    metric: cache.hit_rate\n"
        "    condition: lt\n"
        "    threshold: 50\n"
        "    enabled: false\n"
    )
    return path
