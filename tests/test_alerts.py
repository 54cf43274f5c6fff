"""Tests for alert engine, rules manager, channels and action dispatch."""
import json
import math
import pytest
import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from models.alerts import Alert, AlertAction, AlertRule
from models.enums import Condition, EventKind
from models.events import AlertEvent, AlertResolvedEvent
from models.metrics import MetricPoint
from alerts.engine import AlertEngine
from alerts.rules_manager import RulesManager, DEFAULT_RULES_PATH
from alerts.channels import ActionDispatcher, FileChannel, describe
from monitor.errors import InvalidRule


def _point(value, name="response.time"):
    return MetricPoint(name=name, value=float(value))


# ── Rule validation ─────────────────────────────────────

def test_add_rule_coerces_condition(make_rule):
    engine = AlertEngine()
    engine.add_rule(make_rule(condition="gte", threshold=5))
    rule = engine.get_rule("test-alert")
    assert rule.condition is Condition.GTE
    assert isinstance(rule.threshold, float)


@pytest.mark.parametrize("overrides", [
    {"id": ""},
    {"metric": ""},
    {"condition": "between"},
    {"threshold": math.nan},
    {"threshold": math.inf},
    {"threshold": "100"},
    {"threshold": None},
])
def test_invalid_rules(make_rule, overrides):
    engine = AlertEngine()
    with pytest.raises(InvalidRule):
        engine.add_rule(make_rule(**overrides))
    assert engine.get_all_rules() == []


def test_duplicate_rule_id(make_rule):
    engine = AlertEngine()
    engine.add_rule(make_rule())
    with pytest.raises(InvalidRule, match="Duplicate"):
        engine.add_rule(make_rule(threshold=5))
    assert engine.get_rule("test-alert").threshold == 1000


def test_name_defaults_to_id():
    engine = AlertEngine()
    engine.add_rule(AlertRule(id="r1", metric="m", condition="gt", threshold=1))
    assert engine.get_rule("r1").name == "r1"


# ── State machine ───────────────────────────────────────

def test_trigger_once_per_breach(make_rule):
    engine = AlertEngine()
    engine.add_rule(make_rule())

    events = engine.evaluate(_point(1500))
    assert len(events) == 1
    assert isinstance(events[0], AlertEvent)
    assert events[0].alert.value == 1500
    assert events[0].alert.threshold == 1000
    assert events[0].alert.rule_id == "test-alert"

    assert engine.evaluate(_point(1600)) == []
    assert len(engine.get_active_alerts()) == 1


def test_resolve(make_rule):
    engine = AlertEngine()
    engine.add_rule(make_rule())
    engine.evaluate(_point(1500))

    events = engine.evaluate(_point(500))
    assert len(events) == 1
    assert isinstance(events[0], AlertResolvedEvent)
    assert events[0].alert.resolved is True
    assert events[0].alert.resolved_at is not None
    assert engine.get_active_alerts() == []

    assert engine.evaluate(_point(400)) == []


def test_retrigger_after_resolution(make_rule):
    engine = AlertEngine()
    engine.add_rule(make_rule())
    first = engine.evaluate(_point(1500))[0].alert
    engine.evaluate(_point(500))
    second = engine.evaluate(_point(2000))[0].alert
    assert first.id != second.id
    history = engine.get_history()
    assert [a.id for a in history] == [second.id, first.id]
    assert history[1].resolved is True
    assert history[0].resolved is False


def test_trigger_payload_not_mutated_by_resolution(make_rule):
    engine = AlertEngine()
    engine.add_rule(make_rule())
    triggered = engine.evaluate(_point(1500))[0].alert
    engine.evaluate(_point(500))
    assert triggered.resolved is False


def test_other_metrics_ignored(make_rule):
    engine = AlertEngine()
    engine.add_rule(make_rule())
    assert engine.evaluate(_point(5000, name="other.metric")) == []


def test_disabled_rule_ignored(make_rule):
    engine = AlertEngine()
    engine.add_rule(make_rule(enabled=False))
    assert engine.evaluate(_point(5000)) == []
    engine.enable_rule("test-alert")
    assert len(engine.evaluate(_point(5000))) == 1
    assert engine.disable_rule("test-alert") is True
    assert engine.disable_rule("nope") is False


@pytest.mark.parametrize("condition,threshold,value,expected", [
    ("gt", 100, 150, True), ("gt", 100, 100, False),
    ("gte", 100, 100, True), ("gte", 100, 99, False),
    ("lt", 100, 50, True), ("lt", 100, 100, False),
    ("lte", 100, 100, True), ("lte", 100, 101, False),
    ("eq", 100, 100, True), ("eq", 100, 100.0001, False),
])
def test_all_conditions(make_rule, condition, threshold, value, expected):
    engine = AlertEngine()
    engine.add_rule(make_rule(condition=condition, threshold=threshold))
    assert (len(engine.evaluate(_point(value))) == 1) == expected


def test_eq_tolerance(make_rule):
    engine = AlertEngine(eq_tolerance=0.01)
    engine.add_rule(make_rule(condition="eq", threshold=0.3))
    assert len(engine.evaluate(_point(0.1 + 0.2))) == 1


def test_multiple_rules_same_metric(make_rule):
    engine = AlertEngine()
    engine.add_rule(make_rule(id="warn", threshold=1000))
    engine.add_rule(make_rule(id="crit", threshold=5000))
    assert {e.alert.rule_id for e in engine.evaluate(_point(2000))} == {"warn"}
    assert {e.alert.rule_id for e in engine.evaluate(_point(6000))} == {"crit"}
    assert len(engine.get_active_alerts()) == 2


def test_remove_rule_resolves_quietly(make_rule):
    engine = AlertEngine()
    engine.add_rule(make_rule())
    engine.evaluate(_point(1500))
    assert engine.remove_rule("test-alert") is True
    assert engine.get_active_alerts() == []
    assert engine.get_history()[0].resolved is True
    assert engine.remove_rule("test-alert") is False


def test_history_bounded(make_rule):
    engine = AlertEngine(max_history=2)
    engine.add_rule(make_rule())
    for _ in range(3):
        engine.evaluate(_point(1500))
        engine.evaluate(_point(0))
    assert len(engine.get_history()) == 2
    assert len(engine.get_history(limit=1)) == 1


def test_test_rules_dry_run(make_rule):
    engine = AlertEngine()
    engine.add_rule(make_rule(id="r1", threshold=1000))
    engine.add_rule(make_rule(id="r2", metric="other", threshold=1))
    results = {r["rule_id"]: r for r in engine.test_rules({"response.time": 2000})}
    assert results["r1"]["would_fire"] is True
    assert results["r2"]["would_fire"] is False
    assert results["r2"]["current_value"] is None
    assert engine.get_active_alerts() == []


# ── Rules manager YAML loading ─────────────────────────

def test_rules_manager_skips_invalid(rules_yaml):
    rm = RulesManager(rules_yaml)
    ids = [r.id for r in rm.get_all_rules()]
    assert ids == ["slow", "low_hits"]
    assert [r.id for r in rm.get_enabled_rules()] == ["slow"]
    slow = rm.get_rule("slow")
    assert slow.condition is Condition.GT
    assert slow.actions[0].type == "log"
    assert rm.get_rule("missing") is None


def test_rules_manager_apply(rules_yaml):
    engine = AlertEngine()
    assert RulesManager(rules_yaml).apply(engine) == 2
    # Reapplying hits duplicate ids, which are skipped
    assert RulesManager(rules_yaml).apply(engine) == 0


def test_rules_manager_missing_file(tmp_path):
    rm = RulesManager(tmp_path / "nope.yaml")
    assert rm.get_all_rules() == []


def test_default_rules_yaml_loads():
    rm = RulesManager(DEFAULT_RULES_PATH)
    rules = rm.get_all_rules()
    assert len(rules) > 0
    for rule in rules:
        assert rule.id
        assert rule.condition in set(Condition)
        assert isinstance(rule.threshold, float)
    assert RulesManager(DEFAULT_RULES_PATH).apply(AlertEngine()) == len(rules)


# ── Channels / dispatch ─────────────────────────────────

def _alert(**kwargs):
    base = dict(id="r-1", rule_id="r", rule_name="Slow", metric="request.duration",
                value=1500.0, threshold=1000.0, condition=Condition.GT)
    base.update(kwargs)
    return Alert(**base)


def test_describe():
    assert describe(_alert()) == "Slow triggered: request.duration = 1500 > 1000"
    assert "resolved" in describe(_alert(resolved=True))


def test_file_channel(tmp_path):
    path = tmp_path / "alerts.jsonl"
    FileChannel(log_path=str(path)).send(_alert())
    data = json.loads(path.read_text().splitlines()[0])
    assert data["rule_id"] == "r"
    assert data["condition"] == "gt"
    assert "1500" in data["message"]


def test_file_channel_background_writer(tmp_path):
    path = tmp_path / "alerts.jsonl"
    channel = FileChannel(log_path=str(path), background=True)
    channel.send(_alert())
    channel.send(_alert(id="r-2", resolved=True))
    channel.flush()
    assert len(path.read_text().splitlines()) == 2
    channel.close()
    channel.close()
    assert not channel._thread.is_alive()


class RecordingChannel:
    def __init__(self):
        self.sent = []

    def send(self, alert):
        self.sent.append(alert)


class BrokenChannel:
    def send(self, alert):
        raise RuntimeError("down")


def test_dispatcher_routes_rule_actions(monitor, make_rule):
    log, console = RecordingChannel(), RecordingChannel()
    ActionDispatcher(monitor, {"log": log, "console": console}).attach()
    monitor.add_rule(make_rule(actions=[AlertAction("log"), AlertAction("webhook", {"url": "x"})]))

    monitor.record("response.time", 1500)
    assert len(log.sent) == 1
    assert console.sent == []

    monitor.record("response.time", 10)
    assert len(log.sent) == 1


def test_dispatcher_notify_resolved(monitor, make_rule):
    log = RecordingChannel()
    ActionDispatcher(monitor, {"log": log}, notify_resolved=True).attach()
    monitor.add_rule(make_rule())
    monitor.record("response.time", 1500)
    monitor.record("response.time", 10)
    assert [a.resolved for a in log.sent] == [False, True]


def test_dispatcher_file_action(monitor, make_rule, tmp_path):
    path = tmp_path / "out.jsonl"
    ActionDispatcher(monitor, {}).attach()
    monitor.add_rule(make_rule(actions=[AlertAction("file", {"path": str(path)})]))
    monitor.record("response.time", 1500)
    assert len(path.read_text().splitlines()) == 1


def test_dispatcher_channel_error_isolated(monitor, make_rule):
    log = RecordingChannel()
    ActionDispatcher(monitor, {"console": BrokenChannel(), "log": log}).attach()
    monitor.add_rule(make_rule(actions=[AlertAction("console"), AlertAction("log")]))
    monitor.record("response.time", 1500)
    assert len(log.sent) == 1
    assert len(monitor.active_alerts()) == 1


def test_dispatcher_detach(monitor, make_rule):
    log = RecordingChannel()
    dispatcher = ActionDispatcher(monitor, {"log": log}).attach()
    dispatcher.attach()
    assert monitor.events.handler_count(EventKind.ALERT) == 1
    dispatcher.detach()
    monitor.add_rule(make_rule())
    monitor.record("response.time", 1500)
    assert log.sent == []


def test_dispatcher_background_file_action(monitor, make_rule, tmp_path):
    path = tmp_path / "out.jsonl"
    dispatcher = ActionDispatcher(monitor, {}, background_files=True).attach()
    monitor.add_rule(make_rule(actions=[AlertAction("file", {"path": str(path)})]))
    monitor.record("response.time", 1500)
    dispatcher.close()
    assert monitor.events.handler_count(EventKind.ALERT) == 0
    data = json.loads(path.read_text().splitlines()[0])
    assert data["rule_id"] == "test-alert"
