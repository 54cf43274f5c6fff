"""Alert evaluation engine."""
import logging
import math
import numbers
import threading
from collections import deque
from dataclasses import replace
from datetime import datetime, timezone

from models.alerts import Alert
from models.enums import Condition
from models.events import AlertEvent, AlertResolvedEvent
from monitor.errors import InvalidRule

logger = logging.getLogger("perfmon.alerts.engine")

OPERATOR_MAP = {
    Condition.GT: lambda v, t: v > t,
    Condition.GTE: lambda v, t: v >= t,
    Condition.LT: lambda v, t: v < t,
    Condition.LTE: lambda v, t: v <= t,
    Condition.EQ: lambda v, t: v == t,
}

SYMBOLS = {
    Condition.GT: ">",
    Condition.GTE: ">=",
    Condition.LT: "<",
    Condition.LTE: "<=",
    Condition.EQ: "==",
}


class AlertEngine:
    """Holds alert rules and the per-rule Idle -> Triggered -> Idle state machine.

    At most one unresolved alert exists per rule id. Rules are evaluated
    point by point; ``window`` is kept on the rule but not consulted.
    """

    def __init__(self, clock=None, eq_tolerance=0.0, max_history=1000):
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self.eq_tolerance = eq_tolerance
        self._rules = {}
        self._active = {}
        self._history = deque(maxlen=max_history)
        self._seq = 0
        self._lock = threading.RLock()

    # ── Rules ──────────────────────────────────────────

    def _validate(self, rule):
        if not rule.id:
            raise InvalidRule("Alert rule is missing an id")
        if not rule.metric:
            raise InvalidRule(f"Alert rule {rule.id} is missing a metric", rule.id)
        try:
            condition = Condition(rule.condition)
        except ValueError:
            raise InvalidRule(f"Unsupported condition in rule {rule.id}: {rule.condition!r}", rule.id)
        threshold = rule.threshold
        if isinstance(threshold, bool) or not isinstance(threshold, numbers.Real) or not math.isfinite(threshold):
            raise InvalidRule(f"Threshold of rule {rule.id} must be a finite number, got {threshold!r}", rule.id)
        return condition

    def add_rule(self, rule):
        condition = self._validate(rule)
        with self._lock:
            if rule.id in self._rules:
                raise InvalidRule(f"Duplicate alert rule id: {rule.id}", rule.id)
            self._rules[rule.id] = replace(
                rule,
                name=rule.name or rule.id,
                condition=condition,
                threshold=float(rule.threshold),
                actions=list(rule.actions),
            )
        logger.debug(f"Added alert rule {rule.id}: {rule.metric} {SYMBOLS[condition]} {rule.threshold}")

    def remove_rule(self, rule_id):
        """Drop a rule. An active alert for it is resolved quietly into history."""
        with self._lock:
            rule = self._rules.pop(rule_id, None)
            active = self._active.pop(rule_id, None)
            if active is not None:
                self._record_resolution(active)
        return rule is not None

    def get_rule(self, rule_id):
        with self._lock:
            return self._rules.get(rule_id)

    def get_all_rules(self):
        with self._lock:
            return list(self._rules.values())

    def get_enabled_rules(self):
        return [r for r in self.get_all_rules() if r.enabled]

    def _set_enabled(self, rule_id, enabled):
        with self._lock:
            rule = self._rules.get(rule_id)
            if rule is None:
                return False
            self._rules[rule_id] = replace(rule, enabled=enabled)
            return True

    def enable_rule(self, rule_id):
        return self._set_enabled(rule_id, True)

    def disable_rule(self, rule_id):
        return self._set_enabled(rule_id, False)

    # ── Evaluation ─────────────────────────────────────

    def _evaluate_condition(self, value, condition, threshold):
        if condition == Condition.EQ and self.eq_tolerance:
            return math.isclose(value, threshold, rel_tol=0.0, abs_tol=self.eq_tolerance)
        func = OPERATOR_MAP.get(condition)
        if func is None:
            return False
        return func(value, threshold)

    def _next_id(self, rule_id):
        self._seq += 1
        return f"{rule_id}-{self._seq}"

    def _record_resolution(self, active):
        resolved = replace(active, resolved=True, resolved_at=self._clock())
        for i, past in enumerate(self._history):
            if past.id == resolved.id:
                self._history[i] = resolved
                break
        return resolved

    def evaluate(self, point):
        """Evaluate enabled rules bound to point.name and return transition events."""
        events = []
        with self._lock:
            for rule in self._rules.values():
                if not rule.enabled or rule.metric != point.name:
                    continue

                breached = self._evaluate_condition(point.value, rule.condition, rule.threshold)
                active = self._active.get(rule.id)

                if breached and active is None:
                    alert = Alert(
                        id=self._next_id(rule.id),
                        rule_id=rule.id,
                        rule_name=rule.name,
                        metric=point.name,
                        value=point.value,
                        threshold=rule.threshold,
                        condition=rule.condition,
                        triggered_at=self._clock(),
                    )
                    self._active[rule.id] = alert
                    self._history.append(alert)
                    events.append(AlertEvent(alert))
                    logger.info(
                        f"Alert triggered: {rule.name} - {point.name} = {point.value:g} "
                        f"{SYMBOLS[rule.condition]} {rule.threshold:g}"
                    )
                elif not breached and active is not None:
                    del self._active[rule.id]
                    resolved = self._record_resolution(active)
                    events.append(AlertResolvedEvent(resolved))
                    logger.info(f"Alert resolved: {rule.name} - {point.name} = {point.value:g}")
        return events

    def test_rules(self, values):
        """Dry-run every rule against a {metric: latest value} mapping. No state changes."""
        results = []
        for rule in self.get_all_rules():
            value = values.get(rule.metric)
            would_fire = self._evaluate_condition(value, rule.condition, rule.threshold) if value is not None else False
            results.append({
                "rule_id": rule.id,
                "name": rule.name,
                "metric": rule.metric,
                "condition": rule.condition.value,
                "threshold": rule.threshold,
                "current_value": value,
                "would_fire": would_fire,
                "enabled": rule.enabled,
            })
        return results

    # ── Queries ────────────────────────────────────────

    def get_active_alerts(self):
        with self._lock:
            return list(self._active.values())

    def get_history(self, limit=None):
        """Past and current alerts, newest first."""
        with self._lock:
            alerts = list(self._history)[::-1]
        return alerts[:limit] if limit else alerts
