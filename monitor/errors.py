"""Errors raised by the metrics engine."""


class MonitorError(Exception):
    """Base class for metrics engine errors."""


class InvalidMetric(MonitorError):
    """Metric name is empty or value is not a finite number."""
    def __init__(self, message, name=None, value=None):
        super().__init__(message)
        self.name = name
        self.value = value


class TimerNotFound(MonitorError):
    def __init__(self, label):
        super().__init__(f"Timer {label} not found")
        self.label = label


class DuplicateTimer(MonitorError):
    def __init__(self, label):
        super().__init__(f"Timer {label} already running")
        self.label = label


class InvalidRule(MonitorError):
    """Alert rule failed validation."""
    def __init__(self, message, rule_id=None):
        super().__init__(message)
        self.rule_id = rule_id
