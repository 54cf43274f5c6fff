"""Dataclasses for alert rules, actions and alert records."""
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from models.enums import Condition


@dataclass
class AlertAction:
    type: str = "log"
    config: dict = field(default_factory=dict)


@dataclass
class AlertRule:
    id: str = ""
    name: str = ""
    metric: str = ""
    condition: Condition = Condition.GT
    threshold: float = 0.0
    window: int = 60  # seconds, reserved for rate-based conditions
    enabled: bool = True
    actions: list = field(default_factory=list)
    description: str = ""


@dataclass
class Alert:
    id: str = ""
    rule_id: str = ""
    rule_name: str = ""
    metric: str = ""
    value: float = 0.0
    threshold: float = 0.0
    condition: Condition = Condition.GT
    triggered_at: Optional[datetime] = None
    resolved: bool = False
    resolved_at: Optional[datetime] = None

    def to_dict(self):
        return {
            "id": self.id,
            "rule_id": self.rule_id,
            "rule_name": self.rule_name,
            "metric": self.metric,
            "value": self.value,
            "threshold": self.threshold,
            "condition": self.condition.value,
            "triggered_at": self.triggered_at.isoformat() if self.triggered_at else None,
            "resolved": self.resolved,
            "resolved_at": self.resolved_at.isoformat() if self.resolved_at else None,
        }
