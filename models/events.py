"""Typed event payloads published on the event bus."""
from dataclasses import dataclass
from typing import Union

from models.alerts import Alert
from models.enums import EventKind
from models.metrics import MetricPoint


@dataclass(frozen=True)
class MetricEvent:
    point: MetricPoint
    kind: EventKind = EventKind.METRIC


@dataclass(frozen=True)
class AlertEvent:
    alert: Alert
    kind: EventKind = EventKind.ALERT


@dataclass(frozen=True)
class AlertResolvedEvent:
    alert: Alert
    kind: EventKind = EventKind.ALERT_RESOLVED


Event = Union[MetricEvent, AlertEvent, AlertResolvedEvent]
