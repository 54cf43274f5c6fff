"""Alert notification channels and the rule-action dispatcher."""
import json
import logging
import queue
import threading
from typing import Protocol, runtime_checkable

from models.enums import EventKind

logger = logging.getLogger("perfmon.alerts.channels")

_SYMBOLS = {"gt": ">", "gte": ">=", "lt": "<", "lte": "<=", "eq": "=="}


def describe(alert):
    """One-line human description of an alert."""
    op = _SYMBOLS.get(alert.condition.value, alert.condition.value)
    state = "resolved" if alert.resolved else "triggered"
    return f"{alert.rule_name} {state}: {alert.metric} = {alert.value:g} {op} {alert.threshold:g}"


@runtime_checkable
class AlertChannel(Protocol):
    def send(self, alert) -> None: ...


class LogChannel:
    """Write alerts to the perfmon logger."""

    def __init__(self, name="perfmon.alerts"):
        self._logger = logging.getLogger(name)

    def send(self, alert):
        if alert.resolved:
            self._logger.info(f"Alert {describe(alert)}")
        else:
            self._logger.warning(f"Alert {describe(alert)}")


class ConsoleChannel:
    """Print alerts to terminal with rich formatting."""

    def __init__(self, console=None):
        self._console = console

    def send(self, alert):
        from rich.console import Console
        console = self._console or Console()
        style = "bold green" if alert.resolved else "bold white on red"
        tag = "RESOLVED" if alert.resolved else "ALERT"
        console.print(f"[{style}] [{tag}] {describe(alert)}[/]")


class FileChannel:
    """Append alerts to a JSON lines log file.

    With ``background=True`` entries are queued and written by a daemon
    thread, so ``send`` returns without touching the disk. ``close`` drains
    the queue and stops the writer.
    """

    def __init__(self, log_path="data/alerts.jsonl", background=False):
        self.log_path = log_path
        self._queue = None
        self._thread = None
        if background:
            self._queue = queue.Queue()
            self._thread = threading.Thread(
                target=self._drain, daemon=True, name="perfmon-alert-file",
            )
            self._thread.start()

    def send(self, alert):
        entry = alert.to_dict()
        entry["message"] = describe(alert)
        if self._queue is not None:
            self._queue.put(entry)
        else:
            self._write(entry)

    def _write(self, entry):
        try:
            with open(self.log_path, "a") as f:
                f.write(json.dumps(entry) + "\n")
        except OSError as e:
            logger.warning(f"Failed to write alert to file: {e}")

    def _drain(self):
        while True:
            entry = self._queue.get()
            try:
                if entry is None:
                    return
                self._write(entry)
            finally:
                self._queue.task_done()

    def flush(self):
        """Block until every queued entry is written."""
        if self._queue is not None:
            self._queue.join()

    def close(self):
        if self._thread is not None and self._thread.is_alive():
            self._queue.put(None)
            self._thread.join()


class ActionDispatcher:
    """Route each triggered alert to the channels named by its rule's actions.

    Handlers run inside ``PerformanceMonitor.record``'s critical section, so
    a slow channel stalls every writer. Pass ``background_files=True`` to
    move file writes onto writer threads.

    Action types without a registered channel (e.g. webhook, email) are
    skipped; their delivery lives outside this package.
    """

    def __init__(self, monitor, channels=None, notify_resolved=False, background_files=False):
        self.monitor = monitor
        self.channels = channels if channels is not None else {
            "log": LogChannel(),
            "console": ConsoleChannel(),
        }
        self.notify_resolved = notify_resolved
        self.background_files = background_files
        self._file_channels = {}
        self._attached = False

    def attach(self):
        if self._attached:
            return self
        self.monitor.on(EventKind.ALERT, self._on_event)
        if self.notify_resolved:
            self.monitor.on(EventKind.ALERT_RESOLVED, self._on_event)
        self._attached = True
        return self

    def detach(self):
        if not self._attached:
            return
        self.monitor.off(EventKind.ALERT, self._on_event)
        self.monitor.off(EventKind.ALERT_RESOLVED, self._on_event)
        self._attached = False

    def _channel_for(self, action):
        if action.type == "file" and action.config.get("path"):
            path = action.config["path"]
            if path not in self._file_channels:
                self._file_channels[path] = FileChannel(path, background=self.background_files)
            return self._file_channels[path]
        return self.channels.get(action.type)

    def _on_event(self, event):
        self.dispatch(event.alert)

    def dispatch(self, alert):
        """Send alert to every channel its rule asks for. Returns the number of deliveries."""
        rule = self.monitor.get_rule(alert.rule_id)
        if rule is None:
            return 0
        sent = 0
        for action in rule.actions:
            channel = self._channel_for(action)
            if channel is None:
                logger.debug(f"No channel for action type {action.type!r} on rule {rule.id}")
                continue
            try:
                channel.send(alert)
                sent += 1
            except Exception as e:
                logger.warning(f"Channel dispatch error: {e}")
        return sent

    def close(self):
        """Detach and stop any background file writers, flushing queued alerts."""
        self.detach()
        for channel in list(self.channels.values()) + list(self._file_channels.values()):
            if isinstance(channel, FileChannel):
                channel.close()
