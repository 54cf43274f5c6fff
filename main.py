#!/usr/bin/env python3
"""perfmon - CLI Entry Point."""
import sys
import time
from datetime import datetime, timedelta, timezone
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent))

import click
from rich.console import Console
from rich.table import Table

from __version__ import __version__

console = Console()

WATCHED_METRICS = ("system.cpu", "system.memory", "system.heap")


def _resolve_rules_path(path):
    p = Path(path)
    if not p.is_absolute() and not p.exists():
        p = Path(__file__).parent / p
    return p


def _init_components(config_path=None, verbose=False, with_sampler=True):
    """Lazy initialization of all components."""
    from utils.logger import setup_logging
    from config import load_config
    from alerts.rules_manager import RulesManager
    from alerts.channels import ActionDispatcher, ConsoleChannel, FileChannel, LogChannel
    from monitor.monitor import PerformanceMonitor

    config = load_config(config_path)
    log_cfg = config["logging"]
    setup_logging("DEBUG" if verbose else log_cfg.get("level", "INFO"), log_cfg.get("file"))

    sampler = None
    if with_sampler:
        from monitor.sampler import PsutilSampler
        sampler = PsutilSampler()

    monitor = PerformanceMonitor.from_config(config, sampler=sampler)

    rules = RulesManager(_resolve_rules_path(config["alerts"]["rules_path"]))
    rules.apply(monitor)

    channels = {"log": LogChannel(), "console": ConsoleChannel(console)}
    alert_log = config["alerts"].get("file")
    if alert_log:
        channels["file"] = FileChannel(alert_log, background=True)
    dispatcher = ActionDispatcher(
        monitor, channels, notify_resolved=config["alerts"].get("notify_resolved", True),
        background_files=True,
    ).attach()

    return {"config": config, "monitor": monitor, "rules": rules, "dispatcher": dispatcher}


@click.group()
@click.option("--config", "config_path", default=None, help="Path to config YAML")
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
@click.version_option(__version__, prog_name="perfmon")
@click.pass_context
def cli(ctx, config_path, verbose):
    """perfmon - In-process metrics, alert rules & performance reports."""
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config_path
    ctx.obj["verbose"] = verbose


def _get_components(ctx, with_sampler=True):
    if "_components" not in ctx.obj:
        ctx.obj["_components"] = _init_components(
            ctx.obj.get("config_path"), ctx.obj.get("verbose"), with_sampler,
        )
    return ctx.obj["_components"]


def _shutdown(c):
    c["dispatcher"].close()
    c["monitor"].stop()


def _sample(monitor, count, interval):
    for i in range(count):
        monitor.record_system_metrics()
        if i < count - 1:
            time.sleep(interval)


def _render_summary(monitor, start, end):
    from dashboard.panels import StatsPanel, ReportPanel, AlertsPanel

    stats = {name: monitor.stats(name, start, end) for name in monitor.store.names()}
    console.print(StatsPanel.render(stats))
    console.print(ReportPanel.render(monitor.generate_report(start, end)))
    console.print(AlertsPanel.render(monitor.active_alerts(), monitor.alert_history()))


# ──────────────────────────────────────────────────────
# RULES
# ──────────────────────────────────────────────────────
@cli.command()
@click.pass_context
def rules(ctx):
    """List configured alert rules."""
    c = _get_components(ctx, with_sampler=False)
    try:
        all_rules = c["monitor"].alerts.get_all_rules()
        if not all_rules:
            console.print("[dim]No alert rules configured[/dim]")
            return
        table = Table(title="Alert Rules", show_header=True)
        table.add_column("ID", style="dim")
        table.add_column("Name")
        table.add_column("Condition")
        table.add_column("Window")
        table.add_column("Actions")
        table.add_column("Enabled")
        for r in all_rules:
            table.add_row(
                r.id, r.name, f"{r.metric} {r.condition.value} {r.threshold:g}",
                f"{r.window}s", ", ".join(a.type for a in r.actions) or "-",
                "✓" if r.enabled else "✗",
            )
        console.print(table)
    finally:
        _shutdown(c)


# ──────────────────────────────────────────────────────
# WATCH
# ──────────────────────────────────────────────────────
@cli.command()
@click.option("--duration", default=30, type=int, help="Seconds to watch")
@click.option("--interval", default=5, type=float, help="Seconds between samples")
@click.pass_context
def watch(ctx, duration, interval):
    """Sample this process's CPU/memory/heap, alerting as rules fire."""
    if duration <= 0 or interval <= 0:
        raise click.BadParameter("duration and interval must be positive")
    c = _get_components(ctx)
    monitor = c["monitor"]
    start = datetime.now(timezone.utc)
    console.print(f"[bold]Watching for {duration}s (every {interval:g}s)...[/bold]")
    try:
        _sample(monitor, max(1, int(duration // interval)), interval)
    except KeyboardInterrupt:
        console.print("[dim]Interrupted[/dim]")
    finally:
        _render_summary(monitor, start, datetime.now(timezone.utc))
        _shutdown(c)


# ──────────────────────────────────────────────────────
# REPORT
# ──────────────────────────────────────────────────────
@cli.command()
@click.option("--samples", default=3, type=int, help="Number of system samples to take")
@click.option("--interval", default=1.0, type=float, help="Seconds between samples")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.pass_context
def report(ctx, samples, interval, as_json):
    """Take a few samples and print a performance report."""
    if samples < 1:
        raise click.BadParameter("samples must be >= 1")
    c = _get_components(ctx)
    monitor = c["monitor"]
    start = datetime.now(timezone.utc) - timedelta(seconds=1)
    try:
        _sample(monitor, samples, interval)
        end = datetime.now(timezone.utc)
        if as_json:
            import json
            click.echo(json.dumps(monitor.generate_report(start, end).to_dict(), indent=2, default=str))
        else:
            _render_summary(monitor, start, end)
    finally:
        _shutdown(c)


if __name__ == "__main__":
    cli()
