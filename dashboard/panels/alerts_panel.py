"""Alerts status panel."""
from rich.panel import Panel
from rich.table import Table

from utils.formatters import time_ago


class AlertsPanel:
    @staticmethod
    def render(active_alerts=None, history=None):
        table = Table(show_header=False, box=None, padding=(0, 1))
        table.add_column("info")

        if not active_alerts:
            table.add_row("[green]ALL CLEAR[/green] - No active alerts")
        else:
            table.add_row(f"[bold red]!!! {len(active_alerts)} ACTIVE[/bold red]")
            for alert in active_alerts[:5]:
                table.add_row(
                    f"[red]{alert.rule_name}[/red] {alert.metric}={alert.value:g} "
                    f"[dim]{time_ago(alert.triggered_at)}[/dim]"
                )

        resolved = [a for a in (history or []) if a.resolved]
        if resolved:
            table.add_row(f"[dim]{len(resolved)} resolved[/dim]")
            for alert in resolved[:3]:
                table.add_row(f"[green]✓ {alert.rule_name}[/green] [dim]{time_ago(alert.resolved_at)}[/dim]")

        return Panel(table, title="[bold yellow]Alerts[/bold yellow]", border_style="yellow")
