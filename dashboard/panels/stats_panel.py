"""Per-metric statistics table."""
from rich.panel import Panel
from rich.table import Table
from utils.formatters import format_compact


class StatsPanel:
    @staticmethod
    def render(stats_by_name=None):
        if not stats_by_name:
            return Panel("[dim]No metrics recorded yet...[/dim]", title="Metrics", border_style="blue")

        table = Table(show_header=True, box=None, padding=(0, 1))
        table.add_column("Metric", style="dim")
        for col in ("Count", "Avg", "Min", "Max", "p95", "p99"):
            table.add_column(col, justify="right")

        for name, s in sorted(stats_by_name.items()):
            table.add_row(
                name,
                str(s.count),
                format_compact(s.avg),
                format_compact(s.min),
                format_compact(s.max),
                format_compact(s.p95),
                format_compact(s.p99),
            )
        return Panel(table, title="[bold blue]Metrics[/bold blue]", border_style="blue")
