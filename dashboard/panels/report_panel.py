"""Performance report panel."""
from rich.panel import Panel
from rich.table import Table
from utils.formatters import format_duration, format_usd, format_pct, format_megabytes, format_compact, format_timestamp


class ReportPanel:
    @staticmethod
    def render(report):
        s = report.summary
        h = report.system_health

        table = Table(show_header=False, box=None, padding=(0, 1))
        table.add_column("label", style="dim", width=16)
        table.add_column("value")

        table.add_row("Window", f"{format_timestamp(report.start)} → {format_timestamp(report.end)}")
        table.add_row("Requests", format_compact(s.total_requests))
        table.add_row("Avg Response", format_duration(s.avg_response_time))
        table.add_row("Error Rate", format_pct(s.error_rate, with_color=True))
        table.add_row("Agent Calls", format_compact(s.total_agent_calls))
        table.add_row("Agent Cost", format_usd(s.total_cost))
        table.add_row("Avg CPU", format_duration(h.avg_cpu))
        table.add_row("Avg Memory", format_megabytes(h.avg_memory))
        table.add_row("Avg Heap", format_megabytes(h.avg_heap))

        for ep in report.top_endpoints[:5]:
            table.add_row(f"  {ep.endpoint}", f"{ep.count} req, avg {format_duration(ep.avg_duration)}")

        if report.errors_by_type:
            errs = " | ".join(f"{k}: {v}" for k, v in sorted(report.errors_by_type.items()))
            table.add_row("Agent Errors", f"[red]{errs}[/red]")

        return Panel(table, title="[bold magenta]Performance Report[/bold magenta]", border_style="magenta")
