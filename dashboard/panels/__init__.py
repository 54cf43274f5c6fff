"""Dashboard panels."""
from dashboard.panels.stats_panel import StatsPanel
from dashboard.panels.report_panel import ReportPanel
from dashboard.panels.alerts_panel import AlertsPanel
