"""Terminal rendering of metrics, reports and alerts."""
