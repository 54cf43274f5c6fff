"""Metrics recording, aggregation, timers and reporting."""
