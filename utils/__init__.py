"""Utility modules for perfmon."""
from utils.logger import setup_logging
from utils.formatters import format_duration, format_usd, format_pct, format_megabytes, format_compact, time_ago
