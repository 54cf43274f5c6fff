"""Formatting utilities for display."""
from datetime import datetime, timezone


def format_duration(ms):
    """Format milliseconds: 850 -> '850ms', 1500 -> '1.50s', 95000 -> '1m 35s'."""
    if ms is None:
        return "N/A"
    ms = float(ms)
    if abs(ms) < 1000:
        return f"{ms:.0f}ms"
    seconds = ms / 1000
    if abs(seconds) < 60:
        return f"{seconds:.2f}s"
    minutes, secs = divmod(int(seconds), 60)
    return f"{minutes}m {secs}s"


def format_usd(value):
    """Format USD; sub-cent amounts keep 4 decimals."""
    if value is None:
        return "N/A"
    value = float(value)
    if value != 0 and abs(value) < 0.01:
        return f"${value:,.4f}"
    return f"${value:,.2f}"


def format_pct(value, decimals=1, with_color=False):
    """Format a 0-100 percentage. Optionally include rich color markup."""
    if value is None:
        return "N/A"
    formatted = f"{float(value):.{decimals}f}%"
    if with_color:
        color = "red" if value >= 5 else "green"
        return f"[{color}]{formatted}[/{color}]"
    return formatted


def format_megabytes(mb):
    if mb is None:
        return "N/A"
    mb = float(mb)
    if abs(mb) >= 1024:
        return f"{mb / 1024:.2f} GB"
    return f"{mb:.1f} MB"


def format_compact(n):
    """Format number compactly: 1200000 → '1.2M'."""
    if n is None:
        return "N/A"
    n = float(n)
    if abs(n) >= 1_000_000_000:
        return f"{n / 1_000_000_000:.1f}B"
    elif abs(n) >= 1_000_000:
        return f"{n / 1_000_000:.1f}M"
    elif abs(n) >= 1_000:
        return f"{n / 1_000:.1f}K"
    if n == int(n):
        return str(int(n))
    return f"{n:.2f}"


def format_timestamp(ts):
    """Format a datetime to human-readable string."""
    if ts is None:
        return "N/A"
    if isinstance(ts, str):
        return ts
    return ts.strftime("%Y-%m-%d %H:%M:%S UTC")


def time_ago(dt):
    """Return human-readable time since dt. E.g., '3h ago', '2d ago'."""
    if dt is None:
        return "N/A"
    now = datetime.now(timezone.utc)
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    delta = now - dt
    seconds = int(delta.total_seconds())

    if seconds < 60:
        return f"{seconds}s ago"
    elif seconds < 3600:
        return f"{seconds // 60}m ago"
    elif seconds < 86400:
        return f"{seconds // 3600}h ago"
    else:
        return f"{seconds // 86400}d ago"
