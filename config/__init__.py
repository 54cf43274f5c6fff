"""Configuration management."""
import os
import yaml
from pathlib import Path

_DEFAULT_CONFIG = Path(__file__).parent / "default_config.yaml"

ENV_OVERRIDES = {
    "PERFMON_LOG_LEVEL": ("logging", "level"),
    "PERFMON_RETENTION_HOURS": ("retention", "max_age_hours"),
    "PERFMON_CLEANUP_INTERVAL": ("retention", "cleanup_interval"),
    "PERFMON_MAX_POINTS": ("retention", "max_points"),
    "PERFMON_SAMPLE_INTERVAL": ("monitor", "sample_interval"),
}


def load_config(path=None):
    """Load config from YAML, merging defaults with optional overrides."""
    with open(_DEFAULT_CONFIG) as f:
        config = yaml.safe_load(f)

    if path and Path(path).exists():
        with open(path) as f:
            overrides = yaml.safe_load(f) or {}
        config = _deep_merge(config, overrides)

    for env_key, config_path in ENV_OVERRIDES.items():
        val = os.environ.get(env_key)
        if val:
            d = config
            for k in config_path[:-1]:
                d = d.setdefault(k, {})
            try:
                d[config_path[-1]] = int(val)
            except ValueError:
                d[config_path[-1]] = val

    _validate_config(config)
    return config


def _deep_merge(base, override):
    """Recursively merge override into base dict."""
    result = base.copy()
    for key, val in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(val, dict):
            result[key] = _deep_merge(result[key], val)
        else:
            result[key] = val
    return result


def _validate_config(config):
    """Basic config validation."""
    required_sections = ["monitor", "retention", "alerts", "logging"]
    for section in required_sections:
        if section not in config:
            raise ValueError(f"Missing required config section: {section}")

    retention = config["retention"]
    if retention.get("max_points", 1) < 1:
        raise ValueError("retention.max_points must be >= 1")
    if retention.get("max_age_hours", 1) <= 0:
        raise ValueError("retention.max_age_hours must be > 0")
    interval = config["monitor"].get("sample_interval")
    if interval is not None and interval < 1:
        raise ValueError("monitor.sample_interval must be >= 1 second")
