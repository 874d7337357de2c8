from __future__ import annotations

from vuload.config.loader import load_config, parse_duration, parse_thresholds
from vuload.config.models import DEFAULT_THRESHOLDS, RunConfig, TargetConfig

__all__ = [
    "DEFAULT_THRESHOLDS",
    "RunConfig",
    "TargetConfig",
    "load_config",
    "parse_duration",
    "parse_thresholds",
]
