from __future__ import annotations


class LoadTestError(Exception):
    """Base class for errors raised by vuload."""


class ConfigError(LoadTestError, ValueError):
    """Raised before a run starts when its configuration is invalid."""


class ThresholdSyntaxError(ConfigError):
    pass


class EmptySeriesError(LoadTestError):
    """Raised when a trend or rate series has no observations to aggregate."""

    def __init__(self, metric: str) -> None:
        super().__init__(f"Metric {metric!r} has no observations")
        self.metric = metric


class MetricTypeError(LoadTestError, TypeError):
    pass
