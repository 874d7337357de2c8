from __future__ import annotations

from vuload.metrics.aggregator import (
    DEFAULT_PERCENTILES,
    aggregate,
    endpoint_breakdown,
    percentile,
)
from vuload.metrics.models import (
    BUILTIN_METRICS,
    ERROR_COUNTER,
    ITERATIONS,
    REQUESTS,
    RESPONSE_TIME,
    SUCCESS_RATE,
    AggregateResult,
    CounterResult,
    EndpointStats,
    ErrorType,
    MetricKind,
    MetricSeries,
    Observation,
    RateResult,
    TrendResult,
)
from vuload.metrics.store import SampleStore
from vuload.metrics.thresholds import Threshold, ThresholdOutcome, evaluate

__all__ = [
    "AggregateResult",
    "BUILTIN_METRICS",
    "CounterResult",
    "DEFAULT_PERCENTILES",
    "ERROR_COUNTER",
    "EndpointStats",
    "ErrorType",
    "ITERATIONS",
    "MetricKind",
    "MetricSeries",
    "Observation",
    "REQUESTS",
    "RESPONSE_TIME",
    "RateResult",
    "SUCCESS_RATE",
    "SampleStore",
    "Threshold",
    "ThresholdOutcome",
    "TrendResult",
    "aggregate",
    "endpoint_breakdown",
    "evaluate",
    "percentile",
]
