from __future__ import annotations

import math
from typing import Iterable, Sequence

import numpy as np
import pandas as pd

from vuload.errors import EmptySeriesError
from vuload.metrics.models import (
    AggregateResult,
    CounterResult,
    EndpointStats,
    MetricKind,
    MetricSeries,
    RateResult,
    TrendResult,
)

DEFAULT_PERCENTILES: tuple[float, ...] = (90.0, 95.0, 99.0)


def percentile(sorted_values: Sequence[float] | np.ndarray, p: float) -> float:
    """Nearest-rank percentile over an already sorted, non-empty sequence.

    The selected index is ``ceil(p / 100 * n) - 1`` clamped to ``[0, n - 1]``,
    so ``p(0)`` is the minimum and ``p(100)`` the maximum.
    """
    if not 0.0 <= p <= 100.0:
        msg = f"Percentile must be within [0, 100], got {p}"
        raise ValueError(msg)
    n = len(sorted_values)
    if n == 0:
        msg = "Cannot take a percentile of an empty sequence"
        raise ValueError(msg)
    # p * n / 100 keeps whole-number products exact (0.95 * 100 is not 95).
    idx = math.ceil(p * n / 100.0) - 1
    idx = min(max(idx, 0), n - 1)
    return float(sorted_values[idx])


def aggregate(
    series: MetricSeries,
    percentiles: Iterable[float] = DEFAULT_PERCENTILES,
) -> AggregateResult:
    if series.kind is MetricKind.TREND:
        return aggregate_trend(series, percentiles)
    if series.kind is MetricKind.RATE:
        return aggregate_rate(series)
    return aggregate_counter(series)


def aggregate_trend(
    series: MetricSeries,
    percentiles: Iterable[float] = DEFAULT_PERCENTILES,
) -> TrendResult:
    if not series.observations:
        raise EmptySeriesError(series.name)
    values = np.sort(np.asarray(series.values(), dtype=np.float64))
    return TrendResult(
        count=int(values.size),
        min=float(values[0]),
        max=float(values[-1]),
        mean=_mean(values),
        median=percentile(values, 50.0),
        percentiles={float(p): percentile(values, p) for p in sorted(set(percentiles))},
    )


def aggregate_rate(series: MetricSeries) -> RateResult:
    if not series.observations:
        raise EmptySeriesError(series.name)
    passes = sum(1 for o in series.observations if o.value)
    count = len(series.observations)
    return RateResult(count=count, passes=passes, rate=passes / count)


def aggregate_counter(series: MetricSeries) -> CounterResult:
    total = math.fsum(float(o.value) for o in series.observations)
    if total.is_integer():
        total = int(total)
    return CounterResult(count=len(series.observations), total=total)


def endpoint_breakdown(series: MetricSeries) -> tuple[EndpointStats, ...]:
    frame = pd.DataFrame(
        [
            {"endpoint": o.endpoint, "value": float(o.value)}
            for o in series.observations
            if o.endpoint is not None
        ],
        columns=["endpoint", "value"],
    )
    if frame.empty:
        return ()
    stats: list[EndpointStats] = []
    for endpoint, group in frame.groupby("endpoint", sort=True):
        values = np.sort(group["value"].to_numpy(dtype=np.float64))
        stats.append(
            EndpointStats(
                endpoint=str(endpoint),
                count=int(values.size),
                mean=_mean(values),
                median=percentile(values, 50.0),
                p95=percentile(values, 95.0),
                max=float(values[-1]),
            )
        )
    return tuple(stats)


def _mean(sorted_values: np.ndarray) -> float:
    mean = math.fsum(sorted_values.tolist()) / sorted_values.size
    # Rounding can push the mean of identical values one ulp past them.
    return min(max(mean, float(sorted_values[0])), float(sorted_values[-1]))
