from __future__ import annotations

import threading
from typing import Mapping

from vuload.errors import MetricTypeError
from vuload.metrics.models import MetricKind, MetricSeries, Observation


class SampleStore:
    """Append-only collection of observations, one series per metric name.

    Writers may be asyncio tasks or threads. The lock is held only while a
    list is appended to or copied, never across I/O.
    """

    def __init__(self, declared: Mapping[str, MetricKind] | None = None) -> None:
        self._lock = threading.Lock()
        self._kinds: dict[str, MetricKind] = {}
        self._series: dict[str, list[Observation]] = {}
        for name, kind in (declared or {}).items():
            self.declare(name, kind)

    def declare(self, metric: str, kind: MetricKind) -> None:
        with self._lock:
            self._ensure(metric, kind)

    def record(
        self,
        metric: str,
        value: float | bool,
        kind: MetricKind,
        endpoint: str | None = None,
    ) -> None:
        observation = Observation(metric=metric, value=value, endpoint=endpoint)
        with self._lock:
            self._ensure(metric, kind).append(observation)

    def add_trend(self, metric: str, value: float, endpoint: str | None = None) -> None:
        self.record(metric, float(value), MetricKind.TREND, endpoint)

    def add_rate(self, metric: str, value: bool, endpoint: str | None = None) -> None:
        self.record(metric, bool(value), MetricKind.RATE, endpoint)

    def add_counter(self, metric: str, value: float = 1, endpoint: str | None = None) -> None:
        if value < 0:
            msg = f"Counter {metric!r} cannot be decremented (got {value})"
            raise ValueError(msg)
        self.record(metric, value, MetricKind.COUNTER, endpoint)

    def names(self) -> list[str]:
        with self._lock:
            return list(self._series)

    def snapshot(self, metric: str) -> MetricSeries:
        with self._lock:
            observations = tuple(self._series[metric])
            kind = self._kinds[metric]
        return MetricSeries(name=metric, kind=kind, observations=observations)

    def snapshot_all(self) -> list[MetricSeries]:
        with self._lock:
            copied = [
                (name, self._kinds[name], tuple(observations))
                for name, observations in self._series.items()
            ]
        return [MetricSeries(name=name, kind=kind, observations=obs) for name, kind, obs in copied]

    def _ensure(self, metric: str, kind: MetricKind) -> list[Observation]:
        existing = self._kinds.get(metric)
        if existing is None:
            self._kinds[metric] = kind
            return self._series.setdefault(metric, [])
        if existing is not kind:
            msg = f"Metric {metric!r} is a {existing.value} series, cannot record a {kind.value} value"
            raise MetricTypeError(msg)
        return self._series[metric]
