from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Mapping, Union

RESPONSE_TIME = "response_time"
REQUESTS = "requests"
SUCCESS_RATE = "success_rate"
ERROR_COUNTER = "error_counter"
ITERATIONS = "iterations"


class MetricKind(str, Enum):
    TREND = "trend"
    RATE = "rate"
    COUNTER = "counter"


BUILTIN_METRICS: Mapping[str, MetricKind] = {
    RESPONSE_TIME: MetricKind.TREND,
    REQUESTS: MetricKind.COUNTER,
    SUCCESS_RATE: MetricKind.RATE,
    ERROR_COUNTER: MetricKind.COUNTER,
    ITERATIONS: MetricKind.COUNTER,
}


class ErrorType(str, Enum):
    TIMEOUT = "timeout"
    CONNECT = "connect"
    READ = "read"
    OTHER = "other"


@dataclass(frozen=True, slots=True)
class Observation:
    metric: str
    value: float | bool
    endpoint: str | None = None


@dataclass(frozen=True, slots=True)
class MetricSeries:
    name: str
    kind: MetricKind
    observations: tuple[Observation, ...] = ()

    def __len__(self) -> int:
        return len(self.observations)

    def values(self) -> list[float]:
        return [float(o.value) for o in self.observations]


@dataclass(frozen=True, slots=True)
class TrendResult:
    count: int
    min: float
    max: float
    mean: float
    median: float
    percentiles: Mapping[float, float] = field(default_factory=dict)

    kind = MetricKind.TREND

    def percentile(self, p: float) -> float:
        try:
            return self.percentiles[float(p)]
        except KeyError:
            msg = f"p({p:g}) was not computed for this series"
            raise KeyError(msg) from None


@dataclass(frozen=True, slots=True)
class RateResult:
    count: int
    passes: int
    rate: float

    kind = MetricKind.RATE


@dataclass(frozen=True, slots=True)
class CounterResult:
    count: int
    total: float

    kind = MetricKind.COUNTER


AggregateResult = Union[TrendResult, RateResult, CounterResult]


@dataclass(frozen=True, slots=True)
class EndpointStats:
    endpoint: str
    count: int
    mean: float
    median: float
    p95: float
    max: float
