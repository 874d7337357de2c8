from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Mapping

from vuload.loadgen.worker import WorkerReport
from vuload.metrics import (
    ERROR_COUNTER,
    REQUESTS,
    AggregateResult,
    CounterResult,
    EndpointStats,
    ThresholdOutcome,
)


@dataclass(frozen=True, slots=True)
class RunResult:
    run_id: str
    started_at: datetime
    duration_sec: float
    max_concurrent_workers: int
    configured_iterations: int
    timed_out: bool
    workers: tuple[WorkerReport, ...]
    metrics: Mapping[str, AggregateResult]
    metric_errors: Mapping[str, str] = field(default_factory=dict)
    endpoints: tuple[EndpointStats, ...] = ()
    thresholds: tuple[ThresholdOutcome, ...] = ()
    config: Mapping[str, Any] = field(default_factory=dict)

    @property
    def passed(self) -> bool:
        return all(outcome.passed for outcome in self.thresholds)

    @property
    def failed_thresholds(self) -> list[ThresholdOutcome]:
        return [outcome for outcome in self.thresholds if not outcome.passed]

    @property
    def completed_iterations(self) -> int:
        return sum(w.completed_iterations for w in self.workers)

    @property
    def total_requests(self) -> int:
        return int(self._counter_total(REQUESTS))

    @property
    def error_count(self) -> int:
        return int(self._counter_total(ERROR_COUNTER))

    @property
    def throughput_rps(self) -> float:
        if self.duration_sec <= 0:
            return 0.0
        return self.total_requests / self.duration_sec

    def _counter_total(self, name: str) -> float:
        result = self.metrics.get(name)
        if isinstance(result, CounterResult):
            return result.total
        return 0
