"""JSON form of a :class:`RunResult`.

``result_from_dict(result_to_dict(r)) == r`` holds for every result the
runner produces: floats are written with ``repr`` precision and percentile
keys (``p(95)``, ``p(99.9)``) parse back to the same floats.
"""

from __future__ import annotations

import json
import re
from datetime import datetime
from typing import Any, Mapping

from vuload.loadgen.result import RunResult
from vuload.loadgen.worker import WorkerReport, WorkerState
from vuload.metrics import (
    AggregateResult,
    CounterResult,
    EndpointStats,
    MetricKind,
    RateResult,
    ThresholdOutcome,
    TrendResult,
)

_PERCENTILE_KEY = re.compile(r"^p\((?P<pct>[0-9.eE+-]+)\)$")


def percentile_key(p: float) -> str:
    text = repr(float(p))
    if text.endswith(".0"):
        text = text[:-2]
    return f"p({text})"


def aggregate_to_dict(result: AggregateResult) -> dict[str, Any]:
    if isinstance(result, TrendResult):
        values: dict[str, Any] = {
            "count": result.count,
            "min": result.min,
            "max": result.max,
            "avg": result.mean,
            "med": result.median,
        }
        for p, value in sorted(result.percentiles.items()):
            values[percentile_key(p)] = value
        return {"type": MetricKind.TREND.value, "values": values}
    if isinstance(result, RateResult):
        return {
            "type": MetricKind.RATE.value,
            "values": {"count": result.count, "passes": result.passes, "rate": result.rate},
        }
    return {
        "type": MetricKind.COUNTER.value,
        "values": {"count": result.count, "total": result.total},
    }


def aggregate_from_dict(data: Mapping[str, Any]) -> AggregateResult:
    kind = MetricKind(data["type"])
    values = data["values"]
    if kind is MetricKind.TREND:
        percentiles: dict[float, float] = {}
        for key, value in values.items():
            match = _PERCENTILE_KEY.match(key)
            if match:
                percentiles[float(match.group("pct"))] = value
        return TrendResult(
            count=values["count"],
            min=values["min"],
            max=values["max"],
            mean=values["avg"],
            median=values["med"],
            percentiles=percentiles,
        )
    if kind is MetricKind.RATE:
        return RateResult(count=values["count"], passes=values["passes"], rate=values["rate"])
    return CounterResult(count=values["count"], total=values["total"])


def result_to_dict(result: RunResult) -> dict[str, Any]:
    return {
        "run_id": result.run_id,
        "started_at": result.started_at.isoformat(),
        "state": {
            "duration_sec": result.duration_sec,
            "timed_out": result.timed_out,
            "max_concurrent_workers": result.max_concurrent_workers,
            "configured_iterations": result.configured_iterations,
            "completed_iterations": result.completed_iterations,
            "total_requests": result.total_requests,
            "throughput_rps": result.throughput_rps,
            "passed": result.passed,
        },
        "metrics": {name: aggregate_to_dict(agg) for name, agg in sorted(result.metrics.items())},
        "metric_errors": dict(result.metric_errors),
        "workers": [
            {
                "worker_id": w.worker_id,
                "state": w.state.value,
                "completed_iterations": w.completed_iterations,
            }
            for w in result.workers
        ],
        "endpoints": [
            {
                "endpoint": e.endpoint,
                "count": e.count,
                "mean": e.mean,
                "median": e.median,
                "p95": e.p95,
                "max": e.max,
            }
            for e in result.endpoints
        ],
        "thresholds": [
            {
                "metric": t.metric,
                "expression": t.expression,
                "passed": t.passed,
                "observed": t.observed,
                "reason": t.reason,
            }
            for t in result.thresholds
        ],
        "config": dict(result.config),
    }


def result_from_dict(data: Mapping[str, Any]) -> RunResult:
    state = data["state"]
    return RunResult(
        run_id=data["run_id"],
        started_at=datetime.fromisoformat(data["started_at"]),
        duration_sec=state["duration_sec"],
        max_concurrent_workers=state["max_concurrent_workers"],
        configured_iterations=state["configured_iterations"],
        timed_out=state["timed_out"],
        workers=tuple(
            WorkerReport(
                worker_id=w["worker_id"],
                state=WorkerState(w["state"]),
                completed_iterations=w["completed_iterations"],
            )
            for w in data.get("workers", [])
        ),
        metrics={name: aggregate_from_dict(agg) for name, agg in data.get("metrics", {}).items()},
        metric_errors=dict(data.get("metric_errors", {})),
        endpoints=tuple(EndpointStats(**e) for e in data.get("endpoints", [])),
        thresholds=tuple(ThresholdOutcome(**t) for t in data.get("thresholds", [])),
        config=dict(data.get("config", {})),
    )


def dumps(result: RunResult, indent: int | None = 2) -> str:
    return json.dumps(result_to_dict(result), indent=indent)


def loads(text: str) -> RunResult:
    return result_from_dict(json.loads(text))
