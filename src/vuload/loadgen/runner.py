from __future__ import annotations

import asyncio
import logging
import random
import time
import uuid
from datetime import datetime, timezone
from typing import Awaitable, Callable

import httpx

from vuload.config import RunConfig
from vuload.errors import EmptySeriesError
from vuload.loadgen.result import RunResult
from vuload.loadgen.worker import VirtualWorker, WorkerReport, WorkerState
from vuload.metrics import (
    BUILTIN_METRICS,
    RESPONSE_TIME,
    AggregateResult,
    EndpointStats,
    SampleStore,
    ThresholdOutcome,
    aggregate,
    endpoint_breakdown,
    evaluate,
)

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int, int], Awaitable[None]]


def _new_run_id() -> str:
    return uuid.uuid4().hex


class _Concurrency:
    def __init__(self) -> None:
        self.active = 0
        self.peak = 0

    def enter(self) -> None:
        self.active += 1
        self.peak = max(self.peak, self.active)

    def exit(self) -> None:
        self.active -= 1


async def run_load_test(
    config: RunConfig,
    *,
    transport: httpx.AsyncBaseTransport | None = None,
    progress: ProgressCallback | None = None,
) -> RunResult:
    config.validate()
    run_id = config.run_id or _new_run_id()
    store = SampleStore(BUILTIN_METRICS)
    started_at = datetime.now(timezone.utc)
    started_mono = time.perf_counter()
    logger.info(
        "Starting run %s: %d workers x %d iterations against %d endpoint(s)",
        run_id,
        config.virtual_workers,
        config.iterations_per_worker,
        len(config.target.endpoints),
    )
    reports, timed_out, peak = await _execute_load(config, store, transport, progress)
    duration_sec = time.perf_counter() - started_mono
    metrics, metric_errors = _aggregate_all(store, config)
    endpoints: tuple[EndpointStats, ...] = ()
    if RESPONSE_TIME in metrics:
        endpoints = endpoint_breakdown(store.snapshot(RESPONSE_TIME))
    outcomes = _evaluate_thresholds(config, metrics)
    result = RunResult(
        run_id=run_id,
        started_at=started_at,
        duration_sec=duration_sec,
        max_concurrent_workers=peak,
        configured_iterations=config.iterations_per_worker,
        timed_out=timed_out,
        workers=tuple(sorted(reports, key=lambda r: r.worker_id)),
        metrics=metrics,
        metric_errors=metric_errors,
        endpoints=endpoints,
        thresholds=outcomes,
        config=dict(config.to_metadata()),
    )
    logger.info(
        "Run %s finished in %.2fs: %d requests, thresholds %s",
        run_id,
        duration_sec,
        result.total_requests,
        "passed" if result.passed else "FAILED",
    )
    return result


async def _execute_load(
    config: RunConfig,
    store: SampleStore,
    transport: httpx.AsyncBaseTransport | None,
    progress: ProgressCallback | None,
) -> tuple[list[WorkerReport], bool, int]:
    stop = asyncio.Event()
    rng = random.Random(config.seed)
    concurrency = _Concurrency()
    completed = 0
    total = config.total_iterations

    async def on_iteration() -> None:
        nonlocal completed
        completed += 1
        if progress is not None:
            await progress(completed, total)

    async with httpx.AsyncClient(
        base_url=config.target.base_url,
        headers=dict(config.target.headers),
        transport=transport,
    ) as client:
        workers = [
            VirtualWorker(
                worker_id=i,
                config=config,
                client=client,
                store=store,
                rng=random.Random(rng.getrandbits(64)),
                stop=stop,
                on_iteration=on_iteration,
            )
            for i in range(config.virtual_workers)
        ]

        async def run_worker(worker: VirtualWorker) -> WorkerReport:
            concurrency.enter()
            try:
                return await worker.run()
            finally:
                concurrency.exit()

        tasks = [asyncio.create_task(run_worker(w)) for w in workers]
        _, pending = await asyncio.wait(tasks, timeout=config.max_duration_sec)
        if pending:
            logger.warning(
                "max duration of %.2fs reached with %d worker(s) still running; stopping",
                config.max_duration_sec,
                len(pending),
            )
            stop.set()
            await asyncio.wait(pending)
        reports = [task.result() for task in tasks]
    timed_out = any(report.state is WorkerState.ABORTED for report in reports)
    return reports, timed_out, concurrency.peak


def _aggregate_all(
    store: SampleStore,
    config: RunConfig,
) -> tuple[dict[str, AggregateResult], dict[str, str]]:
    metrics: dict[str, AggregateResult] = {}
    errors: dict[str, str] = {}
    percentiles = config.required_percentiles()
    for series in store.snapshot_all():
        try:
            metrics[series.name] = aggregate(series, percentiles)
        except EmptySeriesError as exc:
            logger.warning("%s", exc)
            errors[series.name] = str(exc)
    return metrics, errors


def _evaluate_thresholds(
    config: RunConfig,
    metrics: dict[str, AggregateResult],
) -> tuple[ThresholdOutcome, ...]:
    outcomes: list[ThresholdOutcome] = []
    for threshold in config.thresholds:
        outcome = evaluate(threshold, metrics.get(threshold.metric))
        if not outcome.passed:
            logger.warning(
                "Threshold %s on %s failed: %s",
                threshold.expression,
                threshold.metric,
                outcome.reason,
            )
        outcomes.append(outcome)
    return tuple(outcomes)
