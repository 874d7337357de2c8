from __future__ import annotations

import asyncio
import logging
import random
from dataclasses import dataclass
from enum import Enum
from typing import Awaitable, Callable

import httpx

from vuload.config import RunConfig
from vuload.loadgen.client import RequestResult, send_request
from vuload.metrics import (
    ERROR_COUNTER,
    ITERATIONS,
    REQUESTS,
    RESPONSE_TIME,
    SUCCESS_RATE,
    SampleStore,
)

logger = logging.getLogger(__name__)

IterationCallback = Callable[[], Awaitable[None]]


class WorkerState(str, Enum):
    IDLE = "idle"
    RUNNING = "running"
    COMPLETED = "completed"
    ABORTED = "aborted"


@dataclass(frozen=True, slots=True)
class WorkerReport:
    worker_id: int
    state: WorkerState
    completed_iterations: int


class VirtualWorker:
    """One simulated user issuing ``iterations_per_worker`` sequential requests.

    Each iteration selects an endpoint, issues a single GET, records the
    outcome and then sleeps for the configured delay before the next
    iteration; there is no sleep after the last one. Once ``stop`` is set no
    new iteration starts; a request already in flight is still recorded.
    """

    def __init__(
        self,
        worker_id: int,
        config: RunConfig,
        client: httpx.AsyncClient,
        store: SampleStore,
        rng: random.Random,
        stop: asyncio.Event,
        on_iteration: IterationCallback | None = None,
    ) -> None:
        self.worker_id = worker_id
        self.config = config
        self.client = client
        self.store = store
        self.rng = rng
        self.stop = stop
        self.on_iteration = on_iteration
        self.state = WorkerState.IDLE
        self.completed_iterations = 0

    async def run(self) -> WorkerReport:
        self.state = WorkerState.RUNNING
        delay = self.config.inter_request_delay_sec
        last = self.config.iterations_per_worker - 1
        for i in range(self.config.iterations_per_worker):
            if self.stop.is_set():
                self.state = WorkerState.ABORTED
                break
            endpoint = self.select_endpoint()
            outcome = await send_request(self.client, endpoint, self.config.target.timeout_sec)
            self.record_metrics(endpoint, outcome)
            self.completed_iterations += 1
            if self.on_iteration is not None:
                await self.on_iteration()
            if delay > 0 and i < last:
                await self._pause(delay)
        else:
            self.state = WorkerState.COMPLETED
        return self.report()

    def select_endpoint(self) -> str:
        return self.rng.choice(self.config.target.endpoints)

    def record_metrics(self, endpoint: str, outcome: RequestResult) -> None:
        success = outcome.is_success(self.config.success_threshold_ms)
        self.store.add_trend(RESPONSE_TIME, outcome.duration_ms, endpoint=endpoint)
        self.store.add_counter(REQUESTS, 1, endpoint=endpoint)
        self.store.add_rate(SUCCESS_RATE, success, endpoint=endpoint)
        if not success:
            self.store.add_counter(ERROR_COUNTER, 1, endpoint=endpoint)
            if outcome.transport_failed:
                logger.warning(
                    "Failed request: %s, Status: %s (%s), Duration: %.2fms",
                    outcome.url,
                    outcome.status_code,
                    outcome.error_type.value,
                    outcome.duration_ms,
                )
            else:
                logger.warning(
                    "Failed request: %s, Status: %s, Duration: %.2fms",
                    outcome.url,
                    outcome.status_code,
                    outcome.duration_ms,
                )
        self.store.add_counter(ITERATIONS, 1)

    def report(self) -> WorkerReport:
        return WorkerReport(
            worker_id=self.worker_id,
            state=self.state,
            completed_iterations=self.completed_iterations,
        )

    async def _pause(self, delay: float) -> None:
        try:
            await asyncio.wait_for(self.stop.wait(), timeout=delay)
        except asyncio.TimeoutError:
            return
