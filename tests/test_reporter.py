from __future__ import annotations

import json
from datetime import datetime, timezone
from pathlib import Path

from vuload.loadgen.result import RunResult
from vuload.loadgen.worker import WorkerReport, WorkerState
from vuload.metrics import (
    ERROR_COUNTER,
    REQUESTS,
    RESPONSE_TIME,
    SUCCESS_RATE,
    CounterResult,
    EndpointStats,
    RateResult,
    ThresholdOutcome,
    TrendResult,
)
from vuload.report import console_summary, dumps, loads, render, result_to_dict, write_reports


def _result(success: float = 0.99, with_errors: bool = True) -> RunResult:
    metrics = {
        RESPONSE_TIME: TrendResult(
            count=200,
            min=1.25,
            max=95.5,
            mean=12.3456789,
            median=10.0,
            percentiles={90.0: 30.0, 95.0: 41.5, 99.0: 88.0, 99.9: 95.5},
        ),
        REQUESTS: CounterResult(count=200, total=200),
        SUCCESS_RATE: RateResult(count=200, passes=round(200 * success), rate=success),
    }
    if with_errors:
        metrics[ERROR_COUNTER] = CounterResult(count=2, total=2)
    return RunResult(
        run_id="abc123",
        started_at=datetime(2026, 1, 2, 3, 4, 5, tzinfo=timezone.utc),
        duration_sec=4.0,
        max_concurrent_workers=2,
        configured_iterations=100,
        timed_out=False,
        workers=(
            WorkerReport(worker_id=0, state=WorkerState.COMPLETED, completed_iterations=100),
            WorkerReport(worker_id=1, state=WorkerState.COMPLETED, completed_iterations=100),
        ),
        metrics=metrics,
        endpoints=(EndpointStats("/api/health", 200, 12.3456789, 10.0, 41.5, 95.5),),
        thresholds=(
            ThresholdOutcome("response_time", "p(95)<50", True, 41.5),
            ThresholdOutcome("success_rate", "rate>0.995", False, success, "observed 0.99, expected > 0.995"),
        ),
        config={"virtual_workers": 2, "target": {"endpoints": ["/api/health"]}},
    )


def test_structured_output_round_trips() -> None:
    result = _result()
    assert loads(dumps(result)) == result


def test_structured_output_shape() -> None:
    data = json.loads(render(_result()).structured)
    assert data["state"]["total_requests"] == 200
    assert data["state"]["throughput_rps"] == 50.0
    assert data["state"]["passed"] is False
    trend = data["metrics"][RESPONSE_TIME]
    assert trend["type"] == "trend"
    assert trend["values"]["p(95)"] == 41.5
    assert trend["values"]["p(99.9)"] == 95.5
    assert data["metrics"][SUCCESS_RATE]["values"]["rate"] == 0.99
    assert data["workers"][1] == {"worker_id": 1, "state": "completed", "completed_iterations": 100}


def test_human_output_sections() -> None:
    html = render(_result()).human
    assert "<h2>Overview</h2>" in html
    assert "Total Requests: 200" in html
    assert "Virtual Users (max): 2" in html
    assert "Test Duration: 4.00s" in html
    assert "p95: 41.50ms" in html
    assert "Requests/second: 50.00" in html
    assert '<p class="good">99.00%</p>' in html
    assert "Total Errors: 2" in html
    assert "/api/health" in html
    assert "rate&gt;0.995" in html
    assert "Thresholds: FAILED" in html


def test_success_rate_cue_below_target() -> None:
    html = render(_result(success=0.95)).human
    assert '<p class="bad">95.00%</p>' in html


def test_absent_metrics_render_as_zero() -> None:
    result = RunResult(
        run_id="empty",
        started_at=datetime(2026, 1, 1, tzinfo=timezone.utc),
        duration_sec=0.0,
        max_concurrent_workers=0,
        configured_iterations=1,
        timed_out=True,
        workers=(),
        metrics={},
        metric_errors={RESPONSE_TIME: "Metric 'response_time' has no observations"},
    )
    rendered = render(result)
    assert "Total Errors: 0" in rendered.human
    assert "Min: 0.00ms" in rendered.human
    assert "Requests/second: 0.00" in rendered.human
    assert loads(rendered.structured) == result
    summary = console_summary(result)
    assert "[empty] response_time" in summary
    assert "(timed out)" in summary


def test_console_summary_lists_thresholds() -> None:
    summary = console_summary(_result())
    assert summary.startswith("run abc123: FAILED")
    assert "[ok] response_time: p(95)<50" in summary
    assert "[FAIL] success_rate: rate>0.995 (observed 0.99, expected > 0.995)" in summary


def test_write_reports(tmp_path: Path) -> None:
    result = _result()
    json_path, html_path = write_reports(render(result), tmp_path / "out")
    assert json.loads(json_path.read_text(encoding="utf-8")) == result_to_dict(result)
    assert html_path.read_text(encoding="utf-8").startswith("<!DOCTYPE html>")
