from __future__ import annotations

from html import escape

import pandas as pd
import plotly.graph_objects as go

from vuload.loadgen.result import RunResult
from vuload.metrics import RESPONSE_TIME, SUCCESS_RATE, RateResult, TrendResult

SUCCESS_RATE_TARGET = 0.95

_LATENCY_ROWS = [
    ("Min", "min"),
    ("Max", "max"),
    ("Average", "mean"),
    ("Median (p50)", "median"),
    ("p90", 90.0),
    ("p95", 95.0),
    ("p99", 99.0),
]

_STYLE = """
    body { font-family: Arial, sans-serif; margin: 20px; }
    h1 { color: #2c3e50; }
    .metric { margin-bottom: 20px; }
    .metric h2 { color: #3498db; }
    .good { color: green; }
    .bad { color: red; }
    table { border-collapse: collapse; width: 100%; }
    th, td { border: 1px solid #ddd; padding: 8px; text-align: left; }
    th { background-color: #f2f2f2; }
"""


def latency_values(result: RunResult) -> list[tuple[str, float]]:
    trend = result.metrics.get(RESPONSE_TIME)
    rows: list[tuple[str, float]] = []
    for label, stat in _LATENCY_ROWS:
        if not isinstance(trend, TrendResult):
            value = 0.0
        elif isinstance(stat, float):
            value = trend.percentiles.get(stat, 0.0)
        else:
            value = getattr(trend, stat)
        rows.append((label, value))
    return rows


def success_rate(result: RunResult) -> float:
    rate = result.metrics.get(SUCCESS_RATE)
    return rate.rate if isinstance(rate, RateResult) else 0.0


def _latency_chart(result: RunResult) -> str:
    if not isinstance(result.metrics.get(RESPONSE_TIME), TrendResult):
        return ""
    rows = latency_values(result)
    fig = go.Figure()
    fig.add_trace(
        go.Bar(
            x=[label for label, _ in rows],
            y=[value for _, value in rows],
            name="Response time (ms)",
        )
    )
    fig.update_layout(height=300, margin=dict(l=10, r=10, t=30, b=10), title="Latency distribution")
    return fig.to_html(full_html=False, include_plotlyjs="cdn")


def _thresholds_table(result: RunResult) -> str:
    if not result.thresholds:
        return "<p>No thresholds configured.</p>"
    frame = pd.DataFrame(
        [
            {
                "Metric": t.metric,
                "Threshold": t.expression,
                "Observed": "n/a" if t.observed is None else f"{t.observed:.2f}",
                "Result": "pass" if t.passed else "FAIL",
                "Reason": t.reason,
            }
            for t in result.thresholds
        ]
    )
    return frame.to_html(index=False, border=0)


def _endpoints_table(result: RunResult) -> str:
    if not result.endpoints:
        return "<p>No per-endpoint samples.</p>"
    frame = pd.DataFrame(
        [
            {
                "Endpoint": e.endpoint,
                "Requests": e.count,
                "Mean (ms)": e.mean,
                "Median (ms)": e.median,
                "p95 (ms)": e.p95,
                "Max (ms)": e.max,
            }
            for e in result.endpoints
        ]
    )
    return frame.to_html(index=False, border=0, float_format=lambda v: f"{v:.2f}")


def render_html(result: RunResult) -> str:
    latency = "\n".join(f"<p>{label}: {value:.2f}ms</p>" for label, value in latency_values(result))
    rate = success_rate(result)
    cue = "good" if rate > SUCCESS_RATE_TARGET else "bad"
    verdict = "PASSED" if result.passed else "FAILED"
    timeout_note = "<p class=\"bad\">Run stopped at max duration.</p>" if result.timed_out else ""
    return f"""<!DOCTYPE html>
<html>
  <head>
    <meta charset="utf-8">
    <title>Load Test Results - {escape(result.run_id)}</title>
    <style>{_STYLE}</style>
  </head>
  <body>
    <h1>Load Test Results - {result.total_requests} GET Requests</h1>
    <p class="{'good' if result.passed else 'bad'}">Thresholds: {verdict}</p>
    {timeout_note}
    <div class="metric">
      <h2>Overview</h2>
      <p>Total Requests: {result.total_requests}</p>
      <p>Virtual Users (max): {result.max_concurrent_workers}</p>
      <p>Test Duration: {result.duration_sec:.2f}s</p>
    </div>
    <div class="metric">
      <h2>Response Time</h2>
      {latency}
      {_latency_chart(result)}
    </div>
    <div class="metric">
      <h2>Throughput</h2>
      <p>Requests/second: {result.throughput_rps:.2f}</p>
    </div>
    <div class="metric">
      <h2>Success Rate</h2>
      <p class="{cue}">{rate * 100:.2f}%</p>
    </div>
    <div class="metric">
      <h2>Errors</h2>
      <p>Total Errors: {result.error_count}</p>
    </div>
    <div class="metric">
      <h2>Thresholds</h2>
      {_thresholds_table(result)}
    </div>
    <div class="metric">
      <h2>Endpoints</h2>
      {_endpoints_table(result)}
    </div>
  </body>
</html>
"""
