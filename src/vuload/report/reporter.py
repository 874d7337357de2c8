from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

from vuload.loadgen.result import RunResult
from vuload.report.html import latency_values, render_html, success_rate
from vuload.report.serialize import dumps

logger = logging.getLogger(__name__)

JSON_FILENAME = "summary.json"
HTML_FILENAME = "summary.html"


@dataclass(frozen=True, slots=True)
class RenderedReport:
    structured: str
    human: str


def render(result: RunResult) -> RenderedReport:
    return RenderedReport(structured=dumps(result), human=render_html(result))


def console_summary(result: RunResult) -> str:
    lines = [
        f"run {result.run_id}: {'PASSED' if result.passed else 'FAILED'}",
        f"  requests ........ {result.total_requests}",
        f"  max workers ..... {result.max_concurrent_workers}",
        f"  duration ........ {result.duration_sec:.2f}s" + (" (timed out)" if result.timed_out else ""),
        f"  throughput ...... {result.throughput_rps:.2f} req/s",
        f"  success rate .... {success_rate(result) * 100:.2f}%",
        f"  errors .......... {result.error_count}",
        "  response time:",
    ]
    lines.extend(f"    {label:<13} {value:.2f}ms" for label, value in latency_values(result))
    for outcome in result.thresholds:
        mark = "ok" if outcome.passed else "FAIL"
        detail = f" ({outcome.reason})" if outcome.reason else ""
        lines.append(f"  [{mark}] {outcome.metric}: {outcome.expression}{detail}")
    for metric, message in sorted(result.metric_errors.items()):
        lines.append(f"  [empty] {metric}: {message}")
    return "\n".join(lines)


def write_reports(report: RenderedReport, directory: Path) -> tuple[Path, Path]:
    directory.mkdir(parents=True, exist_ok=True)
    json_path = directory / JSON_FILENAME
    html_path = directory / HTML_FILENAME
    json_path.write_text(report.structured, encoding="utf-8")
    html_path.write_text(report.human, encoding="utf-8")
    logger.info("Wrote %s and %s", json_path, html_path)
    return json_path, html_path
