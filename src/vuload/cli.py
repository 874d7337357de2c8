from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path

from vuload.config import DEFAULT_THRESHOLDS, RunConfig, TargetConfig, parse_duration, parse_thresholds
from vuload.errors import ConfigError
from vuload.loadgen.runner import run_load_test
from vuload.log import configure_logging
from vuload.report import console_summary, render, write_reports

logger = logging.getLogger(__name__)

EXIT_PASS = 0
EXIT_THRESHOLD_FAILED = 1
EXIT_CONFIG_ERROR = 2


def _build_thresholds(values: list[str] | None) -> dict[str, list[str]]:
    thresholds: dict[str, list[str]] = {}
    for value in values or []:
        metric, sep, expression = value.partition(":")
        if not sep:
            msg = f"Threshold must look like METRIC:EXPR, got {value!r}"
            raise ConfigError(msg)
        thresholds.setdefault(metric.strip(), []).append(expression.strip())
    return thresholds


def build_config(args: argparse.Namespace) -> RunConfig:
    thresholds = DEFAULT_THRESHOLDS
    if args.threshold:
        thresholds = parse_thresholds(_build_thresholds(args.threshold))
    target = TargetConfig(
        endpoints=tuple(args.endpoint or ()),
        base_url=args.base_url,
        timeout_sec=parse_duration(args.timeout),
    )
    return RunConfig(
        target=target,
        virtual_workers=args.vus,
        iterations_per_worker=args.iterations,
        max_duration_sec=parse_duration(args.max_duration),
        inter_request_delay_sec=parse_duration(args.sleep),
        success_threshold_ms=args.success_threshold_ms,
        thresholds=thresholds,
        seed=args.seed,
        notes=args.notes,
    )


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Fixed-iteration HTTP load generator")
    parser.add_argument("--base-url", default="", help="Base URL endpoints are resolved against")
    parser.add_argument("--endpoint", action="append", help="Endpoint path or URL (repeatable)")
    parser.add_argument("--vus", type=int, default=100)
    parser.add_argument("--iterations", type=int, default=100)
    parser.add_argument("--max-duration", default="5m")
    parser.add_argument("--sleep", default="100ms")
    parser.add_argument("--timeout", default="10s")
    parser.add_argument("--success-threshold-ms", type=float, default=200.0)
    parser.add_argument(
        "--threshold",
        action="append",
        help="METRIC:EXPR, e.g. 'response_time:p(95)<50' (repeatable)",
    )
    parser.add_argument("--seed", type=int, default=7)
    parser.add_argument("--notes", default="")
    parser.add_argument("--out", type=Path, default=Path("."))
    parser.add_argument("--log-level", default="INFO")

    args = parser.parse_args(argv)
    configure_logging(args.log_level.upper())

    try:
        config = build_config(args)
        result = asyncio.run(run_load_test(config))
    except ConfigError as exc:
        logger.error("Invalid configuration: %s", exc)
        return EXIT_CONFIG_ERROR

    report = render(result)
    write_reports(report, args.out)
    print(report.structured)
    print(console_summary(result), file=sys.stderr)
    return EXIT_PASS if result.passed else EXIT_THRESHOLD_FAILED


if __name__ == "__main__":
    sys.exit(main())
