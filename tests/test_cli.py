from __future__ import annotations

import argparse

import pytest

from vuload.cli import EXIT_CONFIG_ERROR, build_config, main
from vuload.errors import ConfigError


def _args(**overrides: object) -> argparse.Namespace:
    values: dict[str, object] = {
        "base_url": "http://svc",
        "endpoint": ["/a", "/b"],
        "vus": 3,
        "iterations": 4,
        "max_duration": "1m",
        "sleep": "250ms",
        "timeout": "2s",
        "success_threshold_ms": 150.0,
        "threshold": None,
        "seed": 9,
        "notes": "",
    }
    values.update(overrides)
    return argparse.Namespace(**values)


def test_build_config_from_arguments() -> None:
    config = build_config(_args(threshold=["response_time:p(90)<20", "error_counter: total<1"]))
    assert config.target.endpoints == ("/a", "/b")
    assert config.virtual_workers == 3
    assert config.max_duration_sec == 60.0
    assert config.inter_request_delay_sec == pytest.approx(0.25)
    assert config.target.timeout_sec == 2.0
    assert [(t.metric, t.expression) for t in config.thresholds] == [
        ("response_time", "p(90)<20"),
        ("error_counter", "total<1"),
    ]


def test_threshold_needs_metric_prefix() -> None:
    with pytest.raises(ConfigError):
        build_config(_args(threshold=["p(95)<50"]))


def test_missing_endpoints_exit_with_config_error(tmp_path) -> None:
    assert main(["--base-url", "http://svc", "--out", str(tmp_path)]) == EXIT_CONFIG_ERROR
    assert list(tmp_path.iterdir()) == []
