"""Build a :class:`RunConfig` from a k6-style options mapping.

Example::

    load_config({
        "baseUrl": "http://localhost:3000",
        "endpoints": ["/api/health", "/api/status"],
        "vus": 100,
        "iterations": 100,
        "maxDuration": "5m",
        "sleep": "100ms",
        "thresholds": {"response_time": ["p(95)<50"], "success_rate": ["rate>0.95"]},
    })

Durations accept plain seconds or strings with an ``ms``, ``s``, ``m`` or
``h`` suffix.
"""

from __future__ import annotations

import re
from typing import Any, Mapping

from vuload.config.models import DEFAULT_THRESHOLDS, RunConfig, TargetConfig
from vuload.errors import ConfigError
from vuload.metrics import DEFAULT_PERCENTILES, Threshold

_DURATION = re.compile(r"^\s*(?P<value>\d+(?:\.\d+)?)\s*(?P<unit>ms|s|m|h)?\s*$")
_UNIT_SECONDS = {"ms": 0.001, "s": 1.0, "m": 60.0, "h": 3600.0, None: 1.0}


def parse_duration(value: Any) -> float:
    if isinstance(value, bool):
        msg = f"Invalid duration: {value!r}"
        raise ConfigError(msg)
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        match = _DURATION.match(value.lower())
        if match:
            return float(match.group("value")) * _UNIT_SECONDS[match.group("unit")]
    msg = f"Invalid duration: {value!r}"
    raise ConfigError(msg)


def parse_thresholds(data: Mapping[str, Any]) -> tuple[Threshold, ...]:
    if not isinstance(data, Mapping):
        msg = f"thresholds must map metric names to expressions, got {type(data).__name__}"
        raise ConfigError(msg)
    thresholds: list[Threshold] = []
    for metric, expressions in data.items():
        if isinstance(expressions, str):
            expressions = [expressions]
        if not isinstance(expressions, (list, tuple)):
            msg = f"Thresholds for {metric!r} must be a string or a list of strings, got {expressions!r}"
            raise ConfigError(msg)
        for expression in expressions:
            if not isinstance(expression, str):
                msg = f"Threshold for {metric!r} must be a string, got {expression!r}"
                raise ConfigError(msg)
            thresholds.append(Threshold.parse(metric, expression))
    return tuple(thresholds)


def _endpoints(value: Any) -> tuple[str, ...]:
    if isinstance(value, str):
        return (value,)
    if not isinstance(value, (list, tuple)) or not all(isinstance(e, str) for e in value):
        msg = f"endpoints must be a string or a list of strings, got {value!r}"
        raise ConfigError(msg)
    return tuple(value)


def _headers(value: Any) -> dict[str, str]:
    if not isinstance(value, Mapping):
        msg = f"headers must be a mapping of header names to values, got {value!r}"
        raise ConfigError(msg)
    return {str(name): str(header) for name, header in value.items()}


def load_config(data: Mapping[str, Any]) -> RunConfig:
    base_url = data.get("baseUrl", data.get("base_url", ""))
    if not isinstance(base_url, str):
        msg = f"baseUrl must be a string, got {base_url!r}"
        raise ConfigError(msg)
    thresholds = DEFAULT_THRESHOLDS
    try:
        target = TargetConfig(
            endpoints=_endpoints(data.get("endpoints", ())),
            base_url=base_url,
            timeout_sec=parse_duration(data.get("timeout", 10.0)),
            headers=_headers(data.get("headers", {})),
        )
        if "thresholds" in data:
            thresholds = parse_thresholds(data["thresholds"])
        config = RunConfig(
            target=target,
            virtual_workers=int(data.get("vus", data.get("virtual_workers", 100))),
            iterations_per_worker=int(data.get("iterations", data.get("iterations_per_worker", 100))),
            max_duration_sec=parse_duration(data.get("maxDuration", data.get("max_duration_sec", 300.0))),
            inter_request_delay_sec=parse_duration(data.get("sleep", data.get("inter_request_delay_sec", 0.1))),
            success_threshold_ms=float(data.get("successThresholdMs", data.get("success_threshold_ms", 200.0))),
            thresholds=thresholds,
            percentiles=tuple(float(p) for p in data.get("percentiles", DEFAULT_PERCENTILES)),
            seed=int(data.get("seed", 7)),
            run_id=data.get("run_id"),
            notes=data.get("notes", ""),
        )
    except ConfigError:
        raise
    except (TypeError, ValueError) as exc:
        msg = f"Invalid run options: {exc}"
        raise ConfigError(msg) from exc
    config.validate()
    return config
