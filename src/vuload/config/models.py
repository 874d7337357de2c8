from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Mapping

import httpx

from vuload.errors import ConfigError
from vuload.metrics import DEFAULT_PERCENTILES, RESPONSE_TIME, SUCCESS_RATE, Threshold

DEFAULT_THRESHOLDS: tuple[Threshold, ...] = (
    Threshold.parse(RESPONSE_TIME, "p(95)<50"),
    Threshold.parse(SUCCESS_RATE, "rate>0.95"),
)


@dataclass(frozen=True, slots=True)
class TargetConfig:
    endpoints: tuple[str, ...]
    base_url: str = ""
    timeout_sec: float = 10.0
    headers: Mapping[str, str] = field(default_factory=dict)

    def validate(self) -> None:
        if not self.endpoints:
            msg = "At least one endpoint is required"
            raise ConfigError(msg)
        if any(not endpoint for endpoint in self.endpoints):
            msg = "Endpoints must be non-empty strings"
            raise ConfigError(msg)
        if not self.base_url:
            relative = [e for e in self.endpoints if not e.startswith(("http://", "https://"))]
            if relative:
                msg = f"Endpoints {relative} are relative but no base_url is configured"
                raise ConfigError(msg)
        for endpoint in self.endpoints:
            try:
                if self.base_url:
                    httpx.URL(self.base_url).join(endpoint)
                else:
                    httpx.URL(endpoint)
            except httpx.InvalidURL as exc:
                msg = f"Endpoint {endpoint!r} is not a valid URL: {exc}"
                raise ConfigError(msg) from exc
        if self.timeout_sec <= 0:
            msg = f"timeout_sec must be positive, got {self.timeout_sec}"
            raise ConfigError(msg)


@dataclass(frozen=True, slots=True)
class RunConfig:
    target: TargetConfig
    virtual_workers: int = 100
    iterations_per_worker: int = 100
    max_duration_sec: float = 300.0
    inter_request_delay_sec: float = 0.1
    success_threshold_ms: float = 200.0
    thresholds: tuple[Threshold, ...] = DEFAULT_THRESHOLDS
    percentiles: tuple[float, ...] = DEFAULT_PERCENTILES
    seed: int = 7
    run_id: str | None = None
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    notes: str = ""

    def validate(self) -> None:
        self.target.validate()
        if self.virtual_workers <= 0:
            msg = f"virtual_workers must be positive, got {self.virtual_workers}"
            raise ConfigError(msg)
        if self.iterations_per_worker <= 0:
            msg = f"iterations_per_worker must be positive, got {self.iterations_per_worker}"
            raise ConfigError(msg)
        if self.max_duration_sec <= 0:
            msg = f"max_duration_sec must be positive, got {self.max_duration_sec}"
            raise ConfigError(msg)
        if self.inter_request_delay_sec < 0:
            msg = f"inter_request_delay_sec must be >= 0, got {self.inter_request_delay_sec}"
            raise ConfigError(msg)
        if self.success_threshold_ms <= 0:
            msg = f"success_threshold_ms must be positive, got {self.success_threshold_ms}"
            raise ConfigError(msg)
        bad = [p for p in self.percentiles if not 0.0 <= p <= 100.0]
        if bad:
            msg = f"Percentiles must be within [0, 100], got {bad}"
            raise ConfigError(msg)

    @property
    def total_iterations(self) -> int:
        return self.virtual_workers * self.iterations_per_worker

    def required_percentiles(self) -> tuple[float, ...]:
        wanted = {float(p) for p in self.percentiles}
        wanted.update(t.pct for t in self.thresholds if t.pct is not None)
        return tuple(sorted(wanted))

    def to_metadata(self) -> Mapping[str, Any]:
        thresholds: dict[str, list[str]] = {}
        for threshold in self.thresholds:
            thresholds.setdefault(threshold.metric, []).append(threshold.expression)
        return {
            "run_id": self.run_id or "",
            "created_at": self.created_at.isoformat(),
            "virtual_workers": self.virtual_workers,
            "iterations_per_worker": self.iterations_per_worker,
            "max_duration_sec": self.max_duration_sec,
            "inter_request_delay_sec": self.inter_request_delay_sec,
            "success_threshold_ms": self.success_threshold_ms,
            "seed": self.seed,
            "notes": self.notes,
            "percentiles": list(self.percentiles),
            "thresholds": thresholds,
            "target": {
                "base_url": self.target.base_url,
                "endpoints": list(self.target.endpoints),
                "timeout_sec": self.target.timeout_sec,
                "headers": dict(self.target.headers),
            },
        }
