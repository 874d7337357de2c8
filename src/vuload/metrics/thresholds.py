"""Pass/fail predicates over aggregated metrics.

Expressions follow the k6 threshold syntax: a statistic, a comparison
operator and a numeric bound, e.g. ``p(95)<50``, ``avg<=120`` or
``rate>0.95``. Statistics available per metric kind:

- trend: ``avg``, ``min``, ``max``, ``med``, ``count``, ``p(N)``
- rate: ``rate``, ``count``
- counter: ``count``, ``total``
"""

from __future__ import annotations

import operator
import re
from dataclasses import dataclass
from typing import Callable, Mapping

from vuload.errors import ThresholdSyntaxError
from vuload.metrics.models import AggregateResult, CounterResult, RateResult, TrendResult

_OPERATORS: Mapping[str, Callable[[float, float], bool]] = {
    "<=": operator.le,
    ">=": operator.ge,
    "==": operator.eq,
    "!=": operator.ne,
    "<": operator.lt,
    ">": operator.gt,
}

_EXPRESSION = re.compile(
    r"^\s*(?P<stat>avg|min|max|med|count|rate|total|p\(\s*(?P<pct>\d+(?:\.\d+)?)\s*\))"
    r"\s*(?P<op><=|>=|==|!=|<|>)\s*"
    r"(?P<bound>-?\d+(?:\.\d+)?(?:[eE][-+]?\d+)?)\s*$"
)


@dataclass(frozen=True, slots=True)
class Threshold:
    metric: str
    expression: str
    statistic: str
    op: str
    bound: float
    pct: float | None = None

    @classmethod
    def parse(cls, metric: str, expression: str) -> Threshold:
        match = _EXPRESSION.match(expression)
        if match is None:
            msg = f"Invalid threshold expression for {metric!r}: {expression!r}"
            raise ThresholdSyntaxError(msg)
        pct = match.group("pct")
        statistic = "p" if pct is not None else match.group("stat")
        pct_value = float(pct) if pct is not None else None
        if pct_value is not None and pct_value > 100.0:
            msg = f"Percentile out of range in {expression!r}"
            raise ThresholdSyntaxError(msg)
        return cls(
            metric=metric,
            expression=expression.strip(),
            statistic=statistic,
            op=match.group("op"),
            bound=float(match.group("bound")),
            pct=pct_value,
        )


@dataclass(frozen=True, slots=True)
class ThresholdOutcome:
    metric: str
    expression: str
    passed: bool
    observed: float | None
    reason: str = ""


def evaluate(threshold: Threshold, result: AggregateResult | None) -> ThresholdOutcome:
    if result is None:
        return ThresholdOutcome(
            metric=threshold.metric,
            expression=threshold.expression,
            passed=False,
            observed=None,
            reason="no observations recorded",
        )
    observed = _statistic(threshold, result)
    if observed is None:
        return ThresholdOutcome(
            metric=threshold.metric,
            expression=threshold.expression,
            passed=False,
            observed=None,
            reason=f"statistic {threshold.statistic!r} is not defined for a {result.kind.value} metric",
        )
    passed = _OPERATORS[threshold.op](observed, threshold.bound)
    reason = "" if passed else f"observed {observed:g}, expected {threshold.op} {threshold.bound:g}"
    return ThresholdOutcome(
        metric=threshold.metric,
        expression=threshold.expression,
        passed=passed,
        observed=observed,
        reason=reason,
    )


def _statistic(threshold: Threshold, result: AggregateResult) -> float | None:
    stat = threshold.statistic
    if stat == "count":
        return float(result.count)
    if isinstance(result, TrendResult):
        if stat == "p" and threshold.pct is not None:
            return result.percentile(threshold.pct)
        return {
            "avg": result.mean,
            "min": result.min,
            "max": result.max,
            "med": result.median,
        }.get(stat)
    if isinstance(result, RateResult):
        return result.rate if stat == "rate" else None
    if isinstance(result, CounterResult):
        return float(result.total) if stat == "total" else None
    return None
