from __future__ import annotations

import pytest
from hypothesis import given, strategies as st

from vuload.errors import EmptySeriesError
from vuload.metrics import (
    CounterResult,
    MetricKind,
    MetricSeries,
    Observation,
    RateResult,
    TrendResult,
    aggregate,
    endpoint_breakdown,
    percentile,
)

finite = st.floats(min_value=-1e9, max_value=1e9, allow_nan=False, allow_infinity=False)


def _series(kind: MetricKind, values: list, name: str = "m") -> MetricSeries:
    return MetricSeries(
        name=name,
        kind=kind,
        observations=tuple(Observation(metric=name, value=v) for v in values),
    )


def test_nearest_rank_percentiles() -> None:
    values = [15.0, 20.0, 35.0, 40.0, 50.0]
    assert percentile(values, 5) == 15.0
    assert percentile(values, 30) == 20.0
    assert percentile(values, 40) == 20.0
    assert percentile(values, 50) == 35.0
    assert percentile(values, 100) == 50.0
    assert percentile(values, 0) == 15.0


def test_whole_number_percentiles_are_exact() -> None:
    values = [float(v) for v in range(1, 101)]
    assert percentile(values, 95) == 95.0
    assert percentile(values, 99) == 99.0
    assert percentile(values, 90) == 90.0


def test_percentile_out_of_range() -> None:
    with pytest.raises(ValueError):
        percentile([1.0], 101)
    with pytest.raises(ValueError):
        percentile([1.0], -1)


def test_trend_summary() -> None:
    result = aggregate(_series(MetricKind.TREND, [4.0, 1.0, 3.0, 2.0]), percentiles=(90, 95, 99))
    assert isinstance(result, TrendResult)
    assert result.count == 4
    assert result.min == 1.0
    assert result.max == 4.0
    assert result.mean == 2.5
    assert result.median == 2.0
    assert result.percentile(90) == 4.0
    assert result.percentile(95) == 4.0
    with pytest.raises(KeyError):
        result.percentile(75)


def test_duplicates_repeat() -> None:
    result = aggregate(_series(MetricKind.TREND, [5.0] * 7))
    assert isinstance(result, TrendResult)
    assert result.min == result.median == result.max == result.mean == 5.0


def test_rate_summary() -> None:
    result = aggregate(_series(MetricKind.RATE, [True, True, False, True]))
    assert result == RateResult(count=4, passes=3, rate=0.75)


def test_counter_sums_increments() -> None:
    result = aggregate(_series(MetricKind.COUNTER, [1, 2.5, 1]))
    assert result == CounterResult(count=3, total=4.5)


def test_empty_counter_is_zero() -> None:
    assert aggregate(_series(MetricKind.COUNTER, [])) == CounterResult(count=0, total=0)


@pytest.mark.parametrize("kind", [MetricKind.TREND, MetricKind.RATE])
def test_empty_trend_and_rate_raise(kind: MetricKind) -> None:
    with pytest.raises(EmptySeriesError) as info:
        aggregate(_series(kind, [], name="response_time"))
    assert info.value.metric == "response_time"


@given(values=st.lists(finite, min_size=1, max_size=200))
def test_trend_bounds(values: list[float]) -> None:
    result = aggregate(_series(MetricKind.TREND, values))
    assert isinstance(result, TrendResult)
    assert result.min <= result.median <= result.max
    assert result.min <= result.mean <= result.max
    assert result.count == len(values)


@given(
    values=st.lists(finite, min_size=1, max_size=200),
    p1=st.floats(min_value=0, max_value=100),
    p2=st.floats(min_value=0, max_value=100),
)
def test_percentile_monotonic(values: list[float], p1: float, p2: float) -> None:
    ordered = sorted(values)
    low, high = sorted((p1, p2))
    assert percentile(ordered, low) <= percentile(ordered, high)


@given(data=st.data(), values=st.lists(finite, min_size=1, max_size=100))
def test_shuffled_input_gives_identical_result(data: st.DataObject, values: list[float]) -> None:
    shuffled = data.draw(st.permutations(values))
    assert aggregate(_series(MetricKind.TREND, values)) == aggregate(_series(MetricKind.TREND, shuffled))


@given(values=st.lists(st.booleans(), min_size=1, max_size=200))
def test_rate_bounds(values: list[bool]) -> None:
    result = aggregate(_series(MetricKind.RATE, values))
    assert isinstance(result, RateResult)
    assert 0.0 <= result.rate <= 1.0


def test_endpoint_breakdown_groups_by_endpoint() -> None:
    observations = (
        Observation("response_time", 10.0, "/b"),
        Observation("response_time", 30.0, "/a"),
        Observation("response_time", 10.0, "/a"),
        Observation("response_time", 20.0, "/a"),
        Observation("response_time", 99.0, None),
    )
    series = MetricSeries("response_time", MetricKind.TREND, observations)
    stats = endpoint_breakdown(series)
    assert [s.endpoint for s in stats] == ["/a", "/b"]
    first = stats[0]
    assert first.count == 3
    assert first.mean == 20.0
    assert first.median == 20.0
    assert first.p95 == 30.0
    assert first.max == 30.0


def test_endpoint_breakdown_without_tags() -> None:
    assert endpoint_breakdown(_series(MetricKind.TREND, [1.0, 2.0])) == ()
