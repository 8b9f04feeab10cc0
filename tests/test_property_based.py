"""Property-based checks for change classification and stacked bounds."""

from __future__ import annotations

import pytest

from sonichart import ChartModel, take_snapshot
from sonichart.change_classifier import classify, stacked_visible_bounds

try:
    from hypothesis import given
    from hypothesis import strategies as st
except ModuleNotFoundError:  # pragma: no cover - environment-specific fallback
    pytest.skip("hypothesis is required for property-based tests", allow_module_level=True)


VALUES = st.lists(st.integers(min_value=-1000, max_value=1000), max_size=8)


def _snapshot(series: list[list[int]]):
    return take_snapshot(ChartModel("line", datasets=[{"data": list(data)} for data in series]))


@given(series=st.lists(VALUES, min_size=1, max_size=4), data=st.data())
def test_suffix_on_one_series_is_always_an_append(series, data) -> None:
    target = data.draw(st.integers(min_value=0, max_value=len(series) - 1))
    suffix = data.draw(st.lists(st.integers(min_value=-1000, max_value=1000), min_size=1, max_size=5))
    grown = [list(s) for s in series]
    grown[target].extend(suffix)

    verdict = classify(_snapshot(series), _snapshot(grown), scales_synced=True, scales_available=True)

    assert verdict.kind == "append"
    assert verdict.append.series_index == target
    assert [p["y"] for p in verdict.append.new_points] == suffix
    assert [p["custom"]["index"] for p in verdict.append.new_points] == list(
        range(len(series[target]), len(series[target]) + len(suffix))
    )


@given(series=st.lists(VALUES, min_size=1, max_size=4))
def test_snapshot_of_unchanged_chart_is_never_a_data_change(series) -> None:
    verdict = classify(_snapshot(series), _snapshot(series), scales_synced=True, scales_available=True)

    assert verdict.kind == "unchanged"


@given(
    rows=st.lists(st.lists(st.integers(min_value=0, max_value=100), min_size=3, max_size=3), min_size=1, max_size=4),
    visible=st.lists(st.booleans(), min_size=4, max_size=4),
)
def test_stacked_bounds_never_exceed_total_of_all_series(rows, visible) -> None:
    points = {f"g{i}": [{"y": v} for v in row] for i, row in enumerate(rows)}

    bounds = stacked_visible_bounds(points, visible[: len(rows)])
    full = stacked_visible_bounds(points, [True] * len(rows))

    if not any(visible[: len(rows)]):
        assert bounds is None
    else:
        assert bounds[1] <= full[1]
        assert bounds[0] >= 0
