from __future__ import annotations

import pytest

from sonichart.boxplots import box_points, format_box_data, summarize_samples
from sonichart.contracts import HostDataset


def test_samples_reduce_to_tukey_summary() -> None:
    summary = summarize_samples([1, 2, 3, 4, 5, 100])

    assert summary["q1"] == pytest.approx(2.25)
    assert summary["median"] == pytest.approx(3.5)
    assert summary["q3"] == pytest.approx(4.75)
    assert summary["low"] == 1.0
    assert summary["high"] == 5.0
    assert summary["outlier"] == [100.0]


def test_missing_samples_are_ignored() -> None:
    assert summarize_samples([]) is None
    assert summarize_samples([None, float("nan")]) is None
    assert "outlier" not in summarize_samples([1, None, 2])


def test_precomputed_summaries_pass_through() -> None:
    (point,) = box_points([{"min": 1, "q1": 2, "median": 3, "q3": 4, "max": 5, "outliers": [9]}], group=0)

    assert point == {
        "x": 0,
        "low": 1,
        "q1": 2,
        "median": 3,
        "q3": 4,
        "high": 5,
        "outlier": [9],
        "custom": {"group": 0, "index": 0},
    }


def test_empty_categories_are_skipped_but_keep_positions() -> None:
    points = box_points([[], [1, 2, 3]], group=2)

    assert len(points) == 1
    assert points[0]["x"] == 1
    assert points[0]["custom"] == {"group": 2, "index": 1}


def test_several_datasets_are_grouped() -> None:
    result = format_box_data([HostDataset(data=[[1, 2]], label="A"), HostDataset(data=[[3, 4]])])

    assert result.groups == ("A", "Group 2")
    assert result.points["Group 2"][0]["median"] == 3.5
