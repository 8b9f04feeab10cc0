from __future__ import annotations

from sonichart.axis_deriver import axis_bounds, axis_info, derive_axes, format_value
from sonichart.contracts import ScaleBounds

NO_SCALES = {"x": None, "y": None}


def test_categorical_x_spans_label_positions() -> None:
    axes = derive_axes({}, NO_SCALES, ["a", "b", "c"], chart_type="bar", target_kind="bar")

    assert axes["x"]["minimum"] == 0
    assert axes["x"]["maximum"] == 2
    assert axes["x"]["valueLabels"] == ["a", "b", "c"]
    assert axes["y"]["format"] is format_value
    assert "minimum" not in axes["y"]


def test_computed_scales_fill_undeclared_bounds() -> None:
    axes = derive_axes(
        {"y": {"min": -5}},
        {"x": None, "y": ScaleBounds(0.0, 10.0)},
        [],
        target_kind="line",
    )

    assert axes["y"]["minimum"] == -5
    assert axes["y"]["maximum"] == 10.0


def test_label_bounds_resolve_to_positions() -> None:
    axes = derive_axes({"x": {"min": "b", "max": "zz"}}, NO_SCALES, ["a", "b", "c"], target_kind="bar")

    assert axes["x"]["minimum"] == 1
    assert axes["x"]["maximum"] == 2


def test_axis_info_reads_title_and_log_scale() -> None:
    spec = axis_info({"type": "logarithmic", "title": {"text": "Revenue"}, "max": 1000}, [])

    assert spec == {"type": "log10", "label": "Revenue", "maximum": 1000}
    assert axis_info(None, []) == {}


def test_numeric_x_type_is_not_categorical() -> None:
    axes = derive_axes({"x": {"type": "linear"}}, NO_SCALES, ["a", "b"], target_kind="line")

    assert "minimum" not in axes["x"]
    assert axes["x"]["valueLabels"] == ["a", "b"]


def test_word_cloud_clears_bounds_and_labels_axes() -> None:
    axes = derive_axes(
        {"y": {"min": 0}},
        {"x": ScaleBounds(0, 3), "y": ScaleBounds(0, 9)},
        ["w1", "w2"],
        chart_type="wordCloud",
        target_kind="bar",
    )

    for name in ("x", "y"):
        assert "minimum" not in axes[name]
        assert "maximum" not in axes[name]
    assert axes["x"]["label"] == "Word"
    assert axes["y"]["label"] == "Emphasis"


def test_scatter_drops_positional_labels() -> None:
    axes = derive_axes({}, NO_SCALES, ["a", "b"], target_kind="scatter")

    assert "valueLabels" not in axes["x"]
    assert "minimum" not in axes["x"]


def test_scrubbed_labels_are_used_without_host_labels() -> None:
    axes = derive_axes({}, NO_SCALES, [], target_kind="bar", scrubbed_labels=("Mon", "Tue"))

    assert axes["x"]["valueLabels"] == ["Mon", "Tue"]


def test_overrides_are_applied_last() -> None:
    axes = derive_axes(
        {"y": {"max": 5}},
        {"x": None, "y": ScaleBounds(0, 4)},
        [],
        overrides={"y": {"maximum": 99, "label": "Custom"}},
    )

    assert axes["y"]["maximum"] == 99
    assert axes["y"]["label"] == "Custom"


def test_format_value_trims_trailing_zeros() -> None:
    assert format_value(2.0) == "2"
    assert format_value(1234.5) == "1234.5"
    assert format_value(0.1234) == "0.123"
    assert format_value(float("inf")) == "inf"


def test_axis_bounds_keeps_only_present_bounds() -> None:
    axes = {"x": {"label": "t"}, "y": {"minimum": 0, "maximum": None, "format": format_value}}

    assert axis_bounds(axes) == {"y": {"minimum": 0}}


def test_nineteen_categories_ignore_layout_padding() -> None:
    labels = [f"c{i}" for i in range(19)]
    axes = derive_axes({}, {"x": ScaleBounds(-0.5, 18.5), "y": None}, labels, chart_type="bar", target_kind="bar")

    assert (axes["x"]["minimum"], axes["x"]["maximum"]) == (0, 18)
