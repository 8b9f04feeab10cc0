"""Axis configuration for the sonification engine.

Purpose
-------
``derive_axes`` builds the engine's ``{"x": AxisSpec, "y": AxisSpec}`` from
three sources, in increasing precedence:

1. layout-computed host scale bounds (only available after a layout pass),
2. declared host axis options (explicit ``min``/``max``, title, scale type),
3. caller overrides from the plugin options, shallow-merged last.

Category labels are translated to positional indices, and are exposed as
``valueLabels`` so sequential navigation announces label text.

Important gotchas
-----------------
- Stacked layouts need the host's computed bounds; raw per-series extrema
  describe individual series, not the stacked totals.
- Word clouds are unordered: their bounds are always cleared.
- Scatter points carry free-form x values, so positional labels are dropped.
"""

from __future__ import annotations

import locale
import math
from typing import Any, Callable, Mapping, Optional, Sequence, TypedDict

from .chart_kinds import WORD_CLOUD
from .contracts import ScaleBounds

_NUMERIC_SCALE_TYPES = frozenset({"linear", "logarithmic", "time", "timeseries"})


class AxisSpec(TypedDict, total=False):
    """Engine axis description; every key is optional."""

    minimum: float
    maximum: float
    label: str
    type: str
    valueLabels: list[Any]
    format: Callable[[float], str]


def format_value(value: float) -> str:
    """Format a number with locale-aware digit grouping and at most 3 decimals."""
    if isinstance(value, float) and not math.isfinite(value):
        return str(value)
    text = locale.format_string("%.3f", value, grouping=True)
    point = locale.localeconv().get("decimal_point") or "."
    if point in text:
        text = text.rstrip("0").rstrip(point)
    return text


def _resolve_bound(value: Any, labels: Sequence[Any]) -> Optional[float]:
    """Return a numeric bound; label bounds resolve to their position."""
    if value is None:
        return None
    if isinstance(value, str):
        try:
            return list(labels).index(value)
        except ValueError:
            return None
    return value


def axis_info(options: Optional[Mapping[str, Any]], labels: Sequence[Any]) -> AxisSpec:
    """Translate one host axis option block into an :class:`AxisSpec`."""
    axis: AxisSpec = {}
    if not options:
        return axis
    minimum = _resolve_bound(options.get("min"), labels)
    if minimum is not None:
        axis["minimum"] = minimum
    maximum = _resolve_bound(options.get("max"), labels)
    if maximum is not None:
        axis["maximum"] = maximum
    title = options.get("title") or {}
    label = title.get("text") if isinstance(title, Mapping) else None
    if label:
        axis["label"] = label
    if options.get("type") == "logarithmic":
        axis["type"] = "log10"
    return axis


def _is_categorical_x(options: Mapping[str, Any], labels: Sequence[Any], target_kind: str) -> bool:
    return bool(labels) and target_kind != "scatter" and options.get("type") not in _NUMERIC_SCALE_TYPES


def derive_axes(
    axis_options: Mapping[str, Mapping[str, Any]],
    computed_scales: Mapping[str, Optional[ScaleBounds]],
    category_labels: Sequence[Any],
    *,
    chart_type: str = "",
    target_kind: str = "",
    scrubbed_labels: Sequence[Any] = (),
    overrides: Optional[Mapping[str, Mapping[str, Any]]] = None,
) -> dict[str, AxisSpec]:
    """Return the engine axes for the current host state.

    Parameters
    ----------
    axis_options : mapping
        Declared host options per axis (``"x"``, ``"y"``).
    computed_scales : mapping
        Layout-computed bounds per axis, ``None`` before the first layout.
    category_labels : sequence
        Host category labels (may be empty).
    chart_type : str
        Host chart kind; ``"wordCloud"`` clears bounds.
    target_kind : str
        Sonification kind; ``"scatter"`` drops positional labels.
    scrubbed_labels : sequence
        Labels extracted from label-bearing points by the shape normalizer;
        used only when the host declares no labels of its own.
    overrides : mapping or None
        Caller axis overrides, applied last.
    """
    labels = list(category_labels or ())
    x_options = axis_options.get("x") or {}
    y_options = axis_options.get("y") or {}

    x: AxisSpec = {**axis_info(x_options, labels)}
    y: AxisSpec = {"format": format_value, **axis_info(y_options, labels)}

    for name, spec in (("x", x), ("y", y)):
        scale = computed_scales.get(name)
        if scale is None:
            continue
        spec.setdefault("minimum", scale.minimum)
        spec.setdefault("maximum", scale.maximum)

    if _is_categorical_x(x_options, labels, target_kind):
        if _resolve_bound(x_options.get("min"), labels) is None:
            x["minimum"] = 0
        if _resolve_bound(x_options.get("max"), labels) is None:
            x["maximum"] = len(labels) - 1

    if labels:
        x["valueLabels"] = labels
    elif scrubbed_labels:
        x["valueLabels"] = list(scrubbed_labels)

    if chart_type == WORD_CLOUD:
        for spec in (x, y):
            spec.pop("minimum", None)
            spec.pop("maximum", None)
        x.setdefault("label", "Word")
        y.setdefault("label", "Emphasis")

    if target_kind == "scatter":
        x.pop("valueLabels", None)

    overrides = overrides or {}
    return {
        "x": {**x, **(overrides.get("x") or {})},
        "y": {**y, **(overrides.get("y") or {})},
    }


def axis_bounds(axes: Mapping[str, AxisSpec]) -> dict[str, dict[str, float]]:
    """Return only the ``minimum``/``maximum`` entries present per axis."""
    bounds: dict[str, dict[str, float]] = {}
    for name, spec in axes.items():
        found = {key: spec[key] for key in ("minimum", "maximum") if spec.get(key) is not None}
        if found:
            bounds[name] = found
    return bounds


__all__ = ["AxisSpec", "axis_bounds", "axis_info", "derive_axes", "format_value"]
