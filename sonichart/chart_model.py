"""In-memory reference chart host.

Purpose
-------
``ChartModel`` is a small, fully inspectable implementation of the
:class:`~sonichart.contracts.ChartHost` contract. It owns datasets, category
labels and option blocks, runs a simple layout pass that computes axis
bounds, and fires plugin lifecycle hooks in the same order a charting
library does:

``after_init`` (construction) -> per-dataset ``after_dataset_update`` ->
``after_update`` (every :meth:`update`) -> ``after_destroy``.

Concepts and structure
----------------------
- Mutate ``datasets``/``labels`` freely, then call :meth:`update`.
- :meth:`hide`/:meth:`show` toggle one dataset and update with mode
  ``"hide"``/``"show"`` for that dataset only.
- Highlights pushed by plugins are stored on ``active_elements`` and
  ``tooltip_elements``; ``redraw_count`` counts redraw requests.

Important gotchas
-----------------
- Stacked layouts count hidden datasets in their y bounds (the displayed
  scale does not shrink when a series is hidden).
- Radial kinds (pie, doughnut, polarArea, radar) and word clouds have no
  cartesian scales; ``computed_scale`` returns ``None`` for them.

Examples
--------
>>> from sonichart.chart_model import ChartModel
>>> chart = ChartModel("bar", labels=["a", "b"], datasets=[{"data": [3, 5]}])
>>> chart.computed_scale("y")
ScaleBounds(minimum=0.0, maximum=5.0)
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any, Callable, Optional, Sequence, Union

import numpy as np

from .contracts import ActiveElement, AxisName, HostDataset, ScaleBounds

logger = logging.getLogger(__name__)
logger.addHandler(logging.NullHandler())

CARTESIAN_KINDS = frozenset({"bar", "line", "scatter", "boxplot"})
_ZERO_BASED_KINDS = frozenset({"bar"})
_NUMERIC_X_TYPES = frozenset({"linear", "logarithmic", "time", "timeseries"})

UpdateMode = Union[str, Callable[[int], Optional[str]], None]


def _as_dataset(value: Union[HostDataset, Mapping[str, Any]]) -> HostDataset:
    if isinstance(value, HostDataset):
        return value
    return HostDataset(
        data=list(value.get("data") or []),
        label=value.get("label"),
        type=value.get("type"),
        hidden=bool(value.get("hidden", False)),
    )


def _number(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float, np.number)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value.strip())
        except ValueError:
            return None
    return None


def _y_values(value: Any) -> list[float]:
    """Return the numeric magnitudes one raw value contributes to the y axis."""
    if isinstance(value, Mapping):
        keys = ("y", "low", "high", "min", "max")
        return [n for n in (_number(value.get(k)) for k in keys) if n is not None]
    if isinstance(value, (list, tuple, np.ndarray)):
        out: list[float] = []
        for item in value:
            out.extend(_y_values(item))
        return out
    number = _number(value)
    return [] if number is None else [number]


def _stack_value(value: Any) -> float:
    if isinstance(value, Mapping):
        value = value.get("y")
    number = _number(value)
    return 0.0 if number is None else number


class ChartModel:
    """Reference chart host driving plugins through their lifecycle hooks.

    Parameters
    ----------
    chart_type : str
        Host chart kind (``"bar"``, ``"line"``, ``"pie"``, ...).
    labels : sequence, optional
        Category labels.
    datasets : sequence of HostDataset or mapping, optional
        Series; mappings accept ``data``, ``label``, ``type`` and ``hidden``.
    options : mapping, optional
        ``{"scales": {"x": {...}, "y": {...}}, "plugins": {"title": {...},
        <plugin id>: {...}}}``.
    plugins : sequence, optional
        Objects exposing any of the hook methods.
    """

    def __init__(
        self,
        chart_type: str,
        *,
        labels: Optional[Sequence[Any]] = None,
        datasets: Sequence[Union[HostDataset, Mapping[str, Any]]] = (),
        options: Optional[Mapping[str, Any]] = None,
        plugins: Sequence[Any] = (),
    ) -> None:
        self.chart_type = chart_type
        self.labels: list[Any] = list(labels or [])
        self.datasets: list[HostDataset] = [_as_dataset(ds) for ds in datasets]
        self.options: dict[str, Any] = dict(options or {})
        self.plugins: list[Any] = list(plugins)
        self.target_element = self
        self.control_element: Any = None
        self.active_elements: list[ActiveElement] = []
        self.tooltip_elements: list[ActiveElement] = []
        self.redraw_count = 0
        self.destroyed = False
        self._scales: dict[str, ScaleBounds] = {}
        self._visibility: dict[int, bool] = {}
        self._focus_callbacks: list[Callable[[], None]] = []
        self._blur_callbacks: list[Callable[[], None]] = []

        self._notify("after_init")
        self.update()

    # ------------------------------------------------------------------
    # ChartHost contract
    # ------------------------------------------------------------------

    @property
    def title(self) -> Union[str, list[str], None]:
        block = (self.options.get("plugins") or {}).get("title") or {}
        return block.get("text")

    def axis_options(self, axis: AxisName) -> Mapping[str, Any]:
        return (self.options.get("scales") or {}).get(axis) or {}

    def computed_scale(self, axis: AxisName) -> Optional[ScaleBounds]:
        return self._scales.get(axis)

    def is_dataset_visible(self, index: int) -> bool:
        if index in self._visibility:
            return self._visibility[index]
        return not self.datasets[index].hidden

    def set_active_elements(self, elements: Sequence[ActiveElement]) -> None:
        self.active_elements = list(elements)

    def set_tooltip_elements(self, elements: Sequence[ActiveElement]) -> None:
        self.tooltip_elements = list(elements)

    def redraw(self) -> None:
        """Request a repaint; hooks are not fired."""
        self.redraw_count += 1

    def on_focus(self, callback: Callable[[], None]) -> None:
        self._focus_callbacks.append(callback)

    def on_blur(self, callback: Callable[[], None]) -> None:
        self._blur_callbacks.append(callback)

    def attach_control(self, element: Any) -> None:
        self.control_element = element

    # ------------------------------------------------------------------
    # Host operations
    # ------------------------------------------------------------------

    def update(self, mode: UpdateMode = None) -> None:
        """Run a layout pass, then fire dataset and chart update hooks."""
        if self.destroyed:
            raise RuntimeError("chart has been destroyed")
        self._layout()
        for index in range(len(self.datasets)):
            dataset_mode = mode(index) if callable(mode) else mode
            self._notify("after_dataset_update", {"index": index, "mode": dataset_mode})
        self._notify("after_update", {"mode": None if callable(mode) else mode})

    def set_dataset_visibility(self, index: int, visible: bool) -> None:
        self._visibility[index] = bool(visible)

    def hide(self, index: int) -> None:
        self.set_dataset_visibility(index, False)
        self.update(lambda i: "hide" if i == index else None)

    def show(self, index: int) -> None:
        self.set_dataset_visibility(index, True)
        self.update(lambda i: "show" if i == index else None)

    def focus(self) -> None:
        for callback in list(self._focus_callbacks):
            callback()

    def blur(self) -> None:
        for callback in list(self._blur_callbacks):
            callback()

    def destroy(self) -> None:
        if self.destroyed:
            return
        self._notify("after_destroy")
        self.destroyed = True

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def plugin_options(self, plugin: Any) -> Any:
        """Return the option block stored under ``plugin.id`` (if any)."""
        return (self.options.get("plugins") or {}).get(getattr(plugin, "id", None))

    def _notify(self, hook: str, args: Optional[Mapping[str, Any]] = None) -> None:
        for plugin in self.plugins:
            method = getattr(plugin, hook, None)
            if method is None:
                continue
            method(self, args, self.plugin_options(plugin))

    def _layout(self) -> None:
        scales: dict[str, ScaleBounds] = {}
        if self.chart_type in CARTESIAN_KINDS:
            x = self._x_scale()
            if x is not None:
                scales["x"] = x
            y = self._y_scale()
            if y is not None:
                scales["y"] = y
        self._scales = scales
        logger.debug("layout %s: %s", self.chart_type, scales)

    def _x_scale(self) -> Optional[ScaleBounds]:
        x_options = self.axis_options("x")
        if self.chart_type == "scatter" or x_options.get("type") in _NUMERIC_X_TYPES:
            xs = [
                float(point["x"])
                for ds in self.datasets
                for point in ds.data
                if isinstance(point, Mapping) and isinstance(point.get("x"), (int, float, np.number))
            ]
            if not xs:
                return None
            return ScaleBounds(float(np.min(xs)), float(np.max(xs)))
        count = max([len(self.labels)] + [len(ds.data) for ds in self.datasets])
        if count == 0:
            return None
        return ScaleBounds(0.0, float(count - 1))

    def _y_scale(self) -> Optional[ScaleBounds]:
        y_options = self.axis_options("y")
        if y_options.get("stacked") and self.datasets:
            width = max(len(ds.data) for ds in self.datasets)
            if width == 0:
                return None
            totals = np.zeros(width, dtype=np.float64)
            for ds in self.datasets:
                totals[: len(ds.data)] += [_stack_value(v) for v in ds.data]
            values = totals.tolist()
        else:
            values = [
                v
                for index, ds in enumerate(self.datasets)
                if self.is_dataset_visible(index)
                for raw in ds.data
                for v in _y_values(raw)
            ]
        if not values:
            return None
        if self.chart_type in _ZERO_BASED_KINDS:
            values.append(0.0)
        minimum = y_options.get("min", float(np.min(values)))
        maximum = y_options.get("max", float(np.max(values)))
        return ScaleBounds(float(minimum), float(maximum))

    def __repr__(self) -> str:
        return f"ChartModel({self.chart_type!r}, {len(self.datasets)} datasets)"


__all__ = ["CARTESIAN_KINDS", "ChartModel"]
