"""Plotly figure adapter for the chart host contract.

Purpose
-------
``PlotlyChartHost`` presents a ``plotly.graph_objects.Figure`` (or a live
``FigureWidget``) as a :class:`~sonichart.contracts.ChartHost`, so a
:class:`~sonichart.plugin.SonificationPlugin` can keep an engine in step with
it.

Concepts and structure
----------------------
- Each trace is one host dataset. The host kind is inferred from the trace
  (``bar``; ``scatter`` with markers only -> ``scatter``, otherwise
  ``line``; ``pie`` -> ``pie`` or ``doughnut`` when ``hole`` is set;
  ``box`` -> ``boxplot``; ``barpolar`` -> ``polarArea``; ``scatterpolar``
  -> ``radar``).
- String x values (pie labels, polar theta) become category labels.
- ``visible=False`` and ``visible="legendonly"`` both count as hidden.
- ``layout.barmode`` ``"stack"``/``"relative"`` marks both axes as stacked.
- Layout ranges are the computed scale. A range set without
  ``autorange=True`` is also reported as a declared ``min``/``max``.

Architecture
------------
For a ``FigureWidget``, :meth:`bind` subscribes to trace and layout changes
with ``on_change`` (the same hook the widget uses to report relayouts from
the browser) and forwards them to :meth:`update`, optionally through a
:class:`~sonichart.debouncing.QueuedDebouncer` while an asyncio loop is
running. Plain figures are updated by
calling :meth:`update` after mutating them.

Important gotchas
-----------------
- Engine highlights are shown with ``selectedpoints`` on traces that support
  it; pie traces are left unchanged.
- Log axes store their range in log10 units; bounds are converted back.

Examples
--------
>>> import plotly.graph_objects as go
>>> from sonichart.plotly_host import PlotlyChartHost
>>> host = PlotlyChartHost(go.Figure(go.Bar(x=["a", "b"], y=[1, 2])))
>>> host.chart_type, host.labels
('bar', ['a', 'b'])

Discoverability
---------------
See :mod:`sonichart.chart_model` for the in-memory reference host.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable, Mapping, Optional, Sequence

import ipywidgets as widgets
import numpy as np
import plotly.graph_objects as go

from .contracts import ActiveElement, AxisName, HostDataset, ScaleBounds
from .debouncing import QueuedDebouncer

logger = logging.getLogger(__name__)
logger.addHandler(logging.NullHandler())

RADIAL_KINDS = frozenset({"pie", "doughnut", "polarArea", "radar"})
STACKED_BARMODES = frozenset({"stack", "relative"})
_TRACE_WATCHED = ("x", "y", "r", "theta", "values", "labels", "visible", "name")
_LAYOUT_WATCHED = ("xaxis.range", "yaxis.range", "barmode")
_AXIS_TYPES = {"log": "logarithmic", "linear": "linear", "date": "time", "category": "category"}


def _as_list(values: Any) -> list[Any]:
    if values is None:
        return []
    if isinstance(values, np.ndarray):
        return values.tolist()
    return list(values)


def _all_labels(values: Sequence[Any]) -> bool:
    return bool(values) and all(isinstance(v, str) for v in values)


def trace_kind(trace: Any) -> str:
    """Return the host chart kind for one Plotly trace."""
    kind = trace.type
    if kind in ("scatter", "scattergl"):
        mode = trace.mode or "lines"
        return "line" if "lines" in mode else "scatter"
    if kind == "pie":
        return "doughnut" if trace.hole else "pie"
    if kind == "box":
        return "boxplot"
    if kind == "barpolar":
        return "polarArea"
    if kind == "scatterpolar":
        return "radar"
    return kind


def trace_visible(trace: Any) -> bool:
    return trace.visible is None or trace.visible is True


def _box_groups(xs: Sequence[Any], ys: Sequence[Any], categories: Sequence[Any]) -> list[list[Any]]:
    return [[y for x, y in zip(xs, ys) if x == category] for category in categories]


def _loop_running() -> bool:
    try:
        asyncio.get_running_loop()
    except RuntimeError:
        return False
    return True


class PlotlyChartHost:
    """Expose a Plotly figure through the chart host contract.

    Parameters
    ----------
    figure : plotly.graph_objects.Figure or FigureWidget
        Figure to observe.
    chart_type : str, optional
        Host kind override; inferred from the first trace by default.
    """

    def __init__(self, figure: go.Figure, *, chart_type: Optional[str] = None) -> None:
        self.figure = figure
        self._chart_type = chart_type
        self.target_element = figure
        self.control_element: Any = None
        self.active_elements: list[ActiveElement] = []
        self.tooltip_elements: list[ActiveElement] = []
        self.redraw_count = 0
        self._focus_callbacks: list[Callable[[], None]] = []
        self._blur_callbacks: list[Callable[[], None]] = []
        self._plugin: Any = None
        self._plugin_options: Any = None
        self._debouncer: Optional[QueuedDebouncer] = None
        self._visibility: list[bool] = [trace_visible(t) for t in figure.data]

    # ------------------------------------------------------------------
    # ChartHost contract
    # ------------------------------------------------------------------

    @property
    def chart_type(self) -> str:
        if self._chart_type:
            return self._chart_type
        if not self.figure.data:
            return "bar"
        return trace_kind(self.figure.data[0])

    @property
    def labels(self) -> list[Any]:
        for trace in self.figure.data:
            labels = self._trace_labels(trace)
            if labels:
                return labels
        return []

    @property
    def datasets(self) -> list[HostDataset]:
        labels = self.labels
        return [
            HostDataset(
                data=self._trace_data(trace, labels),
                label=trace.name,
                type=trace_kind(trace),
                hidden=not trace_visible(trace),
            )
            for trace in self.figure.data
        ]

    @property
    def title(self) -> Optional[str]:
        return self.figure.layout.title.text

    def axis_options(self, axis: AxisName) -> Mapping[str, Any]:
        if self.chart_type in RADIAL_KINDS:
            return {}
        layout_axis = self._layout_axis(axis)
        options: dict[str, Any] = {}
        if layout_axis.title.text:
            options["title"] = {"text": layout_axis.title.text}
        if layout_axis.type in _AXIS_TYPES:
            options["type"] = _AXIS_TYPES[layout_axis.type]
        if layout_axis.range is not None and layout_axis.autorange is not True:
            low, high = self._range_bounds(axis)
            options["min"], options["max"] = low, high
        if self.figure.layout.barmode in STACKED_BARMODES:
            options["stacked"] = True
        return options

    def computed_scale(self, axis: AxisName) -> Optional[ScaleBounds]:
        if self.chart_type in RADIAL_KINDS or self._layout_axis(axis).range is None:
            return None
        low, high = self._range_bounds(axis)
        return ScaleBounds(low, high)

    def is_dataset_visible(self, index: int) -> bool:
        return trace_visible(self.figure.data[index])

    def set_active_elements(self, elements: Sequence[ActiveElement]) -> None:
        """Show ``elements`` as selected points (clears selection when empty)."""
        self.active_elements = list(elements)
        selected: dict[int, list[int]] = {}
        for element in elements:
            selected.setdefault(element.dataset_index, []).append(element.index)
        with self.figure.batch_update():
            for index, trace in enumerate(self.figure.data):
                if "selectedpoints" not in trace:
                    continue
                trace.selectedpoints = selected.get(index) if selected else None

    def set_tooltip_elements(self, elements: Sequence[ActiveElement]) -> None:
        self.tooltip_elements = list(elements)

    def redraw(self) -> None:
        """Widgets re-render on property sync; only the request is counted."""
        self.redraw_count += 1

    def on_focus(self, callback: Callable[[], None]) -> None:
        self._focus_callbacks.append(callback)

    def on_blur(self, callback: Callable[[], None]) -> None:
        self._blur_callbacks.append(callback)

    def attach_control(self, element: Any) -> None:
        self.control_element = element

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def bind(self, plugin: Any, options: Any = None, *, debounce_ms: Optional[int] = None) -> None:
        """Attach ``plugin`` and run the first update.

        For ``FigureWidget`` instances, trace and layout changes trigger
        :meth:`update` automatically. With ``debounce_ms`` set they are
        debounced on the running asyncio loop; without a running loop the
        updates stay synchronous so plugin hooks never run on a timer thread.
        """
        self._plugin = plugin
        self._plugin_options = options
        plugin.after_init(self, None, options)
        if isinstance(self.figure, go.FigureWidget):
            notify: Callable[[], None] = self.update
            if debounce_ms and _loop_running():
                self._debouncer = QueuedDebouncer(self.update, execute_every_ms=debounce_ms)
                notify = self._debouncer
            self._subscribe(notify)
        self.update()

    def _subscribe(self, notify: Callable[[], None]) -> None:
        for trace in self.figure.data:
            watched = [name for name in _TRACE_WATCHED if name in trace]
            trace.on_change(lambda *_: notify(), *watched)
        self.figure.layout.on_change(lambda *_: notify(), *_LAYOUT_WATCHED)

    def update(self) -> None:
        """Fire dataset and chart update hooks for the current figure state.

        A trace whose visibility changed since the previous update gets mode
        ``"hide"`` or ``"show"``.
        """
        if self._plugin is None:
            raise RuntimeError("PlotlyChartHost.update() called before bind()")
        current = [trace_visible(t) for t in self.figure.data]
        for index, visible in enumerate(current):
            mode = None
            if index < len(self._visibility) and self._visibility[index] != visible:
                mode = "show" if visible else "hide"
            self._plugin.after_dataset_update(self, {"index": index, "mode": mode}, self._plugin_options)
        self._visibility = current
        self._plugin.after_update(self, {"mode": None}, self._plugin_options)

    def hide(self, index: int) -> None:
        self.figure.data[index].visible = "legendonly"
        if self._debouncer is None:
            self.update()

    def show(self, index: int) -> None:
        self.figure.data[index].visible = True
        if self._debouncer is None:
            self.update()

    def focus(self) -> None:
        for callback in list(self._focus_callbacks):
            callback()

    def blur(self) -> None:
        for callback in list(self._blur_callbacks):
            callback()

    def destroy(self) -> None:
        if self._debouncer is not None:
            self._debouncer.flush()
            self._debouncer = None
        if self._plugin is not None:
            self._plugin.after_destroy(self, None, self._plugin_options)
            self._plugin = None

    def widget(self) -> widgets.VBox:
        """Return the figure stacked above its control element (if any)."""
        figure = self.figure if isinstance(self.figure, go.FigureWidget) else go.FigureWidget(self.figure)
        children: list[Any] = [figure]
        if self.control_element is not None:
            children.append(self.control_element)
        return widgets.VBox(children)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _layout_axis(self, axis: AxisName) -> Any:
        return self.figure.layout.xaxis if axis == "x" else self.figure.layout.yaxis

    def _range_bounds(self, axis: AxisName) -> tuple[float, float]:
        layout_axis = self._layout_axis(axis)
        low, high = (float(v) for v in layout_axis.range)
        if layout_axis.type == "log":
            return float(10**low), float(10**high)
        return low, high

    @staticmethod
    def _trace_labels(trace: Any) -> list[Any]:
        if trace.type == "pie":
            return _as_list(trace.labels)
        if trace.type in ("barpolar", "scatterpolar"):
            return _as_list(trace.theta)
        xs = _as_list(getattr(trace, "x", None))
        if not _all_labels(xs):
            return []
        if trace.type == "box":
            return list(dict.fromkeys(xs))
        return xs

    @staticmethod
    def _trace_data(trace: Any, labels: Sequence[Any]) -> list[Any]:
        kind = trace_kind(trace)
        if trace.type == "pie":
            return _as_list(trace.values)
        if trace.type in ("barpolar", "scatterpolar"):
            return _as_list(trace.r)
        xs = _as_list(getattr(trace, "x", None))
        ys = _as_list(getattr(trace, "y", None))
        if kind == "boxplot":
            if _all_labels(xs):
                return _box_groups(xs, ys, labels)
            return [ys]
        if xs and not _all_labels(xs) and kind in ("line", "scatter"):
            return [{"x": x, "y": y} for x, y in zip(xs, ys)]
        return ys


__all__ = ["PlotlyChartHost", "RADIAL_KINDS", "trace_kind", "trace_visible"]
