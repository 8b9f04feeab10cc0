"""Capability contracts between the reconciliation driver and its collaborators.

Purpose
-------
The driver never reaches into private state of the host chart or of the
sonification engine. Instead both sides are described by narrow
:class:`typing.Protocol` contracts:

- :class:`ChartHost` is the mutable, externally owned chart being observed.
- :class:`SonificationEngine` is the stateful audio representation being kept
  in sync, including the adapter capabilities ``get_categories``,
  ``patch_axis_bounds`` and ``get_visible_indices``. Visible indices count
  series categories only (a stacked engine's ``"All"`` group is excluded).
  Host visibility is authoritative; the driver reads the engine's indices
  back after a re-sync only to log disagreement.
- :class:`EngineFactory` builds an engine from an :class:`EngineRequest`.

Concrete hosts live in ``chart_model.py`` (reference in-memory chart) and
``plotly_host.py`` (Plotly figures). Engines are supplied by callers.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Mapping, Optional, Protocol, Sequence, Union, runtime_checkable

AxisName = str  # "x" or "y"


@dataclass(frozen=True)
class ScaleBounds:
    """Layout-computed bounds of one host axis."""

    minimum: float
    maximum: float


@dataclass
class HostDataset:
    """One host series: raw values plus optional label, kind override and hidden flag."""

    data: list[Any] = field(default_factory=list)
    label: Optional[str] = None
    type: Optional[str] = None
    hidden: bool = False


@dataclass(frozen=True)
class ActiveElement:
    """Host element highlighted for the listener's current position."""

    dataset_index: int
    index: int


@dataclass(frozen=True)
class CurrentPosition:
    """Cursor reported by the engine."""

    group: Optional[str]
    index: int
    point: Any = None


@dataclass(frozen=True)
class EngineRequest:
    """Everything an :class:`EngineFactory` needs to build one engine.

    Parameters
    ----------
    target_element : Any
        The host element the engine attaches keyboard handling to.
    control_element : Any
        Live region used by the engine for text announcements.
    kind : str
        Sonification kind (``"bar"``, ``"line"``, ``"pie"``, ``"box"``,
        ``"scatter"``).
    data : list or dict
        Normalized points, or a mapping of group name to points.
    title : str
        Chart title.
    axes : dict
        ``{"x": AxisSpec, "y": AxisSpec}``.
    audio_engine : Any
        Optional audio backend forwarded untouched.
    lang : str or None
        Optional language code.
    options : dict
        ``on_focus_callback`` and, for stacked layouts, ``stack=True``.
    """

    target_element: Any
    control_element: Any
    kind: str
    data: Union[list, dict]
    title: str
    axes: dict
    audio_engine: Any = None
    lang: Optional[str] = None
    options: dict = field(default_factory=dict)


@dataclass(frozen=True)
class EngineCreateResult:
    """Outcome of an engine construction call."""

    error: Optional[str] = None
    instance: Optional["SonificationEngine"] = None


@runtime_checkable
class SonificationEngine(Protocol):
    """Contract the driver needs from a sonification engine."""

    def set_data(self, points: Union[list, dict], axes: Optional[dict] = None, cursor_index: Optional[int] = None) -> None: ...
    def append_data(self, point: dict, category: Optional[str] = None) -> Optional[str]: ...
    def set_category_visibility(self, category: str, visible: bool) -> Optional[str]: ...
    def get_current(self) -> Optional[CurrentPosition]: ...
    def clean_up(self) -> None: ...
    def get_categories(self) -> Sequence[str]: ...
    def patch_axis_bounds(self, axis: AxisName, bounds: Mapping[str, float]) -> None: ...
    def get_visible_indices(self) -> Sequence[int]: ...


EngineFactory = Callable[[EngineRequest], EngineCreateResult]


@runtime_checkable
class ChartHost(Protocol):
    """Contract the driver needs from a host chart."""

    chart_type: str
    datasets: Sequence[HostDataset]
    labels: Sequence[Any]
    title: Union[str, Sequence[str], None]
    target_element: Any

    def axis_options(self, axis: AxisName) -> Mapping[str, Any]: ...
    def computed_scale(self, axis: AxisName) -> Optional[ScaleBounds]: ...
    def is_dataset_visible(self, index: int) -> bool: ...
    def set_active_elements(self, elements: Sequence[ActiveElement]) -> None: ...
    def set_tooltip_elements(self, elements: Sequence[ActiveElement]) -> None: ...
    def redraw(self) -> None: ...
    def on_focus(self, callback: Callable[[], None]) -> None: ...
    def on_blur(self, callback: Callable[[], None]) -> None: ...
    def attach_control(self, element: Any) -> None: ...


__all__ = [
    "ActiveElement",
    "ChartHost",
    "CurrentPosition",
    "EngineCreateResult",
    "EngineFactory",
    "EngineRequest",
    "HostDataset",
    "ScaleBounds",
    "SonificationEngine",
]
