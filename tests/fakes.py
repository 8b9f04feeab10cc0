"""Recording fakes for the engine side of the reconciliation contract."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Optional

from sonichart.contracts import CurrentPosition, EngineCreateResult, EngineRequest

ALL = "All"


class FakeEngine:
    """In-memory engine that records every call made by the driver.

    Stacked requests (``options["stack"]``) get an aggregate ``"All"`` group
    in front of the series groups whose points sum the visible series.
    ``set_data`` resets category visibility, like a bulk replace does.
    """

    def __init__(self, request: EngineRequest) -> None:
        self.request = request
        self.stack = bool(request.options.get("stack"))
        self.calls: list[tuple[Any, ...]] = []
        self.axes: dict[str, dict[str, Any]] = {k: dict(v) for k, v in request.axes.items()}
        self.group_index = 0
        self.point_index = 0
        self.cleaned = False
        self.reject_append = False
        self.reject_visibility: set[str] = set()
        self.on_set_data: Optional[Callable[[], None]] = None
        self._load(request.data)

    def _load(self, data: Any) -> None:
        if isinstance(data, dict):
            self.groups = {name: list(points) for name, points in data.items()}
            self.flat: Optional[list[dict[str, Any]]] = None
        else:
            self.groups = {}
            self.flat = list(data)
        self.visibility = {name: True for name in self.groups}

    # -- contract ------------------------------------------------------

    def set_data(self, points: Any, axes: Optional[dict] = None, cursor_index: Optional[int] = None) -> None:
        self.calls.append(("set_data", points, axes, cursor_index))
        self._load(points)
        if axes is not None:
            self.axes = {k: dict(v) for k, v in axes.items()}
        if cursor_index is not None:
            self.point_index = min(cursor_index, max(self._length() - 1, 0))
        self.group_index = min(self.group_index, max(len(self.get_categories()) - 1, 0))
        if self.on_set_data is not None:
            self.on_set_data()

    def append_data(self, point: dict, category: Optional[str] = None) -> Optional[str]:
        self.calls.append(("append_data", point, category))
        if self.reject_append:
            return "append rejected"
        if category is None:
            if self.flat is None:
                return "category required"
            self.flat.append(point)
            return None
        if category not in self.groups:
            return f"unknown category {category}"
        self.groups[category].append(point)
        return None

    def set_category_visibility(self, category: str, visible: bool) -> Optional[str]:
        self.calls.append(("set_category_visibility", category, visible))
        if category in self.reject_visibility or category not in self.visibility:
            return "category cannot be toggled"
        self.visibility[category] = visible
        return None

    def get_current(self) -> Optional[CurrentPosition]:
        categories = self.get_categories()
        if not categories:
            if not self.flat:
                return None
            return CurrentPosition(group=None, index=self.point_index, point=self.flat[self.point_index])
        group = categories[self.group_index]
        if group == ALL:
            total = sum(
                points[self.point_index].get("y") or 0
                for name, points in self.groups.items()
                if self.visibility[name] and self.point_index < len(points)
            )
            return CurrentPosition(group=ALL, index=self.point_index, point={"x": self.point_index, "y": total})
        points = self.groups[group]
        point = points[self.point_index] if self.point_index < len(points) else None
        return CurrentPosition(group=group, index=self.point_index, point=point)

    def clean_up(self) -> None:
        self.calls.append(("clean_up",))
        self.cleaned = True

    def get_categories(self) -> list[str]:
        if not self.groups:
            return []
        names = list(self.groups)
        return [ALL, *names] if self.stack else names

    def patch_axis_bounds(self, axis: str, bounds: dict) -> None:
        self.calls.append(("patch_axis_bounds", axis, dict(bounds)))
        self.axes.setdefault(axis, {}).update(bounds)

    def get_visible_indices(self) -> list[int]:
        return [i for i, name in enumerate(self.groups) if self.visibility[name]]

    # -- helpers -------------------------------------------------------

    def _length(self) -> int:
        if self.flat is not None:
            return len(self.flat)
        return max((len(points) for points in self.groups.values()), default=0)

    def calls_named(self, name: str) -> list[tuple[Any, ...]]:
        return [call for call in self.calls if call[0] == name]


@dataclass
class FakeEngineFactory:
    """Engine factory recording requests; can fail on demand."""

    error: Optional[str] = None
    raises: Optional[Exception] = None
    requests: list[EngineRequest] = field(default_factory=list)
    engines: list[FakeEngine] = field(default_factory=list)

    def __call__(self, request: EngineRequest) -> EngineCreateResult:
        self.requests.append(request)
        if self.raises is not None:
            raise self.raises
        if self.error is not None:
            return EngineCreateResult(error=self.error)
        engine = FakeEngine(request)
        self.engines.append(engine)
        return EngineCreateResult(instance=engine)

    @property
    def engine(self) -> FakeEngine:
        return self.engines[-1]
