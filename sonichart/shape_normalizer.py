"""Host series -> sonification point shapes.

Purpose
-------
``normalize`` converts the host's per-dataset value arrays into the shape the
engine consumes: a flat point list for a single series, or a mapping of group
name to point list for several series. It is stateless and side-effect free
so the driver can call it on every reconciliation.

Concepts and structure
----------------------
Each raw value is classified on its own:

- a number (or ``None``) becomes ``{"x": index, "y": value}``,
- a two-element sequence becomes a range point
  ``{"x": index, "low": min(pair), "high": max(pair)}``,
- a mapping is copied; when its ``x`` is a label rather than a coordinate,
  the label is moved to a side sequence and ``x`` becomes the index.

Every point is tagged with ``custom = {"group": g, "index": i}`` so the
driver can map the engine cursor back to host elements.

Examples
--------
>>> from sonichart.contracts import HostDataset
>>> from sonichart.shape_normalizer import normalize
>>> normalize([HostDataset(data=[5, 2])], "bar").points[1]["y"]
2
"""

from __future__ import annotations

import numbers
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Optional, Sequence, Union

import numpy as np

from .boxplots import format_box_data
from .errors import UnshapeableValueError

PointList = list[dict[str, Any]]
PointData = Union[PointList, dict[str, PointList]]


@dataclass
class NormalizedData:
    """Engine-ready points plus the side outputs of normalization.

    Parameters
    ----------
    points : list or dict
        A point list (single series) or ``{group_name: points}``.
    groups : tuple[str, ...] or None
        Group names in series order; ``None`` for a single series.
    scrubbed_labels : tuple
        Labels extracted from label-bearing points.
    """

    points: PointData
    groups: Optional[tuple[str, ...]] = None
    scrubbed_labels: tuple[Any, ...] = field(default_factory=tuple)

    @property
    def grouped(self) -> bool:
        return isinstance(self.points, dict)

    @property
    def is_empty(self) -> bool:
        """``True`` when no series has a single renderable point."""
        if isinstance(self.points, dict):
            return not any(len(series) > 0 for series in self.points.values())
        return len(self.points) == 0


def group_name(label: Optional[str], index: int) -> str:
    """Return the group name of series ``index`` (``"Group n"`` when unlabeled)."""
    return label if label is not None else f"Group {index + 1}"


def _is_pair(value: Any) -> bool:
    if isinstance(value, (str, bytes, Mapping)):
        return False
    if isinstance(value, np.ndarray):
        return value.shape == (2,)
    return isinstance(value, Sequence) and len(value) == 2


def _is_label(value: Any) -> bool:
    return not isinstance(value, numbers.Number) or isinstance(value, bool)


def _scalar(value: Any) -> Any:
    return value.item() if isinstance(value, np.generic) else value


def coerce_value(raw: Any, index: int) -> Optional[float]:
    """Return ``raw`` as a number; ``None`` stays missing, numeric strings are parsed.

    Raises
    ------
    UnshapeableValueError
        If ``raw`` is neither numeric, missing, nor a numeric string.
    """
    if raw is None:
        return None
    if isinstance(raw, numbers.Number) and not isinstance(raw, bool):
        return _scalar(raw)
    if isinstance(raw, str):
        try:
            return float(raw.strip())
        except ValueError:
            pass
    raise UnshapeableValueError(f"unsupported series value at index {index}: {raw!r}")


def series_points(
    values: Sequence[Any],
    *,
    group: int,
    target_kind: str = "",
    start_index: int = 0,
) -> tuple[PointList, list[Any]]:
    """Convert one series to engine points.

    Parameters
    ----------
    values : sequence
        Raw host values.
    group : int
        Series position, stored in each point's ``custom.group``.
    target_kind : str
        Sonification kind; scatter points keep their free-form ``x``.
    start_index : int
        Position of ``values[0]`` within the full series (used for appends).

    Returns
    -------
    tuple
        ``(points, scrubbed_labels)``.
    """
    points: PointList = []
    labels: list[Any] = []
    for offset, raw in enumerate(values):
        index = start_index + offset
        if isinstance(raw, Mapping):
            point = dict(raw)
            if target_kind != "scatter" and "x" in point and _is_label(point["x"]):
                labels.append(point["x"])
                point["x"] = index
        elif _is_pair(raw):
            present = [v for v in (coerce_value(item, index) for item in raw) if v is not None]
            low, high = (min(present), max(present)) if present else (None, None)
            point = {"x": index, "low": low, "high": high}
        else:
            point = {"x": index, "y": coerce_value(raw, index)}
        point["custom"] = {"group": group, "index": index}
        points.append(point)
    return points, labels


def normalize(datasets: Sequence[Any], target_kind: str) -> NormalizedData:
    """Normalize host datasets for the ``target_kind`` engine.

    Box targets are delegated to :func:`sonichart.boxplots.format_box_data`.
    A single series yields a flat point list; several series yield a mapping
    keyed by series label (``"Group n"`` when unlabeled).
    """
    if target_kind == "box":
        return format_box_data(datasets)

    if len(datasets) == 1:
        points, labels = series_points(list(datasets[0].data), group=0, target_kind=target_kind)
        return NormalizedData(points=points, scrubbed_labels=tuple(labels))

    grouped: dict[str, PointList] = {}
    names: list[str] = []
    scrubbed: list[Any] = []
    for index, dataset in enumerate(datasets):
        name = group_name(dataset.label, index)
        names.append(name)
        points, labels = series_points(list(dataset.data), group=index, target_kind=target_kind)
        grouped[name] = points
        if labels and not scrubbed:
            scrubbed = labels
    return NormalizedData(points=grouped, groups=tuple(names), scrubbed_labels=tuple(scrubbed))


__all__ = ["NormalizedData", "PointData", "PointList", "group_name", "normalize", "series_points"]
