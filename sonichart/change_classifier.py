"""Change classification between two chart snapshots.

Purpose
-------
``classify`` compares the stored snapshot with a fresh one and picks the
cheapest update strategy that is still correct:

- ``unchanged``: identical data and axes already calibrated; do nothing.
- ``scale_only``: identical data, but layout bounds just became available;
  patch the engine's axis bounds without announcing a data change.
- ``append``: exactly one series grew by a strict suffix; everything else,
  including the shared label prefix, is byte-identical.
- ``replace``: anything else. Any failure while diffing also lands here.

Stacked layouts additionally get ``stacked_visible_bounds``: the host may
freeze its displayed y scale, and it counts hidden series, so the audible
range is recomputed from visible series only.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Literal, Mapping, Optional, Sequence

import numpy as np

from .ChartSnapshot import ChartSnapshot, serialize
from .errors import AppendClassificationError
from .shape_normalizer import PointList, group_name, series_points

logger = logging.getLogger(__name__)
logger.addHandler(logging.NullHandler())

VerdictKind = Literal["unchanged", "scale_only", "append", "replace"]


@dataclass(frozen=True)
class AppendDescriptor:
    """Result of a successful append detection.

    Parameters
    ----------
    series_index : int
        Host position of the series that grew.
    new_points : tuple[dict, ...]
        Engine points for the appended values, indexed from ``prior_length``.
    category_name : str or None
        Engine group of the series; ``None`` for single-series charts.
    prior_length : int
        Series length before the append.
    new_labels : tuple
        Category labels appended alongside the values.
    """

    series_index: int
    new_points: tuple[dict[str, Any], ...]
    category_name: Optional[str]
    prior_length: int
    new_labels: tuple[Any, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class Verdict:
    """Update strategy chosen for one reconciliation."""

    kind: VerdictKind
    append: Optional[AppendDescriptor] = None


UNCHANGED = Verdict("unchanged")
SCALE_ONLY = Verdict("scale_only")
REPLACE = Verdict("replace")


def detect_append(previous: ChartSnapshot, current: ChartSnapshot, *, target_kind: str = "") -> AppendDescriptor:
    """Return the append that turns ``previous`` into ``current``.

    Raises
    ------
    AppendClassificationError
        If the change is anything other than a strict suffix on one series.
    """
    try:
        before = previous.payload()
        after = current.payload()
        old_sets = before["datasets"]
        new_sets = after["datasets"]
        old_labels = list(before.get("labels") or [])
        new_labels = list(after.get("labels") or [])
    except (ValueError, KeyError, TypeError) as exc:
        raise AppendClassificationError(f"snapshot could not be parsed: {exc}") from exc

    if len(old_sets) != len(new_sets):
        raise AppendClassificationError("series count changed")
    if len(new_labels) < len(old_labels) or serialize(new_labels[: len(old_labels)]) != serialize(old_labels):
        raise AppendClassificationError("category label prefix changed")

    grown: list[int] = []
    for index, (old, new) in enumerate(zip(old_sets, new_sets)):
        if old.get("label") != new.get("label") or old.get("visible") != new.get("visible"):
            raise AppendClassificationError(f"series {index} metadata changed")
        old_data, new_data = old["data"], new["data"]
        if len(new_data) < len(old_data):
            raise AppendClassificationError(f"series {index} shrank")
        if serialize(new_data[: len(old_data)]) != serialize(old_data):
            raise AppendClassificationError(f"series {index} history changed")
        if len(new_data) > len(old_data):
            grown.append(index)

    if len(grown) != 1:
        raise AppendClassificationError(f"{len(grown)} series changed length")

    series_index = grown[0]
    prior_length = len(old_sets[series_index]["data"])
    new_values = new_sets[series_index]["data"][prior_length:]
    points, _ = series_points(new_values, group=series_index, target_kind=target_kind, start_index=prior_length)
    category = group_name(new_sets[series_index].get("label"), series_index) if len(new_sets) > 1 else None
    return AppendDescriptor(
        series_index=series_index,
        new_points=tuple(points),
        category_name=category,
        prior_length=prior_length,
        new_labels=tuple(new_labels[len(old_labels):]),
    )


def classify(
    previous: ChartSnapshot,
    current: ChartSnapshot,
    *,
    scales_synced: bool,
    scales_available: bool,
    target_kind: str = "",
) -> Verdict:
    """Pick the update strategy for ``previous -> current``.

    Parameters
    ----------
    previous, current : ChartSnapshot
        Stored and freshly taken snapshots.
    scales_synced : bool
        Whether layout bounds were already pushed to the engine.
    scales_available : bool
        Whether the host has run a layout pass (computed bounds exist).
    target_kind : str
        Sonification kind, used to shape appended points.
    """
    if previous == current:
        if scales_synced or not scales_available:
            return UNCHANGED
        return SCALE_ONLY
    try:
        descriptor = detect_append(previous, current, target_kind=target_kind)
    except AppendClassificationError as exc:
        logger.debug("not an append: %s", exc)
        return REPLACE
    except Exception:  # any diffing failure means a full replace
        logger.debug("append detection failed", exc_info=True)
        return REPLACE
    return Verdict("append", descriptor)


def stacked_visible_bounds(
    points: Mapping[str, PointList],
    visible: Sequence[bool],
) -> Optional[tuple[float, float]]:
    """Return ``(min, max)`` of per-position sums over visible groups.

    Groups are matched to ``visible`` by position. Non-numeric ``y`` values
    contribute nothing. Returns ``None`` when no group is visible or the
    first group has no points.
    """
    groups = list(points.values())
    if not groups:
        return None
    count = len(groups[0])
    shown = [series for series, is_visible in zip(groups, visible) if is_visible]
    if count == 0 or not shown:
        return None
    totals = np.zeros(count, dtype=np.float64)
    for series in shown:
        values = np.full(count, np.nan, dtype=np.float64)
        for i, point in enumerate(series[:count]):
            y = point.get("y") if isinstance(point, Mapping) else None
            if y is not None:
                try:
                    values[i] = float(y)
                except (TypeError, ValueError):
                    continue
        totals += np.nan_to_num(values, nan=0.0)
    return float(totals.min()), float(totals.max())


def apply_stacked_correction(
    axes: dict[str, dict[str, Any]],
    points: Mapping[str, PointList],
    visible: Sequence[bool],
    y_options: Mapping[str, Any],
) -> bool:
    """Override y bounds in ``axes`` with visible stacked totals.

    Declared ``min``/``max`` in ``y_options`` are left untouched. Returns
    ``True`` when any bound was changed.
    """
    bounds = stacked_visible_bounds(points, visible)
    if bounds is None:
        return False
    changed = False
    if y_options.get("min") is None:
        axes["y"]["minimum"] = bounds[0]
        changed = True
    if y_options.get("max") is None:
        axes["y"]["maximum"] = bounds[1]
        changed = True
    return changed


__all__ = [
    "AppendDescriptor",
    "REPLACE",
    "SCALE_ONLY",
    "UNCHANGED",
    "Verdict",
    "VerdictKind",
    "apply_stacked_correction",
    "classify",
    "detect_append",
    "stacked_visible_bounds",
]
