"""Box-plot data formatter.

Box datasets hold, per category, either raw samples or a pre-computed
summary mapping (``min``/``q1``/``median``/``q3``/``max``, optional
``outliers``). Raw samples are reduced to a five-number summary with Tukey
whiskers (1.5 IQR); samples outside the whiskers become outliers.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import TYPE_CHECKING, Any, Optional, Sequence

import numpy as np

from .errors import UnshapeableValueError

if TYPE_CHECKING:
    from .shape_normalizer import NormalizedData

WHISKER_COEF = 1.5


def summarize_samples(samples: Sequence[Any], *, index: int = 0) -> Optional[dict[str, Any]]:
    """Return ``low/q1/median/q3/high`` (+ ``outlier``) for raw samples.

    ``index`` is the category position, used in the error raised for
    non-numeric samples.
    """
    from .shape_normalizer import coerce_value

    if isinstance(samples, (str, bytes)) or not isinstance(samples, (Sequence, np.ndarray)):
        raise UnshapeableValueError(f"unsupported box samples at index {index}: {samples!r}")
    values = [coerce_value(v, index) for v in samples]
    arr = np.asarray([np.nan if v is None else v for v in values], dtype=np.float64)
    arr = arr[np.isfinite(arr)]
    if arr.size == 0:
        return None
    q1, median, q3 = np.percentile(arr, [25.0, 50.0, 75.0])
    iqr = q3 - q1
    lo_fence = q1 - WHISKER_COEF * iqr
    hi_fence = q3 + WHISKER_COEF * iqr
    inside = arr[(arr >= lo_fence) & (arr <= hi_fence)]
    outliers = np.sort(arr[(arr < lo_fence) | (arr > hi_fence)])
    summary: dict[str, Any] = {
        "low": float(inside.min()),
        "q1": float(q1),
        "median": float(median),
        "q3": float(q3),
        "high": float(inside.max()),
    }
    if outliers.size:
        summary["outlier"] = outliers.tolist()
    return summary


def _from_summary(value: Mapping[str, Any]) -> dict[str, Any]:
    summary = {
        "low": value.get("min", value.get("low")),
        "q1": value.get("q1"),
        "median": value.get("median"),
        "q3": value.get("q3"),
        "high": value.get("max", value.get("high")),
    }
    outliers = value.get("outliers", value.get("outlier"))
    if outliers:
        summary["outlier"] = list(outliers)
    return summary


def box_points(values: Sequence[Any], *, group: int) -> list[dict[str, Any]]:
    """Return tagged box points for one dataset; empty categories are skipped."""
    points: list[dict[str, Any]] = []
    for index, value in enumerate(values):
        if isinstance(value, Mapping):
            summary = _from_summary(value)
        else:
            summary = summarize_samples(() if value is None else value, index=index)
        if summary is None:
            continue
        points.append({"x": index, **summary, "custom": {"group": group, "index": index}})
    return points


def format_box_data(datasets: Sequence[Any]) -> "NormalizedData":
    """Format box datasets into engine points (grouped when several datasets)."""
    from .shape_normalizer import NormalizedData, group_name

    if len(datasets) == 1:
        return NormalizedData(points=box_points(list(datasets[0].data), group=0))
    grouped = {
        group_name(ds.label, index): box_points(list(ds.data), group=index)
        for index, ds in enumerate(datasets)
    }
    return NormalizedData(points=grouped, groups=tuple(grouped))


__all__ = ["WHISKER_COEF", "box_points", "format_box_data", "summarize_samples"]
