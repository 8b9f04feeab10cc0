"""Serialized fingerprint of a host chart's data state.

A ``ChartSnapshot`` captures, in order, every series' values, label and
visibility plus the category labels. Two snapshots are equal exactly when
their serialized forms are equal. Snapshots are values: a new one is taken
on every reconciliation and replaces the stored one; none is mutated.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any

import numpy as np


def _json_default(value: Any) -> Any:
    if isinstance(value, np.ndarray):
        return value.tolist()
    if isinstance(value, np.generic):
        return value.item()
    if isinstance(value, (set, frozenset)):
        return sorted(value, key=repr)
    if isinstance(value, tuple):
        return list(value)
    return repr(value)


def serialize(value: Any) -> str:
    """Deterministic, order-preserving JSON rendering used for comparisons."""
    return json.dumps(value, default=_json_default, separators=(",", ":"))


@dataclass(frozen=True)
class ChartSnapshot:
    """Immutable serialized state of one host chart.

    Parameters
    ----------
    serialized : str
        JSON text of ``{"datasets": [{"data", "label", "visible"}], "labels"}``.
    """

    serialized: str

    def payload(self) -> dict[str, Any]:
        """Parse the snapshot back into plain Python structures."""
        return json.loads(self.serialized)

    def __repr__(self) -> str:
        return f"ChartSnapshot({len(self.serialized)} chars)"


def take_snapshot(host: Any) -> ChartSnapshot:
    """Return a fresh snapshot of ``host`` (a :class:`~sonichart.contracts.ChartHost`)."""
    payload = {
        "datasets": [
            {
                "data": list(ds.data),
                "label": ds.label,
                "visible": bool(host.is_dataset_visible(index)),
            }
            for index, ds in enumerate(host.datasets)
        ],
        "labels": list(host.labels or ()),
    }
    return ChartSnapshot(serialized=serialize(payload))


__all__ = ["ChartSnapshot", "serialize", "take_snapshot"]
