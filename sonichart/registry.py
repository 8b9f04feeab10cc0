"""Per-chart reconciliation state and its registry.

One :class:`ChartStateRecord` exists per live host chart. The record owns
the chart's engine instance exclusively; both are dropped together when the
chart is destroyed. :class:`ChartStateRegistry` is an explicit object owned
by the driver (no module-level singleton), keyed by host identity.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, Optional

from .ChartSnapshot import ChartSnapshot
from .contracts import SonificationEngine


@dataclass
class ChartStateRecord:
    """Reconciliation state of one host chart.

    Parameters
    ----------
    engine : SonificationEngine
        Engine instance owned by this chart.
    visible_series : list[int]
        Host series indices currently audible, kept sorted.
    last_snapshot : ChartSnapshot
        Snapshot taken at the end of the last successful reconciliation.
    target_kind : str
        Sonification kind the engine was built with.
    stacked : bool
        Whether the engine was asked to inject an aggregate "All" group.
    scales_synced : bool
        Whether layout-computed bounds have reached the engine.
    """

    engine: SonificationEngine
    visible_series: list[int]
    last_snapshot: ChartSnapshot
    target_kind: str
    stacked: bool = False
    scales_synced: bool = False
    control_element: Any = None

    def show_series(self, index: int) -> None:
        if index not in self.visible_series:
            self.visible_series.append(index)
            self.visible_series.sort()

    def hide_series(self, index: int) -> None:
        if index in self.visible_series:
            self.visible_series.remove(index)


@dataclass
class ChartStateRegistry:
    """Identity-keyed mapping from host chart to :class:`ChartStateRecord`."""

    _records: Dict[int, ChartStateRecord] = field(default_factory=dict)
    _hosts: Dict[int, Any] = field(default_factory=dict)

    def register(self, host: Any, record: ChartStateRecord) -> ChartStateRecord:
        """Store ``record`` for ``host``, replacing any previous record."""
        key = id(host)
        self._records[key] = record
        self._hosts[key] = host
        return record

    def lookup(self, host: Any) -> Optional[ChartStateRecord]:
        """Return the record for ``host`` or ``None`` while uninitialized."""
        return self._records.get(id(host))

    def unregister(self, host: Any) -> Optional[ChartStateRecord]:
        """Drop and return the record for ``host`` (``None`` if absent)."""
        key = id(host)
        self._hosts.pop(key, None)
        return self._records.pop(key, None)

    def __contains__(self, host: object) -> bool:
        return id(host) in self._records

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self) -> Iterator[Any]:
        return iter(list(self._hosts.values()))


__all__ = ["ChartStateRecord", "ChartStateRegistry"]
