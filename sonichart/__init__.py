"""Top-level public API for the ``sonichart`` package.

This module re-exports the reconciliation driver and its collaborators so
users can import from a single namespace, for example:

>>> from sonichart import ChartModel, SonificationPlugin  # doctest: +SKIP

It exposes the driver, the reference and Plotly hosts, and the lower-level
building blocks (snapshots, classification, axis derivation, shape
normalization) for custom host or engine integrations.
"""

from .axis_deriver import AxisSpec, axis_bounds, derive_axes, format_value
from .change_classifier import AppendDescriptor, Verdict, classify, detect_append, stacked_visible_bounds
from .chart_kinds import CHART_KIND_MAP, resolve_target_kind
from .chart_model import ChartModel
from .ChartSnapshot import ChartSnapshot, take_snapshot
from .contracts import (
    ActiveElement,
    ChartHost,
    CurrentPosition,
    EngineCreateResult,
    EngineFactory,
    EngineRequest,
    HostDataset,
    ScaleBounds,
    SonificationEngine,
)
from .errors import (
    AppendClassificationError,
    EngineConstructionError,
    SonificationError,
    UnsupportedSeriesKindError,
    UnshapeableValueError,
    VisibilityAssignmentError,
)
from .options import PluginOptions
from .plotly_host import PlotlyChartHost
from .plugin import AGGREGATE_GROUP, SonificationPlugin
from .registry import ChartStateRecord, ChartStateRegistry
from .shape_normalizer import NormalizedData, normalize

__all__ = [
    "AGGREGATE_GROUP",
    "ActiveElement",
    "AppendClassificationError",
    "AppendDescriptor",
    "AxisSpec",
    "CHART_KIND_MAP",
    "ChartHost",
    "ChartModel",
    "ChartSnapshot",
    "ChartStateRecord",
    "ChartStateRegistry",
    "CurrentPosition",
    "EngineConstructionError",
    "EngineCreateResult",
    "EngineFactory",
    "EngineRequest",
    "HostDataset",
    "NormalizedData",
    "PlotlyChartHost",
    "PluginOptions",
    "ScaleBounds",
    "SonificationEngine",
    "SonificationError",
    "SonificationPlugin",
    "UnsupportedSeriesKindError",
    "UnshapeableValueError",
    "Verdict",
    "VisibilityAssignmentError",
    "axis_bounds",
    "classify",
    "derive_axes",
    "detect_append",
    "format_value",
    "normalize",
    "resolve_target_kind",
    "stacked_visible_bounds",
    "take_snapshot",
]
