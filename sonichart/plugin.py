"""Reconciliation driver between a host chart and a sonification engine.

Purpose
-------
``SonificationPlugin`` receives the host's lifecycle hooks and keeps one
engine per chart in step with the chart's data, visibility and axis
calibration. Each chart moves through ``Uninitialized -> Active ->
Destroyed``; the registry holds a record only while the chart is Active.

Concepts and structure
----------------------
On every ``after_update`` the driver snapshots the host, asks
:func:`~sonichart.change_classifier.classify` for a verdict, and applies it:

- ``unchanged``: nothing is sent to the engine.
- ``scale_only``: layout bounds are patched into the engine's axes.
- ``append``: new points go through ``append_data`` (only when the chart's
  options enable ``incremental_append``; otherwise treated as replace).
- ``replace``: data and axes are rebuilt and sent with ``set_data``; the
  cursor is preserved and category visibility is re-applied afterwards,
  because a bulk replace resets visibility inside the engine.

Important gotchas
-----------------
- A chart may start empty. It becomes Active on the first update that
  carries data, not at creation.
- Stacked engines inject an aggregate "All" group in front of the series
  groups; host series indices skip it.
- Hooks never raise into the host. Failures are reported through the
  caller's ``error_callback`` and the module logger, and the affected chart
  stays Uninitialized so the next update retries.

Examples
--------
>>> from sonichart import ChartModel, SonificationPlugin
>>> plugin = SonificationPlugin(engine_factory)  # doctest: +SKIP
>>> chart = ChartModel("bar", labels=["A", "B"], datasets=[{"data": [1, 2]}], plugins=[plugin])  # doctest: +SKIP
>>> chart.datasets[0].data.append(3)  # doctest: +SKIP
>>> chart.update()  # doctest: +SKIP
"""

from __future__ import annotations

import logging
from typing import Any, Mapping, Optional, Sequence

from .axis_deriver import AxisSpec, axis_bounds, derive_axes
from .change_classifier import REPLACE, AppendDescriptor, Verdict, apply_stacked_correction, classify
from .chart_kinds import resolve_target_kind
from .ChartSnapshot import ChartSnapshot, take_snapshot
from .contracts import ActiveElement, ChartHost, EngineFactory, EngineRequest, SonificationEngine
from .control_element import resolve_control_element
from .errors import (
    EngineConstructionError,
    UnshapeableValueError,
    UnsupportedSeriesKindError,
    VisibilityAssignmentError,
)
from .options import PLUGIN_DEFAULTS, PluginOptions
from .registry import ChartStateRecord, ChartStateRegistry
from .shape_normalizer import NormalizedData, normalize

# Module logger
# - Uses a NullHandler so importing this module never configures global logging.
# - Callers can enable logs via standard logging configuration.
logger = logging.getLogger(__name__)
if not logger.handlers:
    logger.addHandler(logging.NullHandler())

AGGREGATE_GROUP = "All"


def chart_title(host: ChartHost) -> str:
    """Return the host title as one string (list titles joined with ``", "``)."""
    title = getattr(host, "title", None)
    if not title:
        return ""
    if isinstance(title, str):
        return title
    return ", ".join(str(part) for part in title)


def host_has_data(host: ChartHost) -> bool:
    """Return ``True`` when any host series carries at least one value."""
    return any(len(ds.data) > 0 for ds in host.datasets)


def visible_indices(host: ChartHost) -> list[int]:
    return [i for i in range(len(host.datasets)) if host.is_dataset_visible(i)]


class SonificationPlugin:
    """Keep sonification engines synchronized with host charts.

    Parameters
    ----------
    engine_factory : callable
        Builds an engine from an :class:`~sonichart.contracts.EngineRequest`
        and returns an :class:`~sonichart.contracts.EngineCreateResult`.
    registry : ChartStateRegistry or None
        Registry of per-chart records; a private one is created by default.
    """

    id = "sonichart"
    defaults: Mapping[str, Any] = dict(PLUGIN_DEFAULTS)

    def __init__(self, engine_factory: EngineFactory, *, registry: Optional[ChartStateRegistry] = None) -> None:
        self._engine_factory = engine_factory
        self.registry = registry if registry is not None else ChartStateRegistry()
        self._in_progress: set[int] = set()
        self._focus_bound: set[int] = set()

    # ------------------------------------------------------------------
    # Host lifecycle hooks
    # ------------------------------------------------------------------

    def after_init(self, chart: ChartHost, args: Any = None, options: Any = None) -> None:
        """Activate ``chart`` if it already has data."""
        if chart in self.registry:
            return
        self._activate(chart, PluginOptions.from_mapping(options))

    def after_dataset_update(self, chart: ChartHost, args: Mapping[str, Any], options: Any = None) -> None:
        """Mirror a host ``hide``/``show`` of one dataset into the engine."""
        mode = (args or {}).get("mode")
        if mode not in ("hide", "show"):
            return
        record = self.registry.lookup(chart)
        if record is None:
            record = self._activate(chart, PluginOptions.from_mapping(options))
            if record is None:
                return
        index = int(args["index"])
        visible = mode == "show"
        categories = self.series_categories(record)
        if index < len(categories):
            self._set_visibility(record.engine, categories[index], visible)
        else:
            logger.debug("no engine category for dataset %d (%d categories)", index, len(categories))
        if visible:
            record.show_series(index)
        else:
            record.hide_series(index)

    def after_update(self, chart: ChartHost, args: Any = None, options: Any = None) -> None:
        """Reconcile ``chart`` after a host data update."""
        self.reconcile(chart, options)

    def after_destroy(self, chart: ChartHost, args: Any = None, options: Any = None) -> None:
        """Release the engine owned by ``chart``."""
        self._focus_bound.discard(id(chart))
        record = self.registry.unregister(chart)
        if record is None:
            return
        record.engine.clean_up()

    # ------------------------------------------------------------------
    # Reconciliation
    # ------------------------------------------------------------------

    def reconcile(self, chart: ChartHost, options: Any = None) -> Optional[Verdict]:
        """Run one reconciliation and return the verdict that was applied.

        Returns ``None`` when the chart is (still) Uninitialized or when the
        call re-enters a reconciliation already running for ``chart``.
        """
        key = id(chart)
        if key in self._in_progress:
            logger.debug("ignoring re-entrant reconciliation for %r", chart)
            return None
        self._in_progress.add(key)
        try:
            return self._reconcile(chart, PluginOptions.from_mapping(options))
        finally:
            self._in_progress.discard(key)

    def _reconcile(self, chart: ChartHost, options: PluginOptions) -> Optional[Verdict]:
        record = self.registry.lookup(chart)
        if record is None:
            if not host_has_data(chart):
                return None
            record = self._activate(chart, options)
            if record is None:
                return None

        current = take_snapshot(chart)
        verdict = classify(
            record.last_snapshot,
            current,
            scales_synced=record.scales_synced,
            scales_available=chart.computed_scale("y") is not None,
            target_kind=record.target_kind,
        )
        logger.debug("reconcile %r: %s", chart, verdict.kind)

        if verdict.kind == "unchanged":
            return verdict
        if verdict.kind == "scale_only":
            self._patch_scales(chart, record, options)
            return verdict
        if verdict.kind == "append" and verdict.append is not None and options.incremental_append:
            if self._append(chart, record, options, verdict.append, current):
                return verdict
            logger.debug("append rejected by engine; falling back to replace")
        return self._replace(chart, record, options, current)

    def _derive(self, chart: ChartHost, target_kind: str, options: PluginOptions) -> tuple[NormalizedData, dict[str, AxisSpec]]:
        normalized = normalize(chart.datasets, target_kind)
        axes = derive_axes(
            {"x": chart.axis_options("x"), "y": chart.axis_options("y")},
            {"x": chart.computed_scale("x"), "y": chart.computed_scale("y")},
            chart.labels,
            chart_type=chart.chart_type,
            target_kind=target_kind,
            scrubbed_labels=normalized.scrubbed_labels,
            overrides=options.axes,
        )
        return normalized, axes

    def _derive_corrected(self, chart: ChartHost, target_kind: str, options: PluginOptions) -> tuple[NormalizedData, dict[str, AxisSpec]]:
        """Derive data/axes, then apply the visible-only stacked y correction."""
        normalized, axes = self._derive(chart, target_kind, options)
        y_options = chart.axis_options("y") or {}
        if y_options.get("stacked") and normalized.grouped and normalized.groups:
            visible = [chart.is_dataset_visible(i) for i in range(len(normalized.groups))]
            if apply_stacked_correction(axes, normalized.points, visible, y_options):
                axes["y"].update(options.axis_override("y"))
        return normalized, axes

    def _patch_scales(self, chart: ChartHost, record: ChartStateRecord, options: PluginOptions) -> None:
        _, axes = self._derive(chart, record.target_kind, options)
        for axis, bounds in axis_bounds(axes).items():
            record.engine.patch_axis_bounds(axis, bounds)
        record.scales_synced = True

    def _append(
        self,
        chart: ChartHost,
        record: ChartStateRecord,
        options: PluginOptions,
        descriptor: AppendDescriptor,
        current: ChartSnapshot,
    ) -> bool:
        for point in descriptor.new_points:
            error = record.engine.append_data(point, descriptor.category_name)
            if error:
                logger.debug("append_data failed for %r: %s", descriptor.category_name, error)
                return False
        _, axes = self._derive_corrected(chart, record.target_kind, options)
        for axis, bounds in axis_bounds(axes).items():
            record.engine.patch_axis_bounds(axis, bounds)
        record.last_snapshot = current
        record.scales_synced = chart.computed_scale("y") is not None or record.scales_synced
        return True

    def _replace(self, chart: ChartHost, record: ChartStateRecord, options: PluginOptions, current: ChartSnapshot) -> Verdict:
        try:
            record.target_kind = resolve_target_kind(chart.chart_type, chart.datasets)
        except UnsupportedSeriesKindError as exc:
            logger.warning("skipping update: %s", exc)
            return REPLACE
        try:
            normalized, axes = self._derive_corrected(chart, record.target_kind, options)
        except UnshapeableValueError as exc:
            logger.warning("skipping update: %s", exc)
            options.report_error(str(exc))
            return REPLACE
        record.last_snapshot = current
        record.visible_series = visible_indices(chart)
        if normalized.is_empty:
            logger.debug("skipping update of %r: no renderable data", chart)
            return REPLACE

        position = record.engine.get_current()
        cursor = position.index if position is not None else None
        record.engine.set_data(normalized.points, axes, cursor)
        record.scales_synced = True

        if normalized.groups:
            self._resync_visibility(chart, record)
        return REPLACE

    # ------------------------------------------------------------------
    # Visibility
    # ------------------------------------------------------------------

    def series_categories(self, record: ChartStateRecord) -> list[str]:
        """Return engine categories aligned with host series indices."""
        categories = list(record.engine.get_categories())
        if record.stacked and categories and categories[0] == AGGREGATE_GROUP:
            categories = categories[1:]
        return categories

    def _resync_visibility(self, chart: ChartHost, record: ChartStateRecord) -> None:
        """Push host series visibility to the engine after a data reset.

        The host is authoritative. The engine's own view is read back only to
        log categories that refused the change.
        """
        categories = self.series_categories(record)
        for index, category in enumerate(categories):
            self._set_visibility(record.engine, category, chart.is_dataset_visible(index))
        expected = [i for i in range(len(categories)) if chart.is_dataset_visible(i)]
        actual = sorted(record.engine.get_visible_indices())
        if actual != expected:
            logger.warning("engine visibility %s differs from chart visibility %s for %r", actual, expected, chart)

    @staticmethod
    def _set_visibility(engine: SonificationEngine, category: str, visible: bool) -> None:
        error = engine.set_category_visibility(category, visible)
        if error:
            logger.error("%s", VisibilityAssignmentError(category, str(error)))

    # ------------------------------------------------------------------
    # Activation
    # ------------------------------------------------------------------

    def _activate(self, chart: ChartHost, options: PluginOptions) -> Optional[ChartStateRecord]:
        """Build the engine and record for ``chart``; ``None`` if not possible yet."""
        try:
            target_kind = resolve_target_kind(chart.chart_type, chart.datasets)
        except UnsupportedSeriesKindError as exc:
            logger.warning("%s", exc)
            options.report_error(str(exc))
            return None

        try:
            normalized, axes = self._derive(chart, target_kind, options)
        except UnshapeableValueError as exc:
            logger.warning("%s", exc)
            options.report_error(str(exc))
            return None
        if normalized.is_empty:
            logger.debug("deferring activation of %r: no renderable data", chart)
            return None

        control = resolve_control_element(chart, options.cc)
        stacked = bool((chart.axis_options("x") or {}).get("stacked"))
        engine_options: dict[str, Any] = {"on_focus_callback": lambda: self.display_point(chart)}
        if stacked:
            engine_options["stack"] = True

        request = EngineRequest(
            target_element=chart.target_element,
            control_element=control,
            kind=target_kind,
            data=normalized.points,
            title=chart_title(chart),
            axes=axes,
            audio_engine=options.audio_engine,
            lang=options.lang or None,
            options=engine_options,
        )
        try:
            engine = self._create_engine(request)
        except EngineConstructionError as exc:
            logger.warning("engine construction failed: %s", exc)
            options.report_error(str(exc))
            return None

        record = ChartStateRecord(
            engine=engine,
            visible_series=visible_indices(chart),
            last_snapshot=take_snapshot(chart),
            target_kind=target_kind,
            stacked=stacked,
            scales_synced=False,
            control_element=control,
        )
        self.registry.register(chart, record)
        self._bind_focus(chart)
        return record

    def _create_engine(self, request: EngineRequest) -> SonificationEngine:
        try:
            result = self._engine_factory(request)
        except Exception as exc:
            raise EngineConstructionError(f"{type(exc).__name__}: {exc}") from exc
        if result.error:
            raise EngineConstructionError(str(result.error))
        if result.instance is None:
            raise EngineConstructionError("engine factory returned no instance")
        return result.instance

    # ------------------------------------------------------------------
    # Focus and highlight propagation (engine -> host only)
    # ------------------------------------------------------------------

    def _bind_focus(self, chart: ChartHost) -> None:
        key = id(chart)
        if key in self._focus_bound:
            return
        chart.on_focus(lambda: self.display_point(chart))
        chart.on_blur(lambda: self.clear_highlight(chart))
        self._focus_bound.add(key)

    def display_point(self, chart: ChartHost) -> None:
        """Highlight the engine's current index on every visible host series."""
        record = self.registry.lookup(chart)
        if record is None:
            return
        position = record.engine.get_current()
        if position is None:
            return
        elements = [ActiveElement(dataset_index=i, index=position.index) for i in record.visible_series]
        self._highlight(chart, elements)

    def clear_highlight(self, chart: ChartHost) -> None:
        """Remove host highlight and tooltip (called on blur)."""
        self._highlight(chart, [])

    @staticmethod
    def _highlight(chart: ChartHost, elements: Sequence[ActiveElement]) -> None:
        try:
            chart.set_active_elements(elements)
            chart.set_tooltip_elements(elements)
            chart.redraw()
        except Exception:  # pragma: no cover - host callback boundary
            logger.warning("could not update host highlight", exc_info=True)


__all__ = [
    "AGGREGATE_GROUP",
    "SonificationPlugin",
    "chart_title",
    "host_has_data",
    "visible_indices",
]
