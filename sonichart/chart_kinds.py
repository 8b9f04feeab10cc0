"""Host chart-kind to sonification-kind translation.

A host chart has a top-level kind and optional per-series overrides. All
series must translate to one sonification kind; a chart that mixes kinds
which translate differently, or uses a kind with no translation at all, is
rejected with :class:`~sonichart.errors.UnsupportedSeriesKindError`.
"""

from __future__ import annotations

from typing import Any, Sequence

from .errors import UnsupportedSeriesKindError

CHART_KIND_MAP: dict[str, str] = {
    "bar": "bar",
    "line": "line",
    "pie": "pie",
    "polarArea": "bar",
    "doughnut": "pie",
    "boxplot": "box",
    "radar": "bar",
    "wordCloud": "bar",
    "scatter": "scatter",
}

WORD_CLOUD = "wordCloud"


def series_kinds(chart_type: str, datasets: Sequence[Any]) -> list[str]:
    """Return the effective host kind of every series."""
    return [getattr(ds, "type", None) or chart_type for ds in datasets]


def resolve_target_kind(chart_type: str, datasets: Sequence[Any]) -> str:
    """Return the single sonification kind for a chart.

    Raises
    ------
    UnsupportedSeriesKindError
        If a series kind has no translation, or series translate to
        different sonification kinds.
    """
    kinds = series_kinds(chart_type, datasets) or [chart_type]
    for kind in kinds:
        if kind not in CHART_KIND_MAP:
            raise UnsupportedSeriesKindError(
                "Unable to connect the sonification engine to chart. "
                f'The chart is of type "{kind}", which is not one of the supported chart types '
                f"for this plugin. This plugin supports: {', '.join(CHART_KIND_MAP)}",
                invalid_kind=kind,
            )
    targets = {CHART_KIND_MAP[kind] for kind in kinds}
    if len(targets) > 1:
        listed = ", ".join(sorted(set(kinds)))
        raise UnsupportedSeriesKindError(
            "Unable to connect the sonification engine to chart. "
            f"Its series mix kinds ({listed}) that do not share a sonification type.",
            invalid_kind=listed,
        )
    return targets.pop()


__all__ = ["CHART_KIND_MAP", "WORD_CLOUD", "resolve_target_kind", "series_kinds"]
