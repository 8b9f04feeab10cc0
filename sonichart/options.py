"""Per-chart plugin configuration.

The host passes an option block to every lifecycle hook. ``PluginOptions``
turns that block into an immutable record; it accepts both the snake_case
names used in this package and camelCase aliases (``audioEngine``, ``errorCallback``).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Mapping, Optional

logger = logging.getLogger(__name__)
logger.addHandler(logging.NullHandler())

ErrorCallback = Callable[[str], Any]

PLUGIN_DEFAULTS: dict[str, Any] = {
    "cc": None,
    "audio_engine": None,
    "error_callback": None,
}

_ALIASES: dict[str, str] = {
    "audioEngine": "audio_engine",
    "errorCallback": "error_callback",
    "incrementalAppend": "incremental_append",
}


@dataclass(frozen=True)
class PluginOptions:
    """Resolved option block for one chart.

    Parameters
    ----------
    cc : Any
        Control element (live region) for announcements. ``None`` asks the
        driver to create one.
    audio_engine : Any
        Audio backend forwarded to the engine factory when set.
    error_callback : callable or None
        Receives a message for every reported error.
    axes : mapping
        Per-axis overrides, ``{"x": {...}, "y": {...}}``. Applied last.
    lang : str or None
        Language forwarded to the engine when set.
    incremental_append : bool
        Use ``append_data`` for pure appends instead of a full replace.
    """

    cc: Any = None
    audio_engine: Any = None
    error_callback: Optional[ErrorCallback] = None
    axes: Mapping[str, Mapping[str, Any]] = field(default_factory=dict)
    lang: Optional[str] = None
    incremental_append: bool = False

    @classmethod
    def from_mapping(cls, options: "PluginOptions | Mapping[str, Any] | None") -> "PluginOptions":
        """Build options from a host option block (or pass existing options through)."""
        if isinstance(options, PluginOptions):
            return options
        if options is None:
            return cls()
        known = set(cls.__dataclass_fields__)
        values: dict[str, Any] = {}
        for key, value in options.items():
            name = _ALIASES.get(key, key)
            if name not in known:
                logger.debug("ignoring unknown plugin option %r", key)
                continue
            values[name] = value
        axes = values.get("axes")
        values["axes"] = dict(axes) if axes else {}
        values["incremental_append"] = bool(values.get("incremental_append", False))
        return cls(**values)

    def axis_override(self, axis: str) -> dict[str, Any]:
        """Return a copy of the caller override for ``axis`` (empty when absent)."""
        override = self.axes.get(axis)
        return dict(override) if override else {}

    def report_error(self, message: str) -> None:
        """Send ``message`` to the caller error channel, if any."""
        if self.error_callback is None:
            return
        try:
            self.error_callback(message)
        except Exception:
            logger.exception("error_callback raised while reporting %r", message)


__all__ = ["ErrorCallback", "PLUGIN_DEFAULTS", "PluginOptions"]
