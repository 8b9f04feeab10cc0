"""Control element (live region) used by the engine for announcements."""

from __future__ import annotations

from typing import Any

import ipywidgets as widgets

CONTROL_CSS_CLASS = "sonichart-cc"


def create_control_element() -> widgets.HTML:
    """Return an empty HTML widget suitable as an announcement region."""
    element = widgets.HTML("", layout=widgets.Layout(width="100%", margin="0"))
    element.add_class(CONTROL_CSS_CLASS)
    return element


def resolve_control_element(host: Any, provided: Any) -> Any:
    """Return ``provided`` or a new element attached next to ``host``."""
    if provided is not None:
        return provided
    element = create_control_element()
    host.attach_control(element)
    return element


__all__ = ["CONTROL_CSS_CLASS", "create_control_element", "resolve_control_element"]
