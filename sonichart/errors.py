"""Exception taxonomy for chart/sonification reconciliation.

Every error in this package is recoverable from the host's point of view. The
driver raises these at the seam that fails and converts them at the hook
boundary into an error-channel message, a log line, or a fallback path.
"""

from __future__ import annotations


class SonificationError(RuntimeError):
    """Base class for reconciliation failures."""


class UnsupportedSeriesKindError(SonificationError):
    """One or more series map to no sonification kind (or to several)."""

    def __init__(self, message: str, *, invalid_kind: str | None = None) -> None:
        super().__init__(message)
        self.invalid_kind = invalid_kind


class EngineConstructionError(SonificationError):
    """The engine factory reported an error instead of an instance."""


class VisibilityAssignmentError(SonificationError):
    """The engine rejected a category visibility change."""

    def __init__(self, category: str, message: str) -> None:
        super().__init__(f"{category}: {message}")
        self.category = category


class AppendClassificationError(SonificationError):
    """Snapshots could not be compared for an incremental append."""


class UnshapeableValueError(SonificationError):
    """A series value cannot be turned into an engine point."""


__all__ = [
    "AppendClassificationError",
    "EngineConstructionError",
    "SonificationError",
    "UnsupportedSeriesKindError",
    "UnshapeableValueError",
    "VisibilityAssignmentError",
]
