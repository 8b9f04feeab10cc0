"""Queued debouncing for bursts of host change events."""

from __future__ import annotations

import asyncio
import logging
import threading
from collections import deque
from dataclasses import dataclass
from typing import Any, Callable, Deque, Optional, Tuple

logger = logging.getLogger(__name__)
logger.addHandler(logging.NullHandler())


@dataclass
class _QueuedCall:
    args: Tuple[Any, ...]
    kwargs: dict[str, Any]


class QueuedDebouncer:
    """Queue callback invocations and execute them at a fixed cadence.

    Parameters
    ----------
    callback:
        Callable to execute from queued events.
    execute_every_ms:
        Execution cadence in milliseconds.
    drop_overflow:
        If ``True``, each tick keeps only the last queued event before executing.

    Notes
    -----
    The timer runs on the active asyncio loop when there is one (notebook
    kernels), otherwise on a daemon ``threading.Timer``. The thread fallback
    runs ``callback`` off the caller's thread, so callers that touch widget
    or plugin state should only debounce while an event loop is running.
    ``flush`` drains the queue synchronously, which hosts use before teardown.
    """

    def __init__(
        self,
        callback: Callable[..., Any],
        *,
        execute_every_ms: int,
        drop_overflow: bool = True,
    ) -> None:
        if execute_every_ms <= 0:
            raise ValueError("execute_every_ms must be > 0")
        self._callback = callback
        self._execute_every_s = execute_every_ms / 1000.0
        self._drop_overflow = bool(drop_overflow)

        self._queue: Deque[_QueuedCall] = deque()
        self._lock = threading.Lock()
        self._timer: Optional[Any] = None

    @property
    def pending(self) -> int:
        """Number of queued calls not yet executed."""
        with self._lock:
            return len(self._queue)

    def __call__(self, *args: Any, **kwargs: Any) -> None:
        with self._lock:
            self._queue.append(_QueuedCall(args=args, kwargs=dict(kwargs)))
            if self._timer is None:
                self._schedule_next_locked()

    def _schedule_next_locked(self) -> None:
        delay_s = self._execute_every_s
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            timer = threading.Timer(delay_s, self._on_tick)
            timer.daemon = True
            self._timer = timer
            timer.start()
            return

        self._timer = loop.call_later(delay_s, self._on_tick)

    def _on_tick(self) -> None:
        with self._lock:
            self._timer = None
            if not self._queue:
                return

            if self._drop_overflow and len(self._queue) > 1:
                last = self._queue[-1]
                self._queue.clear()
                self._queue.append(last)

            call = self._queue.popleft()
            if self._queue:
                self._schedule_next_locked()

        self._run(call)

    def flush(self) -> None:
        """Cancel the pending timer and run the queued call(s) now."""
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None
            calls = list(self._queue)
            self._queue.clear()
        if self._drop_overflow and calls:
            calls = calls[-1:]
        for call in calls:
            self._run(call)

    def _run(self, call: _QueuedCall) -> None:
        try:
            self._callback(*call.args, **call.kwargs)
        except Exception:
            logger.exception("QueuedDebouncer callback failed")


__all__ = ["QueuedDebouncer"]
