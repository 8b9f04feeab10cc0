from __future__ import annotations

import logging
from unittest.mock import patch

import pytest

from sonichart.debouncing import QueuedDebouncer


class _FakeThreadTimer:
    created: list["_FakeThreadTimer"] = []

    def __init__(self, delay: float, callback):
        self.delay = delay
        self.callback = callback
        self.daemon = False
        self.started = False
        self.cancelled = False
        _FakeThreadTimer.created.append(self)

    def start(self) -> None:
        self.started = True

    def cancel(self) -> None:
        self.cancelled = True


class _FakeLoopHandle:
    def __init__(self, callback):
        self._callback = callback

    def fire(self) -> None:
        self._callback()


class _FakeAsyncLoop:
    def __init__(self) -> None:
        self.handles: list[_FakeLoopHandle] = []

    def call_later(self, _delay: float, callback):
        handle = _FakeLoopHandle(callback)
        self.handles.append(handle)
        return handle


@pytest.fixture(autouse=True)
def _reset_timers():
    _FakeThreadTimer.created.clear()
    yield


def test_burst_collapses_to_last_call() -> None:
    seen: list[str] = []

    with patch("sonichart.debouncing.threading.Timer", _FakeThreadTimer):
        debouncer = QueuedDebouncer(seen.append, execute_every_ms=50)
        debouncer("first")
        debouncer("second")
        debouncer("third")
        assert debouncer.pending == 3
        assert len(_FakeThreadTimer.created) == 1
        assert _FakeThreadTimer.created[0].delay == pytest.approx(0.05)
        assert _FakeThreadTimer.created[0].daemon is True

        _FakeThreadTimer.created[0].callback()

    assert seen == ["third"]
    assert debouncer.pending == 0


def test_flush_runs_pending_call_and_cancels_timer() -> None:
    seen: list[str] = []

    with patch("sonichart.debouncing.threading.Timer", _FakeThreadTimer):
        debouncer = QueuedDebouncer(seen.append, execute_every_ms=10)
        debouncer("a")
        debouncer("b")
        debouncer.flush()

    assert seen == ["b"]
    assert _FakeThreadTimer.created[0].cancelled is True
    debouncer.flush()
    assert seen == ["b"]


def test_rejects_non_positive_cadence() -> None:
    with pytest.raises(ValueError):
        QueuedDebouncer(print, execute_every_ms=0)


def test_debouncer_logs_and_keeps_processing_after_callback_error_threading(caplog) -> None:
    state = {"n": 0}

    def _callback(_payload):
        state["n"] += 1
        if state["n"] == 1:
            raise RuntimeError("boom")

    with patch("sonichart.debouncing.threading.Timer", _FakeThreadTimer):
        debouncer = QueuedDebouncer(_callback, execute_every_ms=1, drop_overflow=False)
        with caplog.at_level(logging.ERROR, logger="sonichart.debouncing"):
            debouncer("first")
            debouncer("second")
            assert len(_FakeThreadTimer.created) == 1

            _FakeThreadTimer.created[0].callback()
            assert len(_FakeThreadTimer.created) == 2
            _FakeThreadTimer.created[1].callback()

    assert state["n"] == 2
    assert "QueuedDebouncer callback failed" in caplog.text


def test_debouncer_uses_running_asyncio_loop() -> None:
    seen: list[str] = []
    fake_loop = _FakeAsyncLoop()

    with patch("sonichart.debouncing.asyncio.get_running_loop", return_value=fake_loop):
        debouncer = QueuedDebouncer(seen.append, execute_every_ms=1, drop_overflow=False)
        debouncer("first")
        debouncer("second")
        assert len(fake_loop.handles) == 1

        fake_loop.handles[0].fire()
        assert len(fake_loop.handles) == 2
        fake_loop.handles[1].fire()

    assert seen == ["first", "second"]
