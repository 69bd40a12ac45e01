"""Tests for the animation clock and its event queue."""

import queue
import time

import pytest

from animclock import (
    AnimationClock,
    ClockJoinError,
    EventQueue,
    RequestNextFrame,
    SinkClosedError,
    animation_clock_for,
)
from framelib import Frame, FrameSequence, SingleFrame


def wait_until(predicate, timeout=2.0):
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.005)
    return predicate()


def test_event_queue_is_fifo_without_coalescing():
    q = EventQueue()
    for i in range(5):
        q.send(i)
    assert len(q) == 5
    assert list(q.drain()) == [0, 1, 2, 3, 4]
    assert list(q.drain()) == []


def test_event_queue_rejects_send_after_close():
    q = EventQueue()
    q.close()
    assert q.closed
    with pytest.raises(SinkClosedError):
        q.send(RequestNextFrame())


def test_clock_emits_advance_signals():
    sink = EventQueue()
    clock = AnimationClock([0.01, 0.02], sink)
    try:
        for _ in range(3):
            assert isinstance(sink.get(timeout=1.0), RequestNextFrame)
    finally:
        clock.stop()
    assert clock.finished
    assert not clock.is_running


def test_stop_mid_sleep_is_bounded_and_silent_afterwards():
    sink = EventQueue()
    clock = AnimationClock([0.01, 0.02], sink)
    time.sleep(0.015)

    t0 = time.monotonic()
    clock.stop()
    elapsed = time.monotonic() - t0

    assert elapsed < 0.5
    assert clock.finished

    list(sink.drain())
    time.sleep(0.05)
    assert list(sink.drain()) == []


def test_stop_is_idempotent():
    clock = AnimationClock([0.01], EventQueue())
    clock.stop()
    clock.stop()
    assert clock.finished


def test_worker_exits_when_sink_closes_first():
    sink = EventQueue()
    clock = AnimationClock([0.01], sink)
    sink.close()
    assert wait_until(lambda: clock.finished)
    # the flag was never cleared; the closed sink alone ended the loop
    assert clock.is_running
    clock.stop()


def test_context_manager_joins_on_exit():
    with AnimationClock([0.01], EventQueue()) as clock:
        assert clock.is_running
    assert clock.finished


def test_start_classmethod():
    sink = EventQueue()
    clock = AnimationClock.start([0.01], sink)
    try:
        assert isinstance(sink.get(timeout=1.0), RequestNextFrame)
    finally:
        clock.stop()


def test_clock_requires_delays():
    with pytest.raises(ValueError):
        AnimationClock([], EventQueue())


def test_worker_failure_surfaces_on_stop():
    class BrokenSink:
        def send(self, event):
            raise RuntimeError("boom")

    clock = AnimationClock([0.001], BrokenSink())
    assert wait_until(lambda: clock.finished)
    with pytest.raises(ClockJoinError):
        clock.stop()


def test_no_clock_for_single_frame():
    src = SingleFrame(Frame(bytes(4), 1, 1))
    assert animation_clock_for(src, EventQueue()) is None


def test_clock_for_sequence_uses_its_delays():
    src = FrameSequence([Frame(bytes(4), 1, 1), Frame(bytes(4), 1, 1)], [0.01, 0.01])
    sink = EventQueue()
    clock = animation_clock_for(src, sink)
    try:
        assert clock is not None
        assert isinstance(sink.get(timeout=1.0), RequestNextFrame)
    finally:
        clock.stop()


def test_get_times_out_when_idle():
    with pytest.raises(queue.Empty):
        EventQueue().get(timeout=0.01)
