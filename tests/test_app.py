"""Frame-advance pumping in the tk host, using stand-ins instead of a display."""

import logging
from types import SimpleNamespace

import pytest

pytest.importorskip("PIL.ImageTk")

from animclock import EventQueue, RequestNextFrame  # noqa: E402
from app import ViewerApp  # noqa: E402


def make_host(results):
    calls = []
    results = iter(results)

    def advance():
        calls.append("advance")
        return next(results)

    def after(ms, func):
        calls.append(("after", ms))
        return "after#1"

    host = SimpleNamespace(
        events=EventQueue(),
        viewport=SimpleNamespace(advance=advance),
        settings=SimpleNamespace(poll_interval_ms=5),
        after=after,
        close=lambda: calls.append("close"),
        _poll_after_id="after#0",
    )
    host._pump_events = lambda: ViewerApp._pump_events(host)
    return host, calls


def test_pump_applies_each_queued_advance_then_reschedules():
    host, calls = make_host([True, True, True])
    for _ in range(3):
        host.events.send(RequestNextFrame())

    ViewerApp._pump_events(host)

    assert calls == ["advance", "advance", "advance", ("after", 5)]
    assert host._poll_after_id == "after#1"
    assert list(host.events.drain()) == []


def test_pump_ignores_other_events():
    host, calls = make_host([True])
    host.events.send("something else")
    host.events.send(RequestNextFrame())

    ViewerApp._pump_events(host)

    assert calls == ["advance", ("after", 5)]


def test_failed_advance_closes_and_stops_polling(caplog):
    host, calls = make_host([False, True])
    host.events.send(RequestNextFrame())
    host.events.send(RequestNextFrame())

    with caplog.at_level(logging.WARNING, logger="app"):
        ViewerApp._pump_events(host)

    assert calls == ["advance", "close"]
    assert host._poll_after_id is None
    assert "stopping playback" in caplog.text
