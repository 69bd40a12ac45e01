# animclock.py
import logging
import queue
import threading
import time
from typing import Iterator, List, Optional, Sequence

from framelib import FrameSource


logger = logging.getLogger(__name__)


class RequestNextFrame:
    """Signal that the next frame in an image sequence should be shown."""

    __slots__ = ()

    def __repr__(self):
        return "RequestNextFrame()"


class SinkClosedError(Exception):
    pass


class ClockJoinError(RuntimeError):
    pass


# -----------------------------
# Signal sink
# -----------------------------

class EventQueue:
    """
    FIFO hand-off from worker threads to the event loop. Only the loop
    reads it; any thread may send.
    """

    def __init__(self):
        self._q: "queue.Queue[object]" = queue.Queue()
        self._closed = threading.Event()

    @property
    def closed(self) -> bool:
        return self._closed.is_set()

    def send(self, event) -> None:
        if self._closed.is_set():
            raise SinkClosedError("event queue is closed")
        self._q.put(event)

    def close(self) -> None:
        self._closed.set()

    def get(self, timeout: Optional[float] = None):
        return self._q.get(timeout=timeout)

    def drain(self) -> Iterator[object]:
        # No coalescing: every pending event comes out, oldest first.
        while True:
            try:
                yield self._q.get_nowait()
            except queue.Empty:
                return

    def __len__(self):
        return self._q.qsize()


# -----------------------------
# Clock
# -----------------------------

class AnimationClock:
    """
    Background timer that sleeps through the frame delays in order (looping
    forever) and sends one RequestNextFrame to the sink after each delay.

    stop() is cooperative: the running flag is checked after each sleep, so
    teardown waits for at most one in-flight delay.
    """

    def __init__(self, delays: Sequence[float], sink: EventQueue):
        if not delays:
            raise ValueError("AnimationClock needs at least one delay")
        self._delays: List[float] = [max(0.0, float(d)) for d in delays]
        self._sink = sink
        self._running = threading.Event()
        self._running.set()
        self._error: Optional[BaseException] = None

        self._thread = threading.Thread(target=self._run, name="animclock", daemon=True)
        self._thread.start()
        logger.debug("Animation clock started (%d delays)", len(self._delays))

    @classmethod
    def start(cls, delays: Sequence[float], sink: EventQueue) -> "AnimationClock":
        return cls(delays, sink)

    @property
    def is_running(self) -> bool:
        return self._running.is_set()

    @property
    def finished(self) -> bool:
        return not self._thread.is_alive()

    def _run(self):
        try:
            self._loop()
        except Exception as e:
            self._error = e
            logger.exception("Animation clock worker failed")
        finally:
            logger.debug("Animation clock worker exited")

    def _loop(self):
        while self._running.is_set():
            for delay in self._delays:
                time.sleep(delay)
                if not self._running.is_set():
                    return
                try:
                    self._sink.send(RequestNextFrame())
                except SinkClosedError:
                    return

    def stop(self):
        self._running.clear()
        if self._thread is not threading.current_thread():
            self._thread.join()
        if self._error is not None:
            err, self._error = self._error, None
            raise ClockJoinError("animation clock worker died") from err

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.stop()


def animation_clock_for(source: FrameSource, sink: EventQueue) -> Optional[AnimationClock]:
    delays = source.delays()
    if delays is None:
        return None
    return AnimationClock(delays, sink)
