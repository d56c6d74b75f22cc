"""Progress side channel between a running scan and the thread that polls it."""

import queue
import threading
from dataclasses import dataclass
from typing import List


@dataclass(frozen=True)
class ProgressEvent:
    fraction: float
    message: str

    @property
    def done(self) -> bool:
        return self.fraction >= 1.0


class ProgressChannelClosed(Exception):
    """Raised when sending on a channel whose receiver has gone away."""


class ProgressChannel:
    """
    A non-blocking, single-receiver queue of progress events.

    The receiver drains it with ``poll()`` once per frame. Calling
    ``close()`` marks the receiver as gone; any later ``send()`` raises
    ``ProgressChannelClosed``.
    """

    def __init__(self):
        self._queue: "queue.SimpleQueue[ProgressEvent]" = queue.SimpleQueue()
        self._closed = threading.Event()

    def send(self, fraction: float, message: str) -> None:
        if self._closed.is_set():
            raise ProgressChannelClosed("progress receiver has gone away")
        fraction = min(max(fraction, 0.0), 1.0)
        self._queue.put(ProgressEvent(fraction, message))

    def poll(self) -> List[ProgressEvent]:
        """Return every pending event without blocking."""
        events: List[ProgressEvent] = []
        while True:
            try:
                events.append(self._queue.get_nowait())
            except queue.Empty:
                return events

    def close(self) -> None:
        self._closed.set()

    @property
    def closed(self) -> bool:
        return self._closed.is_set()
