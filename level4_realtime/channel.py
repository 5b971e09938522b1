"""Bounded event channel between the remote feed and the reconciler.

Remote subscriptions push events into the channel from whatever thread
delivers them; the reconciler drains it synchronously. Closing the channel
is the cancellation primitive: consumers finish the queued events and stop.
"""

import queue
import threading
import time
from typing import Iterator, Optional

from utils import get_logger

from .events import ChangeEvent

logger = get_logger(__name__)

POLL_INTERVAL = 0.1


class ChannelClosedError(Exception):
    """Raised when putting into a closed channel."""

    pass


class EventChannel:
    """FIFO queue of change events with a fixed capacity."""

    _CLOSED = object()

    def __init__(self, maxsize: int = 1000):
        self._queue: queue.Queue = queue.Queue(maxsize=maxsize)
        self._closed = threading.Event()

    @property
    def closed(self) -> bool:
        return self._closed.is_set()

    def put(self, event: ChangeEvent, timeout: Optional[float] = None) -> None:
        """Enqueue an event, blocking while the channel is full.

        Raises:
            ChannelClosedError: If the channel is closed
            queue.Full: If the timeout expires while the channel is full
        """
        if self.closed:
            raise ChannelClosedError("Event channel is closed")
        self._queue.put(event, timeout=timeout)

    def get(self, timeout: Optional[float] = None) -> Optional[ChangeEvent]:
        """Dequeue the next event.

        Returns:
            The next event, or None once the channel is closed and empty or
            the timeout expires
        """
        deadline = None if timeout is None else time.monotonic() + timeout
        while True:
            wait = POLL_INTERVAL
            if deadline is not None:
                wait = min(wait, max(deadline - time.monotonic(), 0.0))
            try:
                item = self._queue.get(timeout=wait) if wait > 0 else self._queue.get_nowait()
            except queue.Empty:
                if self.closed:
                    return None
                if deadline is not None and time.monotonic() >= deadline:
                    return None
                continue
            if item is self._CLOSED:
                return None
            return item

    def pending(self) -> list[ChangeEvent]:
        """Dequeue every event currently queued without blocking."""
        events = []
        while True:
            try:
                item = self._queue.get_nowait()
            except queue.Empty:
                return events
            if item is not self._CLOSED:
                events.append(item)

    def close(self) -> None:
        """Close the channel; queued events remain readable."""
        if self.closed:
            return
        self._closed.set()
        try:
            self._queue.put_nowait(self._CLOSED)
        except queue.Full:
            # consumers see the closed flag once the queue drains
            pass
        logger.debug("Event channel closed")

    def __iter__(self) -> Iterator[ChangeEvent]:
        while True:
            event = self.get()
            if event is None:
                return
            yield event
