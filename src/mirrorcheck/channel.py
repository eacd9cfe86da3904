from __future__ import annotations

import queue
import threading
from typing import Generic, Iterator, TypeVar

T = TypeVar("T")

DEFAULT_POLL_INTERVAL = 0.1

_CLOSED = object()


class Channel(Generic[T]):
    """Bounded, closable queue whose blocking calls race a cancel event.

    Closing pushes a single end-of-stream marker. Each consumer that sees it
    puts it back, so every consumer of a shared channel observes the close.
    """

    def __init__(self, maxsize: int = 0, poll_interval: float = DEFAULT_POLL_INTERVAL) -> None:
        self._queue: queue.Queue = queue.Queue(maxsize=max(0, int(maxsize)))
        self._poll_interval = max(0.001, float(poll_interval))
        self._closed = False
        self._lock = threading.Lock()

    @property
    def closed(self) -> bool:
        return self._closed

    def put(self, item: T, cancel: threading.Event) -> bool:
        if self._closed:
            raise RuntimeError("put on closed channel")
        return self._put(item, cancel)

    def close(self, cancel: threading.Event) -> None:
        with self._lock:
            if self._closed:
                return
            self._closed = True
        self._put(_CLOSED, cancel)

    def drain(self, cancel: threading.Event) -> Iterator[T]:
        """Yield items until the channel is closed or the cancel event fires."""
        while not cancel.is_set():
            try:
                item = self._queue.get(timeout=self._poll_interval)
            except queue.Empty:
                continue
            if item is _CLOSED:
                self._queue.put_nowait(_CLOSED)
                return
            yield item

    def _put(self, item: object, cancel: threading.Event) -> bool:
        while not cancel.is_set():
            try:
                self._queue.put(item, timeout=self._poll_interval)
                return True
            except queue.Full:
                continue
        return False
