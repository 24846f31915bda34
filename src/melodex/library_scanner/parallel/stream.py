"""Lazy result sequence fed by a dedicated producer thread.

A ``ResultStream`` runs a producer (any callable returning an iterable) on
its own thread and hands the items to the consumer through a bounded
queue. The consumer processes one item at a time; the bound gives
backpressure so a fast producer never runs far ahead of catalog writes.

Architecture:
- Producer thread puts items, then a sentinel (or a failure wrapper)
- Consumer iterates; a producer exception is re-raised as WorkerError
- A stream is single-use
"""

import logging
import threading
from queue import Full, Queue
from typing import Any, Callable, Iterable, Iterator, Optional

from ..errors import WorkerError

logger = logging.getLogger(__name__)

_DONE = object()
_PUT_TIMEOUT = 0.1


class _Failure:
    """Carries a producer exception across the queue."""

    def __init__(self, error: BaseException):
        self.error = error


class ResultStream:
    """Single-use, bounded, thread-backed iterator.

    Args:
        name: Worker kind ('scanner', 'scraper'); reported on failure
        producer: Zero-argument callable returning the items to stream
        maxsize: Queue bound between producer and consumer
    """

    def __init__(self, name: str, producer: Callable[[], Iterable[Any]], maxsize: int = 100):
        self.name = name
        self._producer = producer
        self._queue: Queue = Queue(maxsize=maxsize)
        self._cancelled = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self._consumed = False

    def _put(self, item: Any) -> bool:
        while not self._cancelled.is_set():
            try:
                self._queue.put(item, timeout=_PUT_TIMEOUT)
                return True
            except Full:
                continue
        return False

    def _run(self) -> None:
        produced = 0
        try:
            for item in self._producer():
                if not self._put(item):
                    logger.debug(f"Stream cancelled: {{'name': {self.name!r}, 'produced': {produced}}}")
                    return
                produced += 1
        except Exception as e:
            logger.error(
                f"Worker stream failed: {{'name': {self.name!r}, 'produced': {produced}, 'error': {str(e)!r}}}"
            )
            self._put(_Failure(e))
            return
        self._put(_DONE)
        logger.debug(f"Worker stream finished: {{'name': {self.name!r}, 'produced': {produced}}}")

    def __iter__(self) -> Iterator[Any]:
        if self._consumed:
            raise WorkerError(f"Result stream already consumed: {self.name}", worker=self.name)
        self._consumed = True

        self._thread = threading.Thread(target=self._run, name=f"{self.name}-stream", daemon=True)
        self._thread.start()
        return self._iterate()

    def _iterate(self) -> Iterator[Any]:
        try:
            while True:
                item = self._queue.get()
                if item is _DONE:
                    return
                if isinstance(item, _Failure):
                    raise WorkerError(
                        f"Worker stream failed: {item.error}",
                        worker=self.name,
                        error_type=type(item.error).__name__,
                    ) from item.error
                yield item
        finally:
            # Consumer stopped early (break or exception): release the producer
            self.cancel()

    def cancel(self) -> None:
        """Stop the producer at its next put. Already-queued items are dropped."""
        self._cancelled.set()

    def join(self, timeout: Optional[float] = None) -> None:
        if self._thread is not None:
            self._thread.join(timeout)
