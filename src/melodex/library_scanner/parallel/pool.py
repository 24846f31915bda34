"""Bounded worker pool with submit / drain / close.

Wraps a ``multiprocessing.Pool`` so callers only see "submit a job, get one
result or error per job" plus "wait until everything submitted has
finished". The pool itself is created lazily on first submit.
"""

import logging
import multiprocessing
import threading
from multiprocessing.pool import AsyncResult, Pool
from typing import Any, Callable, Iterable, Iterator, Optional, Set

from ..errors import WorkerError

logger = logging.getLogger(__name__)

PoolFactory = Callable[[int], Pool]


def process_pool_factory(processes: int) -> Pool:
    """Default factory: isolated worker processes."""
    return multiprocessing.Pool(processes=processes)


class WorkerPool:
    """Bounded pool of isolated workers.

    Args:
        name: Worker kind, used in logs and errors ('scanner', 'cover-writer')
        processes: Maximum number of concurrent workers
        pool_factory: Creates the underlying pool; defaults to a process pool.
            Any ``multiprocessing.pool.Pool``-compatible object works, e.g.
            ``multiprocessing.pool.ThreadPool``.
    """

    def __init__(self, name: str, processes: int, pool_factory: Optional[PoolFactory] = None):
        self.name = name
        self.processes = processes
        self._pool_factory = pool_factory or process_pool_factory
        self._pool: Optional[Pool] = None
        self._pending: Set[AsyncResult] = set()
        self._lock = threading.Lock()
        self._closed = False

    @property
    def started(self) -> bool:
        return self._pool is not None

    def _ensure_pool(self) -> Pool:
        with self._lock:
            if self._closed:
                raise WorkerError(f"Worker pool is closed: {self.name}", worker=self.name)
            if self._pool is None:
                self._pool = self._pool_factory(self.processes)
                logger.info(f"Created worker pool: {{'name': {self.name!r}, 'processes': {self.processes}}}")
            return self._pool

    def submit(self, fn: Callable[..., Any], *args: Any) -> AsyncResult:
        """Queue one job; returns its AsyncResult."""
        pool = self._ensure_pool()
        holder = {}

        def _done(_value: Any) -> None:
            with self._lock:
                self._pending.discard(holder.get("result"))

        with self._lock:
            result = pool.apply_async(fn, args, callback=_done, error_callback=_done)
            holder["result"] = result
            if not result.ready():
                self._pending.add(result)
        return result

    def run(self, fn: Callable[..., Any], *args: Any, timeout: Optional[float] = None) -> Any:
        """Submit one job and wait for its result.

        Raises:
            WorkerError: The job raised inside the worker
        """
        result = self.submit(fn, *args)
        try:
            return result.get(timeout=timeout)
        except Exception as e:
            raise WorkerError(
                f"Worker job failed: {e}", worker=self.name, function=getattr(fn, "__name__", repr(fn))
            ) from e

    def map_unordered(self, fn: Callable[[Any], Any], items: Iterable[Any], chunksize: int = 1) -> Iterator[Any]:
        """Lazily map ``fn`` over ``items``; results arrive in completion order.

        An exception raised by ``fn`` is re-raised from the iterator.
        """
        return self._ensure_pool().imap_unordered(fn, items, chunksize)

    def pending_count(self) -> int:
        with self._lock:
            return len(self._pending)

    def drain(self, timeout: Optional[float] = None) -> None:
        """Block until every job submitted so far has finished."""
        with self._lock:
            pending = list(self._pending)
        for result in pending:
            result.wait(timeout)
        if pending:
            logger.debug(f"Drained worker pool: {{'name': {self.name!r}, 'jobs': {len(pending)}}}")

    def close(self) -> None:
        """Drain, then shut the workers down. The pool cannot be reused."""
        self.drain()
        with self._lock:
            pool, self._pool = self._pool, None
            self._closed = True
        if pool is not None:
            pool.close()
            pool.join()
            logger.info(f"Closed worker pool: {{'name': {self.name!r}}}")

    def terminate(self) -> None:
        """Stop the workers immediately, abandoning queued jobs."""
        with self._lock:
            pool, self._pool = self._pool, None
            self._closed = True
            self._pending.clear()
        if pool is not None:
            pool.terminate()
            pool.join()
            logger.info(f"Terminated worker pool: {{'name': {self.name!r}}}")
