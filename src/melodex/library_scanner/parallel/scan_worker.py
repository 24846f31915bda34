"""Scan worker: root paths in, (track, cover) stream out."""

import logging
from typing import Callable, Iterator, List, Optional

from ..discovery import discover_audio_files
from ..errors import WorkerError
from ..metadata.extractor import extract_track
from ..models import ScanResult
from .pool import PoolFactory, WorkerPool
from .stream import ResultStream

logger = logging.getLogger(__name__)

Extractor = Callable[..., Optional[ScanResult]]


class ScanWorker:
    """
    One-shot extraction worker.

    Files are discovered on the stream thread and extracted in a bounded
    pool; results are yielded in completion order. A worker serves exactly
    one ``start`` call, so the orchestrator spawns a fresh one per scan.

    Args:
        processes: Extraction pool size
        extractor: Picklable ``path -> ScanResult | None`` function
        pool_factory: Underlying pool factory (process pool by default)
        queue_maxsize: Backpressure bound between workers and consumer
    """

    kind = "scanner"

    def __init__(
        self,
        processes: int,
        extractor: Extractor = extract_track,
        pool_factory: Optional[PoolFactory] = None,
        queue_maxsize: int = 100,
    ):
        self.extractor = extractor
        self.queue_maxsize = queue_maxsize
        self._pool = WorkerPool(self.kind, processes, pool_factory)
        self._stream: Optional[ResultStream] = None

    def _produce(self, roots: List[str]) -> Iterator[ScanResult]:
        paths = discover_audio_files(roots)
        for result in self._pool.map_unordered(self.extractor, paths):
            if result is not None:
                yield result

    def start(self, roots: List[str]) -> Iterator[ScanResult]:
        """
        Begin scanning ``roots``.

        Returns:
            Lazy, finite iterator of ScanResult

        Raises:
            WorkerError: The worker was already started; or, from the
                iterator, extraction failed outside per-file handling
        """
        if self._stream is not None:
            raise WorkerError("Scan worker cannot be restarted", worker=self.kind)
        roots = list(roots)
        logger.info(f"Starting scan worker: {{'roots': {roots!r}}}")
        self._stream = ResultStream(self.kind, lambda: self._produce(roots), self.queue_maxsize)
        return iter(self._stream)

    def terminate(self) -> None:
        if self._stream is not None:
            self._stream.cancel()
        self._pool.terminate()
