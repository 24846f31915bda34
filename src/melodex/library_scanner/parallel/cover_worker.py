"""Cover writer pool shared across scans."""

import logging
from typing import Optional

from ..covers import DEFAULT_HIGH_RESOLUTION, DEFAULT_LOW_RESOLUTION, store_cover
from ..errors import WorkerError
from ..models import CoverPaths
from .pool import PoolFactory, WorkerPool

logger = logging.getLogger(__name__)


class CoverWorkerPool(WorkerPool):
    """
    Bounded pool persisting cover buffers off the coordinating thread.

    Created once per orchestrator and reused by every scan and enrichment
    pass. ``drain`` must complete before the pool is torn down.

    Args:
        processes: Number of cover writer workers
        high_resolution: Bounding box of the high variant in px
        low_resolution: Bounding box of the low variant in px
        pool_factory: Underlying pool factory (process pool by default)
    """

    kind = "cover-writer"

    def __init__(
        self,
        processes: int,
        high_resolution: int = DEFAULT_HIGH_RESOLUTION,
        low_resolution: int = DEFAULT_LOW_RESOLUTION,
        pool_factory: Optional[PoolFactory] = None,
    ):
        super().__init__(self.kind, processes, pool_factory)
        self.high_resolution = high_resolution
        self.low_resolution = low_resolution

    def persist(self, buffer: bytes, cache_dir: str, key: str, dual: bool) -> Optional[CoverPaths]:
        """
        Write ``buffer`` as ``<key>-high.jpg`` (and ``<key>-low.jpg`` if dual).

        Args:
            buffer: Raw image bytes
            cache_dir: Target directory
            key: Track or artist identifier
            dual: Also write the low-resolution variant

        Returns:
            CoverPaths, or None when the write failed (failure is logged)
        """
        try:
            return self.run(
                store_cover, buffer, cache_dir, key, dual, self.high_resolution, self.low_resolution
            )
        except WorkerError as e:
            logger.error(f"Cover write failed: {{'key': {key!r}, 'error': {e.message!r}}}")
            return None
