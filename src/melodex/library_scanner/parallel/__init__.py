"""Worker pools for the library scanner.

This package contains the worker infrastructure:
- WorkerPool: bounded pool with submit / drain / close
- ResultStream: thread-fed lazy result sequence with backpressure
- ScanWorker: root paths -> (track, cover) stream
- CoverWorkerPool: cover buffer -> persisted cover paths
- ScraperWorker: artists -> identifier and artwork streams
"""

from .cover_worker import CoverWorkerPool
from .pool import WorkerPool, process_pool_factory
from .scan_worker import ScanWorker
from .scraper_worker import ScraperWorker
from .stream import ResultStream

__all__ = [
    "WorkerPool",
    "process_pool_factory",
    "ResultStream",
    "ScanWorker",
    "CoverWorkerPool",
    "ScraperWorker",
]
