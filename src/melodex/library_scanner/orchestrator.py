"""Scan orchestrator: the state machine in front of the scan pipeline.

Coordinates:
- Request coalescing (IDLE -> SCANNING -> QUEUED)
- One coordinator thread per scan chain
- Prune sweep, scan worker stream and dedup, count recomputation
- Detached artist enrichment after the chain settles
- Exactly one reply per request
"""

import logging
import threading
from collections import Counter
from concurrent.futures import Future
from typing import Any, Callable, Dict, List, Optional, Tuple

from .catalog import Catalog
from .config import LibraryPreferences, LibraryScannerConfig
from .dedup import DedupEngine
from .enrichment import ArtistEnrichmentPipeline
from .errors import ScannerError, classify_error
from .models import ScanStatus
from .notifications import LoggingStatusSink, StatusSink, notify
from .parallel.cover_worker import CoverWorkerPool
from .parallel.pool import PoolFactory
from .parallel.scan_worker import ScanWorker
from .parallel.scraper_worker import ScraperWorker
from .pruner import sweep
from .scraper import ArtistScraper, NullArtistScraper

logger = logging.getLogger(__name__)

Reply = Callable[[Dict[str, Any]], None]


class ScanOrchestrator:
    """
    Serializes scan requests and owns the worker lifecycles.

    A request while IDLE starts a scan chain on a coordinator thread. A
    request while SCANNING or QUEUED only marks the chain QUEUED; when the
    current run finishes and the state is QUEUED, the chain runs once more.
    However many requests were coalesced, each gets exactly one reply when
    the chain settles.

    Replies are a summary dict::

        {"status": "completed" | "failed", "scan_runs": int,
         "tracks": {...}, "pruned": int, "error": str | None}

    delivered through the optional ``reply`` callback and the Future
    returned by ``request_scan``.

    Args:
        catalog: Track and artist store
        sink: Status channel
        preferences_loader: Returns a fresh preferences snapshot per scan
        scan_worker_factory: Spawns a fresh scan worker per scan
        scraper_worker_factory: Spawns the enrichment scraper worker
        cover_pool: Cover writer pool shared by all scans
    """

    def __init__(
        self,
        catalog: Catalog,
        sink: StatusSink,
        preferences_loader: Callable[[], LibraryPreferences],
        scan_worker_factory: Callable[[], ScanWorker],
        scraper_worker_factory: Callable[[], ScraperWorker],
        cover_pool: CoverWorkerPool,
    ):
        self.catalog = catalog
        self.sink = sink
        self.cover_pool = cover_pool
        self._preferences_loader = preferences_loader
        self._scan_worker_factory = scan_worker_factory
        self._scraper_worker_factory = scraper_worker_factory

        self._lock = threading.Lock()
        self._changed = threading.Condition(self._lock)
        self._status = ScanStatus.IDLE
        self._pending: List[Tuple[Optional[Reply], Future]] = []
        self._active_chains = 0
        self._enrichment_thread: Optional[threading.Thread] = None
        self._scan_worker: Optional[ScanWorker] = None
        self._last_preferences: Optional[LibraryPreferences] = None
        self._closed = False

    @classmethod
    def from_config(
        cls,
        catalog: Catalog,
        config: LibraryScannerConfig,
        sink: Optional[StatusSink] = None,
        preferences_loader: Optional[Callable[[], LibraryPreferences]] = None,
        scraper_factory: Callable[[], ArtistScraper] = NullArtistScraper,
        pool_factory: Optional[PoolFactory] = None,
    ) -> "ScanOrchestrator":
        """
        Build an orchestrator with the standard workers.

        Args:
            catalog: Track and artist store
            config: Root configuration (pool sizes, cover resolutions)
            sink: Status channel (log-backed when omitted)
            preferences_loader: Per-scan snapshot source; defaults to
                ``config.library``
            scraper_factory: Creates the ArtistScraper for each enrichment
            pool_factory: Pool factory for scan and cover workers
        """
        scanner = config.scanner

        def spawn_scan_worker() -> ScanWorker:
            return ScanWorker(
                scanner.scan_processes, pool_factory=pool_factory, queue_maxsize=scanner.queue_maxsize
            )

        def spawn_scraper_worker() -> ScraperWorker:
            return ScraperWorker(scraper_factory(), queue_maxsize=scanner.queue_maxsize)

        return cls(
            catalog=catalog,
            sink=sink or LoggingStatusSink(),
            preferences_loader=preferences_loader or (lambda: config.library),
            scan_worker_factory=spawn_scan_worker,
            scraper_worker_factory=spawn_scraper_worker,
            cover_pool=CoverWorkerPool(
                scanner.cover_processes,
                high_resolution=scanner.high_resolution,
                low_resolution=scanner.low_resolution,
                pool_factory=pool_factory,
            ),
        )

    # State

    @property
    def status(self) -> ScanStatus:
        with self._lock:
            return self._status

    def is_scanning(self) -> bool:
        return self.status != ScanStatus.IDLE

    def is_enriching(self) -> bool:
        with self._lock:
            return self._enrichment_thread is not None

    def wait_until_idle(self, timeout: Optional[float] = None) -> bool:
        """Block until no scan chain is running and all its replies fired."""
        with self._changed:
            return self._changed.wait_for(
                lambda: self._status == ScanStatus.IDLE and self._active_chains == 0, timeout
            )

    def wait_for_enrichment(self, timeout: Optional[float] = None) -> bool:
        with self._changed:
            return self._changed.wait_for(lambda: self._enrichment_thread is None, timeout)

    # Requests

    def request_scan(self, reply: Optional[Reply] = None) -> "Future[Dict[str, Any]]":
        """
        Ask for a scan. Never blocks on the scan itself.

        Args:
            reply: Optional callback receiving the summary dict

        Returns:
            Future resolved with the summary dict once the chain settles

        Raises:
            ScannerError: The orchestrator was closed
        """
        future: Future = Future()
        with self._lock:
            if self._closed:
                raise ScannerError("Scan orchestrator is closed")
            self._pending.append((reply, future))

            if self._status == ScanStatus.IDLE:
                self._status = ScanStatus.SCANNING
                self._active_chains += 1
                thread = threading.Thread(target=self._run_chain, name="scan-coordinator", daemon=True)
                thread.start()
                logger.info("Scan requested: {'action': 'start'}")
            else:
                self._status = ScanStatus.QUEUED
                logger.info(f"Scan requested: {{'action': 'queue', 'waiting': {len(self._pending)}}}")
        return future

    def _run_chain(self) -> None:
        runs = 0
        tracks: Counter = Counter()
        pruned = 0
        error: Optional[Exception] = None

        while True:
            runs += 1
            try:
                stats = self._scan_once()
                tracks.update(stats["tracks"])
                pruned += stats["pruned"]
            except Exception as e:
                error = e
                logger.error(
                    f"Scan failed: {{'run': {runs}, 'category': {classify_error(e)!r}, 'error': {str(e)!r}}}",
                    exc_info=True
                )
                notify(self.sink, "scan-failed", f"Scan failed: {e}", severity="error")

            with self._lock:
                if error is None and self._status == ScanStatus.QUEUED:
                    self._status = ScanStatus.SCANNING
                    logger.info(f"Running queued scan: {{'run': {runs + 1}}}")
                    continue

                if error is not None and self._status == ScanStatus.QUEUED:
                    logger.warning("Dropping queued scan after failure")
                self._status = ScanStatus.IDLE
                replies, self._pending = self._pending, []
                if error is None and self._enrichment_thread is None and not self._closed:
                    self._start_enrichment_locked()
                self._changed.notify_all()
                break

        summary = {
            "status": "failed" if error is not None else "completed",
            "scan_runs": runs,
            "tracks": dict(tracks),
            "pruned": pruned,
            "error": str(error) if error is not None else None,
        }
        logger.info(
            f"Scan chain settled: {{'status': {summary['status']!r}, 'runs': {runs}, 'replies': {len(replies)}}}"
        )
        self._deliver(replies, summary)

        with self._lock:
            self._active_chains -= 1
            self._changed.notify_all()

    def _deliver(self, replies: List[Tuple[Optional[Reply], Future]], summary: Dict[str, Any]) -> None:
        for reply, future in replies:
            future.set_result(dict(summary))
            if reply is None:
                continue
            try:
                reply(dict(summary))
            except Exception as e:
                logger.error(f"Scan reply callback failed: {{'error': {str(e)!r}}}", exc_info=True)

    # Pipeline

    def _scan_once(self) -> Dict[str, Any]:
        preferences = self._preferences_loader()
        self._last_preferences = preferences
        notify(self.sink, "started-scan", "Starting scanning files")

        if self._scan_worker is not None:
            self._scan_worker.terminate()
        worker = self._scan_worker_factory()
        self._scan_worker = worker

        tracks: Counter = Counter()
        try:
            prune_stats = sweep(self.catalog, preferences.music_roots)

            engine = DedupEngine(self.catalog, self.cover_pool, self.sink, preferences.thumbnail_dir)
            for result in worker.start(preferences.music_roots):
                try:
                    tracks[engine.reconcile(result.track, result.cover)] += 1
                except Exception as e:
                    tracks["failed"] += 1
                    logger.error(
                        f"Failed to reconcile track: {{'path': {result.track.path!r}, "
                        f"'category': {classify_error(e)!r}, 'error': {str(e)!r}}}"
                    )

            self.catalog.update_song_counts()
        finally:
            worker.terminate()
            self._scan_worker = None

        pruned = prune_stats["out_of_scope"] + prune_stats["missing"]
        notify(self.sink, "completed-scan", "Scanning Completed")
        logger.info(f"Scan completed: {{'tracks': {dict(tracks)!r}, 'pruned': {pruned}}}")
        return {"tracks": dict(tracks), "pruned": pruned}

    def _start_enrichment_locked(self) -> None:
        preferences = self._last_preferences
        thread = threading.Thread(
            target=self._run_enrichment, args=(preferences.artwork_dir,), name="artist-enrichment", daemon=True
        )
        self._enrichment_thread = thread
        thread.start()

    def _run_enrichment(self, artwork_dir: str) -> None:
        pipeline = ArtistEnrichmentPipeline(self.catalog, self.cover_pool, self.sink, self._scraper_worker_factory)
        try:
            pipeline.run(artwork_dir)
        except Exception as e:
            logger.error(
                f"Artist enrichment failed: {{'category': {classify_error(e)!r}, 'error': {str(e)!r}}}",
                exc_info=True
            )
        finally:
            with self._lock:
                self._enrichment_thread = None
                self._changed.notify_all()

    # Lifecycle

    def close(self, timeout: Optional[float] = None) -> None:
        """
        Refuse new requests, wait for running work, then release the pools.

        Args:
            timeout: Per-wait limit for the scan chain and enrichment
        """
        with self._lock:
            self._closed = True
        if not self.wait_until_idle(timeout):
            logger.warning("Closing while a scan is still running")
        if not self.wait_for_enrichment(timeout):
            logger.warning("Closing while artist enrichment is still running")

        if self._scan_worker is not None:
            self._scan_worker.terminate()
        self.cover_pool.close()
        logger.info("Scan orchestrator closed")
