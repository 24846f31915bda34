"""Post-scan artist enrichment: external identifiers, then artwork."""

import logging
from dataclasses import replace
from typing import Callable, Dict, Optional

from .catalog import Catalog
from .dedup import CoverPersister
from .errors import WorkerError
from .notifications import StatusSink, notify
from .parallel.scraper_worker import ScraperWorker

logger = logging.getLogger(__name__)


class ArtistEnrichmentPipeline:
    """
    Two strictly sequential phases over every catalog artist.

    1. Identifier resolution: each resolved artist is written back as soon
       as it arrives. Unresolved artists and a failed resolution stream are
       not fatal.
    2. Artwork fetch: a returned cover is persisted at a single resolution;
       otherwise the catalog's default cover for the artist is used. Each
       artist is written back immediately.

    The scraper worker is spawned on first use and torn down after both
    phases and the cover pool have drained.

    Args:
        catalog: Artist store
        cover_pool: Persists artwork buffers (CoverWorkerPool)
        sink: Status channel
        scraper_worker_factory: Creates the dedicated scraper worker
    """

    def __init__(
        self,
        catalog: Catalog,
        cover_pool: CoverPersister,
        sink: StatusSink,
        scraper_worker_factory: Callable[[], ScraperWorker],
    ):
        self.catalog = catalog
        self.cover_pool = cover_pool
        self.sink = sink
        self._scraper_worker_factory = scraper_worker_factory
        self._worker: Optional[ScraperWorker] = None

    def _scraper(self) -> ScraperWorker:
        if self._worker is None:
            self._worker = self._scraper_worker_factory()
        return self._worker

    def run(self, artwork_dir: str) -> Dict[str, int]:
        """
        Enrich all artists.

        Args:
            artwork_dir: Directory for artist artwork

        Returns:
            Dict with 'artists', 'resolved' and 'artworks' counts

        Raises:
            WorkerError: The artwork stream failed
            CatalogError: A catalog write failed
        """
        stats = {"artists": 0, "resolved": 0, "artworks": 0}
        artists = self.catalog.get_artists()
        stats["artists"] = len(artists)
        if not artists:
            logger.info("No artists to enrich")
            return stats

        logger.info(f"Starting artist enrichment: {{'artists': {len(artists)}}}")
        try:
            stats["resolved"] = self._resolve_ids(artists)
            # Re-read so phase 2 sees the identifiers written in phase 1
            stats["artworks"] = self._fetch_artworks(self.catalog.get_artists(), artwork_dir)
        finally:
            self.cover_pool.drain()
            if self._worker is not None:
                self._worker.terminate()
                self._worker = None

        logger.info(
            f"Artist enrichment completed: {{'artists': {stats['artists']}, "
            f"'resolved': {stats['resolved']}, 'artworks': {stats['artworks']}}}"
        )
        return stats

    def _resolve_ids(self, artists) -> int:
        resolved = 0
        try:
            for artist in self._scraper().resolve_ids(artists):
                if artist is None:
                    continue
                self.catalog.update_artist(artist)
                resolved += 1
        except WorkerError as e:
            logger.error(f"Artist identifier resolution failed: {{'resolved': {resolved}, 'error': {e.message!r}}}")
        return resolved

    def _fetch_artworks(self, artists, artwork_dir: str) -> int:
        found = 0
        for result in self._scraper().fetch_artworks(artists, artwork_dir):
            artist = result.artist
            notify(self.sink, "artwork-status", f"Found artwork for {artist.name}")

            cover_path = None
            if result.cover:
                paths = self.cover_pool.persist(result.cover, artwork_dir, artist.artist_id, False)
                cover_path = paths.high if paths is not None else None
            if cover_path is None:
                cover_path = self.catalog.default_cover_for_artist(artist.artist_id)
            else:
                found += 1

            self.catalog.update_artist(replace(artist, cover_path=cover_path))
        return found
