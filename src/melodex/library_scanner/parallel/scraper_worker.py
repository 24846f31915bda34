"""Scraper worker: artist list in, resolution and artwork streams out."""

import logging
from typing import Iterator, List, Optional

from ..models import Artist, ArtworkResult
from ..scraper import ArtistScraper
from .stream import ResultStream

logger = logging.getLogger(__name__)


class ScraperWorker:
    """
    Runs an ArtistScraper on a dedicated thread per phase.

    Network calls happen on the stream thread, so the coordinator only
    blocks while waiting for the next result.

    Args:
        scraper: Source of external artist data
        queue_maxsize: Backpressure bound between scraper and consumer
    """

    kind = "scraper"

    def __init__(self, scraper: ArtistScraper, queue_maxsize: int = 100):
        self.scraper = scraper
        self.queue_maxsize = queue_maxsize
        self._streams: List[ResultStream] = []
        self._terminated = False

    def _stream(self, producer) -> Iterator:
        stream = ResultStream(self.kind, producer, self.queue_maxsize)
        self._streams.append(stream)
        return iter(stream)

    def resolve_ids(self, artists: List[Artist]) -> Iterator[Optional[Artist]]:
        """Phase 1 stream: resolved artists, None for unresolved ones."""
        artists = list(artists)
        logger.info(f"Resolving artist identifiers: {{'artists': {len(artists)}}}")
        return self._stream(lambda: self.scraper.resolve_ids(artists))

    def fetch_artworks(self, artists: List[Artist], artwork_dir: str) -> Iterator[ArtworkResult]:
        """Phase 2 stream: one ArtworkResult per artist."""
        artists = list(artists)
        logger.info(f"Fetching artist artwork: {{'artists': {len(artists)}, 'dir': {artwork_dir!r}}}")
        return self._stream(lambda: self.scraper.fetch_artworks(artists, artwork_dir))

    def terminate(self) -> None:
        if self._terminated:
            return
        self._terminated = True
        for stream in self._streams:
            stream.cancel()
        self._streams.clear()
        try:
            self.scraper.close()
        except Exception as e:
            logger.warning(f"Failed to close scraper: {{'error': {str(e)!r}}}")
        logger.debug("Scraper worker terminated")
