"""Content-hash deduplication of scanned tracks against the catalog."""

import logging
from typing import Optional, Protocol

from .catalog import Catalog
from .covers import cover_pair_exists
from .models import CoverPaths, Track
from .notifications import StatusSink, notify

logger = logging.getLogger(__name__)

INSERTED = "inserted"
BACKFILLED = "backfilled"
UNCHANGED = "unchanged"


class CoverPersister(Protocol):
    def persist(self, buffer: bytes, cache_dir: str, key: str, dual: bool) -> Optional[CoverPaths]:
        ...


class DedupEngine:
    """
    Decides whether a scanned track is new or a duplicate and reconciles it.

    New tracks are inserted with their embedded cover. Duplicates are never
    re-inserted; only missing or unreachable cover pairs on the stored row
    are backfilled.

    Args:
        catalog: Track store
        cover_pool: Persists cover buffers (CoverWorkerPool)
        sink: Status channel
        thumbnail_dir: Directory for song and album covers
    """

    def __init__(self, catalog: Catalog, cover_pool: CoverPersister, sink: StatusSink, thumbnail_dir: str):
        self.catalog = catalog
        self.cover_pool = cover_pool
        self.sink = sink
        self.thumbnail_dir = thumbnail_dir

    def reconcile(self, track: Track, cover: Optional[bytes] = None) -> str:
        """
        Store or patch one scanned track.

        Args:
            track: Track produced by a scan worker (no track_id yet)
            cover: Embedded cover buffer, if the file had one

        Returns:
            'inserted', 'backfilled' or 'unchanged'

        Raises:
            CatalogError: A catalog read or write failed
        """
        notify(self.sink, "scan-status", f"Scanned {track.title}")

        existing = self.catalog.get_by_hash(track.content_hash)
        if existing is None:
            self._insert_new(track, cover)
            return INSERTED
        return self._backfill(existing, cover)

    def _persist(self, cover: Optional[bytes], key: str) -> Optional[CoverPaths]:
        if not cover:
            return None
        return self.cover_pool.persist(cover, self.thumbnail_dir, key, True)

    def _insert_new(self, track: Track, cover: Optional[bytes]) -> None:
        paths = self._persist(cover, track.cover_key)
        if paths is not None:
            track = track.with_song_cover(paths)
            album = track.album
            if album is not None and not cover_pair_exists(album.cover_path_high, album.cover_path_low):
                album.cover_path_high = paths.high
                album.cover_path_low = paths.low

        track_id = self.catalog.insert_track(track)
        if paths is not None and track.album is not None:
            self._repair_album_cover(track, track_id, paths)
        logger.debug(
            f"New track: {{'track_id': {track_id!r}, 'path': {track.path!r}, 'cover': {paths is not None}}}"
        )

    def _repair_album_cover(self, track: Track, track_id: str, paths: CoverPaths) -> None:
        # An already stored album keeps its cover pair on insert, so check what was stored
        stored = self.catalog.get_by_hash(track.content_hash)
        album = stored.album if stored is not None else None
        if album is None or cover_pair_exists(album.cover_path_high, album.cover_path_low):
            return
        self.catalog.update_album_cover(track_id, paths.high, paths.low)
        logger.debug(
            f"Replaced unreachable album cover: {{'track_id': {track_id!r}, 'album': {album.album_name!r}}}"
        )

    def _backfill(self, existing: Track, cover: Optional[bytes]) -> str:
        song_ok = cover_pair_exists(existing.song_cover_path_high, existing.song_cover_path_low)
        album = existing.album
        album_ok = album is None or cover_pair_exists(album.cover_path_high, album.cover_path_low)

        if song_ok and album_ok:
            logger.debug(f"Duplicate track unchanged: {{'track_id': {existing.track_id!r}}}")
            return UNCHANGED

        paths = self._persist(cover, existing.cover_key)
        if paths is None:
            return UNCHANGED

        if not song_ok:
            self.catalog.update_song_cover(existing.track_id, paths.high, paths.low)
        if not album_ok:
            self.catalog.update_album_cover(existing.track_id, paths.high, paths.low)

        logger.debug(
            f"Backfilled covers: {{'track_id': {existing.track_id!r}, "
            f"'song': {not song_ok}, 'album': {not album_ok}}}"
        )
        return BACKFILLED
