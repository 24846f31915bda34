"""Shared fixtures for library scanner tests."""

import io
from multiprocessing.pool import ThreadPool

import pytest
from PIL import Image

from melodex.library_scanner.catalog import SQLiteCatalog
from melodex.library_scanner.models import Album, Track, TrackOrigin
from melodex.library_scanner.notifications import RecordingStatusSink
from melodex.library_scanner.parallel.cover_worker import CoverWorkerPool


@pytest.fixture
def catalog(tmp_path):
    """Migrated SQLite catalog in a temporary directory."""
    catalog = SQLiteCatalog.open(tmp_path / "library.db")
    yield catalog
    catalog.close()


@pytest.fixture
def image_bytes():
    """A small PNG cover buffer."""
    buffer = io.BytesIO()
    Image.new("RGB", (120, 90), color=(200, 40, 40)).save(buffer, format="PNG")
    return buffer.getvalue()


@pytest.fixture
def thread_pool_factory():
    """Pool factory running jobs on threads instead of processes."""
    return lambda processes: ThreadPool(processes)


@pytest.fixture
def cover_pool(thread_pool_factory):
    pool = CoverWorkerPool(2, high_resolution=64, low_resolution=16, pool_factory=thread_pool_factory)
    yield pool
    pool.terminate()


@pytest.fixture
def sink():
    return RecordingStatusSink()


@pytest.fixture
def make_track():
    """Factory for scanned tracks."""

    def _make(content_hash="H1", path="/music/a.mp3", title="Song A", album_name="Album A",
              artists=("Artist A",), origin=TrackOrigin.LOCAL, **kwargs):
        album = Album(album_name=album_name) if album_name else None
        return Track(
            content_hash=content_hash,
            path=path,
            title=title,
            origin=origin,
            album=album,
            artists=list(artists),
            **kwargs,
        )

    return _make
