"""Tests for the worker pool layer."""

import threading
import time

import pytest

from melodex.library_scanner.errors import WorkerError
from melodex.library_scanner.models import Artist, ArtworkResult, ScanResult, Track
from melodex.library_scanner.parallel.pool import WorkerPool
from melodex.library_scanner.parallel.scan_worker import ScanWorker
from melodex.library_scanner.parallel.scraper_worker import ScraperWorker
from melodex.library_scanner.parallel.stream import ResultStream
from melodex.library_scanner.scraper import ArtistScraper, NullArtistScraper


def _square(x):
    return x * x


def _slow_append(target, value):
    time.sleep(0.05)
    target.append(value)


def _fail(_):
    raise ValueError("boom")


def _fake_extract(path):
    if path.name.startswith("skip"):
        return None
    return ScanResult(track=Track(content_hash=path.stem, path=str(path), title=path.stem))


class TestWorkerPool:
    """Test submit / drain / close."""

    def test_run_returns_result(self, thread_pool_factory):
        """Test that run waits for one job's result."""
        pool = WorkerPool("test", 2, thread_pool_factory)
        assert pool.run(_square, 7) == 49
        pool.close()

    def test_run_wraps_job_errors(self, thread_pool_factory):
        """Test that a failing job raises WorkerError with the worker kind."""
        pool = WorkerPool("test", 1, thread_pool_factory)
        with pytest.raises(WorkerError) as exc_info:
            pool.run(_fail, 1)
        assert exc_info.value.context["worker"] == "test"
        assert isinstance(exc_info.value.__cause__, ValueError)
        pool.close()

    def test_drain_waits_for_all_submitted(self, thread_pool_factory):
        """Test that drain returns only after every job finished."""
        pool = WorkerPool("test", 2, thread_pool_factory)
        results = []
        for i in range(5):
            pool.submit(_slow_append, results, i)

        pool.drain()

        assert sorted(results) == [0, 1, 2, 3, 4]
        assert pool.pending_count() == 0
        pool.close()

    def test_pool_created_lazily(self, thread_pool_factory):
        """Test that no workers exist before the first job."""
        pool = WorkerPool("test", 2, thread_pool_factory)
        assert pool.started is False
        pool.submit(_square, 2).get()
        assert pool.started is True
        pool.close()

    def test_closed_pool_rejects_jobs(self, thread_pool_factory):
        """Test that a closed pool cannot be reused."""
        pool = WorkerPool("test", 1, thread_pool_factory)
        pool.close()
        with pytest.raises(WorkerError):
            pool.submit(_square, 1)

    def test_map_unordered(self, thread_pool_factory):
        """Test that every item is mapped exactly once."""
        pool = WorkerPool("test", 3, thread_pool_factory)
        assert sorted(pool.map_unordered(_square, range(6))) == [0, 1, 4, 9, 16, 25]
        pool.terminate()


class TestResultStream:
    """Test the thread-fed result sequence."""

    def test_yields_all_items_in_order(self):
        """Test that items arrive in production order."""
        stream = ResultStream("test", lambda: iter(range(10)), maxsize=2)
        assert list(stream) == list(range(10))

    def test_producer_error_becomes_worker_error(self):
        """Test that a producer exception is re-raised at the consumer."""

        def produce():
            yield 1
            raise OSError("disk gone")

        stream = ResultStream("scanner", produce)
        received = []
        with pytest.raises(WorkerError) as exc_info:
            for item in stream:
                received.append(item)

        assert received == [1]
        assert exc_info.value.context["worker"] == "scanner"

    def test_immediate_failure(self):
        """Test a producer that fails before yielding anything."""

        def produce():
            raise RuntimeError("worker crashed")

        with pytest.raises(WorkerError):
            list(ResultStream("scanner", produce))

    def test_not_restartable(self):
        """Test that a stream can only be iterated once."""
        stream = ResultStream("test", lambda: [1])
        list(stream)
        with pytest.raises(WorkerError):
            iter(stream)

    def test_early_stop_releases_producer(self):
        """Test that breaking out of the loop stops a blocked producer."""
        produced = []

        def produce():
            for i in range(1000):
                produced.append(i)
                yield i

        stream = ResultStream("test", produce, maxsize=1)
        for item in stream:
            if item == 2:
                break
        stream.join(timeout=2)

        assert len(produced) < 1000


class TestScanWorker:
    """Test the scan worker with an injected extractor."""

    def test_streams_results_and_skips_unreadable(self, tmp_path, thread_pool_factory):
        """Test that extracted files are yielded and None results dropped."""
        for name in ("one.mp3", "two.flac", "skip.mp3", "cover.jpg"):
            (tmp_path / name).write_bytes(b"x")
        worker = ScanWorker(2, extractor=_fake_extract, pool_factory=thread_pool_factory)

        titles = sorted(result.track.title for result in worker.start([str(tmp_path)]))
        worker.terminate()

        assert titles == ["one", "two"]

    def test_cannot_restart(self, tmp_path, thread_pool_factory):
        """Test that one worker serves one scan."""
        worker = ScanWorker(1, extractor=_fake_extract, pool_factory=thread_pool_factory)
        list(worker.start([str(tmp_path)]))
        with pytest.raises(WorkerError):
            worker.start([str(tmp_path)])
        worker.terminate()

    def test_extractor_crash_fails_stream(self, tmp_path, thread_pool_factory):
        """Test that an unexpected extractor error fails the whole stream."""
        (tmp_path / "a.mp3").write_bytes(b"x")
        worker = ScanWorker(1, extractor=_fail, pool_factory=thread_pool_factory)

        with pytest.raises(WorkerError):
            list(worker.start([str(tmp_path)]))
        worker.terminate()


class TestCoverWorkerPool:
    """Test cover persistence through the pool."""

    def test_persist_dual(self, cover_pool, image_bytes, tmp_path):
        """Test that persist returns both variant paths."""
        paths = cover_pool.persist(image_bytes, str(tmp_path), "t1", True)
        assert paths.high.endswith("t1-high.jpg")
        assert paths.low.endswith("t1-low.jpg")

    def test_persist_failure_returns_none(self, cover_pool, tmp_path):
        """Test that an unusable buffer yields None."""
        assert cover_pool.persist(b"nope", str(tmp_path), "t1", True) is None


class _ScriptedScraper(ArtistScraper):
    def __init__(self):
        self.closed = threading.Event()

    def resolve_ids(self, artists):
        for artist in artists:
            yield Artist(artist.artist_id, artist.name, external_id=f"ext-{artist.name}")

    def fetch_artworks(self, artists, artwork_dir):
        for artist in artists:
            yield ArtworkResult(artist=artist, cover=b"img")

    def close(self):
        self.closed.set()


class TestScraperWorker:
    """Test the scraper worker phases."""

    def test_phases_stream_results(self):
        """Test both phases and teardown."""
        scraper = _ScriptedScraper()
        worker = ScraperWorker(scraper)
        artists = [Artist("a1", "Nina"), Artist("a2", "Otis")]

        resolved = list(worker.resolve_ids(artists))
        artworks = list(worker.fetch_artworks(artists, "/art"))
        worker.terminate()

        assert [a.external_id for a in resolved] == ["ext-Nina", "ext-Otis"]
        assert [r.artist.name for r in artworks] == ["Nina", "Otis"]
        assert scraper.closed.is_set()

    def test_null_scraper(self):
        """Test the offline scraper resolves nothing and finds no artwork."""
        worker = ScraperWorker(NullArtistScraper())
        artists = [Artist("a1", "Nina")]

        assert list(worker.resolve_ids(artists)) == [None]
        assert [r.cover for r in worker.fetch_artworks(artists, "/art")] == [None]
        worker.terminate()
