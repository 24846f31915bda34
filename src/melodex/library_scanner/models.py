"""Data models passed between the scan coordinator, workers and the catalog."""

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import List, Optional


class TrackOrigin(str, Enum):
    """Where a catalog track comes from.

    Only LOCAL tracks are subject to the prune sweep.
    """

    LOCAL = "LOCAL"
    URL = "URL"
    YOUTUBE = "YOUTUBE"
    SPOTIFY = "SPOTIFY"


class ScanStatus(str, Enum):
    """Orchestrator state machine value."""

    IDLE = "idle"
    SCANNING = "scanning"
    QUEUED = "queued"


@dataclass(frozen=True)
class CoverPaths:
    """Result of persisting a cover buffer.

    ``low`` is None when only a single resolution was written.
    """

    high: str
    low: Optional[str] = None


@dataclass
class Album:
    """Album reference embedded in a track (denormalized cover pair)."""

    album_name: Optional[str] = None
    album_id: Optional[str] = None
    album_artist: Optional[str] = None
    cover_path_high: Optional[str] = None
    cover_path_low: Optional[str] = None


@dataclass
class Track:
    """One scanned media item.

    ``track_id`` is assigned by the catalog on insert and is None for
    tracks freshly produced by a scan worker.
    """

    content_hash: str
    path: Optional[str]
    title: str
    origin: TrackOrigin = TrackOrigin.LOCAL
    track_id: Optional[str] = None
    album: Optional[Album] = None
    artists: List[str] = field(default_factory=list)
    genres: List[str] = field(default_factory=list)
    duration_seconds: Optional[float] = None
    size_bytes: Optional[int] = None
    song_cover_path_high: Optional[str] = None
    song_cover_path_low: Optional[str] = None

    @property
    def cover_key(self) -> str:
        """Deterministic name under which this track's cover is written."""
        return self.track_id or self.content_hash

    def with_song_cover(self, paths: CoverPaths) -> "Track":
        return replace(self, song_cover_path_high=paths.high, song_cover_path_low=paths.low)


@dataclass
class Artist:
    """Catalog artist row.

    Created by the catalog as a side effect of storing tracks; enrichment
    only fills ``external_id`` and ``cover_path``.
    """

    artist_id: str
    name: str
    external_id: Optional[str] = None
    cover_path: Optional[str] = None
    song_count: int = 0


@dataclass
class ScanResult:
    """One item of a scan worker's output stream."""

    track: Track
    cover: Optional[bytes] = None


@dataclass
class ArtworkResult:
    """One item of the artwork-fetch stream."""

    artist: Artist
    cover: Optional[bytes] = None


@dataclass(frozen=True)
class StatusMessage:
    """Fire-and-forget message for the user-facing status channel."""

    id: str
    message: str
    severity: str = "info"
