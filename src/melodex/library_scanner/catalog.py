"""Catalog interface and its SQLite implementation.

The scan pipeline only talks to the abstract ``Catalog``; ``SQLiteCatalog``
is the storage engine shipped with melodex.
"""

import logging
import sqlite3
import uuid
from abc import ABC, abstractmethod
from collections import defaultdict
from pathlib import Path
from typing import Dict, List, Optional

from .database import DatabaseConnection
from .errors import CatalogError
from .migrations import MigrationRunner
from .models import Album, Artist, Track, TrackOrigin

logger = logging.getLogger(__name__)


class Catalog(ABC):
    """Persistent store of Track and Artist rows."""

    @abstractmethod
    def get_by_hash(self, content_hash: str) -> Optional[Track]:
        """Return the track stored under ``content_hash``, if any."""

    @abstractmethod
    def get_tracks(self) -> List[Track]:
        """Return every track in the catalog."""

    @abstractmethod
    def get_artists(self) -> List[Artist]:
        """Return every artist row."""

    @abstractmethod
    def insert_track(self, track: Track) -> str:
        """Store a new track and return its assigned identifier.

        Albums, artists and genres referenced by the track are created as a
        side effect.
        """

    @abstractmethod
    def update_song_cover(self, track_id: str, high: Optional[str], low: Optional[str]) -> None:
        ...

    @abstractmethod
    def update_album_cover(self, track_id: str, high: Optional[str], low: Optional[str]) -> None:
        """Set the cover pair of the album ``track_id`` belongs to."""

    @abstractmethod
    def update_artist(self, artist: Artist) -> None:
        ...

    @abstractmethod
    def remove_track(self, track_id: str) -> None:
        ...

    @abstractmethod
    def update_song_counts(self) -> None:
        """Recompute album, artist, genre and playlist song counts."""

    @abstractmethod
    def default_cover_for_artist(self, artist_id: str) -> Optional[str]:
        """Fallback artwork for an artist, taken from its tracks' covers."""


_TRACK_SELECT = """
    SELECT t.track_id, t.content_hash, t.path, t.title, t.origin,
           t.duration_seconds, t.size_bytes,
           t.song_cover_path_high, t.song_cover_path_low,
           a.album_id, a.album_name, a.album_artist,
           a.cover_path_high AS album_cover_path_high,
           a.cover_path_low AS album_cover_path_low
    FROM tracks t
    LEFT JOIN albums a ON a.album_id = t.album_id
"""


class SQLiteCatalog(Catalog):
    """
    Catalog backed by a single SQLite database.

    Every public method runs under the connection lock and commits before
    returning, so callers on different threads see each other's writes.
    """

    def __init__(self, db: DatabaseConnection):
        self.db = db

    @classmethod
    def open(cls, db_path: Path | str) -> "SQLiteCatalog":
        """Connect, apply pending migrations and return a ready catalog."""
        db = DatabaseConnection(db_path if db_path == ":memory:" else Path(db_path))
        db.connect()
        MigrationRunner(db).apply_migrations()
        return cls(db)

    def close(self) -> None:
        self.db.close()

    # Reads

    def get_by_hash(self, content_hash: str) -> Optional[Track]:
        with self.db.lock:
            row = self.db.query_one(_TRACK_SELECT + " WHERE t.content_hash = ?", (content_hash,))
            if row is None:
                return None
            return self._row_to_track(row, self._artist_names([row['track_id']]))

    def get_tracks(self) -> List[Track]:
        with self.db.lock:
            rows = self.db.query_all(_TRACK_SELECT + " ORDER BY t.date_added")
            names = self._artist_names(None)
        return [self._row_to_track(row, names) for row in rows]

    def get_artists(self) -> List[Artist]:
        rows = self.db.query_all(
            "SELECT artist_id, name, external_id, cover_path, song_count FROM artists ORDER BY name"
        )
        return [
            Artist(
                artist_id=row['artist_id'],
                name=row['name'],
                external_id=row['external_id'],
                cover_path=row['cover_path'],
                song_count=row['song_count'],
            )
            for row in rows
        ]

    def get_artist(self, artist_id: str) -> Optional[Artist]:
        for artist in self.get_artists():
            if artist.artist_id == artist_id:
                return artist
        return None

    def count_tracks(self) -> int:
        return self.db.query_one("SELECT COUNT(*) FROM tracks")[0]

    def default_cover_for_artist(self, artist_id: str) -> Optional[str]:
        row = self.db.query_one(
            """
            SELECT COALESCE(a.cover_path_high, t.song_cover_path_high) AS cover
            FROM track_artists ta
            JOIN tracks t ON t.track_id = ta.track_id
            LEFT JOIN albums a ON a.album_id = t.album_id
            WHERE ta.artist_id = ?
              AND COALESCE(a.cover_path_high, t.song_cover_path_high) IS NOT NULL
            ORDER BY t.date_added
            LIMIT 1
            """,
            (artist_id,)
        )
        return row['cover'] if row else None

    # Writes

    def insert_track(self, track: Track) -> str:
        track_id = track.track_id or str(uuid.uuid4())
        try:
            with self.db.transaction() as cursor:
                album_id = self._upsert_album(cursor, track.album)
                cursor.execute(
                    """
                    INSERT INTO tracks (
                        track_id, content_hash, path, title, origin, album_id,
                        duration_seconds, size_bytes,
                        song_cover_path_high, song_cover_path_low
                    ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                    """,
                    (
                        track_id,
                        track.content_hash,
                        track.path,
                        track.title,
                        TrackOrigin(track.origin).value,
                        album_id,
                        track.duration_seconds,
                        track.size_bytes,
                        track.song_cover_path_high,
                        track.song_cover_path_low,
                    )
                )
                for name in dict.fromkeys(track.artists):
                    artist_id = self._get_or_create(cursor, "artists", "artist_id", name)
                    cursor.execute(
                        "INSERT OR IGNORE INTO track_artists (track_id, artist_id) VALUES (?, ?)",
                        (track_id, artist_id)
                    )
                for name in dict.fromkeys(track.genres):
                    genre_id = self._get_or_create(cursor, "genres", "genre_id", name)
                    cursor.execute(
                        "INSERT OR IGNORE INTO track_genres (track_id, genre_id) VALUES (?, ?)",
                        (track_id, genre_id)
                    )
        except sqlite3.Error as e:
            raise CatalogError(
                f"Failed to insert track: {e}", path=track.path, content_hash=track.content_hash
            ) from e

        track.track_id = track_id
        logger.debug(f"Inserted track: {{'track_id': {track_id!r}, 'path': {track.path!r}}}")
        return track_id

    def update_song_cover(self, track_id: str, high: Optional[str], low: Optional[str]) -> None:
        self._write(
            "UPDATE tracks SET song_cover_path_high = ?, song_cover_path_low = ? WHERE track_id = ?",
            (high, low, track_id),
        )

    def update_album_cover(self, track_id: str, high: Optional[str], low: Optional[str]) -> None:
        self._write(
            """
            UPDATE albums SET cover_path_high = ?, cover_path_low = ?
            WHERE album_id = (SELECT album_id FROM tracks WHERE track_id = ?)
            """,
            (high, low, track_id),
        )

    def update_artist(self, artist: Artist) -> None:
        self._write(
            "UPDATE artists SET name = ?, external_id = ?, cover_path = ? WHERE artist_id = ?",
            (artist.name, artist.external_id, artist.cover_path, artist.artist_id),
        )

    def remove_track(self, track_id: str) -> None:
        self._write("DELETE FROM tracks WHERE track_id = ?", (track_id,))
        logger.debug(f"Removed track: {{'track_id': {track_id!r}}}")

    def update_song_counts(self) -> None:
        statements = (
            "UPDATE albums SET song_count = "
            "(SELECT COUNT(*) FROM tracks t WHERE t.album_id = albums.album_id)",
            "UPDATE artists SET song_count = "
            "(SELECT COUNT(*) FROM track_artists ta WHERE ta.artist_id = artists.artist_id)",
            "UPDATE genres SET song_count = "
            "(SELECT COUNT(*) FROM track_genres tg WHERE tg.genre_id = genres.genre_id)",
            "UPDATE playlists SET song_count = "
            "(SELECT COUNT(*) FROM playlist_tracks pt WHERE pt.playlist_id = playlists.playlist_id)",
        )
        try:
            with self.db.transaction() as cursor:
                for sql in statements:
                    cursor.execute(sql)
        except sqlite3.Error as e:
            raise CatalogError(f"Failed to update song counts: {e}") from e

    def create_playlist(self, name: str, track_ids: List[str]) -> str:
        playlist_id = str(uuid.uuid4())
        with self.db.transaction() as cursor:
            cursor.execute(
                "INSERT INTO playlists (playlist_id, name) VALUES (?, ?)", (playlist_id, name)
            )
            cursor.executemany(
                "INSERT OR IGNORE INTO playlist_tracks (playlist_id, track_id) VALUES (?, ?)",
                [(playlist_id, track_id) for track_id in track_ids]
            )
        return playlist_id

    # Helpers

    def _write(self, sql: str, parameters: tuple) -> None:
        try:
            with self.db.transaction() as cursor:
                cursor.execute(sql, parameters)
        except sqlite3.Error as e:
            raise CatalogError(f"Catalog write failed: {e}") from e

    def _upsert_album(self, cursor: sqlite3.Cursor, album: Optional[Album]) -> Optional[str]:
        if album is None or not album.album_name:
            return None

        row = cursor.execute(
            "SELECT album_id FROM albums WHERE album_name = ?", (album.album_name,)
        ).fetchone()
        if row:
            album_id = row['album_id']
            # Keep the album's covers unless it has none yet
            cursor.execute(
                """
                UPDATE albums SET
                    cover_path_high = COALESCE(cover_path_high, ?),
                    cover_path_low = COALESCE(cover_path_low, ?)
                WHERE album_id = ?
                """,
                (album.cover_path_high, album.cover_path_low, album_id)
            )
        else:
            album_id = album.album_id or str(uuid.uuid4())
            cursor.execute(
                """
                INSERT INTO albums (album_id, album_name, album_artist, cover_path_high, cover_path_low)
                VALUES (?, ?, ?, ?, ?)
                """,
                (album_id, album.album_name, album.album_artist,
                 album.cover_path_high, album.cover_path_low)
            )
        album.album_id = album_id
        return album_id

    def _get_or_create(self, cursor: sqlite3.Cursor, table: str, id_column: str, name: str) -> str:
        row = cursor.execute(f"SELECT {id_column} FROM {table} WHERE name = ?", (name,)).fetchone()
        if row:
            return row[0]
        new_id = str(uuid.uuid4())
        cursor.execute(f"INSERT INTO {table} ({id_column}, name) VALUES (?, ?)", (new_id, name))
        return new_id

    def _artist_names(self, track_ids: Optional[List[str]]) -> Dict[str, List[str]]:
        sql = """
            SELECT ta.track_id, ar.name
            FROM track_artists ta JOIN artists ar ON ar.artist_id = ta.artist_id
        """
        params: tuple = ()
        if track_ids is not None:
            sql += f" WHERE ta.track_id IN ({','.join('?' * len(track_ids))})"
            params = tuple(track_ids)
        names: Dict[str, List[str]] = defaultdict(list)
        for row in self.db.query_all(sql + " ORDER BY ar.name", params):
            names[row['track_id']].append(row['name'])
        return names

    @staticmethod
    def _row_to_track(row: sqlite3.Row, artist_names: Dict[str, List[str]]) -> Track:
        album = None
        if row['album_id'] is not None:
            album = Album(
                album_id=row['album_id'],
                album_name=row['album_name'],
                album_artist=row['album_artist'],
                cover_path_high=row['album_cover_path_high'],
                cover_path_low=row['album_cover_path_low'],
            )
        return Track(
            track_id=row['track_id'],
            content_hash=row['content_hash'],
            path=row['path'],
            title=row['title'],
            origin=TrackOrigin(row['origin']),
            album=album,
            artists=list(artist_names.get(row['track_id'], [])),
            duration_seconds=row['duration_seconds'],
            size_bytes=row['size_bytes'],
            song_cover_path_high=row['song_cover_path_high'],
            song_cover_path_low=row['song_cover_path_low'],
        )
