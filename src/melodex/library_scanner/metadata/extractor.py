"""Track metadata extraction run inside scan worker processes.

``extract_track`` is a module-level function so it can be pickled and
dispatched to a ``multiprocessing`` pool.
"""

import logging
from pathlib import Path
from typing import Any, List, Optional

from mutagen import File as MutagenFile, MutagenError

from melodex.common import (
    CorruptedFileError,
    FileProcessingError,
    PermissionDeniedError,
    UnsupportedFormatError,
    compute_sha256_hex,
    normalize_path,
)
from ..models import Album, ScanResult, Track, TrackOrigin
from .artwork import picture_from_audio

logger = logging.getLogger(__name__)


def _first(tags: Any, key: str) -> Optional[str]:
    values = _all(tags, key)
    return values[0] if values else None


def _all(tags: Any, key: str) -> List[str]:
    if tags is None:
        return []
    try:
        values = tags.get(key) or []
    except (KeyError, ValueError):
        return []
    if isinstance(values, str):
        values = [values]
    return [str(v).strip() for v in values if str(v).strip()]


def _split_names(values: List[str]) -> List[str]:
    """Split multi-artist strings ("A; B") while keeping order and uniqueness."""
    names: List[str] = []
    for value in values:
        for name in value.split(';'):
            name = name.strip()
            if name and name not in names:
                names.append(name)
    return names


def read_track(file_path: Path) -> ScanResult:
    """
    Extract a Track and its embedded cover from an audio file.

    Args:
        file_path: Path to the audio file

    Returns:
        ScanResult with a Track not yet stored in the catalog

    Raises:
        PermissionDeniedError: File cannot be read
        UnsupportedFormatError: mutagen does not recognise the format
        CorruptedFileError: Tags or stream headers are malformed
    """
    path_str = str(file_path)
    try:
        size_bytes = file_path.stat().st_size
        content_hash = compute_sha256_hex(file_path)
        easy = MutagenFile(file_path, easy=True)
        full = MutagenFile(file_path)
    except PermissionError as e:
        raise PermissionDeniedError(f"Permission denied: {path_str}", path=path_str) from e
    except MutagenError as e:
        raise CorruptedFileError(f"Unreadable audio file: {e}", path=path_str) from e
    except OSError as e:
        raise CorruptedFileError(f"Cannot read file: {e}", path=path_str) from e

    if easy is None:
        raise UnsupportedFormatError(f"Unsupported audio format: {path_str}", path=path_str)

    tags = easy.tags
    duration = getattr(getattr(easy, 'info', None), 'length', None)

    album = None
    album_name = _first(tags, 'album')
    if album_name:
        album = Album(album_name=album_name, album_artist=_first(tags, 'albumartist'))

    track = Track(
        content_hash=content_hash,
        path=normalize_path(file_path),
        title=_first(tags, 'title') or file_path.stem,
        origin=TrackOrigin.LOCAL,
        album=album,
        artists=_split_names(_all(tags, 'artist')),
        genres=_split_names(_all(tags, 'genre')),
        duration_seconds=float(duration) if duration else None,
        size_bytes=size_bytes,
    )
    return ScanResult(track=track, cover=picture_from_audio(full))


def extract_track(file_path: Path) -> Optional[ScanResult]:
    """
    Pool entry point: like ``read_track`` but per-file errors are logged.

    A file that cannot be read is skipped (None) so one bad file never
    fails the scan stream.
    """
    try:
        return read_track(Path(file_path))
    except FileProcessingError as e:
        logger.warning(
            f"Skipping file: {{'path': {str(file_path)!r}, 'type': {type(e).__name__!r}, 'error': {e.message!r}}}"
        )
        return None
