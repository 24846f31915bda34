"""Audio file discovery under the configured library roots."""

import logging
from pathlib import Path
from typing import Iterable, Iterator, Set

logger = logging.getLogger(__name__)

AUDIO_EXTENSIONS = {
    '.mp3', '.flac', '.ogg', '.oga', '.opus', '.m4a', '.mp4', '.aac',
    '.wav', '.wma', '.aiff', '.aif', '.ape', '.wv',
}

# System files to exclude (cross-platform)
SYSTEM_FILES = {
    'thumbs.db',
    'desktop.ini',
    '.ds_store',
}

# Temporary file extensions to exclude
TEMP_EXTENSIONS = {'.tmp', '.temp', '.part', '.crdownload', '.swp'}


def should_scan_file(path: Path) -> bool:
    """
    Determine if a file should be handed to the metadata extractor.

    Only the file name is inspected; a file that passes this check may still
    be rejected by the extractor when its content is not a readable audio
    stream.

    Args:
        path: Path to check

    Returns:
        True for non-hidden, non-temporary files with an audio extension
    """
    filename = path.name.lower()

    if filename in SYSTEM_FILES or filename.startswith('.'):
        return False

    suffix = path.suffix.lower()
    if suffix in TEMP_EXTENSIONS:
        return False

    return suffix in AUDIO_EXTENSIONS


def discover_audio_files(roots: Iterable[str]) -> Iterator[Path]:
    """
    Walk every root and yield audio files.

    Roots that do not exist are logged and skipped. A file reachable from two
    overlapping roots is yielded once. Traversal order is filesystem order.

    Args:
        roots: Library root directories

    Yields:
        Absolute paths of candidate audio files
    """
    seen: Set[Path] = set()
    for root in roots:
        scan_root = Path(root)
        if not scan_root.is_dir():
            logger.warning(f"Library root not found: {{'root': {root!r}}}")
            continue

        found = 0
        for file_path in scan_root.rglob("*"):
            if any(part.startswith('.') for part in file_path.relative_to(scan_root).parts[:-1]):
                continue
            if not file_path.is_file() or not should_scan_file(file_path):
                continue
            resolved = file_path.resolve()
            if resolved in seen:
                continue
            seen.add(resolved)
            found += 1
            yield file_path

        logger.info(f"Discovered audio files: {{'root': {root!r}, 'count': {found}}}")
