"""Cover persistence and cover path existence checks.

Both helpers are safe to call from pool workers and never raise: a failed
write yields None and an unreachable path yields False, so a single broken
asset never aborts a batch.
"""

import io
import logging
import os
from pathlib import Path
from typing import List, Optional, Tuple

import filetype
from PIL import Image, UnidentifiedImageError

from .errors import CoverStoreError
from .models import CoverPaths

logger = logging.getLogger(__name__)

DEFAULT_HIGH_RESOLUTION = 800
DEFAULT_LOW_RESOLUTION = 80
COVER_FORMAT = "JPEG"
COVER_QUALITY = 90


def is_remote_path(path: str) -> bool:
    return path.startswith(("http://", "https://"))


def cover_exists(cover_path: Optional[str]) -> bool:
    """Check whether a cover path points at an accessible local file.

    Remote (http/https) covers are never probed over the network and count
    as not locally available, so a scanned embedded cover replaces them.

    Args:
        cover_path: Local path, URL or None

    Returns:
        True only for an existing, readable local file
    """
    if not cover_path or is_remote_path(cover_path):
        return False
    if os.access(cover_path, os.R_OK) and os.path.isfile(cover_path):
        return True
    logger.debug(f"Cover not accessible: {{'path': {cover_path!r}}}")
    return False


def cover_pair_exists(high: Optional[str], low: Optional[str]) -> bool:
    """Both variants of a cover pair are accessible."""
    return cover_exists(high) and cover_exists(low)


def is_image_buffer(buffer: bytes) -> bool:
    """Sniff the buffer's magic bytes for a known image type."""
    kind = filetype.guess(buffer)
    return kind is not None and kind.mime.startswith('image/')


def _save_variant(image: Image.Image, target: Path, max_size: int) -> None:
    variant = image.copy()
    variant.thumbnail((max_size, max_size))
    tmp_target = target.with_suffix(target.suffix + ".tmp")
    variant.save(tmp_target, format=COVER_FORMAT, quality=COVER_QUALITY)
    os.replace(tmp_target, target)


def write_variants(buffer: bytes, variants: List[Tuple[Path, int]]) -> None:
    """
    Decode ``buffer`` once and save it at each (target, max size) pair.

    Raises:
        CoverStoreError: The buffer could not be decoded or a file not written
    """
    try:
        variants[0][0].parent.mkdir(parents=True, exist_ok=True)
        with Image.open(io.BytesIO(buffer)) as image:
            image = image.convert("RGB")
            for target, max_size in variants:
                _save_variant(image, target, max_size)
    except (OSError, UnidentifiedImageError, ValueError, SyntaxError) as e:
        raise CoverStoreError(f"Cannot write cover: {e}", path=str(variants[0][0])) from e


def store_cover(
    buffer: bytes,
    cache_dir: str,
    key: str,
    dual: bool = True,
    high_resolution: int = DEFAULT_HIGH_RESOLUTION,
    low_resolution: int = DEFAULT_LOW_RESOLUTION,
) -> Optional[CoverPaths]:
    """
    Persist a raw image buffer as JPEG thumbnails under a deterministic name.

    Writes ``<key>-high.jpg`` (and ``<key>-low.jpg`` when ``dual``) into
    ``cache_dir``. Files are written through a temporary name and renamed,
    so a concurrent reader never sees a half-written cover.

    Args:
        buffer: Encoded image bytes (JPEG, PNG, ...)
        cache_dir: Target directory (created if missing)
        key: Unique track or artist identifier used as file stem
        dual: Write both high and low variants
        high_resolution: Bounding box of the high variant in px
        low_resolution: Bounding box of the low variant in px

    Returns:
        CoverPaths, or None if the buffer could not be decoded or written
    """
    if not buffer:
        return None

    if not is_image_buffer(buffer):
        logger.warning(f"Cover buffer is not an image: {{'key': {key!r}, 'size': {len(buffer)}}}")
        return None

    target_dir = Path(cache_dir)
    high_path = target_dir / f"{key}-high.jpg"
    low_path = target_dir / f"{key}-low.jpg"

    variants = [(high_path, high_resolution)]
    if dual:
        variants.append((low_path, low_resolution))

    try:
        write_variants(buffer, variants)
    except CoverStoreError as e:
        logger.warning(f"Failed to store cover: {{'key': {key!r}, 'error': {e.message!r}}}")
        return None

    logger.debug(f"Stored cover: {{'key': {key!r}, 'dual': {dual}, 'dir': {str(target_dir)!r}}}")
    return CoverPaths(high=str(high_path), low=str(low_path) if dual else None)
