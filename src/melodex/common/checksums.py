"""Checksum utilities for content-based track identity."""

import hashlib
from pathlib import Path

# Constants for checksum calculation
SHA256_CHUNK_SIZE = 1024 * 1024  # 1 MB chunks


def compute_sha256_hex(file_path: Path) -> str:
    """
    Compute SHA-256 digest of entire file as hex string.

    Used for:
    - Content hash of scanned tracks (deduplication key in the catalog)

    Args:
        file_path: Path to the file

    Returns:
        64-character lowercase hex digest

    Raises:
        OSError: If file cannot be read
    """
    hasher = hashlib.sha256()

    with open(file_path, 'rb') as f:
        while chunk := f.read(SHA256_CHUNK_SIZE):
            hasher.update(chunk)

    return hasher.hexdigest()
