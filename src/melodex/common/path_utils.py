"""Path utilities for consistent path handling across packages."""

import unicodedata
from pathlib import Path


def normalize_path(path: Path | str) -> str:
    """
    Normalize a path for consistent storage and comparison across all packages.

    Applies:
    - Unicode NFC normalization (canonical composition)
    - Forward slash conversion for cross-platform consistency

    Track paths stored in the catalog and configured library roots both go
    through this function, so prefix matching during a prune sweep compares
    like with like.

    Args:
        path: Path object or string to normalize

    Returns:
        Normalized path string with forward slashes and NFC Unicode normalization

    Examples:
        >>> normalize_path(Path("Música/canción.mp3"))
        'Música/canción.mp3'
        >>> normalize_path(r"C:\\Users\\test\\Music")
        'C:/Users/test/Music'
    """
    path_str = str(path)

    normalized = unicodedata.normalize('NFC', path_str)

    normalized = normalized.replace('\\', '/')

    return normalized
