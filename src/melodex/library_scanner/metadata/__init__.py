"""Metadata extraction modules."""

from .artwork import picture_from_audio
from .extractor import extract_track, read_track

__all__ = [
    'extract_track',
    'read_track',
    'picture_from_audio',
]
