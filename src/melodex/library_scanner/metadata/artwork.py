"""Embedded cover art extraction using mutagen."""

import base64
import binascii
import logging
from typing import Any, Optional

from mutagen import MutagenError
from mutagen.flac import Picture

logger = logging.getLogger(__name__)

# ID3 picture type 3 is "Cover (front)"
FRONT_COVER = 3


def _pick_front(pictures: list) -> Optional[Any]:
    if not pictures:
        return None
    for picture in pictures:
        if getattr(picture, 'type', None) == FRONT_COVER:
            return picture
    return pictures[0]


def picture_from_audio(audio: Any) -> Optional[bytes]:
    """
    Return the embedded front cover of an already-opened mutagen file.

    Handles ID3 ``APIC`` frames (MP3, AIFF, WAV), FLAC picture blocks,
    Vorbis/Opus ``metadata_block_picture`` comments and MP4 ``covr`` atoms.

    Args:
        audio: Object returned by ``mutagen.File(path)`` (non-easy mode)

    Returns:
        Raw image bytes, or None if the file carries no picture
    """
    if audio is None:
        return None

    # FLAC keeps pictures outside the tag block
    picture = _pick_front(list(getattr(audio, 'pictures', None) or []))
    if picture is not None:
        return bytes(picture.data)

    tags = audio.tags
    if tags is None:
        return None

    if hasattr(tags, 'getall'):
        picture = _pick_front(tags.getall('APIC'))
        if picture is not None:
            return bytes(picture.data)

    covr = tags.get('covr') if hasattr(tags, 'get') else None
    if covr:
        return bytes(covr[0])

    encoded = tags.get('metadata_block_picture') if hasattr(tags, 'get') else None
    if encoded:
        pictures = []
        for value in encoded:
            try:
                pictures.append(Picture(base64.b64decode(value)))
            except (binascii.Error, ValueError, MutagenError) as e:
                logger.debug(f"Skipping malformed picture block: {{'error': {str(e)!r}}}")
        picture = _pick_front(pictures)
        if picture is not None:
            return bytes(picture.data)

    return None

