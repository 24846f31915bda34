"""Destructive sweep of catalog rows whose backing file is gone."""

import logging
import os
import re
from typing import Dict, List, Optional, Pattern

from melodex.common import normalize_path
from .catalog import Catalog
from .models import TrackOrigin

logger = logging.getLogger(__name__)


def build_root_pattern(roots: List[str]) -> Optional[Pattern[str]]:
    """
    Compile one pattern matching any configured root as a path prefix.

    Returns:
        Compiled pattern, or None when no roots are configured
    """
    # A root only covers itself and paths below it, never sibling names
    prefixes = [re.escape(normalize_path(root).rstrip("/")) for root in roots if root]
    if not prefixes:
        return None
    return re.compile("(?:" + "|".join(prefixes) + r")(?:/|$)")


def sweep(catalog: Catalog, roots: List[str]) -> Dict[str, int]:
    """
    Remove LOCAL tracks that are outside the roots or missing on disk.

    With no roots configured every LOCAL track is removed. Tracks of any
    other origin are never touched.

    Args:
        catalog: Track store
        roots: Currently configured library roots

    Returns:
        Dict with 'checked', 'out_of_scope' and 'missing' counts
    """
    pattern = build_root_pattern(roots)
    stats = {"checked": 0, "out_of_scope": 0, "missing": 0}

    for track in catalog.get_tracks():
        if track.origin != TrackOrigin.LOCAL:
            continue
        stats["checked"] += 1

        if pattern is None or not track.path or not pattern.match(normalize_path(track.path)):
            catalog.remove_track(track.track_id)
            stats["out_of_scope"] += 1
            continue

        if not os.path.exists(track.path):
            catalog.remove_track(track.track_id)
            stats["missing"] += 1

    logger.info(
        f"Prune sweep completed: {{'roots': {len(roots)}, 'checked': {stats['checked']}, "
        f"'out_of_scope': {stats['out_of_scope']}, 'missing': {stats['missing']}}}"
    )
    return stats
