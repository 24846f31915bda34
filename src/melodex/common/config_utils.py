"""Configuration utilities."""

import os
import tempfile
import platformdirs
from pathlib import Path

APP_NAME = "melodex"


def expand_path_variables(path: str) -> str:
    """Expand ${VAR} variables in paths.

    Supported variables:
        ${USER_HOME}: User's home directory
        ${USER_MUSIC}: User music directory
        ${USER_CACHE}: melodex cache directory
        ${USER_LOGS}: melodex log directory
        ${TEMP}: Temporary directory

    Args:
        path: Path string with variables

    Returns:
        Expanded path string
    """
    if not isinstance(path, str):
        return path

    replacements = {
        "${USER_HOME}": str(Path.home()),
        "${USER_MUSIC}": platformdirs.user_music_dir(),
        "${USER_CACHE}": platformdirs.user_cache_dir(APP_NAME, appauthor=False),
        "${USER_LOGS}": platformdirs.user_log_dir(APP_NAME, appauthor=False),
        "${TEMP}": tempfile.gettempdir(),
    }

    for var, value in replacements.items():
        path = path.replace(var, value)

    return path


def default_cache_subdir(name: str) -> str:
    """Return a directory under the user cache dir, e.g. ``thumbnails``."""
    return str(Path(platformdirs.user_cache_dir(APP_NAME, appauthor=False)) / name)


def auto_detect_workers(multiplier: float = 1.0, min_workers: int = 1) -> int:
    """Auto-detect number of worker processes.

    Args:
        multiplier: Multiplier for CPU count (e.g., 0.5 for half cores)
        min_workers: Minimum number of workers

    Returns:
        Number of workers
    """
    cpu_count = os.cpu_count() or 2
    return max(min_workers, int(cpu_count * multiplier))
