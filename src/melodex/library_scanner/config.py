"""Configuration models for the library scanner."""

from pathlib import Path
from typing import Callable, List, Optional

import platformdirs
from pydantic import BaseModel, Field, ConfigDict, field_validator

from melodex.common import ConfigLoader, LoggingConfig, normalize_path
from melodex.common.config_utils import (
    APP_NAME,
    auto_detect_workers,
    default_cache_subdir,
    expand_path_variables,
)


class LibraryPreferences(BaseModel):
    """Read-only preferences snapshot taken at the start of every scan."""

    model_config = ConfigDict(extra='forbid', frozen=True)

    music_roots: List[str] = Field(
        default_factory=list,
        description="Library root folders; an empty list means no local files are in scope"
    )
    thumbnail_dir: str = Field(
        default_factory=lambda: default_cache_subdir("thumbnails"),
        description="Directory for song and album cover thumbnails"
    )
    artwork_dir: str = Field(
        default_factory=lambda: default_cache_subdir("artwork"),
        description="Directory for artist artwork"
    )

    @field_validator('music_roots', mode='before')
    @classmethod
    def coerce_roots(cls, v):
        """Accept a single path as well as a list, expand variables, normalize."""
        if isinstance(v, (str, Path)):
            v = [v]
        if v is None:
            return []
        return [normalize_path(expand_path_variables(str(p))) for p in v if str(p).strip()]

    @field_validator('thumbnail_dir', 'artwork_dir', mode='before')
    @classmethod
    def expand_dirs(cls, v):
        if isinstance(v, (str, Path)):
            return expand_path_variables(str(v))
        return v


class ScannerConfig(BaseModel):
    """Worker pool and cover sizing configuration."""

    model_config = ConfigDict(extra='forbid')

    scan_processes: int = Field(
        default_factory=lambda: auto_detect_workers(multiplier=0.75),
        ge=1,
        description="Extraction worker processes spawned per scan"
    )
    cover_processes: int = Field(
        default=2,
        ge=1,
        description="Cover writer processes shared for the orchestrator lifetime"
    )
    queue_maxsize: int = Field(
        default=100,
        ge=1,
        description="Maximum buffered results between a worker stream and the coordinator"
    )
    high_resolution: int = Field(default=800, ge=16, description="Bounding box of high covers (px)")
    low_resolution: int = Field(default=80, ge=16, description="Bounding box of low covers (px)")


class LibraryScannerConfig(BaseModel):
    """Root configuration for the library scanner."""

    model_config = ConfigDict(extra='forbid')

    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    library: LibraryPreferences = Field(default_factory=LibraryPreferences)
    scanner: ScannerConfig = Field(default_factory=ScannerConfig)
    database_path: Optional[str] = Field(
        default=None,
        description="SQLite catalog file (default: <user data dir>/library.db)"
    )

    def resolved_database_path(self) -> Path:
        if self.database_path:
            return Path(expand_path_variables(self.database_path))
        return Path(platformdirs.user_data_dir(APP_NAME, appauthor=False)) / "library.db"


def preferences_loader(
    loader: ConfigLoader,
    defaults_path: Optional[Path] = None,
) -> Callable[[], LibraryPreferences]:
    """Build a callable returning a fresh preferences snapshot on each call.

    The orchestrator calls it once per scan so edits to the config files
    between scans are picked up.
    """

    def load() -> LibraryPreferences:
        config = loader.load(defaults_path=defaults_path)
        return config.library

    return load
