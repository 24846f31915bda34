"""Music library scanning and deduplication pipeline."""

from .catalog import Catalog, SQLiteCatalog
from .config import LibraryPreferences, LibraryScannerConfig, ScannerConfig
from .models import Album, Artist, ScanStatus, Track, TrackOrigin
from .orchestrator import ScanOrchestrator

__version__ = "0.1.0"

__all__ = [
    'ScanOrchestrator',
    'Catalog',
    'SQLiteCatalog',
    'LibraryPreferences',
    'LibraryScannerConfig',
    'ScannerConfig',
    'Album',
    'Artist',
    'ScanStatus',
    'Track',
    'TrackOrigin',
]
