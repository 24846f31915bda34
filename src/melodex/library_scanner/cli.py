"""CLI command for library scanning."""

import argparse
import logging
import sys
from pathlib import Path
from typing import Callable, List, Optional

from melodex.common import ConfigLoader, LogContext
from melodex.common.config_utils import APP_NAME
from melodex.common.logging_config import apply_logging_config
from .catalog import SQLiteCatalog
from .config import LibraryPreferences, LibraryScannerConfig, preferences_loader
from .orchestrator import ScanOrchestrator


def _with_root_overrides(
    load: Callable[[], LibraryPreferences],
    music_roots: Optional[List[str]],
) -> Callable[[], LibraryPreferences]:
    if not music_roots:
        return load

    def load_with_overrides() -> LibraryPreferences:
        # Re-validate so the override roots are expanded and normalized
        return LibraryPreferences(**{**load().model_dump(), "music_roots": music_roots})

    return load_with_overrides


def scan_command(
    loader: ConfigLoader,
    config: LibraryScannerConfig,
    defaults_path: Optional[Path] = None,
    music_roots_override: Optional[List[str]] = None,
    database_path_override: Optional[Path] = None,
    with_enrichment: bool = False,
) -> int:
    """Run one scan to completion.

    Args:
        loader: Config loader, re-read at the start of every scan
        config: Configuration loaded at startup
        defaults_path: defaults.toml passed on the command line
        music_roots_override: Library roots replacing the configured ones
        database_path_override: Catalog file replacing the configured one
        with_enrichment: Wait for artist enrichment before exiting

    Returns:
        Exit code (0 when the scan completed, 1 otherwise)
    """
    logger = logging.getLogger(__package__ or __name__)

    database_path = database_path_override or config.resolved_database_path()
    load = _with_root_overrides(preferences_loader(loader, defaults_path), music_roots_override)

    try:
        logger.info(
            f"Configuration: {{'database_path': {str(database_path)!r}, "
            f"'music_roots': {load().music_roots!r}, "
            f"'scan_processes': {config.scanner.scan_processes}, "
            f"'cover_processes': {config.scanner.cover_processes}}}"
        )

        catalog = SQLiteCatalog.open(database_path)
    except Exception as e:
        logger.exception(f"Failed to prepare scan: {e}")
        return 1

    orchestrator = ScanOrchestrator.from_config(catalog, config, preferences_loader=load)
    with LogContext(logger, catalog=str(database_path)):
        try:
            summary = orchestrator.request_scan().result()
            logger.info(f"Scan finished: {summary}")

            if with_enrichment:
                orchestrator.wait_for_enrichment()

            return 0 if summary["status"] == "completed" else 1
        finally:
            orchestrator.wait_until_idle()
            # Without --with-enrichment a running enrichment is not waited for
            orchestrator.close(timeout=None if with_enrichment else 0)
            catalog.close()


def main() -> int:
    """Main entry point for scan command."""
    parser = argparse.ArgumentParser(
        description="Scan music library roots and update the catalog"
    )
    parser.add_argument(
        "--music-root",
        action="append",
        dest="music_roots",
        help="Library root to scan; repeat for several roots (overrides config)"
    )
    parser.add_argument(
        "--database-path",
        type=Path,
        required=False,
        help="Path to SQLite catalog file (overrides config)"
    )
    parser.add_argument(
        "--with-enrichment",
        action="store_true",
        help="Wait for artist enrichment to finish before exiting"
    )
    parser.add_argument(
        "--config",
        type=Path,
        help="Path to config file (defaults.toml)"
    )

    args = parser.parse_args()

    loader = ConfigLoader(app_name=APP_NAME, config_class=LibraryScannerConfig)
    config = loader.load(defaults_path=args.config)

    apply_logging_config(config.logging)

    return scan_command(
        loader=loader,
        config=config,
        defaults_path=args.config,
        music_roots_override=args.music_roots,
        database_path_override=args.database_path,
        with_enrichment=args.with_enrichment,
    )


if __name__ == "__main__":
    sys.exit(main())
