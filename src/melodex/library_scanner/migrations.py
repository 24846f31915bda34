"""Database migration system for catalog schema versioning."""

import logging
import sqlite3
from pathlib import Path
from typing import List, Optional, Tuple

from .database import DatabaseConnection

logger = logging.getLogger(__name__)

SCHEMA_DIR = Path(__file__).parent / "schema"


class MigrationRunner:
    """
    Applies versioned ``NNN_name.sql`` files from the schema directory.

    Idempotent: the highest applied version is read from ``schema_version``
    and only newer files run.
    """

    def __init__(self, db: DatabaseConnection, schema_dir: Path = SCHEMA_DIR):
        self.db = db
        self.schema_dir = schema_dir

    def get_current_version(self) -> int:
        """
        Get current schema version from database.

        Returns:
            Current version number (0 if schema_version table doesn't exist)
        """
        try:
            row = self.db.query_one("SELECT MAX(version) AS version FROM schema_version")
        except sqlite3.OperationalError:
            logger.debug("schema_version table not found, assuming version 0")
            return 0
        if row and row['version'] is not None:
            return row['version']
        return 0

    def _get_available_migrations(self) -> List[Tuple[int, Path]]:
        migrations = []

        if not self.schema_dir.exists():
            logger.warning(f"Schema directory not found: {{'path': {str(self.schema_dir)!r}}}")
            return migrations

        for sql_file in self.schema_dir.glob("*.sql"):
            try:
                version = int(sql_file.stem.split('_')[0])
            except (ValueError, IndexError):
                logger.warning(f"Skipping invalid migration file: {{'file': {sql_file.name!r}}}")
                continue
            migrations.append((version, sql_file))

        migrations.sort(key=lambda x: x[0])
        return migrations

    def apply_migrations(self, target_version: Optional[int] = None) -> int:
        """
        Apply pending migrations up to target version.

        Args:
            target_version: Version to migrate to (None = latest)

        Returns:
            Schema version after migrating

        Raises:
            sqlite3.Error: If a migration fails
        """
        current_version = self.get_current_version()
        available = self._get_available_migrations()

        if not available:
            logger.info("No migrations found")
            return current_version

        if target_version is None:
            target_version = max(v for v, _ in available)

        pending = [
            (version, path) for version, path in available
            if current_version < version <= target_version
        ]

        if not pending:
            logger.debug(f"Schema is up to date: {{'version': {current_version}}}")
            return current_version

        for version, migration_path in pending:
            self._apply_migration(version, migration_path)

        logger.info(f"Migrated catalog schema: {{'from': {current_version}, 'to': {target_version}}}")
        return target_version

    def _apply_migration(self, version: int, migration_path: Path) -> None:
        logger.info(f"Applying migration {version}: {migration_path.name}")
        sql = migration_path.read_text(encoding='utf-8')

        with self.db.lock:
            conn = self.db.connect()
            try:
                conn.executescript(sql)
                conn.execute(
                    "INSERT OR REPLACE INTO schema_version (version) VALUES (?)",
                    (version,)
                )
                conn.commit()
            except sqlite3.Error as e:
                conn.rollback()
                logger.error(f"Failed to apply migration: {{'version': {version}, 'error': {str(e)!r}}}")
                raise
