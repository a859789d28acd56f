"""Migration runner for store schema updates."""

from pathlib import Path
from typing import TYPE_CHECKING

from common.logger import get_logger

if TYPE_CHECKING:
    from store.interface import DatabaseAdapter

logger = get_logger(__name__)


class MigrationRunner:
    """Runs numbered SQL migrations and tracks the schema version.

    Migration files live in ``versions/`` and are named
    ``NNN_description.sql``; each holds one statement.
    """

    def __init__(self, adapter: "DatabaseAdapter", migrations_dir: Path | None = None):
        """Initialize migration runner.

        Args:
            adapter: Connected database adapter
            migrations_dir: Directory of migration files (defaults to ./versions)
        """
        self.adapter = adapter
        self.migrations_dir = migrations_dir or Path(__file__).parent / "versions"

    def ensure_migration_table(self) -> None:
        """Create schema_version table if it doesn't exist."""
        with self.adapter.transaction():
            self.adapter.execute(
                """
                CREATE TABLE IF NOT EXISTS schema_version (
                    version INTEGER PRIMARY KEY,
                    name TEXT NOT NULL,
                    applied_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
                )
                """
            )

    def get_current_version(self) -> int:
        """Get current schema version.

        Returns:
            Current version number, or 0 if no migrations applied
        """
        self.ensure_migration_table()

        result = self.adapter.fetchone("SELECT MAX(version) AS version FROM schema_version")
        if result and result["version"] is not None:
            return int(result["version"])
        return 0

    def get_pending_migrations(self) -> list[tuple[int, str, Path]]:
        """Get list of pending migrations.

        Returns:
            List of tuples: (version, name, filepath), lowest version first
        """
        current_version = self.get_current_version()

        if not self.migrations_dir.exists():
            return []

        migrations = []
        for filepath in sorted(self.migrations_dir.glob("*.sql")):
            version_text, _, name = filepath.stem.partition("_")
            if not name or not version_text.isdigit():
                logger.warning(f"Skipping invalid migration filename: {filepath.name}")
                continue

            version = int(version_text)
            if version > current_version:
                migrations.append((version, name, filepath))

        return sorted(migrations, key=lambda m: m[0])

    def apply_migration(self, version: int, name: str, filepath: Path) -> None:
        """Apply a single migration and record it, in one transaction.

        Args:
            version: Migration version number
            name: Migration name
            filepath: Path to migration SQL file
        """
        logger.info(f"Applying migration {version}: {name}")
        self.ensure_migration_table()
        sql = filepath.read_text()

        try:
            with self.adapter.transaction():
                self.adapter.execute(sql)
                self.adapter.execute(
                    "INSERT INTO schema_version (version, name) VALUES (?, ?)",
                    (version, name),
                )
        except Exception as e:
            logger.error(f"Failed to apply migration {version}: {e}")
            raise

        logger.debug(f"Applied migration {version}: {name}")

    def run_migrations(self) -> int:
        """Run all pending migrations.

        Returns:
            Number of migrations applied
        """
        pending = self.get_pending_migrations()

        if not pending:
            logger.debug("No pending migrations")
            return 0

        logger.info(f"Found {len(pending)} pending migration(s)")
        for version, name, filepath in pending:
            self.apply_migration(version, name, filepath)

        return len(pending)
