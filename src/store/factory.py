"""Database factory for creating database adapters.

This module provides a factory function and configuration class for creating
database adapters based on the database type (SQLite or PostgreSQL).
"""

from dataclasses import dataclass
from pathlib import Path

from .interface import DatabaseAdapter
from .sqlite_adapter import SQLiteAdapter
from .types import DatabaseType


@dataclass
class DatabaseConfig:
    """Database configuration container.

    Attributes:
        db_type: Type of database ('sqlite' or 'postgresql')
        db_path: Path to SQLite database file (for SQLite only)
        host: PostgreSQL host (for PostgreSQL only)
        port: PostgreSQL port (for PostgreSQL only)
        database: PostgreSQL database name (for PostgreSQL only)
        user: PostgreSQL username (for PostgreSQL only)
        password: PostgreSQL password (for PostgreSQL only)
    """

    db_type: DatabaseType | str
    # SQLite-specific
    db_path: Path | None = None
    # PostgreSQL-specific
    host: str | None = None
    port: int | None = None
    database: str | None = None
    user: str | None = None
    password: str | None = None
    pool_size: int = 5
    pool_max_overflow: int = 10

    def __post_init__(self):
        """Validate configuration after initialization."""
        if isinstance(self.db_type, str):
            try:
                self.db_type = DatabaseType(self.db_type.lower())
            except ValueError as e:
                raise ValueError(
                    f"Unsupported database type: {self.db_type}. "
                    f"Must be one of: {', '.join(t.value for t in DatabaseType)}"
                ) from e

        if self.db_type == DatabaseType.SQLITE:
            if self.db_path is None:
                raise ValueError("db_path is required for SQLite")
            if isinstance(self.db_path, str):
                self.db_path = Path(self.db_path)

        elif self.db_type == DatabaseType.POSTGRESQL:
            if not all([self.host, self.database, self.user]):
                raise ValueError("host, database, and user are required for PostgreSQL")
            if self.port is None:
                self.port = 5432

    @classmethod
    def from_env(cls, db_path: str | Path | None = None) -> "DatabaseConfig":
        """Build a configuration from DATABASE_TYPE and the related variables.

        Args:
            db_path: Overrides DATABASE_PATH when the backend is SQLite

        Returns:
            Validated configuration
        """
        from common.env import env

        if env.database_type().lower() == DatabaseType.POSTGRESQL.value:
            return cls(
                db_type=DatabaseType.POSTGRESQL,
                host=env.postgres_host(),
                port=env.postgres_port(),
                database=env.postgres_database(),
                user=env.postgres_user(),
                password=env.postgres_password(),
                pool_size=env.postgres_pool_size(),
                pool_max_overflow=env.postgres_pool_max_overflow(),
            )
        return cls(db_type=DatabaseType.SQLITE, db_path=Path(db_path or env.database_path()))


def create_database(config: DatabaseConfig) -> DatabaseAdapter:
    """Factory function to create appropriate database adapter.

    Args:
        config: Database configuration

    Returns:
        Database adapter instance

    Raises:
        ValueError: If database type is unsupported or configuration is invalid

    Example:
        >>> config = DatabaseConfig(db_type="sqlite", db_path=Path("./data/vcs.db"))
        >>> adapter = create_database(config)
    """
    if config.db_type == DatabaseType.SQLITE:
        return SQLiteAdapter(config.db_path)

    elif config.db_type == DatabaseType.POSTGRESQL:
        # Import here to avoid requiring psycopg when not using PostgreSQL
        from .postgres_adapter import PostgreSQLAdapter

        return PostgreSQLAdapter(
            host=config.host,
            port=config.port,
            database=config.database,
            user=config.user,
            password=config.password or "",
            pool_size=config.pool_size,
            pool_max_overflow=config.pool_max_overflow,
        )

    else:
        raise ValueError(f"Unsupported database type: {config.db_type}")


def get_adapter(db_path: str | Path | None = None) -> DatabaseAdapter:
    """Get database adapter using environment configuration.

    Args:
        db_path: Optional SQLite path overriding DATABASE_PATH

    Returns:
        Configured (not yet connected) database adapter

    Example:
        >>> adapter = get_adapter()
        >>> adapter.connect()
    """
    return create_database(DatabaseConfig.from_env(db_path))


def bootstrap(adapter: DatabaseAdapter) -> int:
    """Create the base schema and apply pending migrations on a connected adapter.

    Returns:
        Number of migrations applied
    """
    adapter.create_schema()
    return adapter.run_migrations()
