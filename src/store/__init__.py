"""Store layer for the commit-graph backend.

This package provides a consistent interface for database operations across
SQLite and PostgreSQL backends, and the schema with its migrations.

Example:
    >>> from store import DatabaseConfig, bootstrap, create_database
    >>>
    >>> adapter = create_database(DatabaseConfig(db_type="sqlite", db_path="data/vcs.db"))
    >>> adapter.connect()
    >>> bootstrap(adapter)
    >>> with adapter.transaction():
    ...     adapter.insert("INSERT INTO users (username) VALUES (?)", ("alice",))
    >>> adapter.close()
"""

from .factory import DatabaseConfig, bootstrap, create_database, get_adapter
from .interface import DatabaseAdapter
from .types import (
    ConnectionError,
    DatabaseError,
    DatabaseType,
    IntegrityError,
    Row,
    SchemaError,
    TransactionError,
)

__all__ = [
    # Factory
    "DatabaseConfig",
    "bootstrap",
    "create_database",
    "get_adapter",
    # Interface
    "DatabaseAdapter",
    # Types and exceptions
    "DatabaseType",
    "DatabaseError",
    "ConnectionError",
    "IntegrityError",
    "SchemaError",
    "TransactionError",
    "Row",
]
