"""SQLite database adapter implementation.

This adapter wraps SQLite3 functionality to provide a consistent interface
for database operations across different database backends.
"""

import sqlite3
from pathlib import Path
from typing import Any

from .interface import DatabaseAdapter
from .types import ConnectionError as DBConnectionError
from .types import DatabaseError, Row, SchemaError, TransactionError
from .types import IntegrityError as DBIntegrityError


class SQLiteAdapter(DatabaseAdapter):
    """SQLite database adapter.

    Wraps sqlite3 functionality to implement the DatabaseAdapter interface.
    Foreign keys are enforced on every connection, and write transactions
    start with ``BEGIN IMMEDIATE`` so the head read and the head update of
    one operation are serialized against other writers.
    """

    def __init__(self, db_path: str | Path):
        """Initialize SQLite adapter.

        Args:
            db_path: Path to SQLite database file, or ':memory:'
        """
        self.db_path = Path(db_path)
        self._conn: sqlite3.Connection | None = None
        self._schema_file = Path(__file__).parent / "schema_sqlite.sql"

    @property
    def _in_memory(self) -> bool:
        return str(self.db_path) == ":memory:"

    def connect(self) -> None:
        """Establish database connection."""
        try:
            if not self._in_memory:
                self.db_path.parent.mkdir(parents=True, exist_ok=True)

            self._conn = sqlite3.connect(str(self.db_path))
            self._conn.row_factory = sqlite3.Row  # Return rows as dict-like objects
            self._conn.execute("PRAGMA foreign_keys = ON")
        except sqlite3.Error as e:
            raise DBConnectionError(f"Failed to connect to SQLite database: {e}") from e

    def close(self) -> None:
        """Close database connection."""
        if self._conn:
            self._conn.close()
            self._conn = None
        self._tx_depth = 0

    def _require_conn(self) -> sqlite3.Connection:
        if not self._conn:
            raise DatabaseError("No active connection")
        return self._conn

    def begin(self) -> None:
        """Open an immediate (write-locking) transaction."""
        conn = self._require_conn()
        if conn.in_transaction:
            return
        try:
            conn.execute("BEGIN IMMEDIATE")
        except sqlite3.Error as e:
            raise TransactionError(f"Failed to begin transaction: {e}") from e

    def commit(self) -> None:
        """Commit current transaction."""
        conn = self._require_conn()
        try:
            conn.commit()
        except sqlite3.Error as e:
            raise DatabaseError(f"Failed to commit transaction: {e}") from e

    def rollback(self) -> None:
        """Rollback current transaction."""
        conn = self._require_conn()
        try:
            conn.rollback()
        except sqlite3.Error as e:
            raise DatabaseError(f"Failed to rollback transaction: {e}") from e

    def create_schema(self) -> None:
        """Create all database tables and indexes from SQL file."""
        conn = self._require_conn()

        if not self._schema_file.exists():
            raise SchemaError(f"Schema file not found: {self._schema_file}")

        try:
            schema_sql = self._schema_file.read_text()
            conn.executescript(schema_sql)
            conn.commit()
        except sqlite3.Error as e:
            raise SchemaError(f"Failed to create schema: {e}") from e
        except OSError as e:
            raise SchemaError(f"Failed to read schema file: {e}") from e

    def get_tables(self) -> list[str]:
        """Get list of all tables in database."""
        conn = self._require_conn()
        try:
            cursor = conn.execute("SELECT name FROM sqlite_master WHERE type='table' ORDER BY name")
            return [row[0] for row in cursor.fetchall() if row[0] != "sqlite_sequence"]
        except sqlite3.Error as e:
            raise DatabaseError(f"Failed to get table list: {e}") from e

    def get_table_schema(self, table_name: str) -> list[Row]:
        """Get schema information for a specific table."""
        conn = self._require_conn()
        try:
            rows = conn.execute(f"PRAGMA table_info({table_name})").fetchall()
            return [
                {
                    "cid": row[0],
                    "name": row[1],
                    "type": row[2],
                    "notnull": row[3],
                    "default": row[4],
                    "pk": row[5],
                }
                for row in rows
            ]
        except sqlite3.Error as e:
            raise DatabaseError(f"Failed to get table schema: {e}") from e

    def execute(self, query: str, params: tuple | None = None) -> Any:
        """Execute a query and return cursor."""
        conn = self._require_conn()
        try:
            cursor = conn.cursor()
            if params:
                cursor.execute(query, params)
            else:
                cursor.execute(query)
            return cursor
        except sqlite3.IntegrityError as e:
            raise DBIntegrityError(f"Integrity constraint violation: {e}") from e
        except sqlite3.Error as e:
            raise DatabaseError(f"Query execution failed: {e}") from e

    def insert(self, query: str, params: tuple | None = None) -> int:
        """Execute an INSERT and return the new rowid."""
        cursor = self.execute(query, params)
        if cursor.lastrowid is None:
            raise DatabaseError("INSERT did not generate a row id")
        return int(cursor.lastrowid)

    def null_safe_equals(self, column: str) -> str:
        """SQLite's IS operator compares NULLs as equal."""
        return f"{column} IS ?"

    def exists(self) -> bool:
        """Check if SQLite database file exists."""
        if self._in_memory:
            return self._conn is not None
        return self.db_path.exists()

    def delete(self) -> None:
        """Delete SQLite database file."""
        if self._conn:
            self.close()
        if not self._in_memory and self.db_path.exists():
            self.db_path.unlink()

    def drop_schema(self) -> None:
        """Drop all tables in SQLite database."""
        conn = self._require_conn()
        try:
            conn.execute("PRAGMA foreign_keys = OFF")
            for table in self.get_tables():
                conn.execute(f"DROP TABLE IF EXISTS {table}")
            conn.commit()
            conn.execute("PRAGMA foreign_keys = ON")
        except sqlite3.Error as e:
            raise SchemaError(f"Failed to drop schema: {e}") from e

    def __repr__(self) -> str:
        """String representation."""
        status = "connected" if self._conn else "disconnected"
        return f"SQLiteAdapter(db_path={self.db_path}, status={status})"
