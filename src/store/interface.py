"""Abstract database adapter interface.

This module defines the interface that all database adapters must implement,
providing a consistent API for the commit graph across SQLite and PostgreSQL.
"""

from abc import ABC, abstractmethod
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

from .types import Row


class DatabaseAdapter(ABC):
    """Abstract database adapter interface.

    All database implementations (SQLite, PostgreSQL) must implement this interface
    to ensure consistent behavior across different database backends.

    Queries are written with ``?`` placeholders; adapters that use another
    paramstyle convert them.
    """

    # Nesting depth of transaction(); 0 means no transaction is open
    _tx_depth: int = 0

    @abstractmethod
    def connect(self) -> None:
        """Establish database connection.

        Raises:
            ConnectionError: If connection fails
        """
        pass

    @abstractmethod
    def close(self) -> None:
        """Close database connection."""
        pass

    @abstractmethod
    def begin(self) -> None:
        """Open a write transaction.

        Raises:
            TransactionError: If the transaction cannot be started
        """
        pass

    @abstractmethod
    def commit(self) -> None:
        """Commit current transaction.

        Raises:
            DatabaseError: If commit fails
        """
        pass

    @abstractmethod
    def rollback(self) -> None:
        """Rollback current transaction.

        Raises:
            DatabaseError: If rollback fails
        """
        pass

    @contextmanager
    def transaction(self) -> Iterator["DatabaseAdapter"]:
        """Run a block in a single transaction.

        Commits when the block exits normally and rolls back when it raises.
        A nested call joins the enclosing transaction, so only the outermost
        block commits or rolls back.

        Example:
            >>> with adapter.transaction():
            ...     adapter.execute("UPDATE branch SET head_commit_id = ? WHERE id = ?", (7, 1))
        """
        if self._tx_depth:
            self._tx_depth += 1
            try:
                yield self
            finally:
                self._tx_depth -= 1
            return

        self.begin()
        self._tx_depth = 1
        try:
            yield self
            self.commit()
        except BaseException:
            self.rollback()
            raise
        finally:
            self._tx_depth = 0

    @property
    def in_transaction(self) -> bool:
        """Whether a transaction() block is currently open."""
        return self._tx_depth > 0

    @abstractmethod
    def create_schema(self) -> None:
        """Create all database tables and indexes.

        This method creates the base schema. After calling this, run_migrations()
        should be called to apply any pending schema updates.

        Raises:
            SchemaError: If schema creation fails
        """
        pass

    def run_migrations(self) -> int:
        """Run pending database migrations.

        Returns:
            Number of migrations applied

        Raises:
            DatabaseError: If migration fails
        """
        from .migrations import MigrationRunner

        runner = MigrationRunner(self)
        return runner.run_migrations()

    @abstractmethod
    def get_tables(self) -> list[str]:
        """Get list of all tables in database.

        Returns:
            List of table names

        Raises:
            DatabaseError: If query fails
        """
        pass

    @abstractmethod
    def get_table_schema(self, table_name: str) -> list[Row]:
        """Get schema information for a specific table.

        Args:
            table_name: Name of the table

        Returns:
            List of column definitions as dictionaries with keys:
                - name: Column name
                - type: Column data type
                - notnull: Whether column is NOT NULL (1 or 0)
                - default: Default value (or None)
                - pk: Whether column is primary key (1 or 0)

        Raises:
            DatabaseError: If query fails
        """
        pass

    @abstractmethod
    def execute(self, query: str, params: tuple | None = None) -> Any:
        """Execute a query and return cursor.

        Args:
            query: SQL query to execute
            params: Query parameters (optional)

        Returns:
            Database cursor

        Raises:
            DatabaseError: If execution fails
            IntegrityError: If integrity constraint violated
        """
        pass

    @abstractmethod
    def insert(self, query: str, params: tuple | None = None) -> int:
        """Execute an INSERT and return the generated ``id`` of the new row.

        Args:
            query: INSERT statement without a RETURNING clause
            params: Query parameters (optional)

        Returns:
            Primary key of the inserted row

        Raises:
            DatabaseError: If execution fails or no id was generated
            IntegrityError: If integrity constraint violated
        """
        pass

    def fetchone(self, query: str, params: tuple | None = None) -> Row | None:
        """Execute query and fetch one result as dictionary.

        Args:
            query: SQL query to execute
            params: Query parameters (optional)

        Returns:
            Single row as dictionary, or None if no results

        Raises:
            DatabaseError: If execution fails
        """
        cursor = self.execute(query, params)
        row = cursor.fetchone()
        if row is None:
            return None
        return dict(row)

    def fetchall(self, query: str, params: tuple | None = None) -> list[Row]:
        """Execute query and fetch all results as list of dictionaries.

        Args:
            query: SQL query to execute
            params: Query parameters (optional)

        Returns:
            List of rows as dictionaries

        Raises:
            DatabaseError: If execution fails
        """
        cursor = self.execute(query, params)
        return [dict(row) for row in cursor.fetchall()]

    def fetchscalar(self, query: str, params: tuple | None = None) -> Any:
        """Execute query and return first column of first row.

        Useful for queries that return a single value like COUNT(*), MAX(), etc.

        Args:
            query: SQL query to execute
            params: Query parameters (optional)

        Returns:
            First column of first row, or None if no results
        """
        result = self.fetchone(query, params)
        if result is None:
            return None
        return next(iter(result.values()))

    @abstractmethod
    def null_safe_equals(self, column: str) -> str:
        """Generate a comparison of ``column`` with one parameter that treats NULLs as equal.

        Used for compare-and-swap updates where the expected value may be NULL.

        Args:
            column: Column name to compare

        Returns:
            SQL fragment with a single ``?`` parameter
            - PostgreSQL: column IS NOT DISTINCT FROM ?
            - SQLite: column IS ?

        Example:
            >>> adapter.null_safe_equals("head_commit_id")
            'head_commit_id IS ?'                      # SQLite
            'head_commit_id IS NOT DISTINCT FROM ?'    # PostgreSQL
        """
        pass

    @abstractmethod
    def exists(self) -> bool:
        """Check if database exists and is accessible.

        For SQLite: Checks if database file exists
        For PostgreSQL: Checks if database exists and has tables

        Returns:
            True if database exists and is accessible, False otherwise
        """
        pass

    @abstractmethod
    def drop_schema(self) -> None:
        """Drop all tables in the database.

        Raises:
            SchemaError: If schema drop fails
        """
        pass

    def __enter__(self):
        """Context manager entry."""
        self.connect()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit."""
        if exc_type is not None:
            self.rollback()
        else:
            self.commit()
        self.close()
        return False
