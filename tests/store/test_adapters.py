"""Tests for database adapters."""

import os

import pytest

from common.constants import CORE_TABLES
from store import DatabaseConfig, DatabaseType, IntegrityError, bootstrap, create_database
from store.sqlite_adapter import SQLiteAdapter

# Skip PostgreSQL integration tests unless explicitly enabled
# (These tests require a running PostgreSQL instance)
POSTGRES_INTEGRATION_ENABLED = os.getenv("RUN_POSTGRES_TESTS") == "1"


class TestSQLiteAdapter:
    """Tests for SQLite adapter."""

    def test_create_adapter(self, tmp_path):
        """Test creating a SQLite adapter."""
        db_path = tmp_path / "test.db"
        adapter = SQLiteAdapter(db_path)
        assert adapter.db_path == db_path
        assert adapter._conn is None

    def test_connect_and_close(self, tmp_path):
        """Test connecting to and closing database."""
        adapter = SQLiteAdapter(tmp_path / "nested" / "test.db")

        adapter.connect()
        assert adapter._conn is not None
        assert adapter.exists()

        adapter.close()
        assert adapter._conn is None

    def test_in_memory(self):
        """Test that ':memory:' databases work without a file."""
        adapter = SQLiteAdapter(":memory:")
        assert not adapter.exists()
        adapter.connect()
        adapter.create_schema()
        assert adapter.exists()
        assert sorted(adapter.get_tables()) == sorted(CORE_TABLES)
        adapter.close()

    def test_create_schema(self, tmp_path):
        """Test creating database schema."""
        adapter = SQLiteAdapter(tmp_path / "test.db")
        adapter.connect()

        adapter.create_schema()

        assert sorted(adapter.get_tables()) == sorted(CORE_TABLES)
        adapter.close()

    def test_create_schema_is_idempotent(self, tmp_path):
        """Test that creating the schema twice keeps existing rows."""
        adapter = SQLiteAdapter(tmp_path / "test.db")
        adapter.connect()
        adapter.create_schema()
        with adapter.transaction():
            adapter.insert("INSERT INTO users (username) VALUES (?)", ("alice",))

        adapter.create_schema()

        assert adapter.fetchscalar("SELECT COUNT(*) AS n FROM users") == 1
        adapter.close()

    def test_get_table_schema(self, adapter):
        """Test getting table schema information."""
        schema = adapter.get_table_schema("branch")
        columns = {col["name"]: col for col in schema}

        assert set(columns) == {"id", "name", "repository_id", "head_commit_id"}
        assert columns["id"]["pk"] == 1
        assert columns["head_commit_id"]["notnull"] == 0

    def test_insert_returns_id(self, adapter):
        """Test that insert returns the generated primary key."""
        with adapter.transaction():
            first = adapter.insert("INSERT INTO users (username) VALUES (?)", ("alice",))
            second = adapter.insert("INSERT INTO users (username) VALUES (?)", ("bob",))

        assert second == first + 1
        row = adapter.fetchone("SELECT username FROM users WHERE id = ?", (second,))
        assert row == {"username": "bob"}

    def test_fetchall_returns_dicts(self, adapter):
        """Test fetching all rows as dictionaries."""
        with adapter.transaction():
            adapter.insert("INSERT INTO users (username) VALUES (?)", ("bob",))
            adapter.insert("INSERT INTO users (username) VALUES (?)", ("alice",))

        rows = adapter.fetchall("SELECT username FROM users ORDER BY username")
        assert rows == [{"username": "alice"}, {"username": "bob"}]

    def test_fetchscalar_no_rows(self, adapter):
        """Test fetchscalar returns None when nothing matches."""
        assert adapter.fetchscalar("SELECT id FROM users WHERE username = ?", ("nobody",)) is None

    def test_unique_violation_raises_integrity_error(self, adapter):
        """Test that duplicate usernames are rejected."""
        with adapter.transaction():
            adapter.insert("INSERT INTO users (username) VALUES (?)", ("alice",))

        with pytest.raises(IntegrityError):
            with adapter.transaction():
                adapter.insert("INSERT INTO users (username) VALUES (?)", ("alice",))

    def test_foreign_keys_enforced(self, adapter):
        """Test that a branch cannot reference a missing repository."""
        with pytest.raises(IntegrityError):
            with adapter.transaction():
                adapter.insert(
                    "INSERT INTO branch (name, repository_id) VALUES (?, ?)", ("main", 999)
                )

    def test_null_safe_equals_matches_null(self, adapter, repository_id):
        """Test the compare-and-swap fragment treats NULL as a value."""
        with adapter.transaction():
            branch_id = adapter.insert(
                "INSERT INTO branch (name, repository_id) VALUES (?, ?)", ("main", repository_id)
            )

        row = adapter.fetchone(
            f"SELECT id FROM branch WHERE id = ? AND {adapter.null_safe_equals('head_commit_id')}",
            (branch_id, None),
        )
        assert row == {"id": branch_id}

    def test_drop_schema(self, adapter):
        """Test dropping all tables."""
        adapter.drop_schema()
        assert adapter.get_tables() == []

    def test_delete(self, tmp_path):
        """Test deleting the database file."""
        db_path = tmp_path / "test.db"
        adapter = SQLiteAdapter(db_path)
        adapter.connect()
        adapter.delete()
        assert not db_path.exists()

    def test_context_manager_commits(self, tmp_path):
        """Test that the adapter context manager commits on exit."""
        db_path = tmp_path / "test.db"
        with SQLiteAdapter(db_path) as adapter:
            adapter.create_schema()
            adapter.execute("INSERT INTO users (username) VALUES (?)", ("alice",))

        with SQLiteAdapter(db_path) as adapter:
            assert adapter.fetchscalar("SELECT COUNT(*) AS n FROM users") == 1


class TestTransaction:
    """Tests for DatabaseAdapter.transaction()."""

    def test_commits_on_success(self, adapter):
        with adapter.transaction():
            adapter.insert("INSERT INTO users (username) VALUES (?)", ("alice",))

        assert not adapter.in_transaction
        assert adapter.fetchscalar("SELECT COUNT(*) AS n FROM users") == 1

    def test_rolls_back_on_exception(self, adapter):
        with pytest.raises(RuntimeError):
            with adapter.transaction():
                adapter.insert("INSERT INTO users (username) VALUES (?)", ("alice",))
                raise RuntimeError("boom")

        assert not adapter.in_transaction
        assert adapter.fetchscalar("SELECT COUNT(*) AS n FROM users") == 0

    def test_nested_transaction_joins_outer(self, adapter):
        """Test that an inner block does not commit on its own."""
        with pytest.raises(RuntimeError):
            with adapter.transaction():
                with adapter.transaction():
                    adapter.insert("INSERT INTO users (username) VALUES (?)", ("alice",))
                assert adapter.in_transaction
                raise RuntimeError("outer failure")

        assert adapter.fetchscalar("SELECT COUNT(*) AS n FROM users") == 0

    def test_in_transaction_flag(self, adapter):
        assert not adapter.in_transaction
        with adapter.transaction():
            assert adapter.in_transaction
        assert not adapter.in_transaction


class TestDatabaseConfig:
    """Tests for DatabaseConfig and the factory."""

    def test_sqlite_config(self, tmp_path):
        config = DatabaseConfig(db_type="sqlite", db_path=str(tmp_path / "test.db"))
        assert config.db_type == DatabaseType.SQLITE
        assert config.db_path == tmp_path / "test.db"

    def test_sqlite_requires_path(self):
        with pytest.raises(ValueError, match="db_path is required"):
            DatabaseConfig(db_type="sqlite")

    def test_postgres_requires_connection_details(self):
        with pytest.raises(ValueError, match="host, database, and user"):
            DatabaseConfig(db_type="postgresql", host="localhost")

    def test_postgres_default_port(self):
        config = DatabaseConfig(db_type="postgresql", host="localhost", database="vcs", user="vcs")
        assert config.port == 5432

    def test_unsupported_type(self):
        with pytest.raises(ValueError, match="Unsupported database type"):
            DatabaseConfig(db_type="mysql")

    def test_from_env_sqlite(self, monkeypatch, tmp_path):
        monkeypatch.setenv("DATABASE_TYPE", "sqlite")
        monkeypatch.setenv("DATABASE_PATH", str(tmp_path / "env.db"))
        config = DatabaseConfig.from_env()
        assert config.db_path == tmp_path / "env.db"

    def test_from_env_path_override(self, monkeypatch, tmp_path):
        monkeypatch.setenv("DATABASE_TYPE", "sqlite")
        config = DatabaseConfig.from_env(tmp_path / "override.db")
        assert config.db_path == tmp_path / "override.db"

    def test_from_env_postgres(self, monkeypatch):
        monkeypatch.setenv("DATABASE_TYPE", "postgresql")
        monkeypatch.setenv("POSTGRES_HOST", "db.example.com")
        monkeypatch.setenv("POSTGRES_DB", "vcs")
        config = DatabaseConfig.from_env()
        assert config.db_type == DatabaseType.POSTGRESQL
        assert config.host == "db.example.com"
        assert config.database == "vcs"

    def test_create_sqlite_adapter(self, tmp_path):
        adapter = create_database(DatabaseConfig(db_type="sqlite", db_path=tmp_path / "test.db"))
        assert isinstance(adapter, SQLiteAdapter)


@pytest.mark.skipif(not POSTGRES_INTEGRATION_ENABLED, reason="Set RUN_POSTGRES_TESTS=1 to enable")
class TestPostgreSQLAdapter:
    """Integration tests against a running PostgreSQL instance."""

    @pytest.fixture
    def pg_adapter(self):
        adapter = create_database(DatabaseConfig.from_env())
        adapter.connect()
        adapter.drop_schema()
        bootstrap(adapter)

        yield adapter

        adapter.drop_schema()
        adapter.close()

    def test_create_schema(self, pg_adapter):
        tables = set(pg_adapter.get_tables())
        assert set(CORE_TABLES) <= tables

    def test_insert_returns_id(self, pg_adapter):
        with pg_adapter.transaction():
            user_id = pg_adapter.insert("INSERT INTO users (username) VALUES (?)", ("alice",))
        assert pg_adapter.fetchscalar("SELECT id FROM users WHERE username = ?", ("alice",)) == user_id

    def test_rollback(self, pg_adapter):
        with pytest.raises(RuntimeError):
            with pg_adapter.transaction():
                pg_adapter.insert("INSERT INTO users (username) VALUES (?)", ("alice",))
                raise RuntimeError("boom")
        assert pg_adapter.fetchscalar("SELECT COUNT(*) AS n FROM users") == 0

    def test_null_safe_equals(self, pg_adapter):
        assert pg_adapter.null_safe_equals("head_commit_id") == (
            "head_commit_id IS NOT DISTINCT FROM ?"
        )

    def test_read_outside_transaction_leaves_connection_idle(self, pg_adapter):
        from psycopg.pq import TransactionStatus

        pg_adapter.fetchall("SELECT * FROM users")
        assert pg_adapter._conn.info.transaction_status == TransactionStatus.IDLE

        with pg_adapter.transaction():
            assert pg_adapter._conn.info.transaction_status == TransactionStatus.INTRANS
        assert pg_adapter._conn.info.transaction_status == TransactionStatus.IDLE
