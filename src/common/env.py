"""Environment configuration interface for the commit-graph backend.

This module provides a clean interface for accessing environment variables,
centralizing all environment variable access in one place.
"""

import os
from pathlib import Path

from dotenv import load_dotenv

# Load environment variables from .env file if it exists
load_dotenv()


class Environment:
    """Interface for accessing environment configuration."""

    @staticmethod
    def database_type() -> str:
        """Get the database type (sqlite or postgresql).

        Returns:
            Database type, defaults to 'sqlite'
        """
        return os.getenv("DATABASE_TYPE", "sqlite")

    @staticmethod
    def database_path() -> Path:
        """Get the SQLite database file path.

        Returns:
            Path to SQLite database file, defaults to ./data/vcs.db
        """
        return Path(os.getenv("DATABASE_PATH", "./data/vcs.db"))

    @staticmethod
    def postgres_host() -> str:
        """Get PostgreSQL host.

        Returns:
            PostgreSQL host, defaults to 'localhost'
        """
        return os.getenv("POSTGRES_HOST", "localhost")

    @staticmethod
    def postgres_port() -> int:
        """Get PostgreSQL port.

        Returns:
            PostgreSQL port, defaults to 5432
        """
        return int(os.getenv("POSTGRES_PORT", "5432"))

    @staticmethod
    def postgres_database() -> str:
        """Get PostgreSQL database name.

        Returns:
            Database name, defaults to 'commit_graph'
        """
        return os.getenv("POSTGRES_DB", "commit_graph")

    @staticmethod
    def postgres_user() -> str:
        """Get PostgreSQL user.

        Returns:
            Database user, defaults to 'commit_graph_user'
        """
        return os.getenv("POSTGRES_USER", "commit_graph_user")

    @staticmethod
    def postgres_password() -> str:
        """Get PostgreSQL password.

        Returns:
            Database password, defaults to empty string
        """
        return os.getenv("POSTGRES_PASSWORD", "")

    @staticmethod
    def postgres_pool_size() -> int:
        """Get PostgreSQL connection pool size.

        Returns:
            Pool size, defaults to 5
        """
        return int(os.getenv("POSTGRES_POOL_SIZE", "5"))

    @staticmethod
    def postgres_pool_max_overflow() -> int:
        """Get PostgreSQL connection pool max overflow.

        Returns:
            Max overflow, defaults to 10
        """
        return int(os.getenv("POSTGRES_POOL_MAX_OVERFLOW", "10"))

    @staticmethod
    def snapshot_filename() -> str:
        """Get the name of the single tracked file written with every commit.

        Returns:
            Filename, defaults to 'main.txt'
        """
        return os.getenv("SNAPSHOT_FILENAME", "main.txt")

    @staticmethod
    def merge_author_id() -> int:
        """Get the author id recorded on merge commits.

        Returns:
            Author id, defaults to 1
        """
        return int(os.getenv("MERGE_AUTHOR_ID", "1"))

    @staticmethod
    def merge_message() -> str:
        """Get the commit message recorded on merge commits.

        Returns:
            Message, defaults to 'Merge commit'
        """
        return os.getenv("MERGE_MESSAGE", "Merge commit")

    @staticmethod
    def log_level() -> str:
        """Get the default logging level.

        Returns:
            Level name, defaults to 'INFO'
        """
        return os.getenv("LOG_LEVEL", "INFO").upper()


# Singleton instance for convenient access
env = Environment()
