"""Database migration system for the commit-graph store.

Tracks the schema version in ``schema_version`` and applies the numbered
SQL files in ``versions/`` on top of the base schema.
"""

from .runner import MigrationRunner

__all__ = ["MigrationRunner"]
