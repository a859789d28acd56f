"""Shared fixtures: a bootstrapped SQLite store per test."""

import pytest

from store import bootstrap
from store.sqlite_adapter import SQLiteAdapter
from vcs.commit_graph import CommitGraph
from vcs.locks import RepositoryLocks
from vcs.merge import MergeEngine
from vcs.records import create_branch, create_repository, create_user


@pytest.fixture
def adapter(tmp_path):
    """Connected SQLite adapter with schema and migrations applied."""
    adapter = SQLiteAdapter(tmp_path / "vcs.db")
    adapter.connect()
    bootstrap(adapter)

    yield adapter

    adapter.close()


@pytest.fixture
def owner_id(adapter):
    return create_user(adapter, "alice")


@pytest.fixture
def repository_id(adapter, owner_id):
    return create_repository(adapter, "notes", owner_id)


@pytest.fixture
def main_branch(adapter, repository_id):
    return create_branch(adapter, repository_id, "main")


@pytest.fixture
def graph(adapter):
    return CommitGraph(adapter)


@pytest.fixture
def engine(adapter, graph):
    return MergeEngine(adapter, commit_graph=graph, locks=RepositoryLocks())
