"""Per-repository locks serializing merges within one process."""

import threading
from collections.abc import Iterator
from contextlib import contextmanager


class RepositoryLocks:
    """Registry of one re-entrant lock per repository id.

    Merges touch two branch heads at once; holding the repository's lock for
    the whole merge keeps two merges that share a branch from interleaving.
    Cross-process writers are handled by the store's transactions and the
    compare-and-swap on branch heads.
    """

    def __init__(self):
        self._guard = threading.Lock()
        self._locks: dict[int, threading.RLock] = {}

    def lock_for(self, repository_id: int) -> threading.RLock:
        with self._guard:
            lock = self._locks.get(repository_id)
            if lock is None:
                lock = self._locks[repository_id] = threading.RLock()
            return lock

    @contextmanager
    def hold(self, repository_id: int) -> Iterator[None]:
        with self.lock_for(repository_id):
            yield

    def count(self) -> int:
        """Number of repositories that have a lock in this registry."""
        with self._guard:
            return len(self._locks)


# Shared by every MergeEngine that is not given its own registry
repository_locks = RepositoryLocks()
