"""Exceptions raised by the commit-graph core.

A merge conflict is not an error: strict merges report it as a
``MergeConflict`` outcome (see ``vcs.merge``).
"""

from collections.abc import Iterator
from contextlib import contextmanager

from common.logger import get_logger
from store.types import DatabaseError

logger = get_logger(__name__)


class VCSError(Exception):
    """Base exception for commit-graph operations."""

    pass


class NotFoundError(VCSError):
    """A referenced branch, repository or commit does not exist."""

    def __init__(self, kind: str, identifier: object):
        self.kind = kind
        self.identifier = identifier
        super().__init__(f"{kind} {identifier} not found")


class StorageError(VCSError):
    """The store failed; the operation was rolled back."""

    pass


class InvariantViolation(StorageError):
    """A head or parent reference points at a commit that cannot be used.

    Raised instead of writing or following a dangling reference.
    """

    pass


class StaleHeadError(StorageError):
    """A branch head moved between being read and being advanced."""

    def __init__(self, branch_id: int, expected: int | None):
        self.branch_id = branch_id
        self.expected = expected
        super().__init__(f"Head of branch {branch_id} is no longer {expected}")


class AlreadyExistsError(VCSError):
    """A record with the same unique name already exists."""

    pass


@contextmanager
def storage_errors(action: str) -> Iterator[None]:
    """Translate store failures inside the block into ``StorageError``.

    Example:
        >>> with storage_errors("Create commit on branch 3"):
        ...     adapter.execute("UPDATE branch SET head_commit_id = ? WHERE id = ?", (9, 3))
    """
    try:
        yield
    except DatabaseError as e:
        logger.error(f"{action} failed: {e}")
        raise StorageError(f"{action} failed: {e}") from e
