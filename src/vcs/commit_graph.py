"""Commit creation, parent linking and branch head management.

Every write goes through ``DatabaseAdapter.transaction()``: a commit, its
file snapshot and the head update land together or not at all.
"""

from common.env import env
from common.logger import get_logger
from store.interface import DatabaseAdapter

from .errors import InvariantViolation, NotFoundError, StaleHeadError, storage_errors
from .models import Branch, Commit, FileSnapshot

logger = get_logger(__name__)


class CommitGraph:
    """Records commits against a store and moves branch heads.

    Args:
        adapter: Connected database adapter
        filename: Name of the tracked file (defaults to SNAPSHOT_FILENAME)
    """

    def __init__(self, adapter: DatabaseAdapter, filename: str | None = None):
        self.adapter = adapter
        self.filename = filename or env.snapshot_filename()

    # Reads

    def get_branch(self, branch_id: int) -> Branch:
        row = self.adapter.fetchone("SELECT * FROM branch WHERE id = ?", (branch_id,))
        if row is None:
            raise NotFoundError("Branch", branch_id)
        return Branch.from_row(row)

    def get_commit(self, commit_id: int) -> Commit:
        row = self.adapter.fetchone("SELECT * FROM git_commit WHERE id = ?", (commit_id,))
        if row is None:
            raise NotFoundError("Commit", commit_id)
        return Commit.from_row(row)

    def get_snapshot(self, commit_id: int) -> FileSnapshot:
        """Return the file written with ``commit_id``.

        Raises:
            NotFoundError: If the commit does not exist
            InvariantViolation: If the commit exists without its snapshot
        """
        row = self.adapter.fetchone(
            "SELECT * FROM file WHERE commit_id = ? ORDER BY id LIMIT 1", (commit_id,)
        )
        if row is None:
            self.get_commit(commit_id)
            raise InvariantViolation(f"Commit {commit_id} has no file snapshot")
        return FileSnapshot.from_row(row)

    def get_commits(self, repository_id: int | None = None) -> list[Commit]:
        """List commits newest first, optionally limited to one repository."""
        with storage_errors("List commits"):
            if repository_id is None:
                rows = self.adapter.fetchall("SELECT * FROM git_commit ORDER BY id DESC")
            else:
                rows = self.adapter.fetchall(
                    "SELECT * FROM git_commit WHERE repository_id = ? ORDER BY id DESC",
                    (repository_id,),
                )
        return [Commit.from_row(row) for row in rows]

    def get_files_by_branch(self, branch_id: int) -> list[FileSnapshot]:
        """Files of the branch's head commit; empty when the branch has no head."""
        with storage_errors(f"List files of branch {branch_id}"):
            branch = self.get_branch(branch_id)
            if not branch.has_head:
                return []
            rows = self.adapter.fetchall(
                "SELECT * FROM file WHERE commit_id = ? ORDER BY id", (branch.head_commit_id,)
            )
        return [FileSnapshot.from_row(row) for row in rows]

    # Writes

    def create_commit(self, branch_id: int, author_id: int, message: str, content: str) -> int:
        """Commit ``content`` on top of a branch and advance its head.

        The new commit's first parent is the head read at the start of the
        transaction; if another writer moved the head in the meantime the
        head update fails with ``StaleHeadError`` and nothing is written.

        Args:
            branch_id: Branch to commit on
            author_id: Id of the committing user
            message: Commit message
            content: Full content of the tracked file

        Returns:
            Id of the new commit

        Raises:
            NotFoundError: If the branch does not exist
            StorageError: If the store fails (the transaction is rolled back)
        """
        with storage_errors(f"Create commit on branch {branch_id}"):
            with self.adapter.transaction():
                branch = self.get_branch(branch_id)
                parent_id = branch.head_commit_id
                if parent_id is not None:
                    self._require_commit(parent_id, branch.repository_id)

                commit_id = self._insert_commit(branch.repository_id, author_id, message, parent_id)
                self._insert_snapshot(commit_id, content)
                self.advance_head(branch_id, commit_id, expected_head=parent_id)

        logger.info(f"Created commit {commit_id} on branch {branch_id} (parent: {parent_id})")
        return commit_id

    def create_merge_commit(
        self,
        repository_id: int,
        parent_id_1: int,
        parent_id_2: int,
        content: str,
        author_id: int | None = None,
        message: str | None = None,
    ) -> int:
        """Insert a two-parent commit and its snapshot without moving any head.

        Joins the caller's transaction when one is open, so a merge can
        advance heads atomically with this insert.

        Raises:
            InvariantViolation: If a parent is missing or belongs to another repository
            StorageError: If the store fails
        """
        if author_id is None:
            author_id = env.merge_author_id()
        message = message or env.merge_message()

        with storage_errors(f"Create merge commit of {parent_id_1} and {parent_id_2}"):
            with self.adapter.transaction():
                self._require_commit(parent_id_1, repository_id)
                self._require_commit(parent_id_2, repository_id)
                commit_id = self._insert_commit(
                    repository_id, author_id, message, parent_id_1, parent_id_2
                )
                self._insert_snapshot(commit_id, content)

        logger.debug(f"Created merge commit {commit_id} (parents: {parent_id_1}, {parent_id_2})")
        return commit_id

    def advance_head(self, branch_id: int, commit_id: int, expected_head: int | None) -> None:
        """Point a branch at ``commit_id`` if its head is still ``expected_head``.

        Raises:
            NotFoundError: If the branch does not exist
            InvariantViolation: If the commit is not in the branch's repository
            StaleHeadError: If the head no longer matches ``expected_head``
        """
        branch = self.get_branch(branch_id)
        self._require_commit(commit_id, branch.repository_id)

        cursor = self.adapter.execute(
            "UPDATE branch SET head_commit_id = ? "
            f"WHERE id = ? AND {self.adapter.null_safe_equals('head_commit_id')}",
            (commit_id, branch_id, expected_head),
        )
        if cursor.rowcount != 1:
            raise StaleHeadError(branch_id, expected_head)

    def _require_commit(self, commit_id: int, repository_id: int) -> None:
        row = self.adapter.fetchone(
            "SELECT repository_id FROM git_commit WHERE id = ?", (commit_id,)
        )
        if row is None:
            raise InvariantViolation(f"Commit {commit_id} does not exist")
        if row["repository_id"] != repository_id:
            raise InvariantViolation(
                f"Commit {commit_id} belongs to repository {row['repository_id']}, "
                f"not {repository_id}"
            )

    def _insert_commit(
        self,
        repository_id: int,
        author_id: int,
        message: str,
        parent_id_1: int | None,
        parent_id_2: int | None = None,
    ) -> int:
        return self.adapter.insert(
            """
            INSERT INTO git_commit
                (repository_id, author_id, message, parent_commit_id, parent_commit_id_2)
            VALUES (?, ?, ?, ?, ?)
            """,
            (repository_id, author_id, message, parent_id_1, parent_id_2),
        )

    def _insert_snapshot(self, commit_id: int, content: str) -> int:
        return self.adapter.insert(
            "INSERT INTO file (commit_id, filename, content) VALUES (?, ?, ?)",
            (commit_id, self.filename, content),
        )
