"""Strict and forced merges between two branches of a repository.

A strict merge only auto-merges when both heads hold identical content (or
one head is a first-parent ancestor of the other, which fast-forwards).
Anything else is reported as a ``MergeConflict`` outcome for the caller to
resolve, typically with a force merge carrying the resolved content.
"""

from dataclasses import asdict, dataclass
from typing import ClassVar

from common.logger import get_logger
from store.interface import DatabaseAdapter

from .ancestry import AncestryOracle
from .commit_graph import CommitGraph
from .errors import NotFoundError, storage_errors
from .locks import RepositoryLocks, repository_locks
from .models import Branch
from .records import get_repository

logger = get_logger(__name__)


class _Outcome:
    kind: ClassVar[str]
    succeeded: ClassVar[bool]

    def to_dict(self) -> dict:
        return {"kind": self.kind, "succeeded": self.succeeded, **asdict(self)}


@dataclass
class MergeSuccess(_Outcome):
    """Both heads now point at a new two-parent merge commit."""

    commit_id: int
    message: str = "Merge successful"

    kind: ClassVar[str] = "success"
    succeeded: ClassVar[bool] = True


@dataclass
class FastForward(_Outcome):
    """``branch_id`` was behind and its head moved to ``commit_id``; no commit created."""

    branch_id: int
    commit_id: int

    kind: ClassVar[str] = "fast_forward"
    succeeded: ClassVar[bool] = True


@dataclass
class UpToDate(_Outcome):
    """Both branches already point at ``commit_id``."""

    commit_id: int

    kind: ClassVar[str] = "up_to_date"
    succeeded: ClassVar[bool] = True


@dataclass
class MergeConflict(_Outcome):
    """Manual resolution is required; nothing was written.

    Carries both branches' literal contents. When the merge could not be
    attempted at all (a branch has no head, or the branches live in
    different repositories) the contents are None and ``message`` says why.
    """

    branch_id_1: int
    content_1: str | None
    branch_id_2: int
    content_2: str | None
    message: str | None = None

    kind: ClassVar[str] = "conflict"
    succeeded: ClassVar[bool] = False


MergeOutcome = MergeSuccess | FastForward | UpToDate | MergeConflict


class MergeEngine:
    """Runs merges on top of a ``CommitGraph`` and ``AncestryOracle``.

    Each merge runs in one transaction while holding the repository's lock,
    and moves heads with compare-and-swap, so concurrent merges sharing a
    branch never interleave their head updates.
    """

    def __init__(
        self,
        adapter: DatabaseAdapter,
        commit_graph: CommitGraph | None = None,
        ancestry: AncestryOracle | None = None,
        locks: RepositoryLocks | None = None,
    ):
        self.adapter = adapter
        self.commit_graph = commit_graph if commit_graph is not None else CommitGraph(adapter)
        self.ancestry = ancestry if ancestry is not None else AncestryOracle(adapter)
        self.locks = locks if locks is not None else repository_locks

    def perform_strict_merge(self, branch_id_1: int, branch_id_2: int) -> MergeOutcome:
        """Merge two branches without caller-supplied content.

        Returns:
            ``UpToDate`` when both heads match, ``FastForward`` when one head
            is a first-parent ancestor of the other, ``MergeSuccess`` when the
            head contents are equal, ``MergeConflict`` otherwise

        Raises:
            NotFoundError: If either branch does not exist
            StorageError: If the store fails (the transaction is rolled back)
        """
        with storage_errors(f"Strict merge of branches {branch_id_1} and {branch_id_2}"):
            repository_id = self.commit_graph.get_branch(branch_id_1).repository_id
            with self.locks.hold(repository_id):
                with self.adapter.transaction():
                    outcome = self._strict_merge(branch_id_1, branch_id_2)

        logger.info(f"Strict merge of branches {branch_id_1} and {branch_id_2}: {outcome.kind}")
        return outcome

    def _strict_merge(self, branch_id_1: int, branch_id_2: int) -> MergeOutcome:
        branch_1 = self.commit_graph.get_branch(branch_id_1)
        branch_2 = self.commit_graph.get_branch(branch_id_2)

        if branch_1.repository_id != branch_2.repository_id:
            return MergeConflict(
                branch_1.id,
                None,
                branch_2.id,
                None,
                message="Branches belong to different repositories",
            )
        for branch in (branch_1, branch_2):
            if not branch.has_head:
                return MergeConflict(
                    branch_1.id,
                    None,
                    branch_2.id,
                    None,
                    message=f"Branch '{branch.name}' has no commits to merge",
                )

        head_1 = branch_1.head_commit_id
        head_2 = branch_2.head_commit_id

        if head_1 == head_2:
            return UpToDate(head_1)

        if self.ancestry.is_ancestor(head_2, head_1):
            self.commit_graph.advance_head(branch_2.id, head_1, expected_head=head_2)
            return FastForward(branch_2.id, head_1)
        if self.ancestry.is_ancestor(head_1, head_2):
            self.commit_graph.advance_head(branch_1.id, head_2, expected_head=head_1)
            return FastForward(branch_1.id, head_2)

        content_1 = self.commit_graph.get_snapshot(head_1).content
        content_2 = self.commit_graph.get_snapshot(head_2).content
        if content_1 != content_2:
            return MergeConflict(branch_1.id, content_1, branch_2.id, content_2)

        commit_id = self.commit_graph.create_merge_commit(
            branch_1.repository_id, head_1, head_2, content_1
        )
        self._advance_both(branch_1, branch_2, commit_id)
        return MergeSuccess(commit_id)

    def perform_force_merge(self, branch_id_1: int, branch_id_2: int, resolved_content: str) -> bool:
        """Merge two branches with caller-resolved content.

        Always creates a two-parent merge commit holding ``resolved_content``
        and moves both heads to it.

        Returns:
            True on success; False if a branch or its repository cannot be
            resolved, the branches live in different repositories, or a
            branch has no head

        Raises:
            StorageError: If the store fails (the transaction is rolled back)
        """
        try:
            with storage_errors(f"Force merge of branches {branch_id_1} and {branch_id_2}"):
                repository_id = self.commit_graph.get_branch(branch_id_1).repository_id
                with self.locks.hold(repository_id):
                    with self.adapter.transaction():
                        commit_id = self._force_merge(branch_id_1, branch_id_2, resolved_content)
        except NotFoundError as e:
            logger.warning(f"Force merge aborted: {e}")
            return False

        if commit_id is None:
            return False
        logger.info(
            f"Force merged branches {branch_id_1} and {branch_id_2} into commit {commit_id}"
        )
        return True

    def _force_merge(self, branch_id_1: int, branch_id_2: int, resolved_content: str) -> int | None:
        branch_1 = self.commit_graph.get_branch(branch_id_1)
        branch_2 = self.commit_graph.get_branch(branch_id_2)
        repository = get_repository(self.adapter, branch_1.repository_id)

        if branch_2.repository_id != repository.id:
            logger.warning(
                f"Force merge aborted: branches {branch_1.id} and {branch_2.id} "
                "belong to different repositories"
            )
            return None
        for branch in (branch_1, branch_2):
            if not branch.has_head:
                logger.warning(f"Force merge aborted: branch {branch.id} has no head")
                return None

        commit_id = self.commit_graph.create_merge_commit(
            repository.id, branch_1.head_commit_id, branch_2.head_commit_id, resolved_content
        )
        self._advance_both(branch_1, branch_2, commit_id)
        return commit_id

    def _advance_both(self, branch_1: Branch, branch_2: Branch, commit_id: int) -> None:
        self.commit_graph.advance_head(branch_1.id, commit_id, expected_head=branch_1.head_commit_id)
        if branch_2.id != branch_1.id:
            self.commit_graph.advance_head(
                branch_2.id, commit_id, expected_head=branch_2.head_commit_id
            )
