"""Repository statistics and head-to-head branch comparison."""

from dataclasses import asdict, dataclass

from store.interface import DatabaseAdapter

from .commit_graph import CommitGraph
from .errors import storage_errors
from .records import get_repository


@dataclass
class RepositoryStats:
    repository_id: int
    commit_count: int
    branch_count: int
    file_count: int  # distinct tracked filenames
    last_commit_date: str | None

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class BranchDiff:
    """Line-count comparison of two branch heads.

    ``additions`` and ``deletions`` compare line counts only; they are not a
    content diff.
    """

    branch_id_1: int
    branch_id_2: int
    additions: int
    deletions: int
    has_conflicts: bool

    def to_dict(self) -> dict:
        return asdict(self)


def repository_stats(adapter: DatabaseAdapter, repository_id: int) -> RepositoryStats:
    """Count commits, branches and tracked files of a repository.

    Raises:
        NotFoundError: If the repository does not exist
    """
    with storage_errors(f"Compute stats of repository {repository_id}"):
        get_repository(adapter, repository_id)
        params = (repository_id,)

        commit_count = adapter.fetchscalar(
            "SELECT COUNT(*) AS n FROM git_commit WHERE repository_id = ?", params
        )
        branch_count = adapter.fetchscalar(
            "SELECT COUNT(*) AS n FROM branch WHERE repository_id = ?", params
        )
        file_count = adapter.fetchscalar(
            """
            SELECT COUNT(DISTINCT f.filename) AS n
            FROM file f
            JOIN git_commit c ON c.id = f.commit_id
            WHERE c.repository_id = ?
            """,
            params,
        )
        last_commit_date = adapter.fetchscalar(
            "SELECT MAX(created_at) AS last_commit FROM git_commit WHERE repository_id = ?",
            params,
        )

    return RepositoryStats(
        repository_id=repository_id,
        commit_count=int(commit_count or 0),
        branch_count=int(branch_count or 0),
        file_count=int(file_count or 0),
        last_commit_date=str(last_commit_date) if last_commit_date is not None else None,
    )


def _line_count(content: str) -> int:
    # Trailing newlines do not start a new line; empty content is one line
    return len(content.rstrip("\n").split("\n"))


def branch_diff(adapter: DatabaseAdapter, branch_id_1: int, branch_id_2: int) -> BranchDiff | None:
    """Compare the head snapshots of two branches.

    Returns:
        The comparison, or None if either branch has no head

    Raises:
        NotFoundError: If either branch does not exist
    """
    graph = CommitGraph(adapter)
    with storage_errors(f"Diff branches {branch_id_1} and {branch_id_2}"):
        branch_1 = graph.get_branch(branch_id_1)
        branch_2 = graph.get_branch(branch_id_2)
        if not (branch_1.has_head and branch_2.has_head):
            return None

        content_1 = graph.get_snapshot(branch_1.head_commit_id).content
        content_2 = graph.get_snapshot(branch_2.head_commit_id).content

    lines_1 = _line_count(content_1)
    lines_2 = _line_count(content_2)
    return BranchDiff(
        branch_id_1=branch_id_1,
        branch_id_2=branch_id_2,
        additions=max(0, lines_2 - lines_1),
        deletions=max(0, lines_1 - lines_2),
        has_conflicts=content_1 != content_2,
    )
