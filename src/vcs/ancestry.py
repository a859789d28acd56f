"""First-parent ancestry queries.

Only ``parent_commit_id`` links are followed; the second parent of a merge
commit is never visited. A commit reachable only through a second parent is
therefore not reported as an ancestor, which under-detects fast-forwards
across merge commits.
"""

from collections.abc import Iterator

from store.interface import DatabaseAdapter

from .errors import InvariantViolation


class AncestryOracle:
    """Answers ancestor and fast-forward questions over the first-parent chain."""

    def __init__(self, adapter: DatabaseAdapter):
        self.adapter = adapter

    def is_ancestor(self, candidate_id: int, descendant_id: int) -> bool:
        """Whether ``candidate_id`` is on the first-parent chain of ``descendant_id``.

        A commit is its own ancestor.

        Raises:
            InvariantViolation: If the chain references a missing commit or loops
        """
        if candidate_id == descendant_id:
            return True
        return any(commit_id == candidate_id for commit_id in self._walk(descendant_id))

    def first_parent_chain(self, commit_id: int) -> list[int]:
        """Ids from ``commit_id`` back to its root, following first parents."""
        return list(self._walk(commit_id))

    def _walk(self, commit_id: int) -> Iterator[int]:
        seen: set[int] = set()
        current: int | None = commit_id
        while current is not None:
            if current in seen:
                raise InvariantViolation(f"Cycle in parent chain at commit {current}")
            seen.add(current)
            yield current
            current = self._first_parent(current)

    def _first_parent(self, commit_id: int) -> int | None:
        row = self.adapter.fetchone(
            "SELECT parent_commit_id FROM git_commit WHERE id = ?", (commit_id,)
        )
        if row is None:
            raise InvariantViolation(f"Commit {commit_id} in parent chain does not exist")
        return row["parent_commit_id"]
