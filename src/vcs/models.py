"""Record types shared by the commit graph, merge engine and serializer."""

from dataclasses import dataclass

from store.types import Row


@dataclass
class Repository:
    """A repository owning branches and commits."""

    id: int
    name: str
    owner_id: int

    @classmethod
    def from_row(cls, row: Row) -> "Repository":
        return cls(id=row["id"], name=row["name"], owner_id=row["owner_id"])


@dataclass
class Branch:
    """A named, movable pointer at a commit of its repository."""

    id: int
    name: str
    repository_id: int
    head_commit_id: int | None = None

    @property
    def has_head(self) -> bool:
        return self.head_commit_id is not None

    @classmethod
    def from_row(cls, row: Row) -> "Branch":
        return cls(
            id=row["id"],
            name=row["name"],
            repository_id=row["repository_id"],
            head_commit_id=row.get("head_commit_id"),
        )


@dataclass
class Commit:
    """An immutable node of the commit graph.

    A commit with both parents set is a merge commit; one with no parents is
    a root commit.
    """

    id: int
    repository_id: int
    author_id: int
    message: str
    parent_commit_id: int | None = None
    parent_commit_id_2: int | None = None
    created_at: str | None = None

    @property
    def is_root(self) -> bool:
        return self.parent_commit_id is None and self.parent_commit_id_2 is None

    @property
    def is_merge(self) -> bool:
        return self.parent_commit_id is not None and self.parent_commit_id_2 is not None

    @property
    def parent_ids(self) -> tuple[int, ...]:
        """Present parent ids, first parent first."""
        return tuple(p for p in (self.parent_commit_id, self.parent_commit_id_2) if p is not None)

    @classmethod
    def from_row(cls, row: Row) -> "Commit":
        created_at = row.get("created_at")
        return cls(
            id=row["id"],
            repository_id=row["repository_id"],
            author_id=row["author_id"],
            message=row["message"],
            parent_commit_id=row.get("parent_commit_id"),
            parent_commit_id_2=row.get("parent_commit_id_2"),
            created_at=str(created_at) if created_at is not None else None,
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "repository_id": self.repository_id,
            "author_id": self.author_id,
            "message": self.message,
            "parent_commit_id": self.parent_commit_id,
            "parent_commit_id_2": self.parent_commit_id_2,
            "created_at": self.created_at,
        }


@dataclass
class FileSnapshot:
    """The single tracked file written with a commit."""

    id: int
    commit_id: int
    filename: str
    content: str

    @classmethod
    def from_row(cls, row: Row) -> "FileSnapshot":
        return cls(
            id=row["id"],
            commit_id=row["commit_id"],
            filename=row["filename"],
            content=row["content"],
        )

    def to_dict(self) -> dict:
        return {
            "file_id": self.id,
            "commit_id": self.commit_id,
            "filename": self.filename,
            "text": self.content,
        }
