"""Plain user, repository and branch records.

These carry no invariants beyond name uniqueness; the commit graph and merge
engine only read them.
"""

from common.logger import get_logger
from store.interface import DatabaseAdapter
from store.types import IntegrityError

from .errors import AlreadyExistsError, NotFoundError, storage_errors
from .models import Branch, Repository

logger = get_logger(__name__)


def create_user(adapter: DatabaseAdapter, username: str) -> int:
    """Insert a user and return its id."""
    with storage_errors(f"Create user '{username}'"):
        try:
            with adapter.transaction():
                user_id = adapter.insert("INSERT INTO users (username) VALUES (?)", (username,))
        except IntegrityError as e:
            raise AlreadyExistsError(f"User '{username}' already exists") from e

    logger.info(f"Created user {user_id}: {username}")
    return user_id


def get_user_id(adapter: DatabaseAdapter, username: str) -> int:
    user_id = adapter.fetchscalar("SELECT id FROM users WHERE username = ?", (username,))
    if user_id is None:
        raise NotFoundError("User", username)
    return int(user_id)


def create_repository(adapter: DatabaseAdapter, name: str, owner_id: int) -> int:
    """Insert a repository owned by ``owner_id`` and return its id.

    Raises:
        NotFoundError: If the owner does not exist
        AlreadyExistsError: If the owner already has a repository with this name
    """
    with storage_errors(f"Create repository '{name}'"):
        try:
            with adapter.transaction():
                if adapter.fetchone("SELECT id FROM users WHERE id = ?", (owner_id,)) is None:
                    raise NotFoundError("User", owner_id)
                repository_id = adapter.insert(
                    "INSERT INTO repository (name, owner_id) VALUES (?, ?)", (name, owner_id)
                )
        except IntegrityError as e:
            raise AlreadyExistsError(
                f"Repository '{name}' already exists for user {owner_id}"
            ) from e

    logger.info(f"Created repository {repository_id}: {name}")
    return repository_id


def get_repository(adapter: DatabaseAdapter, repository_id: int) -> Repository:
    row = adapter.fetchone("SELECT * FROM repository WHERE id = ?", (repository_id,))
    if row is None:
        raise NotFoundError("Repository", repository_id)
    return Repository.from_row(row)


def list_repositories(adapter: DatabaseAdapter, owner_id: int | None = None) -> list[Repository]:
    if owner_id is None:
        rows = adapter.fetchall("SELECT * FROM repository ORDER BY id")
    else:
        rows = adapter.fetchall(
            "SELECT * FROM repository WHERE owner_id = ? ORDER BY id", (owner_id,)
        )
    return [Repository.from_row(row) for row in rows]


def create_branch(
    adapter: DatabaseAdapter,
    repository_id: int,
    name: str,
    source_branch_id: int | None = None,
) -> int:
    """Create a branch and return its id.

    The branch starts with no head. When ``source_branch_id`` is given, the
    head of that branch (which must be in the same repository) is copied.

    Raises:
        NotFoundError: If the repository or source branch does not exist
        AlreadyExistsError: If the repository already has a branch with this name
    """
    with storage_errors(f"Create branch '{name}'"):
        try:
            with adapter.transaction():
                get_repository(adapter, repository_id)

                head_commit_id = None
                if source_branch_id is not None:
                    row = adapter.fetchone(
                        "SELECT head_commit_id FROM branch WHERE id = ? AND repository_id = ?",
                        (source_branch_id, repository_id),
                    )
                    if row is None:
                        raise NotFoundError("Branch", source_branch_id)
                    head_commit_id = row["head_commit_id"]

                branch_id = adapter.insert(
                    "INSERT INTO branch (name, repository_id, head_commit_id) VALUES (?, ?, ?)",
                    (name, repository_id, head_commit_id),
                )
        except IntegrityError as e:
            raise AlreadyExistsError(
                f"Branch '{name}' already exists in repository {repository_id}"
            ) from e

    logger.info(f"Created branch {branch_id}: {name} (head: {head_commit_id})")
    return branch_id


def list_branches(adapter: DatabaseAdapter, repository_id: int | None = None) -> list[Branch]:
    if repository_id is None:
        rows = adapter.fetchall("SELECT * FROM branch ORDER BY id")
    else:
        rows = adapter.fetchall(
            "SELECT * FROM branch WHERE repository_id = ? ORDER BY id", (repository_id,)
        )
    return [Branch.from_row(row) for row in rows]
