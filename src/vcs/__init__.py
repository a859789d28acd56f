"""Commit graph and merge engine.

Example:
    >>> from store import get_adapter
    >>> from vcs import CommitGraph, MergeEngine
    >>>
    >>> adapter = get_adapter()
    >>> adapter.connect()
    >>> commit_id = CommitGraph(adapter).create_commit(1, 1, "init", "A")
    >>> outcome = MergeEngine(adapter).perform_strict_merge(1, 2)
"""

from .ancestry import AncestryOracle
from .commit_graph import CommitGraph
from .errors import (
    AlreadyExistsError,
    InvariantViolation,
    NotFoundError,
    StaleHeadError,
    StorageError,
    VCSError,
)
from .graph import Graph, GraphEdge, GraphNode, GraphSerializer
from .merge import FastForward, MergeConflict, MergeEngine, MergeOutcome, MergeSuccess, UpToDate
from .models import Branch, Commit, FileSnapshot, Repository

__all__ = [
    # Core
    "CommitGraph",
    "AncestryOracle",
    "MergeEngine",
    "GraphSerializer",
    # Merge outcomes
    "MergeOutcome",
    "MergeSuccess",
    "FastForward",
    "UpToDate",
    "MergeConflict",
    # Records
    "Repository",
    "Branch",
    "Commit",
    "FileSnapshot",
    "Graph",
    "GraphNode",
    "GraphEdge",
    # Errors
    "VCSError",
    "NotFoundError",
    "AlreadyExistsError",
    "StorageError",
    "InvariantViolation",
    "StaleHeadError",
]
