"""Shared constants for the commit-graph backend.

For environment-based configuration (database settings, etc.), use the env module:
    from common.env import env
    db_type = env.database_type()
"""

# Tables owned by the store, in dependency order (children last)
CORE_TABLES: tuple[str, ...] = (
    "users",
    "repository",
    "git_commit",
    "branch",
    "file",
)

# Prefix used for branch node ids in the visualization graph
BRANCH_NODE_PREFIX = "branch-"
