"""CLI for the commit-graph backend."""

import argparse
import sys
from pathlib import Path

from common.logger import error, print_json, setup_logging, success, warning
from store import DatabaseError, bootstrap, get_adapter

from .commit_graph import CommitGraph
from .errors import VCSError
from .graph import GraphSerializer
from .merge import MergeEngine
from .records import create_branch, create_repository, create_user, list_branches
from .stats import branch_diff, repository_stats


def _read_content(args) -> str:
    if args.file:
        return Path(args.file).read_text()
    return args.content


def cmd_init(adapter, args):
    """Create the schema and apply pending migrations."""
    applied = bootstrap(adapter)
    success(f"Database ready ({applied} migration(s) applied)")


def cmd_user(adapter, args):
    user_id = create_user(adapter, args.username)
    success(f"Created user {user_id}: {args.username}")


def cmd_repo(adapter, args):
    repository_id = create_repository(adapter, args.name, args.owner)
    success(f"Created repository {repository_id}: {args.name}")


def cmd_branch(adapter, args):
    if args.list:
        print_json([vars(branch) for branch in list_branches(adapter, args.repo)])
        return
    if not args.name:
        error("Branch name is required unless --list is given")
        sys.exit(1)
    branch_id = create_branch(adapter, args.repo, args.name, source_branch_id=args.source)
    success(f"Created branch {branch_id}: {args.name}")


def cmd_commit(adapter, args):
    commit_id = CommitGraph(adapter).create_commit(
        args.branch, args.author, args.message, _read_content(args)
    )
    success(f"Created commit {commit_id} on branch {args.branch}")


def cmd_log(adapter, args):
    commits = CommitGraph(adapter).get_commits(args.repo)
    print_json([commit.to_dict() for commit in commits])


def cmd_files(adapter, args):
    files = CommitGraph(adapter).get_files_by_branch(args.branch)
    print_json([snapshot.to_dict() for snapshot in files])


def cmd_merge(adapter, args):
    """Strict merge; exits 1 on conflict so scripts can fall back to force-merge."""
    outcome = MergeEngine(adapter).perform_strict_merge(args.branch1, args.branch2)
    print_json(outcome.to_dict())
    if not outcome.succeeded:
        warning("Merge conflict: resolve the content and run 'force-merge'")
        sys.exit(1)


def cmd_force_merge(adapter, args):
    merged = MergeEngine(adapter).perform_force_merge(
        args.branch1, args.branch2, _read_content(args)
    )
    if not merged:
        error(f"Could not force merge branches {args.branch1} and {args.branch2}")
        sys.exit(1)
    success(f"Force merged branches {args.branch1} and {args.branch2}")


def cmd_graph(adapter, args):
    print_json(GraphSerializer(adapter).build_graph(args.repo).to_dict())


def cmd_stats(adapter, args):
    print_json(repository_stats(adapter, args.repo).to_dict())


def cmd_diff(adapter, args):
    diff = branch_diff(adapter, args.branch1, args.branch2)
    if diff is None:
        warning("Both branches need a head to be compared")
        sys.exit(1)
    print_json(diff.to_dict())


COMMANDS = {
    "init": cmd_init,
    "user": cmd_user,
    "repo": cmd_repo,
    "branch": cmd_branch,
    "commit": cmd_commit,
    "log": cmd_log,
    "files": cmd_files,
    "merge": cmd_merge,
    "force-merge": cmd_force_merge,
    "graph": cmd_graph,
    "stats": cmd_stats,
    "diff": cmd_diff,
}


def _add_content_arguments(parser: argparse.ArgumentParser) -> None:
    group = parser.add_mutually_exclusive_group(required=True)
    group.add_argument("--content", "-c", help="File content")
    group.add_argument("--file", "-f", help="Read file content from this path")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="vcs",
        description=(
            "Commit-graph version-control backend.\n\n"
            "Database backend is controlled by DATABASE_TYPE environment variable:\n"
            "  - SQLite (DATABASE_TYPE=sqlite): file from --database or DATABASE_PATH\n"
            "  - PostgreSQL (DATABASE_TYPE=postgresql): POSTGRES_* variables\n"
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--database",
        "-d",
        help="SQLite database file (overrides DATABASE_PATH)",
    )
    parser.add_argument("--log-file", help="Also write logs to this file")

    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    subparsers.add_parser("init", help="Create the schema and apply migrations")

    user_parser = subparsers.add_parser("user", help="Create a user")
    user_parser.add_argument("username")

    repo_parser = subparsers.add_parser("repo", help="Create a repository")
    repo_parser.add_argument("name")
    repo_parser.add_argument("--owner", type=int, required=True, help="Owner user id")

    branch_parser = subparsers.add_parser("branch", help="Create or list branches")
    branch_parser.add_argument("name", nargs="?")
    branch_parser.add_argument("--repo", type=int, required=True, help="Repository id")
    branch_parser.add_argument(
        "--source", type=int, help="Copy the head of this branch instead of starting empty"
    )
    branch_parser.add_argument("--list", action="store_true", help="List branches instead")

    commit_parser = subparsers.add_parser("commit", help="Commit content on a branch")
    commit_parser.add_argument("--branch", "-b", type=int, required=True, help="Branch id")
    commit_parser.add_argument("--author", "-a", type=int, required=True, help="Author user id")
    commit_parser.add_argument("--message", "-m", required=True, help="Commit message")
    _add_content_arguments(commit_parser)

    log_parser = subparsers.add_parser("log", help="List commits, newest first")
    log_parser.add_argument("--repo", type=int, help="Limit to one repository")

    files_parser = subparsers.add_parser("files", help="Show the files of a branch head")
    files_parser.add_argument("--branch", "-b", type=int, required=True, help="Branch id")

    merge_parser = subparsers.add_parser("merge", help="Strict merge of two branches")
    merge_parser.add_argument("branch1", type=int)
    merge_parser.add_argument("branch2", type=int)

    force_parser = subparsers.add_parser(
        "force-merge", help="Merge two branches with resolved content"
    )
    force_parser.add_argument("branch1", type=int)
    force_parser.add_argument("branch2", type=int)
    _add_content_arguments(force_parser)

    graph_parser = subparsers.add_parser("graph", help="Print the commit graph as JSON")
    graph_parser.add_argument("repo", type=int)

    stats_parser = subparsers.add_parser("stats", help="Print repository statistics")
    stats_parser.add_argument("repo", type=int)

    diff_parser = subparsers.add_parser("diff", help="Compare the heads of two branches")
    diff_parser.add_argument("branch1", type=int)
    diff_parser.add_argument("branch2", type=int)

    return parser


def main(argv: list[str] | None = None):
    """Main entry point for the vcs CLI."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        sys.exit(1)

    setup_logging(log_file=args.log_file)

    adapter = get_adapter(args.database)
    try:
        adapter.connect()
        COMMANDS[args.command](adapter, args)
    except (VCSError, DatabaseError) as e:
        error(str(e))
        sys.exit(1)
    finally:
        adapter.close()


if __name__ == "__main__":
    main()
