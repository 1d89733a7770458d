"""Command-line argument parsing for git-workty."""

import argparse
from pathlib import Path

from git_workty.__version__ import __version__
from git_workty.shell import SUPPORTED_SHELLS


def _non_negative_int(value: str) -> int:
    number = int(value)
    if number < 0:
        raise argparse.ArgumentTypeError(f"must be >= 0, got {number}")
    return number


def _positive_int(value: str) -> int:
    number = int(value)
    if number <= 0:
        raise argparse.ArgumentTypeError(f"must be positive, got {number}")
    return number


def _add_global_options(parser: argparse.ArgumentParser, suppress: bool = False) -> None:
    """Options accepted both before and after the subcommand.

    On subcommand parsers the defaults are suppressed so they don't overwrite
    values given before the subcommand.
    """

    def default(value):
        return argparse.SUPPRESS if suppress else value

    parser.add_argument("--no-color", action="store_true", default=default(False), help="Disable colored output")
    parser.add_argument("--ascii", action="store_true", default=default(False), help="Use ASCII symbols only")
    parser.add_argument("--json", action="store_true", default=default(False), help="Output as JSON")
    parser.add_argument(
        "-C",
        dest="directory",
        type=Path,
        metavar="PATH",
        default=default(None),
        help="Run as if started in PATH",
    )
    parser.add_argument(
        "-y", "--yes", action="store_true", default=default(False), help="Skip confirmation prompts"
    )
    parser.add_argument("-v", "--verbose", action="store_true", default=default(False), help="Show verbose output")
    parser.add_argument(
        "--debug", action="store_true", default=default(False), help="Show debug information for troubleshooting"
    )
    parser.add_argument(
        "--workers",
        type=_positive_int,
        metavar="N",
        default=default(None),
        help="Number of parallel workers for status collection (default: auto-detect)",
    )
    parser.add_argument(
        "--sequential",
        action="store_true",
        default=default(False),
        help="Force sequential status collection (disable parallelism)",
    )


def build_parser() -> argparse.ArgumentParser:
    """Build the git-workty argument parser."""
    parser = argparse.ArgumentParser(
        prog="git-workty",
        description="Git worktrees as daily-driver workspaces",
        epilog="Run without a command to show the worktree dashboard. "
        "Set up shell helpers with: eval \"$(git workty init bash)\"",
    )
    parser.add_argument("--version", action="version", version=f"git-workty {__version__}")
    _add_global_options(parser)

    common = argparse.ArgumentParser(add_help=False)
    _add_global_options(common, suppress=True)

    subparsers = parser.add_subparsers(dest="command", metavar="COMMAND")

    subparsers.add_parser(
        "list", aliases=["ls"], parents=[common], help="Show the worktree dashboard (default)"
    )

    new = subparsers.add_parser("new", parents=[common], help="Create a worktree for a branch")
    new.add_argument("name", help="Branch name")
    new.add_argument("--from", dest="base", metavar="REF", help="Base ref for a new branch (default: config base)")
    new.add_argument("--path", type=Path, help="Worktree directory (default: <root>/<slug>)")
    new.add_argument("--print-path", action="store_true", help="Only print the new worktree's path")
    new.add_argument("--open", action="store_true", help="Run the configured open_cmd on the new worktree")
    new.add_argument(
        "--fetch", action=argparse.BooleanOptionalAction, default=None,
        help="Fetch the base's upstream and branch from it (default: config fetch_base)",
    )
    new.add_argument(
        "--push", action=argparse.BooleanOptionalAction, default=None,
        help="Publish the new branch with a tracking upstream (default: config push_new)",
    )

    go = subparsers.add_parser("go", parents=[common], help="Print the path of a worktree")
    go.add_argument("name", help="Branch or directory name")

    subparsers.add_parser("pick", parents=[common], help="Fuzzy-select a worktree and print its path")

    rm = subparsers.add_parser("rm", parents=[common], help="Remove a worktree")
    rm.add_argument("name", help="Branch or directory name")
    rm.add_argument("-f", "--force", action="store_true", help="Remove even with uncommitted changes")
    rm.add_argument("--delete-branch", action="store_true", help="Also delete the branch (git branch -d)")

    clean = subparsers.add_parser("clean", parents=[common], help="Remove finished worktrees")
    clean.add_argument("--merged", action="store_true", help="Worktrees whose branch is merged into base")
    clean.add_argument("--gone", action="store_true", help="Worktrees whose upstream branch was deleted")
    clean.add_argument(
        "--stale",
        dest="stale_days",
        type=_non_negative_int,
        metavar="DAYS",
        help="Worktrees whose last commit is older than DAYS days",
    )
    clean.add_argument("-n", "--dry-run", action="store_true", help="Show what would be removed")

    pr = subparsers.add_parser("pr", parents=[common], help="Create a worktree for a GitHub pull request")
    pr.add_argument("number", type=_positive_int, help="Pull request number")
    pr.add_argument("--print-path", action="store_true", help="Only print the worktree's path")
    pr.add_argument("--open", action="store_true", help="Run the configured open_cmd on the worktree")

    init = subparsers.add_parser("init", parents=[common], help="Print shell integration")
    init.add_argument("shell", help=f"Shell dialect ({', '.join(SUPPORTED_SHELLS)})")
    init.add_argument("--wrap-git", action="store_true", help="Also wrap git so `git workty go` changes directory")
    init.add_argument("--no-cd", action="store_true", help="Leave out the wcd/wnew/wgo helpers")

    subparsers.add_parser("doctor", parents=[common], help="Check the environment")

    return parser


def parse_args(argv=None):
    """Parse command-line arguments."""
    args = build_parser().parse_args(argv)
    if args.command is None:
        args.command = "list"
    elif args.command == "ls":
        args.command = "list"
    return args
