"""Command-line interface for git-workty"""

import os
import sys
from pathlib import Path

from rich.console import Console

from git_workty.cli.args import parse_args
from git_workty.config import load_config
from git_workty.constants import EXIT_CANCELLED, EXIT_FAILURE, EXIT_OK
from git_workty.core import WorkspaceManager, run_doctor
from git_workty.exceptions import WorktyError
from git_workty.logging_config import get_logger, setup_logging
from git_workty.services.display_service import DisplayService
from git_workty.services.git import discover_repository
from git_workty.services.selection_service import CleanFilter
from git_workty.shell import generate_init

logger = get_logger(__name__)


def _build_manager(args, display: DisplayService) -> WorkspaceManager:
    repo = discover_repository(args.directory)
    config = load_config(repo)

    # Command-line flags override the config file
    if args.workers is not None:
        config.workers = args.workers
    if args.sequential:
        config.sequential = True

    if args.debug:
        for key, value in config.to_dict().items():
            if key == "github_token" and value:
                value = "***"
            logger.debug(f"config {key}: {value}")

    start_path = Path(args.directory) if args.directory else Path.cwd()
    return WorkspaceManager(repo, config, display=display, assume_yes=args.yes, start_path=start_path)


def run_command(args, display: DisplayService) -> int:
    """Dispatch a parsed command and return its exit code."""
    if args.command == "init":
        print(generate_init(args.shell, wrap_git=args.wrap_git, no_cd=args.no_cd), end="")
        return EXIT_OK

    if args.command == "doctor":
        run_doctor(args.directory, display)
        return EXIT_OK

    manager = _build_manager(args, display)

    if args.command == "list":
        manager.show_list(json_output=args.json)

    elif args.command == "go":
        display.print_path(manager.go(args.name))

    elif args.command == "pick":
        path = manager.pick()
        if path is None:
            return EXIT_CANCELLED
        display.print_path(path)

    elif args.command == "new":
        path = manager.create(args.name, base=args.base, path=args.path, fetch=args.fetch, push=args.push)
        if args.print_path:
            display.print_path(path)
        else:
            display.print_success(f"Created worktree at {path}")
        if args.open:
            manager.open_path(path)

    elif args.command == "rm":
        manager.remove(args.name, force=args.force, delete_branch=args.delete_branch)

    elif args.command == "clean":
        filters = CleanFilter(merged=args.merged, gone=args.gone, stale_days=args.stale_days)
        manager.clean(filters, dry_run=args.dry_run)

    elif args.command == "pr":
        path, created = manager.create_pr(args.number)
        if args.print_path or not created:
            display.print_path(path)
        else:
            display.print_success(f"Created PR worktree at {path}")
        if args.open:
            manager.open_path(path)

    return EXIT_OK


def main(argv=None) -> int:
    """Main entry point for the application."""
    args = parse_args(argv)
    setup_logging(verbose=args.verbose, debug=args.debug)

    no_color = args.no_color or "NO_COLOR" in os.environ
    display = DisplayService(no_color=no_color, ascii=args.ascii)

    try:
        return run_command(args, display)
    except WorktyError as e:
        logger.debug(f"{type(e).__name__}: {e}")
        display.print_error(e.message, e.hint)
        return e.exit_code
    except KeyboardInterrupt:
        display.print_info("Operation cancelled by user")
        return EXIT_CANCELLED
    except Exception as e:
        display.print_error(str(e))
        if args.debug:
            Console(stderr=True).print_exception()
        return EXIT_FAILURE


if __name__ == "__main__":
    sys.exit(main())
