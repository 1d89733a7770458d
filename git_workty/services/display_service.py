"""Display and formatting service for worktree information"""
import json
from pathlib import Path
from typing import Optional, Sequence

from rich.console import Console
from rich.markup import escape
from rich.table import Table
from rich.text import Text

from git_workty.constants import (
    ASCII_ICONS,
    COLUMNS,
    STYLE_CLEAN,
    STYLE_CURRENT,
    STYLE_DIRTY,
    STYLE_PATH,
    UNICODE_ICONS,
)
from git_workty.formatters import format_dirty, format_sync, shorten_path
from git_workty.logging_config import get_logger
from git_workty.models import Repository, Worktree, WorktreeStatus

logger = get_logger(__name__)


def build_json_document(
    repo: Repository,
    entries: Sequence[tuple[Worktree, WorktreeStatus]],
    current_path: Optional[Path],
) -> dict:
    """The ``list --json`` document. Field names are consumed by scripts."""
    return {
        "repo": {
            "root": str(repo.root),
            "common_dir": str(repo.common_dir),
        },
        "current": str(current_path) if current_path is not None else "",
        "worktrees": [
            {
                "path": str(wt.path),
                "branch": wt.branch,
                "branch_short": wt.branch_short,
                "head": wt.head,
                "detached": wt.detached,
                "locked": wt.locked,
                "dirty": {"count": status.dirty_count},
                "upstream": status.upstream,
                "ahead": status.ahead,
                "behind": status.behind,
            }
            for wt, status in entries
        ],
    }


class DisplayService:
    """Renders dashboards and user messages.

    The dashboard, JSON and bare paths go to stdout so shell wrappers can
    capture them. Prompts and status messages go to stderr.
    """

    def __init__(self, no_color: bool = False, ascii: bool = False):
        self.no_color = no_color
        self.icons = ASCII_ICONS if ascii else UNICODE_ICONS
        self.console = Console(no_color=no_color, highlight=False)
        self.err_console = Console(stderr=True, no_color=no_color, highlight=False)

    def display_worktree_table(
        self,
        entries: Sequence[tuple[Worktree, WorktreeStatus]],
        current_path: Optional[Path],
    ) -> None:
        """Display the worktree dashboard."""
        table = Table(box=None, show_header=False, pad_edge=False)
        for col in COLUMNS:
            justify = "right" if col.key in ("dirty", "sync") else "left"
            table.add_column(col.label, justify=justify, min_width=col.width or None, no_wrap=True)

        for wt, status in entries:
            is_current = wt.is_at(current_path)
            if is_current:
                name_style = STYLE_CURRENT
            elif status.is_dirty():
                name_style = STYLE_DIRTY
            else:
                name_style = ""

            table.add_row(
                Text(self.icons.current if is_current else " ", style=STYLE_CURRENT if is_current else ""),
                Text(wt.name, style=name_style),
                Text(format_dirty(status, self.icons), style=STYLE_DIRTY if status.is_dirty() else STYLE_CLEAN),
                Text(format_sync(status, self.icons)),
                Text(shorten_path(wt.path), style=STYLE_PATH),
            )

        self.console.print(table)

    def display_json(
        self,
        repo: Repository,
        entries: Sequence[tuple[Worktree, WorktreeStatus]],
        current_path: Optional[Path],
    ) -> None:
        print(json.dumps(build_json_document(repo, entries, current_path), indent=2))

    def print_path(self, path: Path) -> None:
        """Print a bare path on stdout for shell capture."""
        print(path)

    def print_error(self, message: str, hint: Optional[str] = None) -> None:
        self.err_console.print(f"[bold red]error[/bold red]: {escape(message)}")
        if hint:
            self.err_console.print(f"[cyan]hint[/cyan]: {escape(hint)}")

    def print_warning(self, message: str) -> None:
        self.err_console.print(f"[bold yellow]warning[/bold yellow]: {escape(message)}")

    def print_success(self, message: str) -> None:
        self.err_console.print(f"[bold green]success[/bold green]: {escape(message)}")

    def print_info(self, message: str) -> None:
        self.err_console.print(message, markup=False)

    def print_check(self, name: str, ok: bool) -> None:
        """One doctor check line."""
        if ok:
            self.err_console.print(f"[green]{self.icons.clean}[/green] {escape(name)}")
        else:
            self.err_console.print(f"[red]{self.icons.gone}[/red] {escape(name)}")

    def print_note(self, message: str, ok: Optional[bool] = None) -> None:
        """An indented detail line under a doctor check."""
        if ok is None:
            self.err_console.print(f"  {escape(message)}")
        elif ok:
            self.err_console.print(f"  [green]{self.icons.clean}[/green] {escape(message)}")
        else:
            self.err_console.print(f"  [yellow]{self.icons.gone}[/yellow] {escape(message)}")

    def confirm(self, prompt: str) -> bool:
        """Ask a yes/no question on the terminal, defaulting to no."""
        response = self.err_console.input(escape(f"{prompt} [y/N] "))
        return response.strip().lower() in ("y", "yes")
