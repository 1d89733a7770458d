"""Interactive fuzzy worktree picker using Textual."""

from typing import List, Optional, Sequence

from rich.text import Text
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.widgets import Footer, Input, OptionList

from .logging_config import get_logger
from .services.selection_service import fuzzy_filter

logger = get_logger(__name__)


def option_prompts(lines: Sequence[str]) -> List[Text]:
    """Plain-text prompts; paths and branch names may contain markup characters."""
    return [Text(line) for line in lines]


class WorktreePicker(App[Optional[int]]):
    """Fuzzy-select one line; returns its index, or None when cancelled."""

    TITLE = "Select worktree"

    CSS = """
    Screen {
        background: $surface;
    }

    #query {
        dock: top;
    }

    OptionList {
        height: 1fr;
    }
    """

    BINDINGS = [
        Binding("escape", "cancel", "Cancel"),
        Binding("ctrl+c", "cancel", "Cancel", show=False),
        Binding("down", "cursor_down", "Down", show=False),
        Binding("up", "cursor_up", "Up", show=False),
    ]

    def __init__(self, lines: Sequence[str]):
        super().__init__()
        self.lines = list(lines)
        self.visible: List[int] = list(range(len(self.lines)))

    def compose(self) -> ComposeResult:
        """Create child widgets."""
        yield Input(placeholder="Type to filter worktrees", id="query")
        yield OptionList(*option_prompts(self.lines), id="choices")
        yield Footer()

    def on_mount(self) -> None:
        options = self.query_one(OptionList)
        if self.lines:
            options.highlighted = 0
        self.query_one(Input).focus()

    def on_input_changed(self, event: Input.Changed) -> None:
        """Refilter as the query changes."""
        self.visible = fuzzy_filter(event.value, self.lines)
        options = self.query_one(OptionList)
        options.clear_options()
        options.add_options(option_prompts([self.lines[i] for i in self.visible]))
        if self.visible:
            options.highlighted = 0
        logger.debug(f"Query {event.value!r} matches {len(self.visible)} worktrees")

    def on_input_submitted(self, event: Input.Submitted) -> None:
        highlighted = self.query_one(OptionList).highlighted
        if highlighted is None or not self.visible:
            # Nothing matched; keep the picker open
            self.bell()
            return
        self.exit(self.visible[highlighted])

    def on_option_list_option_selected(self, event: OptionList.OptionSelected) -> None:
        self.exit(self.visible[event.option_index])

    def action_cursor_down(self) -> None:
        self.query_one(OptionList).action_cursor_down()

    def action_cursor_up(self) -> None:
        self.query_one(OptionList).action_cursor_up()

    def action_cancel(self) -> None:
        self.exit(None)


def run_picker(lines: Sequence[str]) -> Optional[int]:
    """Show the picker and block until a line is chosen or the user cancels."""
    return WorktreePicker(lines).run()
