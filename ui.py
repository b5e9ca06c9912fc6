# ui.py
from typing import FrozenSet, Optional, Tuple

from rich.text import Text
from textual import events
from textual.app import ComposeResult
from textual.containers import Horizontal
from textual.coordinate import Coordinate
from textual.message import Message
from textual.widgets import DataTable, Markdown, RichLog, Static

from controller import FILTER_ROWS, FilterGroup, is_row_active
from models import ControllerState, Panel, ResultEntry


class Workbench(Horizontal, can_focus=True):
    """Holds the three panels and captures every key press for the controller."""
    class KeyPressed(Message):
        def __init__(self, key: str, character: Optional[str]) -> None:
            self.key = key
            self.character = character
            super().__init__()

    def on_key(self, event: events.Key) -> None:
        event.stop()
        event.prevent_default()
        self.post_message(self.KeyPressed(event.key, event.character))


class SearchBar(Static):
    """Shows the query text with its cursor."""
    def update_state(self, state: ControllerState) -> None:
        focused = state.focused_panel is Panel.SEARCH
        self.set_class(focused, "active")
        text = Text("🔎 ")
        if not state.query and not focused:
            text.append("Type to search torrents...", style="dim")
        else:
            text.append(state.query[:state.cursor])
            if focused:
                under_cursor = state.query[state.cursor:state.cursor + 1] or " "
                text.append(under_cursor, style="reverse")
                text.append(state.query[state.cursor + 1:])
            else:
                text.append(state.query[state.cursor:])
        self.update(text)


class FilterPanel(Static):
    """Sort, indexer, seed threshold and NSFW options."""
    def update_state(self, state: ControllerState) -> None:
        focused = state.focused_panel is Panel.FILTERS
        self.set_class(focused, "active")
        text = Text()
        previous_group = None
        for index, row in enumerate(FILTER_ROWS):
            group, value = row
            if group is not previous_group:
                if previous_group is not None:
                    text.append("\n")
                text.append(f"{group.value.upper()}\n", style="bold magenta")
                previous_group = group
            active = is_row_active(state.filters, row)
            if group is FilterGroup.INDEXER:
                marker = "[x]" if active else "[ ]"
            else:
                marker = "●" if active else "○"
            label = getattr(value, "value", value)
            if group is FilterGroup.MIN_SEEDS:
                label = f"{value}+ seeds" if value else "Any"
            if focused and index == state.filter_cursor:
                style = "reverse"
            elif active:
                style = "green"
            else:
                style = "dim"
            text.append(f" {marker} {label}\n", style=style)
        self.update(text)


class DetailsPane(Static):
    """Widget to display details of the highlighted torrent."""
    def on_mount(self) -> None:
        self.update_details(None)

    def update_details(self, result: Optional[ResultEntry]) -> None:
        if result:
            content = (f"## {result.title}\n\n- **Size**: {result.size_str}\n"
                       f"- **Seeders**: {result.seeders}\n- **Leechers**: {result.leechers}\n"
                       f"- **Source**: {result.indexer}\n- **Link**: `{result.link}`")
        else:
            content = "## Details\n\n*Search, then highlight a result to see its details.*"
        self.query_one(Markdown).update(content)

    def compose(self) -> ComposeResult:
        yield Markdown()


class ResultsDisplay(DataTable, can_focus=False):
    """Widget for the main results table; the first column marks selected rows."""
    def on_mount(self) -> None:
        self.add_columns(" ", "Title", "Size", "Seeds", "Source")
        self.cursor_type = "row"

    def update_results(self, results: Tuple[ResultEntry, ...]) -> None:
        self.clear()
        for index, r in enumerate(results):
            self.add_row(" ", r.title, r.size_str, str(r.seeders), r.indexer, key=str(index))

    def update_marks(self, state: ControllerState, previous: FrozenSet[int] = frozenset()) -> None:
        self.set_class(state.focused_panel is Panel.RESULTS, "active")
        for index in previous ^ state.selection:
            if index < self.row_count:
                self.update_cell_at(Coordinate(index, 0), "✔" if index in state.selection else " ")
        if state.highlight is not None and state.highlight < self.row_count:
            self.move_cursor(row=state.highlight)


class LogPane(RichLog, can_focus=False):
    """A dedicated widget for logging application events."""
    def add_message(self, message: str) -> None:
        self.write(message)
