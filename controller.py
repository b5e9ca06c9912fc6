# controller.py
"""Panel focus and result selection state machine.

The controller performs no I/O. Every key press is resolved against the
focused panel and yields at most one action for the caller to fulfil:
``TriggerSearch`` and ``SendSelection`` are requests for the search and
remote-storage services, ``Quit`` ends the session and ``StateChanged``
asks for a redraw. Results come back through ``apply_search_result`` and
``acknowledge_send``.
"""
import logging
from dataclasses import dataclass, replace
from enum import Enum
from typing import Callable, Dict, Iterable, Optional, Set, Tuple, Union

from models import (INDEXER_ALL, INDEXERS, MIN_SEED_OPTIONS, ControllerState,
                    FilterSelection, NsfwPolicy, Panel, ResultEntry, SortMode)

log = logging.getLogger(__name__)


class Key(Enum):
    """Named keys, valued by their Textual key names."""
    UP = "up"
    DOWN = "down"
    LEFT = "left"
    RIGHT = "right"
    TAB = "tab"
    SHIFT_TAB = "shift+tab"
    SPACE = "space"
    ENTER = "enter"
    ESCAPE = "escape"
    BACKSPACE = "backspace"
    DELETE = "delete"
    HOME = "home"
    END = "end"


_KEYS_BY_NAME = {k.value: k for k in Key}


@dataclass(frozen=True)
class KeyPress:
    """One key-press event: a named key, a printable character, or both (space)."""
    key: Optional[Key] = None
    char: Optional[str] = None

    @classmethod
    def named(cls, key: Key) -> "KeyPress":
        return cls(key=key, char=" " if key is Key.SPACE else None)

    @classmethod
    def text(cls, char: str) -> "KeyPress":
        return cls(char=char)

    @classmethod
    def from_textual(cls, key: str, character: Optional[str]) -> "KeyPress":
        named = _KEYS_BY_NAME.get(key)
        if named is not None:
            return cls.named(named)
        if character and len(character) == 1 and character.isprintable():
            return cls(char=character)
        return cls()


# --- Actions ---
@dataclass(frozen=True)
class TriggerSearch:
    query: str
    filters: FilterSelection


@dataclass(frozen=True)
class SendSelection:
    indices: Tuple[int, ...]


@dataclass(frozen=True)
class Quit:
    pass


@dataclass(frozen=True)
class StateChanged:
    pass


Action = Union[TriggerSearch, SendSelection, Quit, StateChanged]

# --- Filter rows ---

class FilterGroup(Enum):
    SORT = "Sort by"
    INDEXER = "Indexers"
    MIN_SEEDS = "Min seeds"
    NSFW = "Content"


FilterRow = Tuple[FilterGroup, object]

FILTER_ROWS: Tuple[FilterRow, ...] = (
    tuple((FilterGroup.SORT, mode) for mode in SortMode)
    + tuple((FilterGroup.INDEXER, name) for name in INDEXERS)
    + tuple((FilterGroup.MIN_SEEDS, seeds) for seeds in MIN_SEED_OPTIONS)
    + tuple((FilterGroup.NSFW, policy) for policy in NsfwPolicy)
)

_TAB_ORDER = (Panel.SEARCH, Panel.FILTERS, Panel.RESULTS)


def is_row_active(filters: FilterSelection, row: FilterRow) -> bool:
    """Whether a filter row is currently checked (checkbox) or chosen (radio)."""
    group, value = row
    if group is FilterGroup.SORT:
        return filters.sort_by is value
    if group is FilterGroup.INDEXER:
        return value in filters.indexers
    if group is FilterGroup.MIN_SEEDS:
        return filters.min_seeds == value
    return filters.nsfw is value


def toggle_indexer(indexers: Tuple[str, ...], name: str) -> Tuple[str, ...]:
    """Apply a checkbox toggle to the indexer set; the set is never left empty."""
    if name == INDEXER_ALL:
        return (INDEXER_ALL,)
    current = [i for i in indexers if i != INDEXER_ALL]
    if name in current:
        current.remove(name)
    else:
        current.append(name)
    if not current:
        return (INDEXER_ALL,)
    # Keep display order stable regardless of click order.
    return tuple(i for i in INDEXERS if i in current)


class FocusController:
    """Owns focus, filters, results, selection, highlight and the search query."""

    def __init__(self, filters: Optional[FilterSelection] = None):
        self.focused_panel: Panel = Panel.SEARCH
        self.filters: FilterSelection = filters or FilterSelection()
        self.filter_cursor: int = 0
        self.results: Tuple[ResultEntry, ...] = ()
        self.selection: Set[int] = set()
        self.highlight: Optional[int] = None
        self.query: str = ""
        self.cursor: int = 0
        self._handlers: Dict[Panel, Callable[[KeyPress], Optional[Action]]] = {
            Panel.SEARCH: self._handle_search_key,
            Panel.FILTERS: self._handle_filter_key,
            Panel.RESULTS: self._handle_results_key,
        }

    @property
    def state(self) -> ControllerState:
        return ControllerState(
            focused_panel=self.focused_panel,
            filters=self.filters,
            filter_cursor=self.filter_cursor,
            results=self.results,
            selection=frozenset(self.selection),
            highlight=self.highlight,
            query=self.query,
            cursor=self.cursor,
        )

    def handle_key(self, event: KeyPress) -> Optional[Action]:
        key = event.key
        if key in (Key.TAB, Key.SHIFT_TAB):
            step = 1 if key is Key.TAB else -1
            position = _TAB_ORDER.index(self.focused_panel)
            return self._focus(_TAB_ORDER[(position + step) % len(_TAB_ORDER)])
        if key is Key.ENTER:
            return self._handle_enter()
        if key is Key.ESCAPE:
            if self.query:
                self.query = ""
                self.cursor = 0
                return StateChanged()
            return Quit()
        return self._handlers[self.focused_panel](event)

    def apply_search_result(self, entries: Iterable[ResultEntry]) -> None:
        """Replace the result list; selection is cleared and the highlight reset."""
        self.results = tuple(entries)
        self.selection.clear()
        if self.results:
            self.highlight = 0
            self.focused_panel = Panel.RESULTS
        else:
            self.highlight = None
        log.debug("Applied %d search results", len(self.results))

    def acknowledge_send(self) -> None:
        """Reset after a successful send: selection and query cleared, focus back on Search."""
        self.selection.clear()
        self.query = ""
        self.cursor = 0
        self.focused_panel = Panel.SEARCH

    # --- Global keys ---
    def _focus(self, panel: Panel) -> Action:
        log.debug("Focus %s -> %s", self.focused_panel.value, panel.value)
        self.focused_panel = panel
        return StateChanged()

    def _handle_enter(self) -> Optional[Action]:
        if self.focused_panel is not Panel.RESULTS:
            return TriggerSearch(self.query, self.filters)
        if self.selection:
            return SendSelection(tuple(sorted(self.selection)))
        if self.highlight is not None:
            return SendSelection((self.highlight,))
        return None

    # --- Panel handlers ---
    def _handle_search_key(self, event: KeyPress) -> Optional[Action]:
        key = event.key
        if key is Key.BACKSPACE:
            if self.cursor == 0:
                return None
            self.query = self.query[:self.cursor - 1] + self.query[self.cursor:]
            self.cursor -= 1
        elif key is Key.DELETE:
            if self.cursor >= len(self.query):
                return None
            self.query = self.query[:self.cursor] + self.query[self.cursor + 1:]
        elif key is Key.LEFT:
            if self.cursor == 0:
                return None
            self.cursor -= 1
        elif key is Key.RIGHT:
            if self.cursor >= len(self.query):
                return None
            self.cursor += 1
        elif key is Key.HOME:
            self.cursor = 0
        elif key is Key.END:
            self.cursor = len(self.query)
        elif key is Key.DOWN:
            return self._focus(Panel.RESULTS if self.results else Panel.FILTERS)
        elif event.char is not None and (key is None or key is Key.SPACE):
            self.query = self.query[:self.cursor] + event.char + self.query[self.cursor:]
            self.cursor += len(event.char)
        else:
            return None
        return StateChanged()

    def _handle_filter_key(self, event: KeyPress) -> Optional[Action]:
        key = event.key
        if key is Key.UP:
            if self.filter_cursor == 0:
                return None
            self.filter_cursor -= 1
        elif key is Key.DOWN:
            if self.filter_cursor >= len(FILTER_ROWS) - 1:
                return None
            self.filter_cursor += 1
        elif key is Key.RIGHT:
            return self._focus(Panel.RESULTS)
        elif key is Key.SPACE:
            self.filters = self._activate_row(FILTER_ROWS[self.filter_cursor])
        else:
            return None
        return StateChanged()

    def _activate_row(self, row: FilterRow) -> FilterSelection:
        group, value = row
        if group is FilterGroup.SORT:
            return replace(self.filters, sort_by=value)
        if group is FilterGroup.INDEXER:
            return replace(self.filters, indexers=toggle_indexer(self.filters.indexers, value))
        if group is FilterGroup.MIN_SEEDS:
            return replace(self.filters, min_seeds=value)
        return replace(self.filters, nsfw=value)

    def _handle_results_key(self, event: KeyPress) -> Optional[Action]:
        key = event.key
        if key is Key.UP:
            if self.highlight is None or self.highlight == 0:
                return self._focus(Panel.SEARCH)
            self.highlight -= 1
        elif key is Key.DOWN:
            if self.highlight is None or self.highlight >= len(self.results) - 1:
                return None
            self.highlight += 1
        elif key is Key.LEFT:
            return self._focus(Panel.FILTERS)
        elif key is Key.SPACE:
            if self.highlight is None:
                return None
            self.selection ^= {self.highlight}
        else:
            return None
        return StateChanged()
