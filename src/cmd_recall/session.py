"""UI-agnostic search session state and transitions.

No curses imports: the transition functions work on a plain SessionState
and can be tested without a terminal. Session wires them to an ItemStore
and re-runs the query after every input event.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import TYPE_CHECKING, Sequence

from cmd_recall.constants import MAX_QUERY_LENGTH
from cmd_recall.item import CommandItem
from cmd_recall.types import SearchQuery

if TYPE_CHECKING:
    from cmd_recall.debug_log import DebugLogger
    from cmd_recall.store import ItemStore


class Action(Enum):
    TYPE_CHAR = auto()
    BACKSPACE = auto()
    CYCLE_MODE = auto()
    TOGGLE_FAVORITES = auto()
    TOGGLE_DEBUG = auto()
    MOVE_UP = auto()
    MOVE_DOWN = auto()
    MARK_FAVORITE = auto()
    CONFIRM = auto()
    COPY = auto()
    CANCEL = auto()


@dataclass
class SessionState:
    selected: int = 0  # index into the result list
    offset: int = 0  # visual lines scrolled past
    debug: bool = False
    query: SearchQuery = field(default_factory=SearchQuery)


def hindex_to_hlines(items: Sequence[CommandItem], index: int) -> int:
    """Visual lines taken by items 0..index inclusive (0 if out of range)."""
    if not items or index < 0 or index >= len(items):
        return 0
    return sum(item.hlines() for item in items[: index + 1])


# --- Transitions ---


def put_char(state: SessionState, ch: str, max_length: int = MAX_QUERY_LENGTH):
    if len(state.query.input) < max_length:
        state.query.input += ch
    state.selected = 0
    state.offset = 0


def backspace(state: SessionState):
    state.query.input = state.query.input[:-1]
    state.selected = 0
    state.offset = 0


def cycle_mode(state: SessionState):
    state.query.mode = state.query.mode.next()


def toggle_favorites(state: SessionState):
    state.query.favorites_only = not state.query.favorites_only


def toggle_debug(state: SessionState):
    state.debug = not state.debug


def move_up(state: SessionState, items: Sequence[CommandItem]):
    state.selected = max(state.selected - 1, 0)
    top = hindex_to_hlines(items, state.selected - 1)
    if top < state.offset:
        state.offset = top


def move_down(state: SessionState, items: Sequence[CommandItem], visible_height: int):
    if state.selected + 1 >= len(items):
        return
    state.selected += 1
    bottom = hindex_to_hlines(items, state.selected)
    if bottom > state.offset + visible_height:
        state.offset = bottom - visible_height


class Session:
    """One interactive search: state, current results, and the outcome."""

    def __init__(
        self,
        store: ItemStore,
        visible_height: int = 20,
        max_query_length: int = MAX_QUERY_LENGTH,
        state: SessionState | None = None,
        logger: DebugLogger | None = None,
    ):
        self.store = store
        self.visible_height = max(1, visible_height)
        self.max_query_length = max_query_length
        self.state = state or SessionState()
        self.logger = logger
        self.finished = False
        self.selection: str | None = None
        self.copied: str | None = None  # text bound for the clipboard
        self.results: list[CommandItem] = []
        self.refresh()

    def refresh(self):
        """Re-run the current query against the store."""
        t0 = time.monotonic()
        self.results = self.store.items(self.state.query)
        if self.logger:
            self.logger.log_query(self.state.query, len(self.results), time.monotonic() - t0)
        if self.results and self.state.selected >= len(self.results):
            self.state.selected = len(self.results) - 1
        elif not self.results:
            self.state.selected = 0
            self.state.offset = 0

    def selected_item(self) -> CommandItem | None:
        if 0 <= self.state.selected < len(self.results):
            return self.results[self.state.selected]
        return None

    def dispatch(self, action: Action, ch: str = ""):
        """Apply one input event, then re-query."""
        if self.finished:
            return
        state = self.state
        if action == Action.TYPE_CHAR:
            put_char(state, ch, self.max_query_length)
        elif action == Action.BACKSPACE:
            backspace(state)
        elif action == Action.CYCLE_MODE:
            cycle_mode(state)
        elif action == Action.TOGGLE_FAVORITES:
            toggle_favorites(state)
        elif action == Action.TOGGLE_DEBUG:
            toggle_debug(state)
        elif action == Action.MOVE_UP:
            move_up(state, self.results)
        elif action == Action.MOVE_DOWN:
            move_down(state, self.results, self.visible_height)
        elif action == Action.MARK_FAVORITE:
            item = self.selected_item()
            if item is not None:
                self.store.mark_favorite(item.id)
        elif action == Action.CONFIRM:
            item = self.selected_item()
            if item is None:
                return
            self.store.mark_hit(item.id)
            self.selection = item.raw_text()
            self.finished = True
            return
        elif action == Action.COPY:
            item = self.selected_item()
            self.copied = item.raw_text() if item is not None else None
            self.selection = None
            self.finished = True
            return
        elif action == Action.CANCEL:
            self.selection = None
            self.finished = True
            return
        self.refresh()
