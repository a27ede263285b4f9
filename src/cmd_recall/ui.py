from __future__ import annotations

import curses
from typing import TYPE_CHECKING, Sequence

from cmd_recall.constants import (
    HEADER_ROWS,
    KEY_CTRL_C,
    KEY_CTRL_D,
    KEY_CTRL_F,
    KEY_CTRL_T,
    KEY_CTRL_X,
    KEY_ESC,
)
from cmd_recall.item import CommandItem
from cmd_recall.session import Action, SessionState

if TYPE_CHECKING:
    from cmd_recall.store import ItemStore

PROMPT = " > "

# curses color pair ids
PAIR_PROMPT = 1
PAIR_QUERY = 2
PAIR_INFO = 3
PAIR_FAVORITE = 4
PAIR_SELECTED = 5

_CTRL_ACTIONS = {
    KEY_CTRL_T: Action.CYCLE_MODE,
    KEY_CTRL_F: Action.TOGGLE_FAVORITES,
    KEY_CTRL_D: Action.TOGGLE_DEBUG,
    KEY_CTRL_X: Action.MARK_FAVORITE,
}


def _init_color_pairs():
    curses.start_color()
    curses.use_default_colors()
    pairs = {
        PAIR_PROMPT: (curses.COLOR_CYAN, -1),
        PAIR_QUERY: (curses.COLOR_GREEN, -1),
        PAIR_INFO: (curses.COLOR_BLACK, curses.COLOR_GREEN),
        PAIR_FAVORITE: (curses.COLOR_YELLOW, -1),
        PAIR_SELECTED: (curses.COLOR_BLACK, curses.COLOR_WHITE),
    }
    for pair_id, (fg, bg) in pairs.items():
        try:
            curses.init_pair(pair_id, fg, bg)
        except curses.error:
            pass


def key_to_action(ch: int | str) -> tuple[Action, str] | None:
    """Map a curses key to a session action (None for ignored keys).

    Accepts what ``get_wch()`` returns: a one-character string for typed
    text and control characters, or an int for function keys.
    """
    if isinstance(ch, str):
        if len(ch) != 1:
            return None
        if ch.isprintable():
            return Action.TYPE_CHAR, ch
        ch = ord(ch)
    if ch == -1:
        return None
    if ch in (curses.KEY_ENTER, 10, 13):
        return Action.CONFIRM, ""
    if ch == KEY_ESC:
        return Action.CANCEL, ""
    if ch == KEY_CTRL_C:
        return Action.COPY, ""
    if ch == curses.KEY_UP:
        return Action.MOVE_UP, ""
    if ch == curses.KEY_DOWN:
        return Action.MOVE_DOWN, ""
    if ch in (curses.KEY_BACKSPACE, 127, 8):
        return Action.BACKSPACE, ""
    if ch in _CTRL_ACTIONS:
        return _CTRL_ACTIONS[ch], ""
    return None


def info_text(items: Sequence[CommandItem], state: SessionState, store: ItemStore) -> str:
    """Status bar: mode, case, favorites filter and shown/total/favorite counts."""
    query = state.query
    case = "insensitive" if query.case_insensitive else "sensitive"
    fav = "on" if query.favorites_only else "off"
    text = (
        f" HISTORY - (C-t) match:{query.mode.label:<6} case:{case:<12}"
        f"(C-f) favorites:{fav:<4}- {len(items)}/{store.total()}/{store.favorites()}"
    )
    if state.debug:
        text += f" | sel={state.selected} off={state.offset}"
        if 0 <= state.selected < len(items):
            item = items[state.selected]
            text += f" hits={item.hits} id={item.id.hex()[:12]}"
    return text


class SearchUI:
    def __init__(self, stdscr, color: bool = True):
        self.stdscr = stdscr
        self.color_enabled = color
        # Raw mode delivers Ctrl-C as a key instead of SIGINT
        curses.raw()
        try:
            curses.curs_set(1)
        except curses.error:
            pass
        if color:
            _init_color_pairs()
        self.stdscr.keypad(True)

    def list_height(self) -> int:
        h, _ = self.stdscr.getmaxyx()
        return max(1, h - HEADER_ROWS)

    def _attr(self, pair: int, extra: int = 0) -> int:
        if self.color_enabled:
            return curses.color_pair(pair) | extra
        return extra

    def _highlight(self, pair: int) -> int:
        if self.color_enabled:
            return curses.color_pair(pair) | curses.A_BOLD
        return curses.A_REVERSE

    def _put(self, row: int, col: int, text: str, attr: int = 0):
        _, w = self.stdscr.getmaxyx()
        if col >= w - 1:
            return
        try:
            self.stdscr.addnstr(row, col, text, w - 1 - col, attr)
        except curses.error:
            pass

    def draw(self, items: Sequence[CommandItem], state: SessionState, store: ItemStore):
        self.stdscr.erase()
        _, w = self.stdscr.getmaxyx()

        # Search box
        self._put(0, 0, PROMPT, self._attr(PAIR_PROMPT))
        self._put(0, len(PROMPT), state.query.input, self._attr(PAIR_QUERY))

        # Info bar
        info = info_text(items, state, store)
        self._put(1, 0, info.ljust(w - 1), self._highlight(PAIR_INFO))

        # Result list, scrolled by visual lines
        last_row = HEADER_ROWS + self.list_height()
        row = HEADER_ROWS
        line_no = 0
        for idx, item in enumerate(items):
            if row >= last_row:
                break
            if idx == state.selected:
                attr = self._highlight(PAIR_SELECTED)
            elif item.favorite:
                attr = self._attr(PAIR_FAVORITE)
            else:
                attr = 0
            for line_idx, text in enumerate(item.lines):
                if line_no >= state.offset and row < last_row:
                    marker = "*" if item.favorite and line_idx == 0 else " "
                    shown = f"{marker} {text.expandtabs(4)}"
                    if idx == state.selected:
                        shown = shown.ljust(w - 1)
                    self._put(row, 0, shown, attr)
                    row += 1
                line_no += 1

        try:
            self.stdscr.move(0, min(len(PROMPT) + len(state.query.input), w - 1))
        except curses.error:
            pass
        self.stdscr.refresh()
