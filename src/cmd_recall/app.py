from __future__ import annotations

import curses
from typing import TYPE_CHECKING

from cmd_recall.config import Config
from cmd_recall.session import Session, SessionState
from cmd_recall.types import SearchQuery
from cmd_recall.ui import SearchUI, key_to_action

if TYPE_CHECKING:
    from cmd_recall.debug_log import DebugLogger
    from cmd_recall.store import ItemStore


def run_search(
    stdscr,
    store: ItemStore,
    config: Config,
    logger: DebugLogger | None = None,
    initial_query: str = "",
) -> Session:
    """Run one interactive search and return the finished Session.

    Its `selection` holds the chosen command's raw text and `copied` the
    text to put on the clipboard; both are None after a cancel.
    """
    ui = SearchUI(stdscr, color=config.ui.color)
    state = SessionState(
        query=SearchQuery(
            input=initial_query[: config.search.max_query_length],
            mode=config.search.mode,
            favorites_only=config.search.favorites_only,
        )
    )
    session = Session(
        store,
        visible_height=ui.list_height(),
        max_query_length=config.search.max_query_length,
        state=state,
        logger=logger,
    )

    try:
        while not session.finished:
            ui.draw(session.results, session.state, store)
            try:
                ch = stdscr.get_wch()
            except curses.error:
                continue
            if ch == curses.KEY_RESIZE:
                session.visible_height = ui.list_height()
                continue
            action = key_to_action(ch)
            if action is None:
                continue
            session.dispatch(*action)
    except KeyboardInterrupt:
        return session

    if logger and session.selection is not None:
        logger.log(f"selected: {session.selection!r}")
    if logger and session.copied is not None:
        logger.log(f"copied: {session.copied!r}")
    return session
