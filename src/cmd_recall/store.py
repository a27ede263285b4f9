"""Content-addressed command store.

Items are keyed by the SHA-256 digest of their lines and persisted in a
single SQLite file so favorites and hit counts survive restarts. The store
also keeps the ordered in-memory list that searches run against.
"""

from __future__ import annotations

import json
import sqlite3
from pathlib import Path
from typing import TYPE_CHECKING, Iterable

from cmd_recall.item import CommandItem, hash_lines
from cmd_recall.matchers import match_items
from cmd_recall.types import SearchQuery

if TYPE_CHECKING:
    from cmd_recall.debug_log import DebugLogger

_SCHEMA = "CREATE TABLE IF NOT EXISTS items (id BLOB PRIMARY KEY, data TEXT NOT NULL)"


class StoreError(Exception):
    """The backing store could not be opened or written."""


def _encode(item: CommandItem) -> str:
    return json.dumps(item.to_record(), ensure_ascii=False)


def _by_hits(item: CommandItem) -> int:
    return -item.hits


class ItemStore:
    def __init__(self, path: str | Path, logger: DebugLogger | None = None):
        self.path = Path(path)
        self.logger = logger
        self.skipped_records = 0
        self._items: list[CommandItem] = []
        self._index: dict[bytes, CommandItem] = {}
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self._conn = sqlite3.connect(str(self.path))
            self._conn.execute(_SCHEMA)
            self._conn.commit()
        except (OSError, sqlite3.Error) as e:
            raise StoreError(f"Cannot open store {self.path}: {e}") from e
        self._load()

    def _log(self, text: str):
        if self.logger:
            self.logger.log(text)

    def _load(self):
        """Scan persisted records, skipping any that fail to deserialize."""
        try:
            rows = self._conn.execute("SELECT id, data FROM items").fetchall()
        except sqlite3.Error as e:
            raise StoreError(f"Cannot read store {self.path}: {e}") from e
        for key, data in rows:
            try:
                item = CommandItem.from_record(key, json.loads(data))
            except (TypeError, ValueError) as e:
                self.skipped_records += 1
                self._log(f"store: skipped corrupt record: {e}")
                continue
            self._index[item.id] = item
            self._items.append(item)
        self._items.sort(key=_by_hits)
        self._log(
            f"store: loaded {len(self._items)} records from {self.path}"
            f" ({self.skipped_records} skipped)"
        )

    def _write(self, item: CommandItem):
        with self._conn:
            self._conn.execute(
                "INSERT OR REPLACE INTO items (id, data) VALUES (?, ?)",
                (item.id, _encode(item)),
            )

    # --- Ingestion ---

    def ingest(self, commands: Iterable[Iterable[str]]) -> int:
        """Add history commands (most recent first). Returns the number of new items.

        Known ids keep their persisted favorite/hits. The new ordering is
        built aside and swapped in once the inserts have committed.
        """
        index = dict(self._index)
        seen: set[bytes] = set()
        ordered: list[CommandItem] = []
        new_items: list[CommandItem] = []
        for lines in commands:
            lines = tuple(lines)
            if not lines:
                continue
            key = hash_lines(lines)
            if key in seen:
                continue
            seen.add(key)
            item = index.get(key)
            if item is None:
                item = CommandItem(lines)
                index[key] = item
                new_items.append(item)
            ordered.append(item)
        ordered.extend(item for item in self._items if item.id not in seen)
        ordered.sort(key=_by_hits)

        if new_items:
            try:
                with self._conn:
                    self._conn.executemany(
                        "INSERT OR IGNORE INTO items (id, data) VALUES (?, ?)",
                        [(item.id, _encode(item)) for item in new_items],
                    )
            except sqlite3.Error as e:
                raise StoreError(f"Cannot write store {self.path}: {e}") from e

        self._index = index
        self._items = ordered
        self._log(f"store: ingested {len(seen)} commands, {len(new_items)} new")
        return len(new_items)

    # --- Reads ---

    def items(self, query: SearchQuery) -> list[CommandItem]:
        """Items for a query: favorites filter first, then the matcher for the mode."""
        if query.favorites_only:
            pool = [item for item in self._items if item.favorite]
        else:
            pool = list(self._items)
        if not query.input:
            return pool
        return match_items(pool, query)

    def get(self, item_id: bytes) -> CommandItem | None:
        return self._index.get(item_id)

    def total(self) -> int:
        return len(self._items)

    def favorites(self) -> int:
        return sum(1 for item in self._items if item.favorite)

    # --- Mutations (write-through) ---

    def mark_favorite(self, item_id: bytes) -> bool:
        """Flip the favorite flag. Unknown ids are ignored (returns False)."""
        item = self._index.get(item_id)
        if item is None:
            return False
        item.flip_favorite()
        try:
            self._write(item)
        except sqlite3.Error as e:
            item.flip_favorite()
            raise StoreError(f"Cannot write store {self.path}: {e}") from e
        self._log(f"store: favorite={item.favorite} {item.command()!r}")
        return True

    def mark_hit(self, item_id: bytes) -> bool:
        """Count a selection. Unknown ids are ignored (returns False)."""
        item = self._index.get(item_id)
        if item is None:
            return False
        item.inc_hits()
        try:
            self._write(item)
        except sqlite3.Error as e:
            item.hits -= 1
            raise StoreError(f"Cannot write store {self.path}: {e}") from e
        self._items.sort(key=_by_hits)
        self._log(f"store: hits={item.hits} {item.command()!r}")
        return True

    # --- Lifecycle ---

    def close(self):
        self._conn.close()

    def __enter__(self) -> "ItemStore":
        return self

    def __exit__(self, *exc):
        self.close()


def reset_store(path: str | Path) -> bool:
    """Delete the backing file (and SQLite side files). Returns True if anything was removed."""
    path = Path(path)
    removed = False
    for candidate in (path, path.with_name(path.name + "-journal"), path.with_name(path.name + "-wal")):
        if candidate.exists():
            candidate.unlink()
            removed = True
    return removed
