"""Tests for the content-addressed item store."""

import json
import sqlite3

import pytest

from cmd_recall.item import hash_lines
from cmd_recall.store import ItemStore, StoreError, reset_store
from cmd_recall.types import SearchMode, SearchQuery

HISTORY = [["git status"], ["ls -la"], ["docker ps"], ["for i in 1 2; do", "  echo $i", "done"]]


def _open(tmp_path):
    return ItemStore(tmp_path / "history.db")


def _commands(items):
    return [item.command() for item in items]


class TestIngest:
    def test_new_items_counted(self, tmp_path):
        with _open(tmp_path) as store:
            assert store.ingest(HISTORY) == 4
            assert store.total() == 4

    def test_duplicates_collapse(self, tmp_path):
        with _open(tmp_path) as store:
            assert store.ingest([["ls -la"], ["pwd"], ["ls -la"]]) == 2
            assert store.total() == 2

    def test_idempotent(self, tmp_path):
        with _open(tmp_path) as store:
            store.ingest(HISTORY)
            assert store.ingest(HISTORY) == 0
            assert store.total() == 4

    def test_metadata_survives_reingest_and_restart(self, tmp_path):
        key = hash_lines(["docker ps"])
        with _open(tmp_path) as store:
            store.ingest(HISTORY)
            store.mark_favorite(key)
            store.mark_hit(key)
            store.ingest(HISTORY)
            assert store.get(key).favorite is True
            assert store.get(key).hits == 1

        with _open(tmp_path) as store:
            assert store.total() == 4
            assert store.ingest(HISTORY) == 0
            assert store.get(key).favorite is True
            assert store.get(key).hits == 1

    def test_history_order_kept(self, tmp_path):
        with _open(tmp_path) as store:
            store.ingest(HISTORY)
            assert _commands(store.items(SearchQuery()))[:3] == ["git status", "ls -la", "docker ps"]

    def test_persisted_items_outside_history_kept(self, tmp_path):
        with _open(tmp_path) as store:
            store.ingest([["old command"]])
        with _open(tmp_path) as store:
            store.ingest([["new command"]])
            assert _commands(store.items(SearchQuery())) == ["new command", "old command"]

    def test_empty_groups_ignored(self, tmp_path):
        with _open(tmp_path) as store:
            assert store.ingest([[], ["ls"]]) == 1


class TestItems:
    def test_empty_query_returns_everything(self, tmp_path):
        with _open(tmp_path) as store:
            store.ingest(HISTORY)
            assert len(store.items(SearchQuery())) == 4

    def test_favorites_only_with_no_favorites(self, tmp_path):
        with _open(tmp_path) as store:
            store.ingest(HISTORY)
            for text in ("", "git", "ls"):
                for mode in SearchMode:
                    query = SearchQuery(input=text, mode=mode, favorites_only=True)
                    assert store.items(query) == []

    def test_favorites_only_filters_before_matching(self, tmp_path):
        with _open(tmp_path) as store:
            store.ingest([["git status"], ["git log"]])
            store.mark_favorite(hash_lines(["git log"]))
            query = SearchQuery(input="git", favorites_only=True)
            assert _commands(store.items(query)) == ["git log"]

    def test_delegates_to_mode(self, tmp_path):
        with _open(tmp_path) as store:
            store.ingest([["git status"], ["Git log"]])
            assert len(store.items(SearchQuery(input="git", mode=SearchMode.EXACT))) == 1
            assert len(store.items(SearchQuery(input="git", mode=SearchMode.REGEX))) == 2
            assert store.items(SearchQuery(input="(", mode=SearchMode.REGEX)) == []

    def test_results_are_store_items(self, tmp_path):
        with _open(tmp_path) as store:
            store.ingest(HISTORY)
            item = store.items(SearchQuery(input="docker"))[0]
            assert item is store.get(hash_lines(["docker ps"]))


class TestMutations:
    def test_mark_favorite_flips_and_persists(self, tmp_path):
        key = hash_lines(["ls -la"])
        with _open(tmp_path) as store:
            store.ingest(HISTORY)
            assert store.mark_favorite(key) is True
            assert store.favorites() == 1
        with _open(tmp_path) as store:
            assert store.favorites() == 1
            store.mark_favorite(key)
            assert store.favorites() == 0
        with _open(tmp_path) as store:
            assert store.favorites() == 0

    def test_unknown_id_is_noop(self, tmp_path):
        with _open(tmp_path) as store:
            store.ingest(HISTORY)
            assert store.mark_favorite(b"\x00" * 32) is False
            assert store.mark_hit(b"\x00" * 32) is False
            assert store.favorites() == 0
            assert all(item.hits == 0 for item in store.items(SearchQuery()))

    def test_hit_moves_item_first(self, tmp_path):
        history = [["ls -la"], ["pwd"], ["ls -la"], ["make"]]
        with _open(tmp_path) as store:
            store.ingest(history)
            assert store.total() == 3
            store.mark_hit(hash_lines(["make"]))
        with _open(tmp_path) as store:
            store.ingest(history)
            items = store.items(SearchQuery(mode=SearchMode.FUZZY_TYPING))
            assert _commands(items) == ["make", "ls -la", "pwd"]
            assert items[0].hits == 1

    def test_hit_reorders_in_session(self, tmp_path):
        with _open(tmp_path) as store:
            store.ingest([["ls -la"], ["pwd"]])
            store.mark_hit(hash_lines(["pwd"]))
            assert _commands(store.items(SearchQuery())) == ["pwd", "ls -la"]


class TestFailures:
    def test_corrupt_records_skipped(self, tmp_path):
        path = tmp_path / "history.db"
        with ItemStore(path) as store:
            store.ingest([["ls"]])
        conn = sqlite3.connect(str(path))
        conn.execute("INSERT INTO items (id, data) VALUES (?, ?)", (b"\x01" * 32, "{not json"))
        conn.execute(
            "INSERT INTO items (id, data) VALUES (?, ?)",
            (b"\x02" * 32, json.dumps({"lines": ["pwd"], "favorite": False, "hits": 0})),
        )
        conn.commit()
        conn.close()

        with ItemStore(path) as store:
            assert store.skipped_records == 2
            assert store.total() == 1

    def test_unopenable_path_is_fatal(self, tmp_path):
        blocker = tmp_path / "file"
        blocker.write_text("x")
        with pytest.raises(StoreError):
            ItemStore(blocker / "history.db")

    def test_not_a_database_is_fatal(self, tmp_path):
        path = tmp_path / "history.db"
        path.write_bytes(b"definitely not sqlite " * 100)
        with pytest.raises(StoreError):
            ItemStore(path)


class TestReset:
    def test_reset_removes_file(self, tmp_path):
        path = tmp_path / "history.db"
        with ItemStore(path) as store:
            store.ingest(HISTORY)
        assert reset_store(path) is True
        assert not path.exists()
        with ItemStore(path) as store:
            assert store.total() == 0

    def test_reset_missing_file(self, tmp_path):
        assert reset_store(tmp_path / "history.db") is False
