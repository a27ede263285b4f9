"""Tests for the fuzzy, exact and regex matchers."""

import time

from cmd_recall import matchers
from cmd_recall.item import CommandItem
from cmd_recall.matchers import (
    fuzzy_score,
    match_exact,
    match_fuzzy,
    match_items,
    match_regex,
    prepare_query,
)
from cmd_recall.types import SearchMode, SearchQuery


def _items(*commands, hits=None):
    hits = hits or [0] * len(commands)
    return [CommandItem(c.split("\n"), hits=h) for c, h in zip(commands, hits)]


def _commands(items):
    return [item.command() for item in items]


class TestFuzzyScore:
    def test_not_a_subsequence(self):
        assert fuzzy_score("git status", "gz") is None

    def test_empty_pattern(self):
        assert fuzzy_score("anything", "") == 0

    def test_pattern_longer_than_text(self):
        assert fuzzy_score("ls", "lsof") is None

    def test_consecutive_beats_scattered(self):
        assert fuzzy_score("git status", "git") > fuzzy_score("g i t", "git")

    def test_word_start_beats_mid_word(self):
        assert fuzzy_score("make test", "t") > fuzzy_score("cat", "t")

    def test_best_alignment_found(self):
        # The greedy first "s" is mid-word; the better one starts "status"
        assert fuzzy_score("ls status", "st") > fuzzy_score("lsxtatus", "st")


class TestPrepareQuery:
    def test_trims(self):
        assert prepare_query("  git  ") == "git"

    def test_collapses_escape_artifact(self):
        assert prepare_query("a\\s+b") == "a\\sb"


class TestMatchFuzzy:
    def test_reversed_query_matches(self):
        items = _items("cba extra", "unrelated")
        query = SearchQuery(input="abc", mode=SearchMode.FUZZY_TYPING)
        assert _commands(match_fuzzy(items, query)) == ["cba extra"]

    def test_exact_does_not_match_reversed(self):
        items = _items("cba extra")
        query = SearchQuery(input="abc", mode=SearchMode.EXACT)
        assert match_exact(items, query) == []

    def test_case_insensitive(self):
        items = _items("git status")
        query = SearchQuery(input="GIT", mode=SearchMode.FUZZY_TYPING)
        assert _commands(match_fuzzy(items, query)) == ["git status"]

    def test_non_matching_items_excluded(self):
        items = _items("git status", "ls -la", "docker ps")
        query = SearchQuery(input="gst")
        assert _commands(match_fuzzy(items, query)) == ["git status"]

    def test_hits_dominate_score(self):
        low, high = "xaxxbxxc", "abc"
        assert fuzzy_score(low, "abc") < fuzzy_score(high, "abc")
        items = _items(high, low, hits=[1, 5])
        query = SearchQuery(input="abc")
        assert _commands(match_fuzzy(items, query)) == [low, high]

    def test_score_breaks_hit_ties(self):
        items = _items("xaxxbxxc", "abc")
        query = SearchQuery(input="abc")
        assert _commands(match_fuzzy(items, query)) == ["abc", "xaxxbxxc"]

    def test_multiline_items_match_across_lines(self):
        items = _items("docker run \\\n  nginx")
        query = SearchQuery(input="run nginx")
        assert len(match_fuzzy(items, query)) == 1

    def test_items_not_mutated(self):
        items = _items("git status", hits=[2])
        match_fuzzy(items, SearchQuery(input="git"))
        assert items[0].hits == 2
        assert items[0].favorite is False


class TestMatchExact:
    def test_substring_store_order(self):
        items = _items("git status", "ls", "git log")
        query = SearchQuery(input="git", mode=SearchMode.EXACT)
        assert _commands(match_exact(items, query)) == ["git status", "git log"]

    def test_case_sensitive(self):
        items = _items("git status")
        query = SearchQuery(input="GIT", mode=SearchMode.EXACT)
        assert match_exact(items, query) == []

    def test_matches_normalized_command(self):
        items = _items("ls    -la")
        query = SearchQuery(input="ls -la", mode=SearchMode.EXACT)
        assert len(match_exact(items, query)) == 1


class TestMatchRegex:
    def test_invalid_pattern_returns_empty(self):
        items = _items("git status", "(paren)")
        query = SearchQuery(input="(", mode=SearchMode.REGEX)
        assert match_regex(items, query) == []

    def test_case_insensitive(self):
        items = _items("git status")
        query = SearchQuery(input="GIT", mode=SearchMode.REGEX)
        assert _commands(match_regex(items, query)) == ["git status"]

    def test_search_anywhere_store_order(self):
        items = _items("git log", "ls", "cat status.txt", "git status")
        query = SearchQuery(input="(log|status)", mode=SearchMode.REGEX)
        assert _commands(match_regex(items, query)) == ["git log", "cat status.txt", "git status"]

    def test_anchored_pattern(self):
        items = _items("git status", "echo git")
        query = SearchQuery(input="^git", mode=SearchMode.REGEX)
        assert _commands(match_regex(items, query)) == ["git status"]


class TestMatchItems:
    def test_dispatch_by_mode(self):
        items = _items("cba extra", "abc")
        assert len(match_items(items, SearchQuery(input="abc", mode=SearchMode.FUZZY_TYPING))) == 2
        assert len(match_items(items, SearchQuery(input="abc", mode=SearchMode.EXACT))) == 1
        assert len(match_items(items, SearchQuery(input="^c", mode=SearchMode.REGEX))) == 1


class TestRegexTimeBudget:
    def test_catastrophic_backtracking_gives_up(self):
        items = _items("a" * 28, "git status")
        query = SearchQuery(input="(a+)+b", mode=SearchMode.REGEX)
        t0 = time.monotonic()
        assert match_regex(items, query) == []
        assert time.monotonic() - t0 < 2.0

    def test_exhausted_budget_matches_nothing(self, monkeypatch):
        monkeypatch.setattr(matchers, "REGEX_TIMEOUT", 0)
        items = _items("git status")
        query = SearchQuery(input="git", mode=SearchMode.REGEX)
        assert match_regex(items, query) == []
