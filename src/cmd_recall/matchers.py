"""Matching strategies: fuzzy typing, exact substring and regex.

Every strategy is a pure function of (items, query) and returns references
to the given items without mutating them.
"""

from __future__ import annotations

import time

import regex

from cmd_recall.item import CommandItem
from cmd_recall.types import SearchMode, SearchQuery

SCORE_MATCH = 16
BONUS_BOUNDARY = 8
BONUS_FIRST_CHAR = 8
BONUS_CONSECUTIVE = 8
PENALTY_GAP_START = 3
PENALTY_GAP_EXTENSION = 1

REGEX_TIMEOUT = 0.25  # seconds per query


def prepare_query(text: str) -> str:
    """Trim the query and collapse the literal ``\\s+`` artifact to ``\\s``."""
    return text.strip().replace("\\s+", "\\s")


def _char_bonus(text: str, j: int) -> int:
    if j == 0:
        return BONUS_FIRST_CHAR
    if text[j].isalnum() and not text[j - 1].isalnum():
        return BONUS_BOUNDARY
    return 0


def _forward_positions(text: str, pattern: str) -> list[int] | None:
    """Earliest position each pattern char can match, or None if no match."""
    positions = []
    j = 0
    for pc in pattern:
        j = text.find(pc, j)
        if j < 0:
            return None
        positions.append(j)
        j += 1
    return positions


def _backward_positions(text: str, pattern: str) -> list[int]:
    """Latest position each pattern char can match (pattern must match)."""
    positions = []
    j = len(text)
    for pc in reversed(pattern):
        j = text.rfind(pc, 0, j)
        positions.append(j)
    positions.reverse()
    return positions


def fuzzy_score(text: str, pattern: str) -> int | None:
    """Score ``pattern`` as a subsequence of ``text``.

    Matched characters score, with bonuses for runs of consecutive matches,
    matches at the start of a word and a match on the very first character.
    Gaps between matches pay an affine penalty. Returns None when the
    pattern is not a subsequence of the text and 0 for an empty pattern.
    """
    if not pattern:
        return 0
    first = _forward_positions(text, pattern)
    if first is None:
        return None
    last = _backward_positions(text, pattern)

    n = len(text)
    prev: list[int | None] = [None] * n
    for i, pc in enumerate(pattern):
        cur: list[int | None] = [None] * n
        # best prev[k] - gap penalty over k <= j - 2
        gap_best: int | None = None
        start = first[i - 1] if i > 0 else first[0]
        for j in range(start, last[i] + 1):
            if i > 0:
                if gap_best is not None:
                    gap_best -= PENALTY_GAP_EXTENSION
                if j >= 2 and prev[j - 2] is not None:
                    cand = prev[j - 2] - PENALTY_GAP_START
                    if gap_best is None or cand > gap_best:
                        gap_best = cand
            if j < first[i] or text[j] != pc:
                continue
            score = SCORE_MATCH + _char_bonus(text, j)
            if i == 0:
                cur[j] = score
                continue
            best = None
            if prev[j - 1] is not None:
                best = prev[j - 1] + BONUS_CONSECUTIVE
            if gap_best is not None and (best is None or gap_best > best):
                best = gap_best
            if best is not None:
                cur[j] = best + score
        prev = cur

    scores = [s for s in prev if s is not None]
    return max(scores) if scores else None


def match_fuzzy(items: list[CommandItem], query: SearchQuery) -> list[CommandItem]:
    """Subsequence match in typed and reversed orientation.

    Ranked by hits, then by the better of the two scores.
    """
    pattern = prepare_query(query.input)
    if query.case_insensitive:
        pattern = pattern.lower()
    reversed_pattern = pattern[::-1]

    scored: list[tuple[CommandItem, int]] = []
    for item in items:
        target = item.command()
        if query.case_insensitive:
            target = target.lower()
        forward = fuzzy_score(target, pattern)
        if reversed_pattern == pattern:
            backward = forward
        else:
            backward = fuzzy_score(target, reversed_pattern)
        best = max((s for s in (forward, backward) if s is not None), default=None)
        if best is not None:
            scored.append((item, best))

    scored.sort(key=lambda pair: (-pair[0].hits, -pair[1]))
    return [item for item, _ in scored]


def match_exact(items: list[CommandItem], query: SearchQuery) -> list[CommandItem]:
    """Literal substring match, store order."""
    needle = query.input
    if query.case_insensitive:
        needle = needle.lower()
        return [item for item in items if needle in item.command().lower()]
    return [item for item in items if needle in item.command()]


def match_regex(items: list[CommandItem], query: SearchQuery) -> list[CommandItem]:
    """Regex search anywhere in the command, store order.

    A pattern that does not compile matches nothing, and so does one that
    runs longer than REGEX_TIMEOUT over the whole item list.
    """
    flags = regex.IGNORECASE if query.case_insensitive else 0
    try:
        pattern = regex.compile(query.input, flags)
    except (regex.error, OverflowError):
        return []
    deadline = time.monotonic() + REGEX_TIMEOUT
    found = []
    try:
        for item in items:
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                return []
            if pattern.search(item.command(), timeout=remaining):
                found.append(item)
    except TimeoutError:
        return []
    return found


_MATCHERS = {
    SearchMode.FUZZY_TYPING: match_fuzzy,
    SearchMode.EXACT: match_exact,
    SearchMode.REGEX: match_regex,
}


def match_items(items: list[CommandItem], query: SearchQuery) -> list[CommandItem]:
    """Filter and rank items with the strategy selected by the query mode."""
    return _MATCHERS[query.mode](items, query)
