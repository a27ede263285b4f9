"""Command items: one deduplicated logical shell command."""

from __future__ import annotations

import hashlib
from dataclasses import dataclass, field

ID_SIZE = 32


def hash_lines(lines: list[str] | tuple[str, ...]) -> bytes:
    """SHA-256 digest of the newline-joined command lines."""
    return hashlib.sha256("\n".join(lines).encode("utf-8")).digest()


@dataclass
class CommandItem:
    lines: tuple[str, ...]
    favorite: bool = False
    hits: int = 0
    id: bytes = field(init=False)

    def __post_init__(self):
        self.lines = tuple(self.lines)
        self.id = hash_lines(self.lines)

    def command(self) -> str:
        """Single-line projection used for matching.

        Whitespace runs inside each line collapse to one space and the
        lines are joined with a space.
        """
        return " ".join(" ".join(line.split()) for line in self.lines)

    def raw_text(self) -> str:
        return "\n".join(self.lines)

    def hlines(self) -> int:
        return len(self.lines)

    def flip_favorite(self) -> bool:
        self.favorite = not self.favorite
        return self.favorite

    def inc_hits(self) -> int:
        self.hits += 1
        return self.hits

    def to_record(self) -> dict:
        return {"lines": list(self.lines), "favorite": self.favorite, "hits": self.hits}

    @classmethod
    def from_record(cls, key: bytes, data) -> "CommandItem":
        """Rebuild an item from its persisted record.

        Raises ValueError when the key is not a digest, the record is
        malformed, or the key does not match the digest of its lines.
        """
        if not isinstance(key, (bytes, bytearray, memoryview)) or len(key) != ID_SIZE:
            raise ValueError("record key is not a SHA-256 digest")
        if not isinstance(data, dict):
            raise ValueError("record is not a mapping")
        lines = data.get("lines")
        if not isinstance(lines, list) or not lines or not all(isinstance(s, str) for s in lines):
            raise ValueError("record has no valid lines")
        favorite = data.get("favorite", False)
        hits = data.get("hits", 0)
        if not isinstance(favorite, bool):
            raise ValueError("favorite must be a boolean")
        if isinstance(hits, bool) or not isinstance(hits, int) or hits < 0:
            raise ValueError("hits must be a non-negative integer")
        item = cls(tuple(lines), favorite=favorite, hits=hits)
        if bytes(key) != item.id:
            raise ValueError("record key does not match its content")
        return item

    def __repr__(self) -> str:
        return f"CommandItem({self.command()!r}, favorite={self.favorite}, hits={self.hits})"
