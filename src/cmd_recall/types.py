import time
from dataclasses import dataclass
from enum import Enum


class Shell(Enum):
    UNKNOWN = "unknown"
    ZSH = "zsh"
    BASH = "bash"
    CSH = "csh"

    @classmethod
    def from_name(cls, name: str | None) -> "Shell":
        """Map a shell name ("zsh", "/bin/bash", ...) to a dialect."""
        if not name:
            return cls.UNKNOWN
        name = name.lower()
        for shell in (cls.ZSH, cls.BASH, cls.CSH):
            if shell.value in name:
                return shell
        return cls.UNKNOWN


class SearchMode(Enum):
    FUZZY_TYPING = "fuzzy"
    EXACT = "exact"
    REGEX = "regex"

    @property
    def label(self) -> str:
        return self.value

    @property
    def case_insensitive(self) -> bool:
        return self is not SearchMode.EXACT

    def next(self) -> "SearchMode":
        modes = list(SearchMode)
        return modes[(modes.index(self) + 1) % len(modes)]

    @classmethod
    def from_label(cls, label: str) -> "SearchMode":
        for mode in cls:
            if mode.value == label.strip().lower():
                return mode
        valid = ", ".join(m.value for m in cls)
        raise ValueError(f"Unknown search mode '{label}'. Valid: {valid}")


@dataclass
class SearchQuery:
    input: str = ""
    mode: SearchMode = SearchMode.FUZZY_TYPING
    favorites_only: bool = False

    @property
    def case_insensitive(self) -> bool:
        return self.mode.case_insensitive


def ts_str(t: float) -> str:
    lt = time.localtime(t)
    return time.strftime("%H:%M:%S", lt)
