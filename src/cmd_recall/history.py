"""Shell history file parsing.

Turns the raw content of a zsh, bash or csh history file into logical
commands, each a list of physical lines. Parsing never raises: unreadable
files give an empty history and corrupted lines are dropped.
"""

from __future__ import annotations

import os
import re
import unicodedata
from pathlib import Path
from typing import TYPE_CHECKING

from cmd_recall.constants import (
    CONTINUATION,
    MAX_CONTROL_CHARS,
    MAX_LINE_LENGTH,
    ZSH_EXTENDED_PREFIX,
    ZSH_META,
)
from cmd_recall.types import Shell

if TYPE_CHECKING:
    from cmd_recall.debug_log import DebugLogger

_HISTORY_FILES = {
    Shell.ZSH: ".zsh_history",
    Shell.BASH: ".bash_history",
    Shell.CSH: ".history",
}

# bash HISTTIMEFORMAT ("#1700000000") and tcsh ("#+1700000000") stamps
_TIMESTAMP_RE = re.compile(r"#\+?\d+")
_WHITESPACE_CONTROLS = "\t\n\r\x0b\x0c"


def detect_shell(shell_path: str | None = None) -> Shell:
    """Detect the user's shell from $SHELL (or the given path)."""
    if shell_path is None:
        shell_path = os.environ.get("SHELL")
    return Shell.from_name(shell_path)


def default_history_path(shell: Shell, home: Path | None = None) -> Path | None:
    """Return the usual history file for a shell.

    $HISTFILE wins when it is exported. Returns None for an unknown shell.
    """
    if shell is Shell.UNKNOWN:
        return None
    histfile = os.environ.get("HISTFILE")
    if histfile:
        return Path(histfile).expanduser()
    if home is None:
        home = Path.home()
    return home / _HISTORY_FILES[shell]


def _is_control(ch: str) -> bool:
    return unicodedata.category(ch) == "Cc"


def looks_corrupted(line: str) -> bool:
    """True for lines full of terminal escapes, binary garbage, or absurdly long."""
    if "\x1b[" in line or "^[[" in line:
        return True
    controls = sum(1 for c in line if _is_control(c) and c not in _WHITESPACE_CONTROLS)
    if controls > MAX_CONTROL_CHARS:
        return True
    return len(line) > MAX_LINE_LENGTH


def clean_line(line: str) -> str:
    """Drop stray control characters, keeping tabs."""
    return "".join(c for c in line if c == "\t" or not _is_control(c))


def unmetafy(data: bytes) -> bytes:
    """Undo zsh's metafied encoding (Meta byte followed by ``c ^ 0x20``)."""
    if ZSH_META not in data:
        return data
    out = bytearray()
    it = iter(data)
    for b in it:
        if b == ZSH_META:
            nxt = next(it, None)
            if nxt is None:
                break
            out.append(nxt ^ 0x20)
        else:
            out.append(b)
    return bytes(out)


def _split_continuation(text: str) -> tuple[str, bool]:
    """Strip a trailing continuation marker.

    An odd run of trailing backslashes ends in a marker; an even run is
    escaped backslashes and belongs to the command.
    """
    trailing = len(text) - len(text.rstrip(CONTINUATION))
    if trailing % 2 == 1:
        return text[:-1], True
    return text, False


def _unescape_zsh(line: str) -> str:
    return line.replace("\\\\", "\\")


def parse_history(content: str, shell: Shell) -> list[list[str]]:
    """Split history file content into logical commands, oldest first."""
    if shell is Shell.UNKNOWN:
        return []

    commands: list[list[str]] = []
    current: list[str] = []
    in_multiline = False

    def flush():
        nonlocal current
        lines = [_unescape_zsh(s) for s in current]
        if any(s.strip() for s in lines):
            commands.append(lines)
        current = []

    for raw in content.splitlines():
        if looks_corrupted(raw):
            continue
        line = clean_line(raw).rstrip()
        if not line.strip():
            continue

        if shell is Shell.ZSH and line.startswith(ZSH_EXTENDED_PREFIX):
            if current:
                flush()
            _, sep, body = line.partition(";")
            if not sep:
                in_multiline = False
                continue
            body, in_multiline = _split_continuation(body)
            current = [body]
            if not in_multiline:
                flush()
        elif in_multiline:
            body, in_multiline = _split_continuation(line)
            current.append(body)
            if not in_multiline:
                flush()
        else:
            # Plain lines are whole commands, kept verbatim
            line = line.strip()
            if shell in (Shell.BASH, Shell.CSH) and _TIMESTAMP_RE.fullmatch(line):
                continue
            commands.append([line])

    if current:
        flush()
    return commands


def read_history(
    shell: Shell, path: str | Path | None = None, logger: DebugLogger | None = None
) -> list[list[str]]:
    """Read and parse a history file. Missing or unreadable files give []."""
    if shell is Shell.UNKNOWN:
        if logger:
            logger.log("history: unknown shell, starting with an empty history")
        return []
    if path is None:
        path = default_history_path(shell)
    path = Path(path).expanduser()
    try:
        data = path.read_bytes()
    except OSError as e:
        if logger:
            logger.log(f"history: cannot read {path}: {e}")
        return []
    if shell is Shell.ZSH:
        data = unmetafy(data)
    commands = parse_history(data.decode("utf-8", errors="replace"), shell)
    if logger:
        logger.log(f"history: parsed {len(commands)} commands from {path} ({shell.value})")
    return commands


def load_history(
    shell: Shell, path: str | Path | None = None, logger: DebugLogger | None = None
) -> list[list[str]]:
    """Logical commands, most recent first."""
    commands = read_history(shell, path, logger)
    commands.reverse()
    return commands
