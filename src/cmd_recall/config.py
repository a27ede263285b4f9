"""Configuration with a minimal YAML parser.

Settings live in ~/.cmd-recall/config.yml (or a named config under
~/.cmd-recall/configs/). The parser understands the small YAML subset the
config needs, with no external dependencies:
- Scalars (strings, numbers, booleans, null)
- Nested dictionaries (indented key: value blocks)
- Simple lists (- item)
- Comments and quoted strings
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from cmd_recall.constants import (
    CONFIG_FILE_NAME,
    DATA_DIR_NAME,
    DB_FILE_NAME,
    DEBUG_LOG_NAME,
    MAX_QUERY_LENGTH,
)
from cmd_recall.types import SearchMode

# --- Minimal YAML Parser ---


def parse_simple_yaml(text: str) -> dict:
    """Parse a small YAML document into a dict.

    Anything that is not a mapping at the top level gives an empty dict.
    """
    lines = [line.rstrip() for line in text.split("\n")]
    result, _ = _parse_block(lines, 0, 0)
    return result if isinstance(result, dict) else {}


def _next_content_line(lines: list[str], i: int) -> int:
    while i < len(lines):
        stripped = lines[i].lstrip()
        if stripped and not stripped.startswith("#"):
            return i
        i += 1
    return i


def _parse_block(lines: list[str], start: int, base_indent: int) -> tuple[dict | list, int]:
    """Parse lines from `start` that are indented at least `base_indent`."""
    result: dict | list | None = None
    i = _next_content_line(lines, start)

    while i < len(lines):
        line = lines[i]
        stripped = line.lstrip()
        indent = len(line) - len(stripped)
        if indent < base_indent:
            break

        if stripped == "-" or stripped.startswith("- "):
            if result is None:
                result = []
            if isinstance(result, list):
                result.append(_parse_value(_remove_inline_comment(stripped[1:].strip())))
            i = _next_content_line(lines, i + 1)
            continue

        colon = _find_unquoted_colon(stripped)
        if colon <= 0:
            i = _next_content_line(lines, i + 1)
            continue
        if result is None:
            result = {}
        if not isinstance(result, dict):
            break
        key = stripped[:colon].strip()
        value = _remove_inline_comment(stripped[colon + 1 :].strip())
        if value:
            result[key] = _parse_value(value)
            i = _next_content_line(lines, i + 1)
            continue

        j = _next_content_line(lines, i + 1)
        if j < len(lines):
            next_indent = len(lines[j]) - len(lines[j].lstrip())
            if next_indent > indent or (next_indent == indent and lines[j].lstrip().startswith("-")):
                result[key], i = _parse_block(lines, j, next_indent)
                continue
        result[key] = None
        i = j

    return (result if result is not None else {}), i


def _find_unquoted_colon(s: str) -> int:
    """Position of the first ': ' (or trailing ':') outside quotes, or -1."""
    in_single = in_double = False
    for i, c in enumerate(s):
        if c == "'" and not in_double:
            in_single = not in_single
        elif c == '"' and not in_single:
            in_double = not in_double
        elif c == ":" and not in_single and not in_double:
            if i + 1 == len(s) or s[i + 1] == " ":
                return i
    return -1


def _remove_inline_comment(s: str) -> str:
    in_single = in_double = False
    for i, c in enumerate(s):
        if c == "'" and not in_double:
            in_single = not in_single
        elif c == '"' and not in_single:
            in_double = not in_double
        elif c == "#" and not in_single and not in_double and (i == 0 or s[i - 1] == " "):
            return s[:i].rstrip()
    return s


def _parse_value(s: str) -> str | int | float | bool | None:
    """Parse a scalar YAML value."""
    s = s.strip()
    if not s or s.lower() in ("null", "~", "none"):
        return None
    if s.lower() in ("true", "yes", "on"):
        return True
    if s.lower() in ("false", "no", "off"):
        return False
    if len(s) >= 2 and s[0] == s[-1] and s[0] in ("'", '"'):
        inner = s[1:-1]
        if s[0] == "'":
            return inner.replace("''", "'")
        return inner.replace('\\"', '"').replace("\\\\", "\\")
    try:
        if "." in s:
            return float(s)
        return int(s)
    except ValueError:
        return s


# --- Configuration Dataclasses ---


@dataclass
class HistoryConfig:
    """Where the shell history comes from."""

    shell: str | None = None  # None: detect from $SHELL
    file: str | None = None  # None: the shell's usual history file


@dataclass
class StoreConfig:
    path: str | None = None  # None: ~/.cmd-recall/history.db


@dataclass
class SearchConfig:
    """Initial search state."""

    mode: SearchMode = SearchMode.FUZZY_TYPING
    favorites_only: bool = False
    max_query_length: int = MAX_QUERY_LENGTH


@dataclass
class UIConfig:
    color: bool = True


@dataclass
class Config:
    history: HistoryConfig = field(default_factory=HistoryConfig)
    store: StoreConfig = field(default_factory=StoreConfig)
    search: SearchConfig = field(default_factory=SearchConfig)
    ui: UIConfig = field(default_factory=UIConfig)

    def store_path(self) -> Path:
        if self.store.path:
            return Path(self.store.path).expanduser()
        return get_user_data_dir() / DB_FILE_NAME


# --- Config File Loading ---


def get_user_data_dir() -> Path:
    """Per-user directory holding the store, configs and the debug log.

    Raises RuntimeError when the home directory cannot be resolved.
    """
    return Path.home() / DATA_DIR_NAME


def debug_log_path() -> Path:
    return get_user_data_dir() / DEBUG_LOG_NAME


def _is_path(config_name_or_path: str) -> bool:
    return (
        "/" in config_name_or_path
        or "\\" in config_name_or_path
        or config_name_or_path.endswith(".yml")
    )


def _get_config_search_paths(config_name: str) -> list[Path]:
    config_filename = f"{config_name}.yml"
    return [
        get_user_data_dir() / "configs" / config_filename,
        Path.cwd() / "configs" / config_filename,
    ]


def find_config_file(config_name_or_path: str | None = None) -> Path | None:
    """Find a config file by name or path.

    Search order:
    1. No name: ~/.cmd-recall/config.yml
    2. Something that looks like a path (has a separator or ends in .yml)
    3. ~/.cmd-recall/configs/<name>.yml
    4. ./configs/<name>.yml
    """
    if not config_name_or_path:
        default = get_user_data_dir() / CONFIG_FILE_NAME
        return default if default.is_file() else None

    if _is_path(config_name_or_path):
        path = Path(config_name_or_path).expanduser()
        return path if path.is_file() else None

    for candidate in _get_config_search_paths(config_name_or_path):
        if candidate.is_file():
            return candidate
    return None


def load_config(config_name_or_path: str | None = None) -> Config:
    """Load configuration, merging the file (if any) over the defaults.

    Raises:
        FileNotFoundError: If a config was named explicitly but not found.
        ValueError: If the file names an unknown search mode.
    """
    config = Config()
    config_path = find_config_file(config_name_or_path)

    if config_path is None:
        if not config_name_or_path:
            return config
        if _is_path(config_name_or_path):
            raise FileNotFoundError(f"Config file not found: {config_name_or_path}")
        paths_str = "\n  - ".join(str(p) for p in _get_config_search_paths(config_name_or_path))
        raise FileNotFoundError(
            f"Config '{config_name_or_path}' not found. Searched:\n  - {paths_str}"
        )

    with open(config_path, encoding="utf-8") as f:
        data = parse_simple_yaml(f.read())
    _merge_config(config, data)
    return config


def _merge_config(config: Config, data: dict):
    """Merge parsed YAML data into a Config object."""
    if not isinstance(data, dict):
        return

    hist = data.get("history")
    if isinstance(hist, dict):
        if hist.get("shell") is not None:
            config.history.shell = str(hist["shell"])
        if hist.get("file") is not None:
            config.history.file = str(hist["file"])

    store = data.get("store")
    if isinstance(store, dict) and store.get("path") is not None:
        config.store.path = str(store["path"])

    search = data.get("search")
    if isinstance(search, dict):
        if search.get("mode") is not None:
            config.search.mode = SearchMode.from_label(str(search["mode"]))
        if "favorites_only" in search:
            config.search.favorites_only = bool(search["favorites_only"])
        if search.get("max_query_length") is not None:
            config.search.max_query_length = max(1, int(search["max_query_length"]))

    ui = data.get("ui")
    if isinstance(ui, dict) and "color" in ui:
        config.ui.color = bool(ui["color"])
