"""Zsh integration: bind Ctrl-R to a cmd-recall widget."""

from __future__ import annotations

from pathlib import Path

WIDGET_NAME = "cmd_recall_widget"

# The selection arrives on stderr; stdout stays on the terminal for curses.
ZSHRC_SNIPPET = f"""
# cmd-recall configuration - added by `cmd-recall --zsh-shell-conf`
{WIDGET_NAME}() {{
    zle -I
    {{ CMD_RECALL_OUT="$( {{ </dev/tty cmd-recall ${{BUFFER}}; }} 2>&1 1>&3 3>&- )"; }} 3>&1;
    BUFFER="${{CMD_RECALL_OUT}}"
    CURSOR=${{#BUFFER}}
    zle redisplay
}}
zle -N {WIDGET_NAME}
bindkey '\\C-r' {WIDGET_NAME}
"""


def configure_zsh_profile(home: Path | None = None) -> bool:
    """Append the widget to ~/.zshrc unless it is already there.

    Returns True if the file was modified.
    """
    if home is None:
        home = Path.home()
    zshrc = home / ".zshrc"
    try:
        existing = zshrc.read_text(encoding="utf-8")
    except FileNotFoundError:
        existing = ""
    if WIDGET_NAME in existing:
        return False
    with open(zshrc, "a", encoding="utf-8") as f:
        f.write("\n" + ZSHRC_SNIPPET)
    return True
