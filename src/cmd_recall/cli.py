import argparse
import curses
import sys

import pyperclip

from cmd_recall import __version__
from cmd_recall.app import run_search
from cmd_recall.config import debug_log_path, find_config_file, get_user_data_dir, load_config
from cmd_recall.debug_log import DebugLogger
from cmd_recall.history import default_history_path, detect_shell, load_history
from cmd_recall.shell_profile import configure_zsh_profile
from cmd_recall.store import ItemStore, StoreError, reset_store
from cmd_recall.types import SearchMode, Shell


def _print_settings(config, config_name, shell):
    history_file = config.history.file or default_history_path(shell)
    config_file = find_config_file(config_name)
    print(f"data dir:     {get_user_data_dir()}")
    print(f"store:        {config.store_path()}")
    print(f"config:       {config_file or '(defaults)'}")
    print(f"debug log:    {debug_log_path()}")
    print(f"shell:        {shell.value}")
    print(f"history file: {history_file or '(none)'}")


def main(argv=None) -> int:
    p = argparse.ArgumentParser(prog="cmd-recall", description="Interactive shell history search")
    p.add_argument("-v", "--version", action="version",
                   version=f"%(prog)s {__version__}")
    p.add_argument("-c", "--config", default=None,
                   help="Configuration name or path (searches ~/.cmd-recall/configs/, ./configs/, or use full path)")
    p.add_argument("query", nargs="*",
                   help="Initial search text")
    p.add_argument("--shell", choices=["zsh", "bash", "csh"], default=None,
                   help="History dialect (default: detect from $SHELL)")
    p.add_argument("--history-file", default=None,
                   help="History file to read (default: the shell's usual file)")
    p.add_argument("-m", "--mode", choices=[m.label for m in SearchMode], default=None,
                   help="Initial match mode")
    p.add_argument("--no-color", action="store_true", default=False,
                   help="Disable colors")
    p.add_argument("-d", "--debug", action="store_true", default=False,
                   help="Enable debug logging to ~/.cmd-recall/debug.log")
    p.add_argument("--reset", action="store_true", default=False,
                   help="Delete the stored favorites and hit counts, then exit")
    p.add_argument("--show-settings", action="store_true", default=False,
                   help="Print file locations and exit")
    p.add_argument("--zsh-shell-conf", action="store_true", default=False,
                   help="Bind Ctrl-R to cmd-recall in ~/.zshrc, then exit")
    args = p.parse_args(argv)

    try:
        get_user_data_dir()
    except RuntimeError as e:
        print(f"cmd-recall: cannot resolve the home directory: {e}", file=sys.stderr)
        return 1

    # Load configuration
    try:
        config = load_config(args.config)
    except (FileNotFoundError, ValueError) as e:
        p.error(str(e))

    # CLI arguments override config values
    if args.shell is not None:
        config.history.shell = args.shell
    if args.history_file is not None:
        config.history.file = args.history_file
    if args.mode is not None:
        config.search.mode = SearchMode.from_label(args.mode)
    if args.no_color:
        config.ui.color = False

    shell = Shell.from_name(config.history.shell) if config.history.shell else detect_shell()
    store_path = config.store_path()

    if args.reset:
        if reset_store(store_path):
            print(f"Removed {store_path}")
        else:
            print(f"Nothing to remove at {store_path}")
        return 0
    if args.show_settings:
        _print_settings(config, args.config, shell)
        return 0
    if args.zsh_shell_conf:
        if configure_zsh_profile():
            print("Added the cmd-recall widget to ~/.zshrc (Ctrl-R)")
        else:
            print("~/.zshrc already has the cmd-recall widget")
        return 0

    logger = DebugLogger(debug_log_path())
    if args.debug:
        logger.start()

    try:
        with ItemStore(store_path, logger=logger) as store:
            store.ingest(load_history(shell, config.history.file, logger))
            session = curses.wrapper(
                run_search, store, config, logger=logger, initial_query=" ".join(args.query)
            )
    except StoreError as e:
        print(f"cmd-recall: {e}", file=sys.stderr)
        return 1
    finally:
        logger.stop()

    if session.copied is not None:
        try:
            pyperclip.copy(session.copied)
        except pyperclip.PyperclipException as e:
            print(f"cmd-recall: cannot copy to the clipboard: {e}", file=sys.stderr)
            return 1

    # The shell widget captures stderr; stdout belongs to the terminal
    if session.selection is not None:
        sys.stderr.write(session.selection)
        sys.stderr.flush()
    return 0
