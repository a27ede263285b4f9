# Search box
MAX_QUERY_LENGTH = 50

# History line sanity limits
MAX_LINE_LENGTH = 1000
MAX_CONTROL_CHARS = 5
CONTINUATION = "\\"
ZSH_EXTENDED_PREFIX = ": "
ZSH_META = 0x83  # zsh "Meta" byte in metafied history files

# Per-user files (relative to the data dir)
DATA_DIR_NAME = ".cmd-recall"
DB_FILE_NAME = "history.db"
CONFIG_FILE_NAME = "config.yml"
DEBUG_LOG_NAME = "debug.log"

# Rows used by the search box and the info bar above the result list
HEADER_ROWS = 2

# Keys
KEY_ESC = 27
KEY_CTRL_C = 3
KEY_CTRL_D = 4
KEY_CTRL_F = 6
KEY_CTRL_T = 20
KEY_CTRL_X = 24
