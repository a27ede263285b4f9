import time
from pathlib import Path

from cmd_recall.types import SearchQuery, ts_str


class DebugLogger:
    """Optional append-only debug log for startup, queries and store mutations."""

    def __init__(self, path: str | Path):
        self.path = Path(path)
        self.enabled = False
        self._fh = None

    def start(self):
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self._fh = open(self.path, "a", encoding="utf-8")
        self.enabled = True
        sep = f"\n{'='*60}\n  Session started: {time.strftime('%Y-%m-%d %H:%M:%S')}\n{'='*60}\n"
        self._fh.write(sep)
        self._fh.flush()

    def stop(self):
        self.enabled = False
        if self._fh:
            try:
                self._fh.close()
            except OSError:
                pass
        self._fh = None

    def log(self, text: str):
        if not self.enabled or not self._fh:
            return
        for line in text.split("\n"):
            self._fh.write(f"{ts_str(time.time())} | {line}\n")
        self._fh.flush()

    def log_query(self, query: SearchQuery, count: int, elapsed: float):
        if not self.enabled or not self._fh:
            return
        fav = " fav" if query.favorites_only else ""
        self._fh.write(
            f"{ts_str(time.time())} | query {query.mode.label:<5}{fav} {query.input!r}"
            f" -> {count} results in {elapsed * 1000:.1f}ms\n"
        )
        self._fh.flush()
