import os
import stat
import tempfile
import time
from pathlib import Path
from typing import Any, Dict, List, NamedTuple, Optional, Tuple, Union

import structlog

MAX_HISTORY_LINES = 200

# Characters the one-entry-per-line format cannot carry.
_FORBIDDEN_NAME_CHARS = ("\t", "\n", "\r")


class HistoryEntry(NamedTuple):
    app_name: str
    timestamp: int


def parse_line(line: bytes) -> Optional[HistoryEntry]:
    """
    Parses one raw log line of the form ``<timestamp>\\t<name>``.

    Returns None for anything that is not an unsigned decimal timestamp
    followed by a tab and a non-empty UTF-8 name.
    """
    try:
        text = line.decode("utf-8")
    except UnicodeDecodeError:
        return None
    text = text.rstrip("\r\n")
    ts_str, sep, name = text.partition("\t")
    if not sep or not name or not ts_str.isascii() or not ts_str.isdigit():
        return None
    return HistoryEntry(name, int(ts_str))


def format_entry(entry: HistoryEntry) -> bytes:
    return f"{entry.timestamp}\t{entry.app_name}\n".encode("utf-8")


class HistoryStore:
    """
    Durable, size-bounded log of application launches.

    The log is a plain text file with one ``<timestamp>\\t<name>`` entry per
    line. Entries are appended on every launch; once the file holds more than
    ``max_lines`` entries it is rewritten through a temporary file so that an
    interrupted trim leaves either the old or the new content behind.

    Attributes:
        path (Path): Location of the log file.
        max_lines (int): Capacity of the log.
        time (Any): An object or module providing a time() method.
    """

    def __init__(
        self,
        path: Union[str, Path],
        max_lines: int = MAX_HISTORY_LINES,
        time_handler: Any = time,
        logger: Any = None,
    ):
        self.path = Path(path)
        self.max_lines = max_lines
        self.time = time_handler
        self.logger = logger or structlog.get_logger(__name__)

    def _ensure_not_symlink(self) -> None:
        try:
            mode = os.lstat(self.path).st_mode
        except FileNotFoundError:
            return
        if stat.S_ISLNK(mode):
            raise PermissionError(f"History path {self.path} cannot be a symlink")

    def _open_for_append(self) -> int:
        flags = os.O_WRONLY | os.O_CREAT | os.O_APPEND
        flags |= getattr(os, "O_NOFOLLOW", 0)
        return os.open(self.path, flags, 0o600)

    def record(self, app_name: str) -> bool:
        """
        Appends a launch of app_name at the current time.

        Failures are logged and reported through the return value; launching
        an application never depends on its history being written.

        Returns:
            bool: True if the entry reached the log.
        """
        if not app_name or any(c in app_name for c in _FORBIDDEN_NAME_CHARS):
            self.logger.warning(
                f"Not recording launch of {app_name!r}: name cannot be stored in the history log."
            )
            return False
        entry = HistoryEntry(app_name, max(int(self.time.time()), 0))
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self._ensure_not_symlink()
            with os.fdopen(self._open_for_append(), "ab") as f:
                f.write(format_entry(entry))
        except OSError as e:
            self.logger.error(f"Failed to record launch of '{app_name}': {e}")
            return False

        if self._count_lines() > self.max_lines:
            self.trim()
        return True

    def _count_lines(self) -> int:
        try:
            with open(self.path, "rb") as f:
                return sum(1 for _ in f)
        except OSError as e:
            self.logger.warning(f"Could not count history entries: {e}")
            return 0

    def _read_log(self) -> Tuple[List[HistoryEntry], int]:
        """Returns the well-formed entries and the number of physical lines."""
        entries = []
        line_count = 0
        with open(self.path, "rb") as f:
            for line in f:
                line_count += 1
                entry = parse_line(line)
                if entry is not None:
                    entries.append(entry)
        skipped = line_count - len(entries)
        if skipped:
            self.logger.debug(f"Skipped {skipped} malformed history line(s).")
        return entries, line_count

    def _read_entries(self) -> List[HistoryEntry]:
        return self._read_log()[0]

    def entries(self) -> List[HistoryEntry]:
        """
        Returns every well-formed entry in file order.

        A missing file is an empty history; other read errors are logged and
        also yield an empty list.
        """
        try:
            return self._read_entries()
        except FileNotFoundError:
            return []
        except OSError as e:
            self.logger.warning(f"Failed to read history from {self.path}: {e}")
            return []

    def load(self) -> Dict[str, int]:
        """
        Builds the recency map: app name to its newest launch timestamp.

        Returns:
            Dict[str, int]: Empty on first run or when the log is unreadable.
        """
        recency: Dict[str, int] = {}
        for entry in self.entries():
            if entry.timestamp > recency.get(entry.app_name, -1):
                recency[entry.app_name] = entry.timestamp
        self.logger.debug(f"Loaded launch history for {len(recency)} app(s).")
        return recency

    def trim(self, max_lines: Optional[int] = None) -> bool:
        """
        Compacts the log to the newest max_lines entries.

        The log is rewritten whenever it holds more than max_lines physical
        lines, so malformed lines are dropped as well. Surviving entries keep
        their relative order; among equal timestamps the later line counts as
        newer. The new content is written to a temporary file next to the log
        and moved into place atomically.

        Returns:
            bool: True if the log is within the limit afterwards.
        """
        limit = self.max_lines if max_lines is None else max_lines
        temp_path = None
        try:
            self._ensure_not_symlink()
            entries, line_count = self._read_log()
            if line_count <= limit:
                return True

            newest = sorted(
                range(len(entries)),
                key=lambda i: (entries[i].timestamp, i),
                reverse=True,
            )[: max(limit, 0)]
            kept = [entries[i] for i in sorted(newest)]

            fd, temp_path = tempfile.mkstemp(
                prefix=".history.", suffix=".tmp", dir=self.path.parent
            )
            with os.fdopen(fd, "wb") as f:
                for entry in kept:
                    f.write(format_entry(entry))
                f.flush()
                os.fsync(f.fileno())
            os.replace(temp_path, self.path)
            temp_path = None
            self.logger.info(
                f"Trimmed launch history from {line_count} lines to {len(kept)} entries."
            )
            return True
        except FileNotFoundError:
            return True
        except OSError as e:
            self.logger.error(f"Failed to trim history at {self.path}: {e}")
            return False
        finally:
            if temp_path is not None:
                try:
                    os.unlink(temp_path)
                except OSError:
                    pass

    def clear(self) -> bool:
        """Deletes the log file; a missing file counts as cleared."""
        try:
            self.path.unlink()
        except FileNotFoundError:
            pass
        except OSError as e:
            self.logger.error(f"Failed to clear history at {self.path}: {e}")
            return False
        self.logger.info("Launch history cleared.")
        return True
