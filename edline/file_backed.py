"""A history kept in memory and optionally synchronised with a text file."""

from __future__ import annotations

import itertools
import os
import sys
from collections import deque
from pathlib import Path
from typing import Callable, Deque, List, Optional, Union

from filelock import FileLock

from .base import History, SearchDirection, SearchQuery
from .errors import HistoryFeatureUnsupported, OtherHistoryError
from .item import HistoryItem, HistoryItemId, HistorySessionId

HISTORY_SIZE = 1000
"""Default capacity of a :class:`FileBackedHistory`."""

NEWLINE_ESCAPE = "<\\n>"

_NAME = "FileBackedHistory"


def encode_entry(s: str) -> str:
    """Escape newlines so an entry fits on one line of the file."""
    return s.replace("\n", NEWLINE_ESCAPE)


def decode_entry(s: str) -> str:
    """Undo :func:`encode_entry`."""
    return s.replace(NEWLINE_ESCAPE, "\n")


def _split_lines(text: str) -> List[str]:
    if not text:
        return []
    lines = text.split("\n")
    if lines[-1] == "":
        lines.pop()
    return [line[:-1] if line.endswith("\r") else line for line in lines]


def _construct_entry(item_id: Optional[HistoryItemId], command_line: str) -> HistoryItem:
    return HistoryItem(command_line=command_line, id=item_id)


class FileBackedHistory(History):
    """History holding at most ``capacity`` command lines.

    When associated with a file (see :meth:`with_file`), new entries are
    appended to it on :meth:`sync` and when the history is closed; the file is
    truncated to the oldest entries that still fit in the capacity.
    """

    def __init__(self, capacity: int = HISTORY_SIZE) -> None:
        if capacity < 0:
            raise ValueError("History capacity must not be negative")
        if capacity >= sys.maxsize:
            raise ValueError("History capacity too large to be addressed safely")
        self._capacity = capacity
        self._entries: Deque[str] = deque()
        self._file: Optional[Path] = None
        self._len_on_disk = 0
        self._closed = False

    @classmethod
    def with_file(cls, capacity: int, file: Union[str, os.PathLike]) -> "FileBackedHistory":
        """Create a history backed by ``file``, reading it if it exists.

        Creates all missing parent directories of the file.
        """
        hist = cls(capacity)
        path = Path(file)
        path.parent.mkdir(parents=True, exist_ok=True)
        hist._file = path
        hist.sync()
        return hist

    @property
    def capacity(self) -> int:
        return self._capacity

    def save(self, item: HistoryItem) -> HistoryItem:
        """Append the command line unless it is empty or repeats the last entry."""
        entry = item.command_line
        item_id: Optional[HistoryItemId] = None
        if entry and (not self._entries or self._entries[-1] != entry):
            if len(self._entries) == self._capacity and self._entries:
                self._entries.popleft()
                self._len_on_disk = max(0, self._len_on_disk - 1)
            self._entries.append(entry)
            item_id = HistoryItemId(len(self._entries) - 1)
        return _construct_entry(item_id, entry)

    def load(self, item_id: HistoryItemId) -> HistoryItem:
        index = item_id.value
        if not 0 <= index < len(self._entries):
            raise OtherHistoryError("Item does not exist")
        return _construct_entry(item_id, self._entries[index])

    def count(self, query: SearchQuery) -> int:
        return len(self.search(query))

    def search(self, query: SearchQuery) -> List[HistoryItem]:
        if query.start_time is not None or query.end_time is not None:
            raise HistoryFeatureUnsupported(_NAME, "filtering by time")
        flt = query.filter
        if (
            flt.hostname is not None
            or flt.cwd_exact is not None
            or flt.cwd_prefix is not None
            or flt.exit_successful is not None
        ):
            raise HistoryFeatureUnsupported(_NAME, "filtering by extra info")

        start = query.start_id.value if query.start_id is not None else None
        end = query.end_id.value if query.end_id is not None else None
        backward = query.direction is SearchDirection.BACKWARD
        low, high = (end, start) if backward else (start, end)

        last = len(self._entries) - 1
        min_id = low + 1 if low is not None else 0
        max_id = high - 1 if high is not None else last
        if max_id < 0 or min_id > last:
            return []
        intrinsic_limit = max_id - min_id + 1
        if intrinsic_limit <= 0:
            return []
        limit = intrinsic_limit if query.limit is None else min(intrinsic_limit, query.limit)
        if limit <= 0:
            return []

        window = list(
            itertools.islice(enumerate(self._entries), min_id, min_id + intrinsic_limit)
        )
        if backward:
            window.reverse()

        def matching():
            for idx, cmd in window:
                if flt.command_line is not None and not flt.command_line.matches(cmd):
                    continue
                if flt.not_command_line is not None and cmd == flt.not_command_line:
                    continue
                yield _construct_entry(HistoryItemId(idx), cmd)

        return list(itertools.islice(matching(), limit))

    def update(
        self, item_id: HistoryItemId, updater: Callable[[HistoryItem], HistoryItem]
    ) -> None:
        raise HistoryFeatureUnsupported(_NAME, "updating entries")

    def clear(self) -> None:
        """Forget all entries and remove the backing file, if any."""
        self._entries.clear()
        self._len_on_disk = 0
        if self._file is not None:
            os.remove(self._file)

    def delete(self, item_id: HistoryItemId) -> None:
        raise HistoryFeatureUnsupported(_NAME, "removing entries")

    def sync(self) -> None:
        """Write unwritten entries to the file, merging entries written by others.

        If the file would exceed the capacity, its oldest entries are dropped.
        """
        if self._file is None:
            return
        path = self._file
        own = list(itertools.islice(self._entries, self._len_on_disk, None))
        path.parent.mkdir(parents=True, exist_ok=True)

        lock = FileLock(str(path.with_name(path.name + ".lock")))
        fd = os.open(path, os.O_RDWR | os.O_CREAT, 0o644)
        with lock, open(fd, "r+b") as fh:
            from_file = [decode_entry(line) for line in _split_lines(fh.read().decode("utf-8"))]
            truncate = len(from_file) + len(own) > self._capacity
            if truncate:
                keep_from = len(from_file) - (self._capacity - len(own))
                foreign = from_file[keep_from:]
                fh.seek(0)
                to_write = foreign + own
            else:
                foreign = from_file
                fh.seek(0, os.SEEK_END)
                to_write = own
            fh.write(b"".join(encode_entry(line).encode("utf-8") + b"\n" for line in to_write))
            fh.flush()
            if truncate:
                fh.truncate()

        self._entries = deque(foreign + own)
        self._len_on_disk = len(self._entries)

    def session(self) -> Optional[HistorySessionId]:
        return None

    def close(self) -> None:
        """Write pending entries to the file; errors are ignored."""
        if self._closed:
            return
        self._closed = True
        try:
            self.sync()
        except OSError:
            pass

    def __enter__(self) -> "FileBackedHistory":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def __del__(self) -> None:
        try:
            self.close()
        except Exception:
            pass