"""Records stored in a command history."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Optional


@dataclass(frozen=True, order=True)
class HistoryItemId:
    """Unique id of a history item; more recent items have higher ids."""

    value: int

    def __str__(self) -> str:
        return str(self.value)

    def __int__(self) -> int:
        return self.value


@dataclass(frozen=True)
class HistorySessionId:
    """Id of the session in which a command was entered."""

    value: int

    def __str__(self) -> str:
        return str(self.value)

    def __int__(self) -> int:
        return self.value


@dataclass
class HistoryItem:
    """One run command with optional additional context."""

    command_line: str
    id: Optional[HistoryItemId] = None
    start_timestamp: Optional[datetime] = None
    session_id: Optional[HistorySessionId] = None
    hostname: Optional[str] = None
    cwd: Optional[str] = None
    duration: Optional[timedelta] = None
    exit_status: Optional[int] = None
    more_info: Any = None

    @classmethod
    def from_command_line(cls, cmd: str) -> "HistoryItem":
        """Create an item holding only the command line."""
        return cls(command_line=str(cmd))