"""Queries and the abstract interface of a command history."""

from __future__ import annotations

import enum
import os
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, List, Optional

from .item import HistoryItem, HistoryItemId, HistorySessionId


class NavigationKind(enum.Enum):
    """Ways of browsing through a history."""

    NORMAL = "normal"
    PREFIX_SEARCH = "prefix_search"
    SUBSTRING_SEARCH = "substring_search"


@dataclass(frozen=True)
class HistoryNavigationQuery:
    """A browsing mode together with its argument.

    For ``NORMAL`` the value is the line buffer holding the manual entry made
    before browsing; for the search kinds it is the text searched for.
    """

    kind: NavigationKind
    value: Any

    @classmethod
    def normal(cls, buffer: Any) -> "HistoryNavigationQuery":
        return cls(NavigationKind.NORMAL, buffer)

    @classmethod
    def prefix_search(cls, prefix: str) -> "HistoryNavigationQuery":
        return cls(NavigationKind.PREFIX_SEARCH, prefix)

    @classmethod
    def substring_search(cls, substring: str) -> "HistoryNavigationQuery":
        return cls(NavigationKind.SUBSTRING_SEARCH, substring)


class SearchKind(enum.Enum):
    """How a command line is compared against a search text."""

    PREFIX = "prefix"
    SUBSTRING = "substring"
    EXACT = "exact"


@dataclass(frozen=True)
class CommandLineSearch:
    """A search on the text of the command line."""

    kind: SearchKind
    text: str

    @classmethod
    def prefix(cls, text: str) -> "CommandLineSearch":
        return cls(SearchKind.PREFIX, text)

    @classmethod
    def substring(cls, text: str) -> "CommandLineSearch":
        return cls(SearchKind.SUBSTRING, text)

    @classmethod
    def exact(cls, text: str) -> "CommandLineSearch":
        return cls(SearchKind.EXACT, text)

    def matches(self, command_line: str) -> bool:
        """Whether the given command line satisfies this search."""
        if self.kind is SearchKind.PREFIX:
            return command_line.startswith(self.text)
        if self.kind is SearchKind.SUBSTRING:
            return self.text in command_line
        return command_line == self.text


class SearchDirection(enum.Enum):
    """Direction in which a query traverses the history."""

    BACKWARD = "backward"
    FORWARD = "forward"


@dataclass
class SearchFilter:
    """Additional filters for querying a history."""

    command_line: Optional[CommandLineSearch] = None
    not_command_line: Optional[str] = None
    hostname: Optional[str] = None
    cwd_exact: Optional[str] = None
    cwd_prefix: Optional[str] = None
    exit_successful: Optional[bool] = None
    session: Optional[HistorySessionId] = None

    @classmethod
    def from_text_search(
        cls, cmd: CommandLineSearch, session: Optional[HistorySessionId]
    ) -> "SearchFilter":
        return cls(command_line=cmd, session=session)

    @classmethod
    def from_text_search_cwd(
        cls,
        cwd: str,
        cmd: CommandLineSearch,
        session: Optional[HistorySessionId],
    ) -> "SearchFilter":
        return cls(command_line=cmd, cwd_exact=cwd, session=session)

    @classmethod
    def anything(cls, session: Optional[HistorySessionId]) -> "SearchFilter":
        return cls(session=session)


@dataclass
class SearchQuery:
    """A query against a history."""

    direction: SearchDirection
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    start_id: Optional[HistoryItemId] = None
    end_id: Optional[HistoryItemId] = None
    limit: Optional[int] = None
    filter: SearchFilter = field(default_factory=SearchFilter)

    @classmethod
    def all_that_contain_rev(cls, contains: str) -> "SearchQuery":
        """All entries containing the string, most recent first."""
        return cls(
            direction=SearchDirection.BACKWARD,
            filter=SearchFilter.from_text_search(
                CommandLineSearch.substring(contains), None
            ),
        )

    @classmethod
    def last_with_search(cls, filter: SearchFilter) -> "SearchQuery":
        """The most recent entry matching the filter."""
        return cls(direction=SearchDirection.BACKWARD, limit=1, filter=filter)

    @classmethod
    def last_with_prefix(
        cls, prefix: str, session: Optional[HistorySessionId]
    ) -> "SearchQuery":
        """The most recent entry starting with the prefix."""
        return cls.last_with_search(
            SearchFilter.from_text_search(CommandLineSearch.prefix(prefix), session)
        )

    @classmethod
    def last_with_prefix_and_cwd(
        cls, prefix: str, session: Optional[HistorySessionId]
    ) -> "SearchQuery":
        """The most recent entry starting with the prefix, run in the current directory."""
        try:
            cwd = os.getcwd()
        except OSError:
            return cls.last_with_prefix(prefix, session)
        return cls.last_with_search(
            SearchFilter.from_text_search_cwd(
                cwd, CommandLineSearch.prefix(prefix), session
            )
        )

    @classmethod
    def everything(
        cls, direction: SearchDirection, session: Optional[HistorySessionId]
    ) -> "SearchQuery":
        """All entries in the given direction."""
        return cls(direction=direction, filter=SearchFilter.anything(session))


class History(ABC):
    """A store of history items, such as a text file or a database."""

    @abstractmethod
    def save(self, item: HistoryItem) -> HistoryItem:
        """Save an item; a new id is assigned if it has none, else it is updated."""

    @abstractmethod
    def load(self, item_id: HistoryItemId) -> HistoryItem:
        """Load the item with the given id."""

    @abstractmethod
    def count(self, query: SearchQuery) -> int:
        """Number of results of a query."""

    def count_all(self) -> int:
        """Total number of items."""
        return self.count(SearchQuery.everything(SearchDirection.FORWARD, None))

    @abstractmethod
    def search(self, query: SearchQuery) -> List[HistoryItem]:
        """Results of a query."""

    @abstractmethod
    def update(
        self, item_id: HistoryItemId, updater: Callable[[HistoryItem], HistoryItem]
    ) -> None:
        """Replace an item with the result of applying ``updater`` to it."""

    @abstractmethod
    def clear(self) -> None:
        """Delete all items."""

    @abstractmethod
    def delete(self, item_id: HistoryItemId) -> None:
        """Remove one item."""

    @abstractmethod
    def sync(self) -> None:
        """Make sure the history is written to its backing store."""

    @abstractmethod
    def session(self) -> Optional[HistorySessionId]:
        """The session id of this history, if any."""