"""Stateful browsing through a history."""

from __future__ import annotations

from typing import Optional

from .base import (
    CommandLineSearch,
    History,
    HistoryNavigationQuery,
    NavigationKind,
    SearchDirection,
    SearchFilter,
    SearchQuery,
)
from .item import HistoryItem, HistorySessionId


class HistoryCursor:
    """A position in a history, moved according to a navigation query.

    Consecutive entries equal to the one at the cursor are skipped.
    """

    def __init__(
        self,
        query: HistoryNavigationQuery,
        session: Optional[HistorySessionId] = None,
    ) -> None:
        self._query = query
        self._current: Optional[HistoryItem] = None
        self._skip_dupes = True
        self._session = session

    def __repr__(self) -> str:
        return (
            f"HistoryCursor(query={self._query!r}, current={self._current!r}, "
            f"session={self._session!r})"
        )

    def back(self, history: History) -> None:
        """Move to an older entry; stays put once the oldest match is reached."""
        self._navigate(history, SearchDirection.BACKWARD)

    def forward(self, history: History) -> None:
        """Move to a newer entry; past the newest match the cursor is empty."""
        self._navigate(history, SearchDirection.FORWARD)

    def _search_filter(self) -> SearchFilter:
        kind = self._query.kind
        if kind is NavigationKind.PREFIX_SEARCH:
            flt = SearchFilter.from_text_search(
                CommandLineSearch.prefix(self._query.value), self._session
            )
        elif kind is NavigationKind.SUBSTRING_SEARCH:
            flt = SearchFilter.from_text_search(
                CommandLineSearch.substring(self._query.value), self._session
            )
        else:
            flt = SearchFilter.anything(self._session)
        if self._skip_dupes and self._current is not None:
            flt.not_command_line = self._current.command_line
        return flt

    def _navigate(self, history: History, direction: SearchDirection) -> None:
        if direction is SearchDirection.FORWARD and self._current is None:
            # Without a starting point we are already at the end.
            return
        start_id = self._current.id if self._current is not None else None
        results = history.search(
            SearchQuery(
                direction=direction,
                start_id=start_id,
                limit=1,
                filter=self._search_filter(),
            )
        )
        if len(results) == 1:
            self._current = results[0]
        elif direction is SearchDirection.FORWARD:
            self._current = None

    def string_at_cursor(self) -> Optional[str]:
        """The command line at the cursor, or None when there is none."""
        return self._current.command_line if self._current is not None else None

    def get_navigation(self) -> HistoryNavigationQuery:
        """The navigation query this cursor follows."""
        return self._query