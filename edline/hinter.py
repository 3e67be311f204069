"""Inline hints drawn from the history, shown after the typed text."""

from __future__ import annotations

import re
from abc import ABC, abstractmethod
from dataclasses import dataclass, field, replace
from typing import List

from .base import History, SearchQuery
from .errors import HistoryError, HistoryFeatureUnsupported
from .highlighter import Color, Style
from .item import HistoryItem

_WHITESPACE = frozenset(
    "\t\n\x0b\x0c\r \x85\xa0\u1680\u2000\u2001\u2002\u2003\u2004\u2005"
    "\u2006\u2007\u2008\u2009\u200a\u2028\u2029\u202f\u205f\u3000"
)

_NEWLINES = "\n\r\x0b\x0c\x85\u2028\u2029"
_SEGMENT = re.compile(
    rf"\r\n|[{_NEWLINES}]|[^\S{_NEWLINES}]+|\w+(?:['\u2019.:]\w+)*|.",
    re.DOTALL,
)


def is_whitespace_str(s: str) -> bool:
    """Whether every character of ``s`` is whitespace (true for empty strings)."""
    return all(c in _WHITESPACE for c in s)


def get_first_token(string: str) -> str:
    """The leading whitespace of ``string`` followed by its first word segment."""
    taken = []
    for segment in _SEGMENT.findall(string):
        taken.append(segment)
        if not is_whitespace_str(segment):
            break
    return "".join(taken)


def _suffix(item: HistoryItem, line: str) -> str:
    return item.command_line[len(line):]


def _default_style() -> Style:
    return Style().fg(Color.LIGHT_GRAY)


def _render(hint: str, style: Style, use_ansi_coloring: bool) -> str:
    if use_ansi_coloring and hint:
        return style.paint(hint)
    return hint


class Hinter(ABC):
    """Produces the hint for the current line."""

    @abstractmethod
    def handle(self, line: str, pos: int, history: History, use_ansi_coloring: bool) -> str:
        """Compute the hint for ``line`` and return it formatted for display."""

    @abstractmethod
    def complete_hint(self) -> str:
        """The current hint, unformatted."""

    @abstractmethod
    def next_hint_token(self) -> str:
        """The first token of the current hint, for incremental completion."""


@dataclass
class DefaultHinter(Hinter):
    """Hints with the most recent history entry starting with the line."""

    style: Style = field(default_factory=_default_style)
    min_chars: int = 1
    current_hint: str = ""

    def handle(self, line: str, pos: int, history: History, use_ansi_coloring: bool) -> str:
        if len(line) >= self.min_chars:
            results = history.search(SearchQuery.last_with_prefix(line, history.session()))
            self.current_hint = _suffix(results[0], line) if results else ""
        else:
            self.current_hint = ""
        return _render(self.current_hint, self.style, use_ansi_coloring)

    def complete_hint(self) -> str:
        return self.current_hint

    def next_hint_token(self) -> str:
        return get_first_token(self.current_hint)

    def with_style(self, style: Style) -> "DefaultHinter":
        """A copy of this hinter that paints hints in ``style``."""
        return replace(self, style=style)

    def with_min_chars(self, min_chars: int) -> "DefaultHinter":
        """A copy of this hinter that needs ``min_chars`` typed characters to hint."""
        return replace(self, min_chars=min_chars)


@dataclass
class CwdAwareHinter(Hinter):
    """Like :class:`DefaultHinter`, preferring entries run in the current directory."""

    style: Style = field(default_factory=_default_style)
    min_chars: int = 1
    current_hint: str = ""

    @staticmethod
    def _find_hint(line: str, history: History) -> str:
        session = history.session()
        with_cwd: List[HistoryItem]
        try:
            with_cwd = history.search(SearchQuery.last_with_prefix_and_cwd(line, session))
        except HistoryFeatureUnsupported:
            try:
                with_cwd = history.search(SearchQuery.last_with_prefix(line, session))
            except HistoryError:
                with_cwd = []
        except HistoryError:
            with_cwd = []
        if with_cwd:
            return _suffix(with_cwd[0], line)
        try:
            results = history.search(SearchQuery.last_with_prefix(line, session))
        except HistoryError:
            results = []
        return _suffix(results[0], line) if results else ""

    def handle(self, line: str, pos: int, history: History, use_ansi_coloring: bool) -> str:
        if len(line) >= self.min_chars:
            self.current_hint = self._find_hint(line, history)
        else:
            self.current_hint = ""
        return _render(self.current_hint, self.style, use_ansi_coloring)

    def complete_hint(self) -> str:
        return self.current_hint

    def next_hint_token(self) -> str:
        return get_first_token(self.current_hint)

    def with_style(self, style: Style) -> "CwdAwareHinter":
        """A copy of this hinter that paints hints in ``style``."""
        return replace(self, style=style)

    def with_min_chars(self, min_chars: int) -> "CwdAwareHinter":
        """A copy of this hinter that needs ``min_chars`` typed characters to hint."""
        return replace(self, min_chars=min_chars)