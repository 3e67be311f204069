"""Syntax highlighting of the line being edited."""

from __future__ import annotations

import enum
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass, field, replace
from typing import List, Optional, Sequence, Tuple


class Color(enum.Enum):
    """Terminal colours, valued by their ANSI foreground code."""

    BLACK = "30"
    RED = "31"
    GREEN = "32"
    YELLOW = "33"
    BLUE = "34"
    PURPLE = "35"
    CYAN = "36"
    WHITE = "37"
    DEFAULT = "39"
    DARK_GRAY = "90"
    LIGHT_RED = "91"
    LIGHT_GREEN = "92"
    LIGHT_YELLOW = "93"
    LIGHT_BLUE = "94"
    LIGHT_PURPLE = "95"
    LIGHT_CYAN = "96"
    LIGHT_GRAY = "97"


@dataclass(frozen=True)
class Style:
    """An immutable text style: a foreground colour and font attributes."""

    foreground: Optional[Color] = None
    is_bold: bool = False
    is_italic: bool = False

    def fg(self, color: Color) -> "Style":
        """A copy of this style with the given foreground colour."""
        return replace(self, foreground=color)

    def bold(self) -> "Style":
        """A bold copy of this style."""
        return replace(self, is_bold=True)

    def italic(self) -> "Style":
        """An italic copy of this style."""
        return replace(self, is_italic=True)

    def _codes(self) -> List[str]:
        codes = []
        if self.is_bold:
            codes.append("1")
        if self.is_italic:
            codes.append("3")
        if self.foreground is not None:
            codes.append(self.foreground.value)
        return codes

    def paint(self, text: str) -> str:
        """The text wrapped in the ANSI escapes of this style."""
        codes = self._codes()
        if not codes:
            return text
        return f"\x1b[{';'.join(codes)}m{text}\x1b[0m"


StyledText = List[Tuple[Style, str]]

DEFAULT_BUFFER_MATCH_COLOR = Color.GREEN
DEFAULT_BUFFER_NEUTRAL_COLOR = Color.WHITE
DEFAULT_BUFFER_NOTMATCH_COLOR = Color.RED


class Highlighter(ABC):
    """Turns a line into styled segments that together spell the line."""

    @abstractmethod
    def highlight(self, line: str, cursor: int) -> StyledText:
        """Style the line; ``cursor`` is the cursor position in it."""


class ExampleHighlighter(Highlighter):
    """Highlights the longest known command contained in the line."""

    def __init__(self, external_commands: Optional[Sequence[str]] = None) -> None:
        self.external_commands: List[str] = list(external_commands or [])
        self.match_color = DEFAULT_BUFFER_MATCH_COLOR
        self.notmatch_color = DEFAULT_BUFFER_NOTMATCH_COLOR
        self.neutral_color = DEFAULT_BUFFER_NEUTRAL_COLOR

    def highlight(self, line: str, cursor: int) -> StyledText:
        matches = [c for c in self.external_commands if c in line]
        if matches:
            longest = ""
            for item in matches:
                if len(item) > len(longest):
                    longest = item
            if longest:
                before, after = line.split(longest, 1)
            else:
                before, after = "", line
            return [
                (Style().fg(self.neutral_color), before),
                (Style().fg(self.match_color), longest),
                (Style().bold().fg(self.neutral_color), after),
            ]
        if not self.external_commands:
            return [(Style().fg(self.neutral_color), line)]
        return [(Style().fg(self.notmatch_color), line)]

    def change_colors(
        self, match_color: Color, notmatch_color: Color, neutral_color: Color
    ) -> None:
        """Use different colours for matches, non-matches and neutral text."""
        self.match_color = match_color
        self.notmatch_color = notmatch_color
        self.neutral_color = neutral_color


@dataclass(frozen=True)
class SimpleMatchHighlighter(Highlighter):
    """Highlights every exact occurrence of a query in the line."""

    query: str = ""
    neutral_style: Style = field(default_factory=Style)
    match_style: Style = field(default_factory=lambda: Style().fg(Color.GREEN))

    def highlight(self, line: str, cursor: int) -> StyledText:
        if not self.query:
            return [(self.neutral_style, line)]
        styled: StyledText = []
        next_idx = 0
        for found in re.finditer(re.escape(self.query), line):
            if found.start() != next_idx:
                styled.append((self.neutral_style, line[next_idx:found.start()]))
            styled.append((self.match_style, found.group()))
            next_idx = found.end()
        if next_idx != len(line):
            styled.append((self.neutral_style, line[next_idx:]))
        return styled

    def with_query(self, query: str) -> "SimpleMatchHighlighter":
        return replace(self, query=query)

    def with_match_style(self, match_style: Style) -> "SimpleMatchHighlighter":
        return replace(self, match_style=match_style)

    def with_neutral_style(self, neutral_style: Style) -> "SimpleMatchHighlighter":
        return replace(self, neutral_style=neutral_style)