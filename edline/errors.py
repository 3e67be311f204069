"""Errors raised by history stores."""

from __future__ import annotations


class HistoryError(Exception):
    """Base class of all errors raised by a history."""


class HistoryFeatureUnsupported(HistoryError):
    """A history was asked to do something its storage cannot support."""

    def __init__(self, history: str, feature: str) -> None:
        super().__init__(f"{history} does not support {feature}")
        self.history = history
        self.feature = feature


class OtherHistoryError(HistoryError):
    """A history failed for a reason described by a message."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class HistoryDatabaseError(HistoryError):
    """The database backing a history reported an error."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message