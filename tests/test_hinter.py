import os

import pytest

from edline.base import History
from edline.errors import OtherHistoryError
from edline.file_backed import FileBackedHistory
from edline.highlighter import Color, Style
from edline.hinter import (
    CwdAwareHinter,
    DefaultHinter,
    get_first_token,
    is_whitespace_str,
)
from edline.item import HistoryItem
from edline.sqlite_backed import SqliteBackedHistory


class _BrokenHistory(History):
    def save(self, item):
        return item

    def load(self, item_id):
        raise OtherHistoryError("Item does not exist")

    def count(self, query):
        return 0

    def search(self, query):
        raise OtherHistoryError("broken")

    def update(self, item_id, updater):
        raise OtherHistoryError("broken")

    def clear(self):
        pass

    def delete(self, item_id):
        raise OtherHistoryError("broken")

    def sync(self):
        pass

    def session(self):
        return None


@pytest.fixture
def history():
    hist = FileBackedHistory()
    for cmd in ["git commit", "git status", "ls -la"]:
        hist.save(HistoryItem.from_command_line(cmd))
    return hist


def test_is_whitespace_str():
    assert is_whitespace_str("  \t\n")
    assert is_whitespace_str("")
    assert not is_whitespace_str(" a ")


def test_first_token_keeps_leading_whitespace():
    assert get_first_token("  hello world") == "  hello"


@pytest.mark.parametrize("text", ["", "abc", " x y", "\n\nfoo", "a.b c", "  "])
def test_first_token_is_prefix(text):
    token = get_first_token(text)
    assert text.startswith(token)
    assert is_whitespace_str(token) == is_whitespace_str(text)


def test_default_hinter_completes_from_history(history):
    hinter = DefaultHinter()
    hint = hinter.handle("git s", 5, history, False)
    assert "git s" + hint == "git status"
    assert hinter.complete_hint() == hint


def test_default_hinter_prefers_most_recent(history):
    hint = DefaultHinter().handle("git", 3, history, False)
    assert "git" + hint == "git status"


def test_default_hinter_no_match(history):
    hinter = DefaultHinter()
    assert hinter.handle("zzz", 3, history, False) == ""
    assert hinter.complete_hint() == ""


def test_default_hinter_min_chars(history):
    hinter = DefaultHinter().with_min_chars(3)
    assert hinter.handle("gi", 2, history, False) == ""
    assert hinter.handle("git", 3, history, False) != ""
    assert hinter.min_chars == 3


def test_default_hinter_ansi_coloring(history):
    style = Style().italic().fg(Color.LIGHT_GRAY)
    hinter = DefaultHinter().with_style(style)
    painted = hinter.handle("ls", 2, history, True)
    assert painted == style.paint(hinter.complete_hint())
    assert painted != hinter.complete_hint()


def test_next_hint_token(history):
    hinter = DefaultHinter()
    hinter.handle("ls", 2, history, False)
    token = hinter.next_hint_token()
    assert hinter.complete_hint().startswith(token)
    assert "ls" + token == "ls -"


def test_default_hinter_propagates_errors():
    with pytest.raises(OtherHistoryError):
        DefaultHinter().handle("x", 1, _BrokenHistory(), False)


def test_cwd_hinter_swallows_errors():
    hinter = CwdAwareHinter()
    assert hinter.handle("x", 1, _BrokenHistory(), False) == ""


def test_cwd_hinter_falls_back_for_file_history(history):
    hint = CwdAwareHinter().handle("git c", 5, history, False)
    assert "git c" + hint == "git commit"


def test_cwd_hinter_prefers_current_directory(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    cwd = os.getcwd()
    with SqliteBackedHistory.in_memory() as hist:
        hist.save(HistoryItem(command_line="ls -a", cwd=cwd))
        hist.save(HistoryItem(command_line="ls -l", cwd=str(tmp_path / "elsewhere")))
        cwd_hint = CwdAwareHinter().handle("ls", 2, hist, False)
        default_hint = DefaultHinter().handle("ls", 2, hist, False)
    assert "ls" + cwd_hint == "ls -a"
    assert "ls" + default_hint == "ls -l"


def test_cwd_hinter_without_cwd_match_uses_any(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    with SqliteBackedHistory.in_memory() as hist:
        hist.save(HistoryItem(command_line="echo hi", cwd=str(tmp_path / "other")))
        hint = CwdAwareHinter().handle("ec", 2, hist, False)
    assert "ec" + hint == "echo hi"


def test_builders_return_copies():
    base = CwdAwareHinter()
    changed = base.with_min_chars(4).with_style(Style().bold())
    assert base.min_chars == 1
    assert changed.min_chars == 4
    assert changed.style == Style().bold()