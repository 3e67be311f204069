import os

import pytest

from edline.base import (
    CommandLineSearch,
    History,
    HistoryNavigationQuery,
    NavigationKind,
    SearchDirection,
    SearchFilter,
    SearchKind,
    SearchQuery,
)
from edline.item import HistoryItem, HistoryItemId, HistorySessionId


class _ListHistory(History):
    def __init__(self, lines):
        self.items = [
            HistoryItem(command_line=line, id=HistoryItemId(i))
            for i, line in enumerate(lines)
        ]
        self.queries = []

    def save(self, item):
        self.items.append(item)
        return item

    def load(self, item_id):
        return self.items[item_id.value]

    def count(self, query):
        self.queries.append(query)
        return len(self.search(query))

    def search(self, query):
        cmd = query.filter.command_line
        found = [i for i in self.items if cmd is None or cmd.matches(i.command_line)]
        if query.direction is SearchDirection.BACKWARD:
            found.reverse()
        return found if query.limit is None else found[: query.limit]

    def update(self, item_id, updater):
        self.items[item_id.value] = updater(self.items[item_id.value])

    def clear(self):
        self.items.clear()

    def delete(self, item_id):
        del self.items[item_id.value]

    def sync(self):
        return None

    def session(self):
        return None


def test_history_is_abstract():
    with pytest.raises(TypeError):
        History()


def test_count_all_counts_everything_forward():
    hist = _ListHistory(["cd foo", "ls", "ls -alh"])
    assert hist.count_all() == 3
    query = hist.queries[-1]
    assert query.direction is SearchDirection.FORWARD
    assert query.limit is None
    assert query.filter == SearchFilter.anything(None)


def test_command_line_search_matching():
    assert CommandLineSearch.prefix("ls ").matches("ls -l")
    assert not CommandLineSearch.prefix("ls ").matches("ls")
    assert CommandLineSearch.substring("foo.zip").matches("unzip foo.zip")
    assert not CommandLineSearch.substring("bar").matches("unzip foo.zip")
    assert CommandLineSearch.exact("ls").matches("ls")
    assert not CommandLineSearch.exact("ls").matches("ls -alh")


def test_command_line_search_kinds():
    assert CommandLineSearch.prefix("a").kind is SearchKind.PREFIX
    assert CommandLineSearch.substring("a").kind is SearchKind.SUBSTRING
    assert CommandLineSearch.exact("a").kind is SearchKind.EXACT


def test_navigation_query_constructors():
    buffer = object()
    normal = HistoryNavigationQuery.normal(buffer)
    assert normal.kind is NavigationKind.NORMAL
    assert normal.value is buffer
    assert HistoryNavigationQuery.prefix_search("find") == HistoryNavigationQuery(
        NavigationKind.PREFIX_SEARCH, "find"
    )
    assert HistoryNavigationQuery.substring_search("sub") == HistoryNavigationQuery(
        NavigationKind.SUBSTRING_SEARCH, "sub"
    )


def test_filter_constructors():
    session = HistorySessionId(1)
    cmd = CommandLineSearch.prefix("git")
    plain = SearchFilter.from_text_search(cmd, session)
    assert plain.command_line == cmd
    assert plain.session == session
    assert plain.cwd_exact is None
    with_cwd = SearchFilter.from_text_search_cwd("/etc/nginx", cmd, session)
    assert with_cwd.cwd_exact == "/etc/nginx"
    assert with_cwd.command_line == cmd
    anything = SearchFilter.anything(None)
    assert anything == SearchFilter()


def test_all_that_contain_rev():
    query = SearchQuery.all_that_contain_rev("foo")
    assert query.direction is SearchDirection.BACKWARD
    assert query.limit is None
    assert query.filter.command_line == CommandLineSearch.substring("foo")
    assert query.filter.session is None


def test_last_with_prefix():
    session = HistorySessionId(3)
    query = SearchQuery.last_with_prefix("ls", session)
    assert query.direction is SearchDirection.BACKWARD
    assert query.limit == 1
    assert query.filter.command_line == CommandLineSearch.prefix("ls")
    assert query.filter.session == session
    assert query.start_id is None and query.end_id is None


def test_last_with_prefix_and_cwd_uses_current_dir():
    query = SearchQuery.last_with_prefix_and_cwd("vim", None)
    assert query.filter.cwd_exact == os.getcwd()
    assert query.filter.command_line == CommandLineSearch.prefix("vim")
    assert query.limit == 1


def test_last_with_prefix_and_cwd_falls_back_without_cwd(monkeypatch):
    def broken():
        raise FileNotFoundError("gone")

    monkeypatch.setattr(os, "getcwd", broken)
    query = SearchQuery.last_with_prefix_and_cwd("vim", None)
    monkeypatch.undo()
    assert query == SearchQuery.last_with_prefix("vim", None)


def test_everything_and_search_through_history():
    hist = _ListHistory(["cd foo", "ls", "ls -alh"])
    forward = hist.search(SearchQuery.everything(SearchDirection.FORWARD, None))
    backward = hist.search(SearchQuery.everything(SearchDirection.BACKWARD, None))
    assert [i.command_line for i in forward] == ["cd foo", "ls", "ls -alh"]
    assert backward == list(reversed(forward))
    latest = hist.search(SearchQuery.last_with_search(SearchFilter.anything(None)))
    assert latest == [hist.load(HistoryItemId(2))]