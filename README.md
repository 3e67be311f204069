# edline

Building blocks for an interactive line editor: a command history with
searching and up/down-arrow navigation, fish-style history hints, and simple
syntax highlighting.

## Install

```
pip install edline
```

For running the test suite:

```
pip install "edline[test]"
pytest
```

## History

The abstract class `edline.base.History` defines the interface shared by the
two backends: `save`, `load`, `count`, `count_all`, `search`, `update`,
`clear`, `delete`, `sync` and `session`. Records are
`edline.item.HistoryItem` objects; `HistoryItem.from_command_line(cmd)`
builds one holding only a command line.

- `edline.file_backed.FileBackedHistory(capacity=1000)` keeps command lines
  only, in memory, or in a plain text file when created with
  `FileBackedHistory.with_file(capacity, path)` (one entry per line, newlines
  inside entries written as `<\n>`). Empty lines and lines equal to the
  previous entry are not stored, and the oldest entries drop out once the
  capacity is reached. `sync()` merges the entries other processes have
  written to the same file, under a lock file next to it, and appends the new
  ones; `close()` (or leaving a `with` block) syncs once more. `clear()`
  removes the file. `update` and `delete`, and searches by time, hostname,
  directory or exit status, raise `HistoryFeatureUnsupported`.
- `edline.sqlite_backed.SqliteBackedHistory` stores full `HistoryItem`
  records (start timestamp, session id, hostname, working directory,
  duration, exit status and JSON-serialisable `more_info`) in an SQLite
  database: `SqliteBackedHistory.with_file(path, session, session_timestamp)`
  or `SqliteBackedHistory.in_memory()`. Saving an item that carries an id
  updates the stored row. It can be used as a context manager and closed with
  `close()`.

```python
from edline.file_backed import FileBackedHistory
from edline.item import HistoryItem
from edline.base import SearchQuery, SearchFilter, CommandLineSearch, SearchDirection

history = FileBackedHistory.with_file(1000, "history.txt")
history.save(HistoryItem.from_command_line("ls -l"))
history.save(HistoryItem.from_command_line("cat notes.txt"))

query = SearchQuery.everything(SearchDirection.BACKWARD, None)
query.filter = SearchFilter.from_text_search(CommandLineSearch.prefix("ls"), None)
print([item.command_line for item in history.search(query)])

history.close()  # writes pending entries to the file
```

Queries are `SearchQuery` objects (direction, start/end id, start/end time,
limit and a `SearchFilter`); the class methods `everything`,
`last_with_prefix`, `last_with_prefix_and_cwd`, `last_with_search` and
`all_that_contain_rev` build the common ones.

Errors are subclasses of `edline.errors.HistoryError`:
`HistoryFeatureUnsupported`, `OtherHistoryError` (for example loading an id
that a file-backed history does not hold) and `HistoryDatabaseError`.

## Navigation

`edline.cursor.HistoryCursor` walks through a history the way the arrow keys
do, following a `HistoryNavigationQuery` (`normal`, `prefix_search` or
`substring_search`) and skipping entries equal to the one at the cursor:

```python
from edline.cursor import HistoryCursor
from edline.base import HistoryNavigationQuery

cursor = HistoryCursor(HistoryNavigationQuery.prefix_search("ls"), None)
cursor.back(history)
print(cursor.string_at_cursor())
```

`back` stops at the oldest match; `forward` past the newest match leaves the
cursor empty, and `string_at_cursor()` then returns `None`.

## Hints

`edline.hinter.DefaultHinter` suggests the rest of the most recent command
starting with the typed line; `CwdAwareHinter` prefers commands run in the
current directory and falls back to any matching command when the backend
does not record directories.

```python
from edline.hinter import DefaultHinter

hinter = DefaultHinter().with_min_chars(2)
shown = hinter.handle("ca", 2, history, True)   # styled for the terminal
rest = hinter.complete_hint()                   # "t notes.txt"
word = hinter.next_hint_token()                 # "t"
```

## Highlighting

`edline.highlighter.ExampleHighlighter` colours the longest known keyword
found in a line; `SimpleMatchHighlighter` marks every occurrence of a query
string. Both return a list of `(Style, text)` pieces. `Style` is immutable
(`fg`, `bold`, `italic` return new styles) and `Style.paint(text)` wraps text
in ANSI escape codes.

```python
from edline.highlighter import SimpleMatchHighlighter, Style, Color

highlighter = SimpleMatchHighlighter("ls").with_match_style(Style().fg(Color.GREEN).bold())
for style, text in highlighter.highlight("ls; ls -a", 0):
    print(style.paint(text), end="")
```

## What is not included

edline is a library of parts. It does not read keys from the terminal, draw a
prompt, manage keybindings or offer tab completion, and it installs no
command; an application puts these parts together with its own input loop.