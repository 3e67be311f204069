"""A history stored in an SQLite database, with rich per-command context."""

from __future__ import annotations

import json
import os
import sqlite3
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Tuple, Union

from .base import History, SearchDirection, SearchKind, SearchQuery
from .errors import HistoryDatabaseError
from .item import HistoryItem, HistoryItemId, HistorySessionId

SQLITE_APPLICATION_ID = 1151497937

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
_MILLISECOND = timedelta(milliseconds=1)

_TABLE = """
create table if not exists history (
    id integer primary key autoincrement,
    command_line text not null,
    start_timestamp integer,
    session_id integer,
    hostname text,
    cwd text,
    duration_ms integer,
    exit_status integer,
    more_info text
)"""

_INDEXES = """
create index if not exists idx_history_time on history(start_timestamp);
create index if not exists idx_history_cwd on history(cwd);
create index if not exists idx_history_exit_status on history(exit_status);
create index if not exists idx_history_cmd on history(command_line);
"""

_UPSERT = """
insert into history
       (id,  start_timestamp,  command_line,  session_id,  hostname,  cwd,  duration_ms,  exit_status,  more_info)
values (:id, :start_timestamp, :command_line, :session_id, :hostname, :cwd, :duration_ms, :exit_status, :more_info)
on conflict (id) do update set
    start_timestamp = excluded.start_timestamp,
    command_line = excluded.command_line,
    session_id = excluded.session_id,
    hostname = excluded.hostname,
    cwd = excluded.cwd,
    duration_ms = excluded.duration_ms,
    exit_status = excluded.exit_status,
    more_info = excluded.more_info
"""


def _to_millis(moment: datetime) -> int:
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return (moment - _EPOCH) // _MILLISECOND


def _from_millis(millis: int) -> datetime:
    try:
        return _EPOCH + timedelta(milliseconds=millis)
    except OverflowError:
        return datetime.now(timezone.utc)


def _db_error(err: Exception) -> HistoryDatabaseError:
    return HistoryDatabaseError(f"{type(err).__name__}: {err}")


def _row_to_item(row: sqlite3.Row) -> HistoryItem:
    more_info = row["more_info"]
    if more_info is not None:
        try:
            more_info = json.loads(more_info)
        except ValueError as err:
            raise HistoryDatabaseError(f"could not deserialize more_info: {err}") from err
    start = row["start_timestamp"]
    session = row["session_id"]
    duration = row["duration_ms"]
    return HistoryItem(
        id=HistoryItemId(row["id"]),
        start_timestamp=_from_millis(start) if start is not None else None,
        command_line=row["command_line"],
        session_id=HistorySessionId(session) if session is not None else None,
        hostname=row["hostname"],
        cwd=row["cwd"],
        duration=timedelta(milliseconds=duration) if duration is not None else None,
        exit_status=row["exit_status"],
        more_info=more_info,
    )


class SqliteBackedHistory(History):
    """History kept in an SQLite database.

    Besides the command line, each item may carry a timestamp, session,
    hostname, working directory, duration, exit status and extra JSON data.
    """

    def __init__(
        self,
        connection: sqlite3.Connection,
        session: Optional[HistorySessionId] = None,
        session_timestamp: Optional[datetime] = None,
    ) -> None:
        self._db = connection
        self._db.row_factory = sqlite3.Row
        self._session = session
        self._session_timestamp = session_timestamp
        try:
            self._initialize()
        except sqlite3.Error as err:
            raise _db_error(err) from err

    @classmethod
    def with_file(
        cls,
        file: Union[str, os.PathLike],
        session: Optional[HistorySessionId] = None,
        session_timestamp: Optional[datetime] = None,
    ) -> "SqliteBackedHistory":
        """Open or create a database file, creating missing parent directories."""
        path = Path(file)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as err:
            raise HistoryDatabaseError(str(err)) from err
        try:
            connection = sqlite3.connect(str(path), isolation_level=None)
        except sqlite3.Error as err:
            raise _db_error(err) from err
        try:
            return cls(connection, session, session_timestamp)
        except HistoryDatabaseError:
            connection.close()
            raise

    @classmethod
    def in_memory(cls) -> "SqliteBackedHistory":
        """Create a history held in an in-memory database."""
        try:
            connection = sqlite3.connect(":memory:", isolation_level=None)
        except sqlite3.Error as err:
            raise _db_error(err) from err
        return cls(connection)

    def _initialize(self) -> None:
        db = self._db
        db.execute("PRAGMA journal_mode = wal")
        db.execute("PRAGMA synchronous = normal")
        db.execute("PRAGMA mmap_size = 1000000000")
        db.execute("PRAGMA foreign_keys = on")
        db.execute(f"PRAGMA application_id = {SQLITE_APPLICATION_ID}")
        version = db.execute("SELECT user_version FROM pragma_user_version").fetchone()[0]
        if version != 0:
            raise HistoryDatabaseError(f"Unknown database version {version}")
        try:
            db.execute(_TABLE + " strict")
        except sqlite3.OperationalError:
            # Older SQLite libraries do not know strict tables.
            db.execute(_TABLE)
        db.executescript(_INDEXES)

    def save(self, item: HistoryItem) -> HistoryItem:
        """Insert the item, or update the stored one when it carries an id."""
        params = {
            "id": item.id.value if item.id is not None else None,
            "start_timestamp": (
                _to_millis(item.start_timestamp) if item.start_timestamp is not None else None
            ),
            "command_line": item.command_line,
            "session_id": item.session_id.value if item.session_id is not None else None,
            "hostname": item.hostname,
            "cwd": item.cwd,
            "duration_ms": item.duration // _MILLISECOND if item.duration is not None else None,
            "exit_status": item.exit_status,
            "more_info": json.dumps(item.more_info) if item.more_info is not None else None,
        }
        try:
            cur = self._db.execute(_UPSERT, params)
        except sqlite3.Error as err:
            raise _db_error(err) from err
        new_id = item.id.value if item.id is not None else cur.lastrowid
        item.id = HistoryItemId(new_id)
        return item

    def load(self, item_id: HistoryItemId) -> HistoryItem:
        try:
            row = self._db.execute(
                "select * from history where id = :id", {"id": item_id.value}
            ).fetchone()
        except sqlite3.Error as err:
            raise _db_error(err) from err
        if row is None:
            raise HistoryDatabaseError("Query returned no rows")
        return _row_to_item(row)

    def count(self, query: SearchQuery) -> int:
        sql, params = self._construct_query(query, "coalesce(count(*), 0)")
        try:
            return self._db.execute(sql, params).fetchone()[0]
        except sqlite3.Error as err:
            raise _db_error(err) from err

    def search(self, query: SearchQuery) -> List[HistoryItem]:
        sql, params = self._construct_query(query, "*")
        try:
            rows = self._db.execute(sql, params).fetchall()
        except sqlite3.Error as err:
            raise _db_error(err) from err
        return [_row_to_item(row) for row in rows]

    def update(
        self, item_id: HistoryItemId, updater: Callable[[HistoryItem], HistoryItem]
    ) -> None:
        self.save(updater(self.load(item_id)))

    def clear(self) -> None:
        """Delete all items and vacuum so the data is really erased."""
        try:
            self._db.execute("delete from history")
            self._db.execute("VACUUM")
        except sqlite3.Error as err:
            raise _db_error(err) from err

    def delete(self, item_id: HistoryItemId) -> None:
        try:
            cur = self._db.execute("delete from history where id = ?", (item_id.value,))
        except sqlite3.Error as err:
            raise _db_error(err) from err
        if cur.rowcount == 0:
            raise HistoryDatabaseError("Could not find item")

    def sync(self) -> None:
        """Nothing to do: every change is written immediately."""

    def session(self) -> Optional[HistorySessionId]:
        return self._session

    def close(self) -> None:
        """Close the database connection."""
        self._db.close()

    def __enter__(self) -> "SqliteBackedHistory":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def _construct_query(
        self, query: SearchQuery, select_expression: str
    ) -> Tuple[str, Dict[str, Any]]:
        ascending = query.direction is SearchDirection.FORWARD
        order = "asc" if ascending else "desc"
        wheres: List[str] = []
        params: Dict[str, Any] = {}

        if query.start_time is not None:
            wheres.append(
                "start_timestamp > :start_time" if ascending else "start_timestamp < :start_time"
            )
            params["start_time"] = _to_millis(query.start_time)
        if query.end_time is not None:
            wheres.append(
                ":end_time >= start_timestamp" if ascending else ":end_time <= start_timestamp"
            )
            params["end_time"] = _to_millis(query.end_time)
        if query.start_id is not None:
            wheres.append("id > :start_id" if ascending else "id < :start_id")
            params["start_id"] = query.start_id.value
        if query.end_id is not None:
            wheres.append(":end_id >= id" if ascending else ":end_id <= id")
            params["end_id"] = query.end_id.value

        limit = ""
        if query.limit is not None:
            params["limit"] = query.limit
            limit = "limit :limit"

        flt = query.filter
        if flt.command_line is not None:
            search = flt.command_line
            if search.kind is SearchKind.EXACT:
                pattern = search.text
            elif search.kind is SearchKind.PREFIX:
                pattern = f"{search.text}%"
            else:
                pattern = f"%{search.text}%"
            wheres.append("command_line like :command_line")
            params["command_line"] = pattern
        if flt.not_command_line is not None:
            wheres.append("command_line != :not_cmd")
            params["not_cmd"] = flt.not_command_line
        if flt.hostname is not None:
            wheres.append("hostname = :hostname")
            params["hostname"] = flt.hostname
        if flt.cwd_exact is not None:
            wheres.append("cwd = :cwd")
            params["cwd"] = flt.cwd_exact
        if flt.cwd_prefix is not None:
            wheres.append("cwd like :cwd_like")
            params["cwd_like"] = f"{flt.cwd_prefix}%"
        if flt.exit_successful is not None:
            wheres.append("exit_status = 0" if flt.exit_successful else "exit_status != 0")
        if flt.session is not None and self._session_timestamp is not None:
            # Rows of this session, or rows run before this session started.
            wheres.append("(session_id = :session_id OR start_timestamp < :session_timestamp)")
            params["session_id"] = flt.session.value
            params["session_timestamp"] = _to_millis(self._session_timestamp)

        condition = " and ".join(wheres) or "true"
        sql = (
            f"SELECT {select_expression} FROM history WHERE ({condition}) "
            f"ORDER BY id {order} {limit}"
        )
        return sql, params