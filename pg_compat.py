"""PostgreSQL compatibility layer — wraps psycopg2 to match sqlite3 API.

When DATABASE_URL starts with postgresql://, this module provides a
connection wrapper that translates:
  - ? placeholders → %s
  - INSERT OR IGNORE → INSERT ... ON CONFLICT DO NOTHING
  - executescript() → split and execute
  - executemany() → cursor.executemany with translated SQL
  - Row factory → dict-like Row objects

The wrapper never enables autocommit: every statement joins the open
transaction until commit() or rollback(), which is what the combination
store relies on for its clear-then-insert replace.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable, Sequence
from typing import Any

logger = logging.getLogger(__name__)

_INSERT_OR_IGNORE = re.compile(r"INSERT\s+OR\s+IGNORE\s+INTO", re.IGNORECASE)
_AUTOINCREMENT = re.compile(
    r"(\w+)\s+INTEGER\s+PRIMARY\s+KEY\s+AUTOINCREMENT", re.IGNORECASE
)
_PRAGMA = re.compile(r"PRAGMA\s+\w+\s*=\s*\w+\s*;?", re.IGNORECASE)

# Errors raised by re-running idempotent DDL against an existing schema
_BENIGN_DDL_ERRORS = ("already exists", "duplicate column")


class PgRow:
    """Dict-like row that mimics sqlite3.Row."""

    def __init__(self, columns: list[str], values: tuple):
        self._data = dict(zip(columns, values))

    def __getitem__(self, key: str | int) -> Any:
        if isinstance(key, int):
            return list(self._data.values())[key]
        return self._data[key]

    def __contains__(self, key: str) -> bool:
        return key in self._data

    def __len__(self) -> int:
        return len(self._data)

    def keys(self) -> list[str]:
        return list(self._data.keys())

    def values(self) -> list[Any]:
        return list(self._data.values())

    def items(self) -> list[tuple[str, Any]]:
        return list(self._data.items())

    def get(self, key: str, default: Any = None) -> Any:
        return self._data.get(key, default)

    def __repr__(self) -> str:
        return f"PgRow({self._data})"


def _translate_sql(sql: str) -> str:
    """Translate SQLite SQL to PostgreSQL SQL."""
    translated = sql.replace("?", "%s")

    if _INSERT_OR_IGNORE.search(translated):
        translated = _INSERT_OR_IGNORE.sub("INSERT INTO", translated)
        if "ON CONFLICT" not in translated.upper():
            translated = translated.rstrip().rstrip(";") + " ON CONFLICT DO NOTHING"

    return translated


def _translate_schema(sql: str) -> str:
    """Translate SQLite schema DDL to PostgreSQL DDL."""
    translated = _AUTOINCREMENT.sub(r"\1 SERIAL PRIMARY KEY", sql)
    translated = _PRAGMA.sub("", translated)
    return translated


class PgCursorWrapper:
    """Wraps a psycopg2 cursor to match sqlite3.Cursor interface."""

    def __init__(self, cursor):
        self._cursor = cursor
        self._last_id: int | None = None

    @property
    def lastrowid(self) -> int | None:
        """Id captured from a ``RETURNING id`` clause, if the statement had one."""
        return self._last_id

    @property
    def rowcount(self) -> int:
        return self._cursor.rowcount

    @property
    def description(self):
        return self._cursor.description

    def execute(self, sql: str, params: Sequence[Any] = ()) -> "PgCursorWrapper":
        translated = _translate_sql(sql)
        self._last_id = None
        self._cursor.execute(translated, tuple(params))
        if "RETURNING ID" in translated.upper() and self._cursor.description:
            row = self._cursor.fetchone()
            if row:
                self._last_id = row[0]
        return self

    def executemany(self, sql: str, seq_of_params: Iterable[Sequence[Any]]) -> "PgCursorWrapper":
        self._last_id = None
        self._cursor.executemany(_translate_sql(sql), [tuple(p) for p in seq_of_params])
        return self

    def _columns(self) -> list[str]:
        return [desc[0] for desc in self._cursor.description or ()]

    def fetchone(self) -> PgRow | None:
        row = self._cursor.fetchone()
        if row is None:
            return None
        return PgRow(self._columns(), row)

    def fetchall(self) -> list[PgRow]:
        if not self._cursor.description:
            return []
        columns = self._columns()
        return [PgRow(columns, row) for row in self._cursor.fetchall()]

    def close(self):
        self._cursor.close()


class PgConnectionWrapper:
    """Wraps a psycopg2 connection to match sqlite3.Connection interface."""

    def __init__(self, conn):
        self._conn = conn
        self._conn.autocommit = False
        self.row_factory = None  # Compatibility with sqlite3

    @property
    def in_transaction(self) -> bool:
        # psycopg2 status 0 is STATUS_READY (no open transaction)
        return self._conn.status != 0

    def execute(self, sql: str, params: Sequence[Any] = ()) -> PgCursorWrapper:
        cursor = PgCursorWrapper(self._conn.cursor())
        cursor.execute(sql, params)
        return cursor

    def executemany(self, sql: str, seq_of_params: Iterable[Sequence[Any]]) -> PgCursorWrapper:
        cursor = PgCursorWrapper(self._conn.cursor())
        cursor.executemany(sql, seq_of_params)
        return cursor

    def executescript(self, sql: str) -> None:
        """Execute multiple DDL statements, skipping ones already applied."""
        statements = [s.strip() for s in _translate_schema(sql).split(";") if s.strip()]
        for stmt in statements:
            cursor = self._conn.cursor()
            try:
                cursor.execute(stmt)
                self._conn.commit()
            except Exception as e:
                self._conn.rollback()
                if any(phrase in str(e).lower() for phrase in _BENIGN_DDL_ERRORS):
                    logger.debug("Skipping schema statement: %s", e)
                else:
                    raise
            finally:
                cursor.close()

    def commit(self):
        self._conn.commit()

    def rollback(self):
        self._conn.rollback()

    def close(self):
        self._conn.close()

    def cursor(self):
        return PgCursorWrapper(self._conn.cursor())


def connect_pg(database_url: str) -> PgConnectionWrapper:
    """Create a PostgreSQL connection with sqlite3-compatible interface."""
    try:
        import psycopg2
    except ImportError:
        raise ImportError(
            "psycopg2 is required for PostgreSQL support. "
            "Install it with: pip install psycopg2-binary"
        )

    conn = psycopg2.connect(database_url)
    return PgConnectionWrapper(conn)


def is_postgres_url(url: str) -> bool:
    """Check if a database URL is a PostgreSQL URL."""
    return url.startswith("postgresql://") or url.startswith("postgres://")
