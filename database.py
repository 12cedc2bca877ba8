"""
SQLite database layer for PathFinder.

Uses raw sqlite3 with WAL mode and parameterized queries, or PostgreSQL
through pg_compat when DATABASE starts with postgresql://.
A schema_version table handles migrations.
"""

from __future__ import annotations

import fcntl
import sqlite3
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path

from flask import current_app, g

DEFAULT_DATABASE = str(Path(__file__).parent / "pathfinder.db")

# Largest value a SQLite INTEGER or PostgreSQL BIGINT can hold
MAX_ROW_ID = 2**63 - 1


def is_row_id(value) -> bool:
    """True for a real positive integer that fits an id column."""
    # bool is an int subclass; reject it explicitly
    return isinstance(value, int) and not isinstance(value, bool) and 0 < value <= MAX_ROW_ID


SCHEMA = """
-- Migration tracking
CREATE TABLE IF NOT EXISTS schema_version (
    version INTEGER NOT NULL,
    applied_at TEXT NOT NULL
);

-- Subject catalogue (A/L and O/L subjects)
CREATE TABLE IF NOT EXISTS subjects (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    code TEXT NOT NULL,
    name TEXT NOT NULL,
    level TEXT NOT NULL DEFAULT 'AL',
    is_active INTEGER NOT NULL DEFAULT 1,
    audit_info TEXT NOT NULL DEFAULT '{}',
    UNIQUE(level, code)
);

-- Academic streams; stream_rule is a JSON document with a "type" tag
CREATE TABLE IF NOT EXISTS streams (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    name TEXT UNIQUE NOT NULL,
    stream_rule TEXT NOT NULL DEFAULT '{}',
    is_active INTEGER NOT NULL DEFAULT 1,
    audit_info TEXT NOT NULL DEFAULT '{}'
);

-- Generated subject triples, fully replaced on every generation run
CREATE TABLE IF NOT EXISTS valid_combinations (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    subject1 INTEGER NOT NULL REFERENCES subjects(id),
    subject2 INTEGER NOT NULL REFERENCES subjects(id),
    subject3 INTEGER NOT NULL REFERENCES subjects(id),
    stream_id INTEGER NOT NULL REFERENCES streams(id) ON DELETE CASCADE,
    course_ids TEXT NOT NULL DEFAULT '[]',
    audit_info TEXT NOT NULL DEFAULT '{}',
    CHECK (subject1 < subject2 AND subject2 < subject3),
    UNIQUE(stream_id, subject1, subject2, subject3)
);
"""


MIGRATIONS: list[tuple[int, str]] = [
    # Migration 1: Lookup index for per-stream combination queries
    (1, """
        CREATE INDEX IF NOT EXISTS idx_valid_combinations_stream ON valid_combinations(stream_id);
        CREATE INDEX IF NOT EXISTS idx_valid_combinations_triple
            ON valid_combinations(subject1, subject2, subject3);
    """),

    # Migration 2: Courses and the streams they accept
    (2, """
        CREATE TABLE IF NOT EXISTS courses (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            name TEXT NOT NULL,
            university TEXT NOT NULL DEFAULT '',
            required_stream_ids TEXT NOT NULL DEFAULT '[]',
            is_active INTEGER NOT NULL DEFAULT 1,
            audit_info TEXT NOT NULL DEFAULT '{}'
        );
    """),
]


def _database_url() -> str:
    return current_app.config.get("DATABASE", DEFAULT_DATABASE)


def _is_postgres() -> bool:
    """Check if the configured database is PostgreSQL."""
    from pg_compat import is_postgres_url
    return is_postgres_url(_database_url())


def connect(db_url: str):
    """Open a new connection for ``db_url`` (SQLite path or PostgreSQL URL)."""
    from pg_compat import is_postgres_url, connect_pg
    if is_postgres_url(db_url):
        return connect_pg(db_url)

    conn = sqlite3.connect(db_url)
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA journal_mode=WAL")
    conn.execute("PRAGMA foreign_keys=ON")
    return conn


def get_db():
    """Return a DB connection from Flask g, creating if needed.

    Supports both SQLite (default) and PostgreSQL (when DATABASE starts
    with postgresql:// or postgres://).
    """
    if "db" not in g:
        g.db = connect(_database_url())
    return g.db


def close_db(e=None) -> None:
    """Teardown handler — close DB connection."""
    db = g.pop("db", None)
    if db is not None:
        db.close()


@contextmanager
def transaction(db):
    """Commit everything executed inside the block, or roll all of it back."""
    try:
        yield db
    except BaseException:
        db.rollback()
        raise
    else:
        db.commit()


def init_db() -> None:
    """Execute schema DDL to create all tables."""
    db = get_db()
    db.executescript(SCHEMA)
    db.commit()


def run_migrations() -> None:
    """Apply any unapplied versioned migrations.

    Uses file-based locking to prevent race conditions when multiple
    Gunicorn workers start simultaneously.
    """
    lock_file = None

    # File-based locking only for SQLite (PostgreSQL has its own locking)
    if not _is_postgres():
        lock_path = Path(_database_url()).with_suffix(".migration.lock")
        try:
            lock_file = open(lock_path, "w")
            fcntl.flock(lock_file, fcntl.LOCK_EX)
        except OSError:
            lock_file = None

    try:
        db = get_db()
        applied = {
            row["version"]
            for row in db.execute("SELECT version FROM schema_version").fetchall()
        }
        for version, sql in MIGRATIONS:
            if version in applied:
                continue
            try:
                db.executescript(sql)
            except sqlite3.OperationalError as e:
                err_msg = str(e).lower()
                if "duplicate column" not in err_msg and "already exists" not in err_msg:
                    raise
            db.execute(
                "INSERT INTO schema_version (version, applied_at) VALUES (?, ?)",
                (version, datetime.now().isoformat()),
            )
            db.commit()
    finally:
        if lock_file:
            fcntl.flock(lock_file, fcntl.LOCK_UN)
            lock_file.close()


def init_app(app) -> None:
    """Register teardown and auto-init on first request."""
    app.teardown_appcontext(close_db)

    @app.before_request
    def _ensure_db():
        if not getattr(app, "_db_initialized", False):
            init_db()
            run_migrations()
            app._db_initialized = True
