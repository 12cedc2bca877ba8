"""Tests for database.py — schema, constraints, migrations and transactions."""

import sqlite3

import pytest
from database import get_db, init_db, run_migrations, transaction


class TestSchema:
    """Verify all tables are created correctly."""

    def test_tables_exist(self, app):
        with app.app_context():
            db = get_db()
            tables = [r["name"] for r in db.execute(
                "SELECT name FROM sqlite_master WHERE type='table' ORDER BY name"
            ).fetchall()]
            for t in ["courses", "schema_version", "streams", "subjects", "valid_combinations"]:
                assert t in tables, f"Table {t} not found"

    def test_wal_mode(self, app):
        with app.app_context():
            db = get_db()
            mode = db.execute("PRAGMA journal_mode").fetchone()[0]
            assert mode == "wal"

    def test_foreign_keys_enabled(self, app):
        with app.app_context():
            db = get_db()
            fk = db.execute("PRAGMA foreign_keys").fetchone()[0]
            assert fk == 1

    def test_migrations_recorded(self, db):
        versions = {r["version"] for r in db.execute("SELECT version FROM schema_version").fetchall()}
        assert {1, 2} <= versions

    def test_init_and_migrate_are_rerunnable(self, app):
        with app.app_context():
            init_db()
            run_migrations()
            db = get_db()
            rows = db.execute("SELECT version FROM schema_version").fetchall()
            assert len(rows) == len({r["version"] for r in rows})

    def test_seeded_catalogue(self, db):
        subjects = db.execute("SELECT COUNT(*) AS c FROM subjects WHERE level='AL'").fetchone()["c"]
        streams = db.execute("SELECT COUNT(*) AS c FROM streams").fetchone()["c"]
        assert subjects == 63
        assert streams == 7


class TestCombinationConstraints:
    def test_unsorted_triple_rejected(self, db, code_ids):
        a, b, c = sorted([code_ids["01"], code_ids["02"], code_ids["10"]])
        with pytest.raises(sqlite3.IntegrityError):
            db.execute(
                "INSERT INTO valid_combinations (subject1, subject2, subject3, stream_id) "
                "VALUES (?, ?, ?, 4)", (c, b, a),
            )
        db.rollback()

    def test_duplicate_triple_ignored(self, db, code_ids):
        a, b, c = sorted([code_ids["01"], code_ids["02"], code_ids["10"]])
        sql = ("INSERT OR IGNORE INTO valid_combinations (subject1, subject2, subject3, stream_id) "
               "VALUES (?, ?, ?, 4)")
        db.execute(sql, (a, b, c))
        db.execute(sql, (a, b, c))
        db.commit()
        count = db.execute("SELECT COUNT(*) AS c FROM valid_combinations").fetchone()["c"]
        assert count == 1

    def test_same_triple_allowed_in_two_streams(self, db, code_ids):
        a, b, c = sorted([code_ids["21"], code_ids["22"], code_ids["23"]])
        sql = ("INSERT INTO valid_combinations (subject1, subject2, subject3, stream_id) "
               "VALUES (?, ?, ?, ?)")
        db.execute(sql, (a, b, c, 1))
        db.execute(sql, (a, b, c, 2))
        db.commit()
        count = db.execute("SELECT COUNT(*) AS c FROM valid_combinations").fetchone()["c"]
        assert count == 2


class TestTransaction:
    def test_commits_on_success(self, db):
        with transaction(db):
            db.execute("INSERT INTO courses (name) VALUES ('Law')")
        assert db.execute("SELECT COUNT(*) AS c FROM courses").fetchone()["c"] == 1

    def test_rolls_back_on_error(self, db):
        with pytest.raises(RuntimeError):
            with transaction(db):
                db.execute("INSERT INTO courses (name) VALUES ('Law')")
                raise RuntimeError("boom")
        assert db.execute("SELECT COUNT(*) AS c FROM courses").fetchone()["c"] == 0
