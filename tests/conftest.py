"""
Test fixtures for PathFinder.

Provides app, client, db and catalogue fixtures with file-based SQLite.
Every app starts with the A/L subjects and the seven streams seeded.
"""

from __future__ import annotations

import pytest

import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent))


@pytest.fixture
def app(tmp_path):
    """Create app with file-based SQLite and a seeded catalogue."""
    from app import create_app

    db_file = str(tmp_path / "test.db")
    app = create_app({
        "TESTING": True,
        "DATABASE": db_file,
        "SECRET_KEY": "test-secret-key",
        "ADMIN_TOKEN": "test-admin-token",
    })

    with app.app_context():
        from database import init_db, run_migrations, get_db
        from seed_catalogue import seed_streams, seed_subjects

        init_db()
        run_migrations()
        db = get_db()
        seed_subjects(db)
        seed_streams(db)

        yield app


@pytest.fixture
def client(app):
    """Unauthenticated test client."""
    return app.test_client()


@pytest.fixture
def admin_headers():
    return {"Authorization": "Bearer test-admin-token"}


@pytest.fixture
def db(app):
    """Direct database access for store tests."""
    with app.app_context():
        from database import get_db
        yield get_db()


@pytest.fixture
def code_ids(db):
    """Subject code -> id for the seeded A/L catalogue."""
    return {
        r["code"]: r["id"]
        for r in db.execute("SELECT id, code FROM subjects WHERE level = 'AL'").fetchall()
    }


@pytest.fixture
def catalogue(db):
    from subject_catalogue import SubjectCatalogue
    return SubjectCatalogue.load(db)


@pytest.fixture
def ctx(catalogue):
    """Generation context resolved against the seeded catalogue."""
    from combinations import ArtsLimits, GenerationContext
    return GenerationContext(
        subject_ids=catalogue.resolve(),
        known_ids=catalogue.ids,
        arts_limits=ArtsLimits(),
    )


@pytest.fixture
def seeded_courses(db):
    from seed_catalogue import seed_courses
    seed_courses(db)
    return db
