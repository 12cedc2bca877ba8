"""Seed the A/L subject catalogue and the seven academic streams.

Run: python seed_catalogue.py [--with-courses]

Subjects are inserted only when no A/L subject exists yet. Streams are
inserted with fixed ids 1-7; their rule documents list subject ids, which
are resolved here from subject codes so the rules always match the
catalogue they were seeded against. Re-running is a no-op.
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent))

logger = logging.getLogger(__name__)


# (code, name) in official code order
AL_SUBJECTS: list[tuple[str, str]] = [
    ("01", "Physics"),
    ("02", "Chemistry"),
    ("07", "Mathematics"),
    ("08", "Agricultural Science"),
    ("09", "Biology"),
    ("10", "Combined Mathematics"),
    ("11", "Higher Mathematics"),
    ("12", "Common General Test"),
    ("13", "General English"),
    ("14", "Civil Technology"),
    ("15", "Mechanical Technology"),
    ("16", "Electrical, Electronic and Information Technology"),
    ("17", "Food Technology"),
    ("18", "Agro Technology"),
    ("19", "Bio Resource Technology"),
    ("20", "Information & Communication Technology"),
    ("21", "Economics"),
    ("22", "Geography"),
    ("23", "Political Science"),
    ("24", "Logic and Scientific Method"),
    ("25A", "History of Sri Lanka & India"),
    ("25B", "History of Sri Lanka & Europe"),
    ("25C", "History of Sri Lanka & Modern World"),
    ("28", "Home Economics"),
    ("29", "Communication & Media Studies"),
    ("31", "Business Statistics"),
    ("32", "Business Studies"),
    ("33", "Accounting"),
    ("41", "Buddhism"),
    ("42", "Hinduism"),
    ("43", "Christianity"),
    ("44", "Islam"),
    ("45", "Buddhist Civilization"),
    ("46", "Hindu Civilization"),
    ("47", "Islam Civilization"),
    ("48", "Greek and Roman Civilization"),
    ("49", "Christian Civilization"),
    ("51", "Art"),
    ("52", "Dancing (Indigenous)"),
    ("53", "Dancing (Bharatha)"),
    ("54", "Oriental Music"),
    ("55", "Carnatic Music"),
    ("56", "Western Music"),
    ("57", "Drama and Theatre (Sinhala)"),
    ("58", "Drama and Theatre (Tamil)"),
    ("59", "Drama and Theatre (English)"),
    ("65", "Engineering Technology"),
    ("66", "Bio Systems Technology"),
    ("67", "Science for Technology"),
    ("71", "Sinhala"),
    ("72", "Tamil"),
    ("73", "English"),
    ("74", "Pali"),
    ("75", "Sanskrit"),
    ("78", "Arabic"),
    ("79", "Malay"),
    ("81", "French"),
    ("82", "German"),
    ("83", "Russian"),
    ("84", "Hindi"),
    ("86", "Chinese"),
    ("87", "Japanese"),
    ("88", "Korean"),
]


# ── Stream rules, by subject code ──────────────────────────

ARTS_SOCIAL_SCIENCES = [
    "21", "22", "25A", "25B", "25C", "28", "08", "29", "20", "33",
    "31", "23", "24", "14", "16", "18", "15", "17", "19",
]
ARTS_RELIGIONS = ["41", "45", "42", "46", "43", "49", "44", "47", "48"]
ARTS_AESTHETIC = ["51", "52", "53", "54", "55", "56", "57", "58", "59"]
NATIONAL_LANGUAGES = ["71", "72", "73"]
CLASSICAL_LANGUAGES = ["78", "74", "75"]
FOREIGN_LANGUAGES = ["86", "81", "82", "84", "87", "79", "83", "88"]

COMMERCE_CORE = ["32", "21", "33"]
COMMERCE_SUPPORTING = [
    "08", "22", "31", "82", "10", "07", "25A", "25B", "25C", "23", "73", "24", "81", "20",
]

TECHNOLOGY_OPTIONS = ["21", "22", "28", "73", "29", "20", "51", "32", "08", "33", "07"]


def stream_definitions() -> list[dict]:
    """Stream rows with rule documents still expressed in subject codes."""
    return [
        {
            "id": 1,
            "name": "Arts Stream",
            "rule": {
                "type": "arts",
                "baskets": {
                    "basket01": {"name": "Social Sciences / Applied Social Studies",
                                 "subjects": ARTS_SOCIAL_SCIENCES, "minRequired": 1, "maxAllowed": 3},
                    "basket02": {"name": "Religions and Civilizations",
                                 "subjects": ARTS_RELIGIONS, "maxAllowed": 2},
                    "basket03": {"name": "Aesthetic Studies",
                                 "subjects": ARTS_AESTHETIC, "maxAllowed": 2},
                    "basket04": {"name": "Languages", "national": NATIONAL_LANGUAGES,
                                 "classical": CLASSICAL_LANGUAGES, "foreign": FOREIGN_LANGUAGES,
                                 "maxAllowed": 2},
                },
            },
        },
        {
            "id": 2,
            "name": "Commerce Stream",
            "rule": {
                "type": "commerce",
                "basket01": {"name": "Core Commerce", "subjects": COMMERCE_CORE, "minRequired": 2},
                "basket02": {"name": "Supporting Subjects", "subjects": COMMERCE_SUPPORTING},
            },
        },
        {
            "id": 3,
            "name": "Biological Science Stream",
            "rule": {"type": "biological_science", "required": ["09"], "options": ["01", "02", "07", "08"]},
        },
        {
            "id": 4,
            "name": "Physical Science Stream",
            "rule": {"type": "physical_science", "allowedSubjects": ["11", "10", "01", "02"]},
        },
        {
            "id": 5,
            "name": "Engineering Technology Stream",
            "rule": {"type": "engineering_technology", "required": ["65", "67"],
                     "options": TECHNOLOGY_OPTIONS},
        },
        {
            "id": 6,
            "name": "Bio Systems Technology Stream",
            "rule": {"type": "biosystems_technology", "required": ["66", "67"],
                     "options": TECHNOLOGY_OPTIONS},
        },
        {
            "id": 7,
            "name": "Common",
            "rule": {"type": "common",
                     "description": "Any three-subject combination that does not fulfill "
                                    "criteria for other streams"},
        },
    ]


# Keys whose values are lists of subject codes
_CODE_LIST_KEYS = {"subjects", "required", "options", "allowedSubjects",
                   "national", "classical", "foreign"}


def resolve_rule_codes(rule: dict, code_to_id: dict[str, int]) -> dict:
    """Return a copy of ``rule`` with every subject-code list mapped to ids."""
    resolved = {}
    for key, value in rule.items():
        if isinstance(value, dict):
            resolved[key] = resolve_rule_codes(value, code_to_id)
        elif key in _CODE_LIST_KEYS and isinstance(value, list):
            missing = [c for c in value if c not in code_to_id]
            if missing:
                raise KeyError(f"rule references unknown subject code(s): {missing}")
            resolved[key] = [code_to_id[c] for c in value]
        else:
            resolved[key] = value
    return resolved


def _audit(source: str) -> str:
    return json.dumps({
        "createdAt": datetime.now().isoformat(),
        "createdBy": "system",
        "source": source,
    })


def seed_subjects(db) -> int:
    """Insert the A/L subjects if the catalogue has none. Returns count inserted."""
    existing = db.execute(
        "SELECT COUNT(*) AS c FROM subjects WHERE level = 'AL'"
    ).fetchone()["c"]
    if existing:
        logger.info("Found %d existing A/L subjects, skipping insertion", existing)
        return 0

    audit = _audit("AL_curriculum_script")
    db.executemany(
        "INSERT OR IGNORE INTO subjects (code, name, level, is_active, audit_info) "
        "VALUES (?, ?, 'AL', 1, ?)",
        [(code, name, audit) for code, name in AL_SUBJECTS],
    )
    db.commit()
    logger.info("Inserted %d A/L subjects", len(AL_SUBJECTS))
    return len(AL_SUBJECTS)


def seed_streams(db) -> int:
    """Insert the seven streams with fixed ids. Returns count inserted."""
    code_to_id = {
        r["code"]: r["id"]
        for r in db.execute("SELECT id, code FROM subjects WHERE level = 'AL'").fetchall()
    }
    audit = _audit("stream_classification_script")
    inserted = 0
    for stream in stream_definitions():
        rule = resolve_rule_codes(stream["rule"], code_to_id)
        cur = db.execute(
            "INSERT OR IGNORE INTO streams (id, name, stream_rule, is_active, audit_info) "
            "VALUES (?, ?, ?, 1, ?)",
            (stream["id"], stream["name"], json.dumps(rule), audit),
        )
        inserted += max(cur.rowcount, 0)

    from pg_compat import PgConnectionWrapper
    if isinstance(db, PgConnectionWrapper):
        # Explicit ids leave the SERIAL sequence behind
        db.execute(
            "SELECT setval(pg_get_serial_sequence('streams', 'id'), "
            "(SELECT MAX(id) FROM streams))"
        )
    db.commit()
    logger.info("Inserted %d streams", inserted)
    return inserted


SAMPLE_COURSES: list[tuple[str, str, list[int]]] = [
    ("Engineering", "University of Moratuwa", [4]),
    ("Medicine", "University of Colombo", [3]),
    ("Management", "University of Sri Jayewardenepura", [1, 2, 3, 4]),
    ("Engineering Technology", "University of Ruhuna", [5]),
    ("Biosystems Technology", "University of Sri Jayewardenepura", [6]),
    ("Arts", "University of Peradeniya", [1]),
]


def seed_courses(db) -> int:
    """Insert a handful of demo courses when the courses table is empty."""
    if db.execute("SELECT COUNT(*) AS c FROM courses").fetchone()["c"]:
        return 0
    audit = _audit("sample_data_script")
    db.executemany(
        "INSERT INTO courses (name, university, required_stream_ids, is_active, audit_info) "
        "VALUES (?, ?, ?, 1, ?)",
        [(name, uni, json.dumps(streams), audit) for name, uni, streams in SAMPLE_COURSES],
    )
    db.commit()
    return len(SAMPLE_COURSES)


def seed(app=None, with_courses: bool = False) -> dict:
    """Seed subjects and streams (and optionally demo courses). Returns counts."""
    if app is None:
        from app import create_app
        app = create_app()

    with app.app_context():
        from database import get_db, init_db, run_migrations
        init_db()
        run_migrations()
        db = get_db()
        counts = {"subjects": seed_subjects(db), "streams": seed_streams(db)}
        if with_courses:
            counts["courses"] = seed_courses(db)
    return counts


if __name__ == "__main__":
    from logging_config import init_script_logging
    init_script_logging()

    print("=" * 50)
    print("  Seeding A/L Subject Catalogue and Streams")
    print("=" * 50)
    result = seed(with_courses="--with-courses" in sys.argv)
    for table, n in result.items():
        print(f"  {n} {table} inserted.")
    print("  Done.")
