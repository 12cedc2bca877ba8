"""Valid-combination persistence — full replace inside one transaction."""

from __future__ import annotations

import json
import logging
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime

from combinations import Combination
from database import transaction

logger = logging.getLogger(__name__)

INSERT_SQL = (
    "INSERT OR IGNORE INTO valid_combinations "
    "(subject1, subject2, subject3, stream_id, course_ids, audit_info) "
    "VALUES (?, ?, ?, ?, ?, ?)"
)


def make_audit_info(actor: str = "system", now: datetime | None = None) -> dict:
    """Audit stamp shared by every row written in one generation run."""
    ts = (now or datetime.now()).isoformat()
    return {"createdBy": actor, "createdAt": ts, "updatedBy": actor, "updatedAt": ts}


@dataclass
class ReplaceResult:
    deleted: int
    inserted: int


def replace_all_combinations(
    db, candidates: Iterable[Combination], audit_info: dict
) -> ReplaceResult:
    """Delete every stored combination and insert ``candidates`` atomically.

    Exact duplicates (same stream and sorted triple) are skipped by the
    table's unique constraint. Any database error rolls back both the
    delete and the inserts, leaving the previous generation in place.
    """
    audit_json = json.dumps(audit_info)
    rows = [c.as_row() + ("[]", audit_json) for c in candidates]

    with transaction(db):
        deleted = db.execute("DELETE FROM valid_combinations").rowcount
        logger.info("Cleared %d existing combinations", deleted)
        if rows:
            db.executemany(INSERT_SQL, rows)
        inserted = db.execute("SELECT COUNT(*) AS c FROM valid_combinations").fetchone()["c"]

    logger.info("Stored %d combinations (%d candidates)", inserted, len(rows))
    return ReplaceResult(deleted=max(deleted, 0), inserted=inserted)


def combinations_for_stream(db, stream_id: int) -> list[dict]:
    rows = db.execute(
        "SELECT id, subject1, subject2, subject3, stream_id, course_ids "
        "FROM valid_combinations WHERE stream_id = ? "
        "ORDER BY subject1, subject2, subject3",
        (stream_id,),
    ).fetchall()
    return [
        {
            "id": r["id"],
            "subjects": [r["subject1"], r["subject2"], r["subject3"]],
            "streamId": r["stream_id"],
            "courseIds": json.loads(r["course_ids"] or "[]"),
        }
        for r in rows
    ]
