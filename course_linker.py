"""Course linking — attach course ids to the combinations of the streams they accept.

Run after every generation: regeneration recreates valid_combinations
with empty course_ids.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import datetime

from database import is_row_id, transaction

logger = logging.getLogger(__name__)


@dataclass
class LinkResult:
    courses: int = 0
    linked: int = 0
    combinations_updated: int = 0
    errors: list[str] = field(default_factory=list)


def _required_streams(row) -> list[int]:
    try:
        streams = json.loads(row["required_stream_ids"] or "[]")
    except ValueError as e:
        raise ValueError(f"course {row['id']} has malformed required_stream_ids") from e
    if not isinstance(streams, list):
        raise ValueError(f"course {row['id']} required_stream_ids is not a list")
    for s in streams:
        if not is_row_id(s):
            raise ValueError(f"course {row['id']} has invalid stream id {s!r}")
    return streams


def link_courses(db, actor: str = "system-course-updater") -> LinkResult:
    """Add every active course to the combinations of its required streams.

    Course ids already present are left alone, so re-running is harmless.
    A course with a malformed stream list is reported and skipped.
    """
    result = LinkResult()
    courses = db.execute(
        "SELECT id, name, required_stream_ids FROM courses WHERE is_active = 1 ORDER BY id"
    ).fetchall()
    result.courses = len(courses)

    # combination id -> updated course ids
    pending: dict[int, list[int]] = {}
    last_added: dict[int, int] = {}

    for course in courses:
        try:
            stream_ids = _required_streams(course)
        except ValueError as e:
            logger.error("Skipping course %s: %s", course["name"], e)
            result.errors.append(str(e))
            continue
        if not stream_ids:
            logger.warning("Course %s accepts no streams", course["name"])
            continue

        placeholders = ",".join("?" * len(stream_ids))
        rows = db.execute(
            f"SELECT id, course_ids FROM valid_combinations WHERE stream_id IN ({placeholders})",
            tuple(stream_ids),
        ).fetchall()
        for r in rows:
            current = pending.get(r["id"])
            if current is None:
                current = json.loads(r["course_ids"] or "[]")
            if course["id"] not in current:
                pending[r["id"]] = current + [course["id"]]
                last_added[r["id"]] = course["id"]
                result.linked += 1
        logger.info("Course %s matched %d combinations", course["name"], len(rows))

    now = datetime.now().isoformat()
    with transaction(db):
        for combo_id, course_ids in pending.items():
            audit = db.execute(
                "SELECT audit_info FROM valid_combinations WHERE id = ?", (combo_id,)
            ).fetchone()["audit_info"]
            info = json.loads(audit or "{}")
            info.update({"updatedBy": actor, "updatedAt": now, "lastCourseAdded": last_added[combo_id]})
            db.execute(
                "UPDATE valid_combinations SET course_ids = ?, audit_info = ? WHERE id = ?",
                (json.dumps(course_ids), json.dumps(info), combo_id),
            )
            result.combinations_updated += 1

    logger.info(
        "Linked %d course/combination pairs across %d combinations",
        result.linked, result.combinations_updated,
    )
    return result


def match_courses(db, subject_ids: Sequence[int]) -> dict:
    """Find the stored combinations equal to a student's triple and their courses."""
    if not all(is_row_id(s) for s in subject_ids):
        raise ValueError("Subject ids must be positive integers")
    if len(subject_ids) != 3 or len(set(subject_ids)) != 3:
        raise ValueError("Exactly 3 different subject ids are required")
    a, b, c = sorted(subject_ids)
    rows = db.execute(
        "SELECT vc.id, vc.stream_id, s.name AS stream_name, vc.course_ids "
        "FROM valid_combinations vc JOIN streams s ON s.id = vc.stream_id "
        "WHERE vc.subject1 = ? AND vc.subject2 = ? AND vc.subject3 = ? "
        "ORDER BY vc.stream_id",
        (a, b, c),
    ).fetchall()

    combos = []
    course_ids: list[int] = []
    for r in rows:
        ids = json.loads(r["course_ids"] or "[]")
        combos.append({"id": r["id"], "streamId": r["stream_id"], "streamName": r["stream_name"]})
        course_ids.extend(i for i in ids if i not in course_ids)

    courses = []
    if course_ids:
        placeholders = ",".join("?" * len(course_ids))
        courses = [
            {"id": r["id"], "name": r["name"], "university": r["university"]}
            for r in db.execute(
                f"SELECT id, name, university FROM courses "
                f"WHERE id IN ({placeholders}) AND is_active = 1 ORDER BY id",
                tuple(course_ids),
            ).fetchall()
        ]
    return {"subjects": [a, b, c], "combinations": combos, "courses": courses}
