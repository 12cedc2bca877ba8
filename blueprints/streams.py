"""Stream routes — catalogue lookup and subject-choice classification."""

from __future__ import annotations

import json
import logging

from flask import Blueprint, jsonify, request

from combination_store import combinations_for_stream
from database import get_db, is_row_id
from extensions import limiter
from stream_classifier import classify_subjects, get_stream, subjects_for_stream

logger = logging.getLogger(__name__)

bp = Blueprint("streams", __name__)

MAX_BATCH = 100


def _ok(data, status=200):
    return jsonify({"success": True, "data": data}), status


def _fail(error, status):
    return jsonify({"success": False, "error": error}), status


def _subject_ids(value):
    """The list itself when it holds only valid subject ids, else None."""
    if not isinstance(value, list) or not all(is_row_id(v) for v in value):
        return None
    return value


def _stream_dict(row) -> dict:
    try:
        rule = json.loads(row["stream_rule"]) if row["stream_rule"] else None
    except (TypeError, ValueError):
        rule = None
    return {
        "id": row["id"],
        "name": row["name"],
        "streamRule": rule,
        "isActive": bool(row["is_active"]),
    }


@bp.route("/api/streams")
def list_streams():
    try:
        rows = get_db().execute(
            "SELECT id, name, stream_rule, is_active FROM streams "
            "WHERE is_active = 1 ORDER BY id"
        ).fetchall()
        return _ok([_stream_dict(r) for r in rows])
    except Exception as e:
        logger.error("Listing streams failed: %s", e, exc_info=True)
        return _fail("Failed to load streams", 500)


@bp.route("/api/streams/<int:stream_id>")
def stream_detail(stream_id):
    row = get_stream(get_db(), stream_id)
    if row is None:
        return _fail("Stream not found", 404)
    return _ok(_stream_dict(row))


@bp.route("/api/streams/<int:stream_id>/subjects")
def stream_subjects(stream_id):
    try:
        subjects = subjects_for_stream(get_db(), stream_id)
    except Exception as e:
        logger.error("Loading subjects for stream %s failed: %s", stream_id, e, exc_info=True)
        return _fail("Failed to load stream subjects", 500)
    if subjects is None:
        return _fail("Stream not found or inactive", 404)
    return _ok(subjects)


@bp.route("/api/streams/<int:stream_id>/combinations")
def stream_combinations(stream_id):
    db = get_db()
    if get_stream(db, stream_id) is None:
        return _fail("Stream not found", 404)
    combos = combinations_for_stream(db, stream_id)
    return _ok({"streamId": stream_id, "count": len(combos), "combinations": combos})


@bp.route("/api/streams/classify", methods=["POST"])
@limiter.limit("60 per minute")
def classify():
    data = request.get_json(silent=True) or {}
    ids = _subject_ids(data.get("subjectIds"))
    if ids is None:
        return _fail("subjectIds must be a list of subject ids", 400)

    try:
        result = classify_subjects(get_db(), ids)
    except Exception as e:
        logger.error("Classification failed for %s: %s", ids, e, exc_info=True)
        return _fail("Classification failed", 500)

    if not result.is_valid:
        return jsonify({"success": False, "error": "; ".join(result.errors),
                        "data": result.to_dict()}), 400
    return _ok(result.to_dict())


@bp.route("/api/streams/classify/batch", methods=["POST"])
@limiter.limit("10 per minute")
def classify_batch():
    data = request.get_json(silent=True) or {}
    combos = data.get("combinations")
    if not isinstance(combos, list) or not combos:
        return _fail("combinations must be a non-empty list", 400)
    if len(combos) > MAX_BATCH:
        return _fail(f"At most {MAX_BATCH} combinations per request", 400)

    db = get_db()
    results = []
    for combo in combos:
        ids = _subject_ids(combo)
        if ids is None:
            results.append({"subjectIds": combo, "isValid": False,
                            "errors": ["Each combination must be a list of subject ids"]})
            continue
        results.append({"subjectIds": ids, **classify_subjects(db, ids).to_dict()})

    valid = sum(1 for r in results if r["isValid"])
    return _ok({"total": len(results), "valid": valid, "results": results})


@bp.route("/api/streams/validate/<int:a>/<int:b>/<int:c>")
def validate(a, b, c):
    if not all(is_row_id(v) for v in (a, b, c)):
        return _fail("Subject ids must be positive integers", 400)
    result = classify_subjects(get_db(), [a, b, c])
    return _ok(result.to_dict())
