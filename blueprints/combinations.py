"""Combination routes — match a student's subjects to stored combinations and courses."""

from __future__ import annotations

import logging

from flask import Blueprint, jsonify, request

from course_linker import match_courses
from database import get_db

logger = logging.getLogger(__name__)

bp = Blueprint("combinations", __name__)


@bp.route("/api/combinations/match")
def match():
    raw = request.args.get("subjects", "")
    try:
        ids = [int(part) for part in raw.split(",") if part.strip()]
    except ValueError:
        return jsonify({"success": False, "error": "subjects must be comma-separated ids"}), 400

    try:
        data = match_courses(get_db(), ids)
    except ValueError as e:
        return jsonify({"success": False, "error": str(e)}), 400
    except Exception as e:
        logger.error("Combination match failed for %s: %s", ids, e, exc_info=True)
        return jsonify({"success": False, "error": "Failed to match combination"}), 500

    return jsonify({"success": True, "data": data})
