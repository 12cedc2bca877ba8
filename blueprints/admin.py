"""Operator routes — token-protected triggers for batch jobs."""

from __future__ import annotations

import hmac
import logging

from flask import Blueprint, current_app, jsonify, request

from combinations import ArtsLimits
from database import get_db
from extensions import limiter
from generation import run_generation

logger = logging.getLogger(__name__)

bp = Blueprint("admin", __name__)


def _verify_admin_token():
    """Verify the request carries a valid ADMIN_TOKEN bearer header."""
    expected = current_app.config.get("ADMIN_TOKEN", "")
    if not expected:
        return False
    supplied = request.headers.get("Authorization", "")
    return hmac.compare_digest(supplied, f"Bearer {expected}")


@bp.route("/api/admin/combinations/generate", methods=["POST"])
@limiter.limit("5 per hour", methods=["POST"])
def generate_combinations():
    if not _verify_admin_token():
        return jsonify({"success": False, "error": "Unauthorized"}), 401

    cfg = current_app.config
    result = run_generation(
        get_db(),
        actor=cfg.get("GENERATION_ACTOR", "system"),
        arts_limits=ArtsLimits.from_config(cfg),
        strict=cfg.get("STRICT_CATALOGUE", True),
        common_stream_id=cfg.get("COMMON_STREAM_ID", 7),
    )
    if not result.ok:
        logger.error("Combination generation failed: %s", result.error)
        return jsonify({"success": False, "error": result.error,
                        "data": result.to_dict()}), 500
    return jsonify({"success": True, "data": result.to_dict()})
