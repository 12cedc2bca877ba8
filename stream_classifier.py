"""Stream classification — which stream does a three-subject A/L choice belong to?

Streams are tried from the most specific rule to the most permissive
(Arts last); a triple that matches none of them falls back to Common.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field

from database import is_row_id
from errors import StreamRuleError
from stream_rules import (
    ARTS,
    BIOLOGICAL_SCIENCE,
    BIOSYSTEMS_TECHNOLOGY,
    COMMERCE,
    COMMON,
    ENGINEERING_TECHNOLOGY,
    PHYSICAL_SCIENCE,
    ArtsRule,
    BiologicalScienceRule,
    CommerceRule,
    PhysicalScienceRule,
    StreamRule,
    TechnologyRule,
    parse_stream_rule,
)

logger = logging.getLogger(__name__)

CLASSIFICATION_ORDER = (
    PHYSICAL_SCIENCE,
    BIOLOGICAL_SCIENCE,
    ENGINEERING_TECHNOLOGY,
    BIOSYSTEMS_TECHNOLOGY,
    COMMERCE,
    ARTS,
)


@dataclass
class ClassificationResult:
    stream_id: int | None = None
    stream_name: str | None = None
    is_valid: bool = False
    matched_rule: str | None = None
    errors: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "isValid": self.is_valid,
            "streamId": self.stream_id,
            "streamName": self.stream_name,
            "matchedRule": self.matched_rule,
            "errors": self.errors,
        }


def _count(subject_ids: Sequence[int], pool: Sequence[int]) -> int:
    return sum(1 for s in subject_ids if s in pool)


# ── Per-rule matchers ───────────────────────────────────────
# Each returns the matched rule name, or None.


def match_physical_science(ids: Sequence[int], rule: PhysicalScienceRule) -> str | None:
    if _count(ids, rule.allowed_subjects) == 3:
        return "three_physical_sciences"
    return None


def match_biological_science(ids: Sequence[int], rule: BiologicalScienceRule) -> str | None:
    has_required = all(r in ids for r in rule.required)
    option_count = _count(ids, rule.options)
    total = sum(1 for s in ids if s in rule.required or s in rule.options)
    if has_required and option_count >= 2 and total == 3:
        return "biology_plus_two_sciences"
    return None


def match_commerce(ids: Sequence[int], rule: CommerceRule) -> str | None:
    core = _count(ids, rule.core)
    supporting = _count(ids, rule.supporting)
    if core == 3:
        return "all_from_core_commerce"
    if core >= 2 and supporting >= 1 and core + supporting == 3:
        return "two_core_one_supporting"
    return None


def match_technology(ids: Sequence[int], rule: TechnologyRule) -> str | None:
    has_required = all(r in ids for r in rule.required)
    has_option = any(s in rule.options for s in ids)
    total = sum(1 for s in ids if s in rule.required or s in rule.options)
    if has_required and has_option and total == 3:
        if rule.kind == ENGINEERING_TECHNOLOGY:
            return "engineering_tech_combination"
        return "biosystems_tech_combination"
    return None


def match_arts(ids: Sequence[int], rule: ArtsRule) -> str | None:
    social = _count(ids, rule.social_sciences)
    religion = _count(ids, rule.religions)
    aesthetic = _count(ids, rule.aesthetic)
    national = _count(ids, rule.national_languages)
    classical = _count(ids, rule.classical_languages)
    foreign = _count(ids, rule.foreign_languages)
    languages = national + classical + foreign

    # Language exceptions
    if national == 3:
        return "three_national_languages"
    if national >= 1 and classical >= 1 and national + classical == 3:
        return "national_plus_classical_languages"
    if languages == 2 and religion + aesthetic == 1:
        return "two_languages_one_religion_aesthetic"

    # Basket rules
    rules = {
        (3, 0, 0): "three_social_sciences",
        (2, 1, 0): "two_social_one_religion",
        (2, 0, 1): "two_social_one_aesthetic",
        (1, 1, 1): "one_social_one_religion_one_aesthetic",
        (1, 2, 0): "one_social_two_religion",
        (1, 0, 2): "one_social_two_aesthetic",
    }
    return rules.get((social, religion, aesthetic))


def match_rule(ids: Sequence[int], rule: StreamRule) -> str | None:
    if isinstance(rule, PhysicalScienceRule):
        return match_physical_science(ids, rule)
    if isinstance(rule, BiologicalScienceRule):
        return match_biological_science(ids, rule)
    if isinstance(rule, CommerceRule):
        return match_commerce(ids, rule)
    if isinstance(rule, TechnologyRule):
        return match_technology(ids, rule)
    if isinstance(rule, ArtsRule):
        return match_arts(ids, rule)
    return None


# ── Database-backed lookups ─────────────────────────────────


def load_active_streams(db) -> list[tuple[int, str, StreamRule]]:
    """Active streams with parsed rules; unparseable rules are logged and left out."""
    streams = []
    rows = db.execute(
        "SELECT id, name, stream_rule FROM streams WHERE is_active = 1 ORDER BY id"
    ).fetchall()
    for r in rows:
        try:
            streams.append((r["id"], r["name"], parse_stream_rule(r["stream_rule"])))
        except StreamRuleError as e:
            logger.warning("Ignoring stream %s with invalid rule: %s", r["name"], e)
    return streams


def classify_subjects(db, subject_ids: Sequence[int]) -> ClassificationResult:
    """Classify a three-subject A/L combination into its stream."""
    if len(subject_ids) != 3:
        return ClassificationResult(errors=["Exactly 3 subjects must be provided"])
    if not all(is_row_id(s) for s in subject_ids):
        return ClassificationResult(errors=["Subject ids must be positive integers"])
    if len(set(subject_ids)) != 3:
        return ClassificationResult(errors=["All 3 subjects must be different"])

    placeholders = ",".join("?" * len(subject_ids))
    rows = db.execute(
        f"SELECT id, name, level FROM subjects WHERE id IN ({placeholders}) AND is_active = 1",
        tuple(subject_ids),
    ).fetchall()
    found = {r["id"] for r in rows}
    if len(found) != 3:
        missing = [str(s) for s in subject_ids if s not in found]
        return ClassificationResult(
            errors=[f"Subject(s) with ID(s) {', '.join(missing)} not found or inactive"]
        )

    non_al = [r["name"] for r in rows if r["level"] != "AL"]
    if non_al:
        return ClassificationResult(errors=[f"Found non-A/L: {', '.join(non_al)}"])

    streams = load_active_streams(db)
    for stream_type in CLASSIFICATION_ORDER:
        for stream_id, name, rule in streams:
            if rule.type != stream_type:
                continue
            matched = match_rule(subject_ids, rule)
            if matched:
                return ClassificationResult(stream_id, name, True, matched)
            # only the first stream of each type is consulted
            break

    common = next(
        ((sid, name) for sid, name, rule in streams if rule.type == COMMON or name == "Common"),
        (None, "Common"),
    )
    return ClassificationResult(common[0], "Common", True, "fallback")


def get_stream(db, stream_id: int):
    if not is_row_id(stream_id):
        return None
    return db.execute(
        "SELECT id, name, stream_rule, is_active FROM streams WHERE id = ?",
        (stream_id,),
    ).fetchone()


def subjects_for_stream(db, stream_id: int) -> list[dict] | None:
    """Subjects a stream's rule draws from; every A/L subject for Common.

    Returns None when the stream is unknown or inactive.
    """
    row = get_stream(db, stream_id)
    if row is None or not row["is_active"]:
        return None

    try:
        rule = parse_stream_rule(row["stream_rule"])
    except StreamRuleError as e:
        logger.warning("Stream %s has an invalid rule: %s", row["name"], e)
        return []

    base = "SELECT id, code, name, level FROM subjects WHERE level = 'AL' AND is_active = 1"
    if rule.type == COMMON or row["name"] == "Common":
        rows = db.execute(base + " ORDER BY name").fetchall()
    else:
        ids = rule.subject_ids()
        if not ids:
            return []
        placeholders = ",".join("?" * len(ids))
        rows = db.execute(
            base + f" AND id IN ({placeholders}) ORDER BY name", tuple(ids)
        ).fetchall()
    return [{"id": r["id"], "code": r["code"], "name": r["name"], "level": r["level"]} for r in rows]
