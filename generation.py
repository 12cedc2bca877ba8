"""
Generation run — rebuild the valid_combinations table from stream rules.

Steps:
  1. Load the A/L subject catalogue and resolve every SubjectKey.
  2. Load active streams (Common excluded) in id order.
  3. Parse each stream's rule and run its generator, one stream at a time.
     A stream with a missing or unrecognized rule is skipped with a warning.
  4. Replace the whole table in one transaction.
  5. Summarize what was stored.

run_generation() reports failure through GenerationResult instead of
raising, so the script and the HTTP endpoint share one outcome type.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field

from combination_store import make_audit_info, replace_all_combinations
from combination_summary import GenerationSummary, build_summary
from combinations import ArtsLimits, Combination, GenerationContext, generate_for_stream
from errors import CatalogueError, StreamRuleError
from stream_rules import COMMON, parse_stream_rule
from subject_catalogue import SubjectCatalogue

logger = logging.getLogger(__name__)

COMMON_STREAM_NAME = "Common"


@dataclass
class SkippedStream:
    stream_id: int
    name: str
    reason: str


@dataclass
class GenerationResult:
    ok: bool
    generated: dict[int, int] = field(default_factory=dict)
    skipped: list[SkippedStream] = field(default_factory=list)
    rejected: int = 0
    deleted: int = 0
    inserted: int = 0
    summary: GenerationSummary | None = None
    error: str = ""

    def to_dict(self) -> dict:
        return {
            "ok": self.ok,
            "generated": {str(k): v for k, v in self.generated.items()},
            "skipped": [
                {"streamId": s.stream_id, "name": s.name, "reason": s.reason}
                for s in self.skipped
            ],
            "rejected": self.rejected,
            "deleted": self.deleted,
            "inserted": self.inserted,
            "summary": self.summary.to_dict() if self.summary else None,
            "error": self.error,
        }


def _is_common(row, common_stream_id: int) -> bool:
    if row["id"] == common_stream_id or row["name"] == COMMON_STREAM_NAME:
        return True
    try:
        raw = json.loads(row["stream_rule"] or "{}")
    except ValueError:
        return False
    return isinstance(raw, dict) and raw.get("type") == COMMON


def load_generation_streams(db, common_stream_id: int = 7) -> list:
    rows = db.execute(
        "SELECT id, name, stream_rule FROM streams WHERE is_active = 1 ORDER BY id"
    ).fetchall()
    return [r for r in rows if not _is_common(r, common_stream_id)]


def generate_all(
    streams, ctx: GenerationContext, result: GenerationResult
) -> list[Combination]:
    """Generate candidates for each stream in turn, recording skips and rejections."""
    candidates: list[Combination] = []
    for row in streams:
        stream_id, name = row["id"], row["name"]
        logger.info("Processing %s (id %s)", name, stream_id, extra={"stream_id": stream_id})
        try:
            rule = parse_stream_rule(row["stream_rule"])
            generation = generate_for_stream(stream_id, rule, ctx)
        except StreamRuleError as e:
            logger.warning(
                "Invalid or missing stream rule for %s, skipping: %s", name, e,
                extra={"stream_id": stream_id},
            )
            result.skipped.append(SkippedStream(stream_id, name, str(e)))
            continue

        result.rejected += len(generation.rejected)
        result.generated[stream_id] = len(generation.combinations)
        candidates.extend(generation.combinations)
        if generation.combinations:
            logger.info("Generated %d combinations for %s", len(generation.combinations), name)
        else:
            logger.warning("No valid combinations found for %s", name)
    return candidates


def run_generation(
    db,
    *,
    actor: str = "system",
    arts_limits: ArtsLimits | None = None,
    strict: bool = True,
    common_stream_id: int = 7,
) -> GenerationResult:
    """Regenerate every stream's valid combinations and return the outcome."""
    result = GenerationResult(ok=False)
    logger.info("Starting valid combination generation")

    try:
        catalogue = SubjectCatalogue.load(db)
        ctx = GenerationContext(
            subject_ids=catalogue.resolve(strict=strict),
            known_ids=catalogue.ids,
            arts_limits=arts_limits or ArtsLimits(),
        )
    except CatalogueError as e:
        logger.error("Subject catalogue check failed: %s", e)
        result.error = str(e)
        return result

    try:
        streams = load_generation_streams(db, common_stream_id)
        logger.info("Found %d streams to process", len(streams))
        candidates = generate_all(streams, ctx, result)

        stored = replace_all_combinations(db, candidates, make_audit_info(actor))
        result.deleted = stored.deleted
        result.inserted = stored.inserted
        result.summary = build_summary(
            db, common_stream_id, stream_ids={row["id"] for row in streams}
        )
    except Exception as e:
        logger.error("Combination generation failed: %s", e, exc_info=True)
        result.error = f"{type(e).__name__}: {e}"
        return result

    result.ok = True
    logger.info(
        "Generation complete: %d stored, %d skipped streams, %d rejected candidates",
        result.inserted, len(result.skipped), result.rejected,
    )
    return result
