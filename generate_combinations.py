"""Regenerate every stream's valid subject combinations.

Run: python generate_combinations.py

Clears valid_combinations and rebuilds it from the active stream rules in
one transaction, then prints a per-stream summary. Exits non-zero when the
catalogue check or the database write fails.
"""

from __future__ import annotations

import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent))


def main(app=None) -> int:
    if app is None:
        from app import create_app
        app = create_app()

    from combination_summary import format_summary
    from combinations import ArtsLimits
    from generation import run_generation

    with app.app_context():
        from database import get_db, init_db, run_migrations
        init_db()
        run_migrations()
        result = run_generation(
            get_db(),
            actor=app.config.get("GENERATION_ACTOR", "system"),
            arts_limits=ArtsLimits.from_config(app.config),
            strict=app.config.get("STRICT_CATALOGUE", True),
            common_stream_id=app.config.get("COMMON_STREAM_ID", 7),
        )

    if not result.ok:
        print(f"Generation failed: {result.error}", file=sys.stderr)
        return 1

    for skipped in result.skipped:
        print(f"Skipped {skipped.name} (id {skipped.stream_id}): {skipped.reason}")
    if result.rejected:
        print(f"Rejected {result.rejected} malformed combinations (see log)")
    if result.summary:
        print(format_summary(result.summary))
    print("\nSuccessfully generated all valid subject combinations.")
    print("Next: python link_courses.py to attach courses to the new combinations.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
