"""Attach active courses to the valid combinations of the streams they accept.

Run: python link_courses.py   (after generate_combinations.py)
"""

from __future__ import annotations

import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent))


def main(app=None) -> int:
    if app is None:
        from app import create_app
        app = create_app()

    from course_linker import link_courses

    with app.app_context():
        from database import get_db, init_db, run_migrations
        init_db()
        run_migrations()
        result = link_courses(get_db())

    print("UPDATE SUMMARY")
    print("=" * 40)
    print(f"Courses processed:      {result.courses}")
    print(f"Links added:            {result.linked}")
    print(f"Combinations updated:   {result.combinations_updated}")
    print(f"Courses with errors:    {len(result.errors)}")
    return 1 if result.errors else 0


if __name__ == "__main__":
    sys.exit(main())
