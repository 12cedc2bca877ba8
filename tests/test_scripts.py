"""Tests for the operator scripts."""

from __future__ import annotations

import generate_combinations
import link_courses
import seed_catalogue


class TestGenerateScript:
    def test_success(self, app, capsys):
        assert generate_combinations.main(app) == 0
        out = capsys.readouterr().out
        assert "SUMMARY OF GENERATED COMBINATIONS" in out
        assert "226 combinations" in out

    def test_failure_exit_code(self, app, db, capsys):
        db.execute("UPDATE subjects SET is_active = 0 WHERE code = '65'")
        db.commit()
        assert generate_combinations.main(app) == 1
        assert "Generation failed" in capsys.readouterr().err


class TestLinkScript:
    def test_links_after_generation(self, app, seeded_courses, capsys):
        generate_combinations.main(app)
        assert link_courses.main(app) == 0
        assert "Courses processed:      6" in capsys.readouterr().out


class TestSeedScript:
    def test_seed_rerun(self, app):
        counts = seed_catalogue.seed(app, with_courses=True)
        assert counts == {"subjects": 0, "streams": 0, "courses": 6}
