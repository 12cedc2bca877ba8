"""Tests for course_linker.py — attaching courses to generated combinations."""

from __future__ import annotations

import json

import pytest
from course_linker import _required_streams, link_courses, match_courses
from generation import run_generation


@pytest.fixture
def generated(seeded_courses):
    run_generation(seeded_courses)
    return seeded_courses


def _course_ids(db, stream_id):
    return [
        json.loads(r["course_ids"])
        for r in db.execute(
            "SELECT course_ids FROM valid_combinations WHERE stream_id = ?", (stream_id,)
        ).fetchall()
    ]


class TestLinkCourses:
    def test_links_courses_to_required_streams(self, generated):
        result = link_courses(generated)
        assert result.courses == 6
        assert result.errors == []
        assert result.combinations_updated == 226
        # Engineering (1) and Management (3) accept Physical Science
        assert all(ids == [1, 3] for ids in _course_ids(generated, 4))
        # Engineering Technology (4) accepts stream 5, Biosystems Technology (5) stream 6
        assert all(ids == [4] for ids in _course_ids(generated, 5))
        assert all(ids == [5] for ids in _course_ids(generated, 6))

    def test_rerun_adds_nothing(self, generated):
        link_courses(generated)
        before = _course_ids(generated, 1)
        result = link_courses(generated)
        assert result.linked == 0
        assert result.combinations_updated == 0
        assert _course_ids(generated, 1) == before

    def test_audit_info_updated(self, generated):
        link_courses(generated, actor="linker")
        row = generated.execute(
            "SELECT audit_info FROM valid_combinations WHERE stream_id = 6 LIMIT 1"
        ).fetchone()
        info = json.loads(row["audit_info"])
        assert info["updatedBy"] == "linker"
        assert info["lastCourseAdded"] == 5
        assert info["createdBy"] == "system"

    def test_inactive_course_ignored(self, generated):
        generated.execute("UPDATE courses SET is_active = 0 WHERE id = 2")
        generated.commit()
        link_courses(generated)
        assert all(2 not in ids for ids in _course_ids(generated, 3))

    def test_malformed_course_reported(self, generated):
        generated.execute("UPDATE courses SET required_stream_ids = 'oops' WHERE id = 1")
        generated.commit()
        result = link_courses(generated)
        assert len(result.errors) == 1
        assert all(ids == [3] for ids in _course_ids(generated, 4))

    @pytest.mark.parametrize("raw", ["[null]", "[{}]", "[true]", "[\"4\"]", "{\"a\": 1}"])
    def test_invalid_stream_entries_reported(self, generated, raw):
        generated.execute("UPDATE courses SET required_stream_ids = ? WHERE id = 1", (raw,))
        generated.commit()
        result = link_courses(generated)
        assert len(result.errors) == 1
        assert "course 1" in result.errors[0]
        # the remaining courses are still linked
        assert all(ids == [3] for ids in _course_ids(generated, 4))

    def test_malformed_json_keeps_cause(self):
        with pytest.raises(ValueError) as exc:
            _required_streams({"id": 9, "required_stream_ids": "oops"})
        assert isinstance(exc.value.__cause__, ValueError)

    def test_regeneration_clears_links(self, generated):
        link_courses(generated)
        run_generation(generated)
        assert all(ids == [] for ids in _course_ids(generated, 4))


class TestMatchCourses:
    def test_match(self, generated, code_ids):
        link_courses(generated)
        data = match_courses(generated, [code_ids["10"], code_ids["02"], code_ids["01"]])
        assert data["subjects"] == sorted([code_ids["10"], code_ids["02"], code_ids["01"]])
        assert [c["streamId"] for c in data["combinations"]] == [4]
        assert [c["id"] for c in data["courses"]] == [1, 3]

    def test_unknown_triple(self, generated, code_ids):
        data = match_courses(generated, [code_ids["01"], code_ids["41"], code_ids["81"]])
        assert data["combinations"] == []
        assert data["courses"] == []

    @pytest.mark.parametrize("ids", [[1, 2], [1, 1, 2], [1, 2, 3, 4], [1.5, 2, 3], [1, 2, 2**63]])
    def test_invalid_input(self, db, ids):
        with pytest.raises(ValueError):
            match_courses(db, ids)
