"""Tests for subject_catalogue.py and seed_catalogue.py."""

from __future__ import annotations

import json

import pytest
from errors import CatalogueError
from seed_catalogue import resolve_rule_codes, seed_streams, seed_subjects
from subject_catalogue import SubjectCatalogue, SubjectKey


class TestSubjectCatalogue:
    def test_load_active_al_subjects(self, catalogue):
        assert len(catalogue) == 63
        assert catalogue.by_code("01").name == "Physics"

    def test_resolve_every_key(self, catalogue, code_ids):
        resolved = catalogue.resolve()
        assert set(resolved) == set(SubjectKey)
        assert resolved[SubjectKey.HISTORY] == code_ids["25A"]
        assert all(v in catalogue for v in resolved.values())

    def test_strict_resolve_names_missing_codes(self, db):
        db.execute("UPDATE subjects SET is_active = 0 WHERE code IN ('01', '73')")
        db.commit()
        with pytest.raises(CatalogueError) as exc:
            SubjectCatalogue.load(db).resolve()
        assert exc.value.missing == ["PHYSICS (01)", "ENGLISH (73)"]

    def test_lenient_resolve_maps_missing_to_none(self, db):
        db.execute("UPDATE subjects SET is_active = 0 WHERE code = '01'")
        db.commit()
        resolved = SubjectCatalogue.load(db).resolve(strict=False)
        assert resolved[SubjectKey.PHYSICS] is None
        assert resolved[SubjectKey.CHEMISTRY] is not None

    def test_name_of_unknown(self, catalogue):
        assert catalogue.name_of(99999).startswith("<unknown")


class TestSeeding:
    def test_seeding_is_idempotent(self, db):
        assert seed_subjects(db) == 0
        assert seed_streams(db) == 0
        assert db.execute("SELECT COUNT(*) AS c FROM streams").fetchone()["c"] == 7

    def test_stream_rules_reference_catalogue_ids(self, db, code_ids):
        rule = json.loads(
            db.execute("SELECT stream_rule FROM streams WHERE id = 4").fetchone()["stream_rule"]
        )
        assert rule["allowedSubjects"] == [code_ids[c] for c in ("11", "10", "01", "02")]

    def test_resolve_rule_codes_nested(self):
        rule = {"type": "arts", "baskets": {"basket01": {"name": "x", "subjects": ["21"]}}}
        resolved = resolve_rule_codes(rule, {"21": 17})
        assert resolved["baskets"]["basket01"] == {"name": "x", "subjects": [17]}

    def test_resolve_rule_codes_unknown(self):
        with pytest.raises(KeyError):
            resolve_rule_codes({"required": ["99"]}, {})
