"""Tests for stream_rules.py — parsing and validating stored rule documents."""

from __future__ import annotations

import json

import pytest
from errors import StreamRuleError
from stream_rules import (
    ArtsRule,
    BiologicalScienceRule,
    CommerceRule,
    CommonRule,
    PhysicalScienceRule,
    TechnologyRule,
    parse_stream_rule,
)


class TestParseVariants:
    def test_physical_science(self):
        rule = parse_stream_rule({"type": "physical_science", "allowedSubjects": [7, 6, 1, 2]})
        assert isinstance(rule, PhysicalScienceRule)
        assert rule.allowed_subjects == (7, 6, 1, 2)
        assert rule.type == "physical_science"

    def test_biological_science(self):
        rule = parse_stream_rule({"type": "biological_science", "required": [5], "options": [1, 2, 3, 4]})
        assert isinstance(rule, BiologicalScienceRule)
        assert rule.subject_ids() == (5, 1, 2, 3, 4)

    def test_commerce(self):
        rule = parse_stream_rule({
            "type": "commerce",
            "basket01": {"subjects": [27, 17, 28]},
            "basket02": {"subjects": [4, 18]},
        })
        assert isinstance(rule, CommerceRule)
        assert rule.core == (27, 17, 28)
        assert rule.supporting == (4, 18)

    @pytest.mark.parametrize("kind", ["engineering_technology", "biosystems_technology"])
    def test_technology(self, kind):
        rule = parse_stream_rule({"type": kind, "required": [47, 49], "options": [17]})
        assert isinstance(rule, TechnologyRule)
        assert rule.type == kind

    def test_arts_with_optional_baskets_missing(self):
        rule = parse_stream_rule({
            "type": "arts",
            "baskets": {"basket01": {"subjects": [17, 18]}, "basket02": {"subjects": [29]}},
        })
        assert isinstance(rule, ArtsRule)
        assert rule.aesthetic == ()
        assert rule.languages == ()

    def test_arts_languages(self):
        rule = parse_stream_rule({
            "type": "arts",
            "baskets": {
                "basket01": {"subjects": [17]},
                "basket02": {"subjects": [29]},
                "basket03": {"subjects": [38]},
                "basket04": {"national": [50, 51], "classical": [53], "foreign": [57]},
            },
        })
        assert rule.national_languages == (50, 51)
        assert rule.languages == (50, 51, 53, 57)

    def test_common(self):
        rule = parse_stream_rule({"type": "common", "description": "Anything else"})
        assert isinstance(rule, CommonRule)
        assert rule.subject_ids() == ()

    def test_json_string_accepted(self):
        raw = json.dumps({"type": "physical_science", "allowedSubjects": [1, 2, 3]})
        assert isinstance(parse_stream_rule(raw), PhysicalScienceRule)


class TestRejection:
    @pytest.mark.parametrize("raw", [None, "", "{}", "not json", "[1, 2]", {}])
    def test_missing_or_malformed(self, raw):
        with pytest.raises(StreamRuleError):
            parse_stream_rule(raw)

    def test_missing_type(self):
        with pytest.raises(StreamRuleError, match="type"):
            parse_stream_rule({"allowedSubjects": [1, 2, 3]})

    def test_unknown_type(self):
        with pytest.raises(StreamRuleError, match="unrecognized"):
            parse_stream_rule({"type": "astrology"})

    def test_missing_required_key(self):
        with pytest.raises(StreamRuleError, match="allowedSubjects"):
            parse_stream_rule({"type": "physical_science"})

    @pytest.mark.parametrize("bad", [["1"], [0], [-3], [True], [1.5]])
    def test_invalid_ids(self, bad):
        with pytest.raises(StreamRuleError, match="invalid subject id"):
            parse_stream_rule({"type": "physical_science", "allowedSubjects": bad})

    def test_empty_required_list(self):
        with pytest.raises(StreamRuleError, match="must not be empty"):
            parse_stream_rule({"type": "biological_science", "required": [], "options": [1]})

    def test_commerce_basket_not_object(self):
        with pytest.raises(StreamRuleError, match="must be an object"):
            parse_stream_rule({"type": "commerce", "basket01": [1, 2], "basket02": {"subjects": [3]}})
