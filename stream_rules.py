"""Stream rule documents, parsed into one dataclass per rule type.

A stream's ``stream_rule`` column holds a JSON object tagged by ``type``.
``parse_stream_rule`` validates the shape for that type and returns the
matching variant; anything else raises StreamRuleError before the rule
reaches a generator or the classifier.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, ClassVar, Union

from errors import StreamRuleError

PHYSICAL_SCIENCE = "physical_science"
BIOLOGICAL_SCIENCE = "biological_science"
COMMERCE = "commerce"
ENGINEERING_TECHNOLOGY = "engineering_technology"
BIOSYSTEMS_TECHNOLOGY = "biosystems_technology"
ARTS = "arts"
COMMON = "common"

RULE_TYPES = (
    PHYSICAL_SCIENCE,
    BIOLOGICAL_SCIENCE,
    COMMERCE,
    ENGINEERING_TECHNOLOGY,
    BIOSYSTEMS_TECHNOLOGY,
    ARTS,
    COMMON,
)


def _unique(ids) -> tuple[int, ...]:
    return tuple(dict.fromkeys(ids))


@dataclass(frozen=True)
class PhysicalScienceRule:
    allowed_subjects: tuple[int, ...]
    description: str = ""
    type: ClassVar[str] = PHYSICAL_SCIENCE

    def subject_ids(self) -> tuple[int, ...]:
        return _unique(self.allowed_subjects)


@dataclass(frozen=True)
class BiologicalScienceRule:
    required: tuple[int, ...]
    options: tuple[int, ...]
    description: str = ""
    type: ClassVar[str] = BIOLOGICAL_SCIENCE

    def subject_ids(self) -> tuple[int, ...]:
        return _unique(self.required + self.options)


@dataclass(frozen=True)
class CommerceRule:
    core: tuple[int, ...]
    supporting: tuple[int, ...]
    description: str = ""
    type: ClassVar[str] = COMMERCE

    def subject_ids(self) -> tuple[int, ...]:
        return _unique(self.core + self.supporting)


@dataclass(frozen=True)
class TechnologyRule:
    """Two mandatory subjects plus one optional; shared by both technology streams."""

    kind: str
    required: tuple[int, ...]
    options: tuple[int, ...]
    description: str = ""

    @property
    def type(self) -> str:
        return self.kind

    def subject_ids(self) -> tuple[int, ...]:
        return _unique(self.required + self.options)


@dataclass(frozen=True)
class ArtsRule:
    social_sciences: tuple[int, ...]
    religions: tuple[int, ...]
    aesthetic: tuple[int, ...] = ()
    national_languages: tuple[int, ...] = ()
    classical_languages: tuple[int, ...] = ()
    foreign_languages: tuple[int, ...] = ()
    description: str = ""
    type: ClassVar[str] = ARTS

    @property
    def languages(self) -> tuple[int, ...]:
        return self.national_languages + self.classical_languages + self.foreign_languages

    def subject_ids(self) -> tuple[int, ...]:
        return _unique(self.social_sciences + self.religions + self.aesthetic + self.languages)


@dataclass(frozen=True)
class CommonRule:
    description: str = ""
    type: ClassVar[str] = COMMON

    def subject_ids(self) -> tuple[int, ...]:
        return ()


StreamRule = Union[
    PhysicalScienceRule,
    BiologicalScienceRule,
    CommerceRule,
    TechnologyRule,
    ArtsRule,
    CommonRule,
]


# ── Field validation ────────────────────────────────────────


def _ids(doc: dict, key: str, where: str, required: bool = True) -> tuple[int, ...]:
    value = doc.get(key)
    if value is None:
        if required:
            raise StreamRuleError(f"{where}: missing '{key}'")
        return ()
    if not isinstance(value, list):
        raise StreamRuleError(f"{where}: '{key}' must be a list of subject ids")
    for item in value:
        # bool is an int subclass; reject it explicitly
        if isinstance(item, bool) or not isinstance(item, int) or item <= 0:
            raise StreamRuleError(f"{where}: '{key}' contains invalid subject id {item!r}")
    if required and not value:
        raise StreamRuleError(f"{where}: '{key}' must not be empty")
    return tuple(value)


def _section(doc: dict, key: str, where: str, required: bool = True) -> dict:
    value = doc.get(key)
    if value is None:
        if required:
            raise StreamRuleError(f"{where}: missing '{key}'")
        return {}
    if not isinstance(value, dict):
        raise StreamRuleError(f"{where}: '{key}' must be an object")
    return value


def _parse_arts(doc: dict, description: str) -> ArtsRule:
    baskets = _section(doc, "baskets", "arts")
    basket04 = _section(baskets, "basket04", "arts.baskets", required=False)
    return ArtsRule(
        social_sciences=_ids(_section(baskets, "basket01", "arts.baskets"), "subjects", "arts.basket01"),
        religions=_ids(_section(baskets, "basket02", "arts.baskets"), "subjects", "arts.basket02"),
        aesthetic=_ids(
            _section(baskets, "basket03", "arts.baskets", required=False),
            "subjects", "arts.basket03", required=False,
        ),
        national_languages=_ids(basket04, "national", "arts.basket04", required=False),
        classical_languages=_ids(basket04, "classical", "arts.basket04", required=False),
        foreign_languages=_ids(basket04, "foreign", "arts.basket04", required=False),
        description=description,
    )


def parse_stream_rule(raw: Any) -> StreamRule:
    """Validate a stored rule document and return its typed variant."""
    if isinstance(raw, (str, bytes)):
        try:
            raw = json.loads(raw)
        except ValueError as e:
            raise StreamRuleError(f"rule is not valid JSON: {e}") from e

    if not isinstance(raw, dict) or not raw:
        raise StreamRuleError("rule is missing or not an object")

    rule_type = raw.get("type")
    if not isinstance(rule_type, str) or not rule_type:
        raise StreamRuleError("rule has no 'type'")

    description = raw.get("description") or ""
    if not isinstance(description, str):
        raise StreamRuleError(f"{rule_type}: 'description' must be a string")

    if rule_type == PHYSICAL_SCIENCE:
        return PhysicalScienceRule(
            allowed_subjects=_ids(raw, "allowedSubjects", rule_type),
            description=description,
        )
    if rule_type == BIOLOGICAL_SCIENCE:
        return BiologicalScienceRule(
            required=_ids(raw, "required", rule_type),
            options=_ids(raw, "options", rule_type),
            description=description,
        )
    if rule_type == COMMERCE:
        return CommerceRule(
            core=_ids(_section(raw, "basket01", rule_type), "subjects", "commerce.basket01"),
            supporting=_ids(_section(raw, "basket02", rule_type), "subjects", "commerce.basket02"),
            description=description,
        )
    if rule_type in (ENGINEERING_TECHNOLOGY, BIOSYSTEMS_TECHNOLOGY):
        return TechnologyRule(
            kind=rule_type,
            required=_ids(raw, "required", rule_type),
            options=_ids(raw, "options", rule_type),
            description=description,
        )
    if rule_type == ARTS:
        return _parse_arts(raw, description)
    if rule_type == COMMON:
        return CommonRule(description=description)

    raise StreamRuleError(f"unrecognized rule type {rule_type!r}")
