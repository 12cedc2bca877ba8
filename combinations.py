"""Subject-combination generators — one strategy per stream rule type.

Each generator yields raw subject triples for a stream. ``finalize`` then
applies the shared post-processing every strategy needs: reject triples
with unresolved, unknown or repeated ids, sort the survivors ascending,
attach the owning stream and drop duplicates within the stream.

Subject pools are named by SubjectKey and resolved to ids through the
catalogue, so the same generator works against any database.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Iterator
from dataclasses import dataclass, field
from itertools import combinations

import stream_rules
from errors import CombinationError, StreamRuleError
from subject_catalogue import SubjectKey as S

logger = logging.getLogger(__name__)

# Three subject ids; an id is None when its subject code did not resolve
Triple = tuple


# ── Subject pools ───────────────────────────────────────────

PHYSICAL_SCIENCE_POOL = (
    S.HIGHER_MATHEMATICS,
    S.COMBINED_MATHEMATICS,
    S.PHYSICS,
    S.CHEMISTRY,
)

BIOLOGY_REQUIRED = S.BIOLOGY
BIOLOGY_OPTIONS = (S.PHYSICS, S.CHEMISTRY, S.MATHEMATICS, S.AGRICULTURAL_SCIENCE)

COMMERCE_CORE = (S.BUSINESS_STUDIES, S.ECONOMICS, S.ACCOUNTING)
COMMERCE_SUPPORTING = (
    S.AGRICULTURAL_SCIENCE,
    S.GEOGRAPHY,
    S.BUSINESS_STATISTICS,
    S.COMBINED_MATHEMATICS,
    S.MATHEMATICS,
    S.HISTORY,
    S.POLITICAL_SCIENCE,
    S.ENGLISH,
    S.LOGIC_SCIENTIFIC_METHOD,
    S.ICT,
)

TECHNOLOGY_OPTIONS = (
    S.ECONOMICS,
    S.GEOGRAPHY,
    S.HOME_ECONOMICS,
    S.ENGLISH,
    S.COMMUNICATION_MEDIA_STUDIES,
    S.ICT,
    S.ART,
    S.BUSINESS_STUDIES,
    S.AGRICULTURAL_SCIENCE,
    S.ACCOUNTING,
    S.MATHEMATICS,
)
ENGINEERING_TECHNOLOGY_REQUIRED = (S.ENGINEERING_TECHNOLOGY, S.SCIENCE_FOR_TECHNOLOGY)
BIOSYSTEMS_TECHNOLOGY_REQUIRED = (S.BIO_SYSTEMS_TECHNOLOGY, S.SCIENCE_FOR_TECHNOLOGY)

# Arts baskets; order matters because the Arts limits slice these lists
ARTS_SOCIAL_SCIENCES = (
    S.ECONOMICS,
    S.GEOGRAPHY,
    S.HISTORY,
    S.HOME_ECONOMICS,
    S.AGRICULTURAL_SCIENCE,
    S.MATHEMATICS,
    S.COMBINED_MATHEMATICS,
    S.COMMUNICATION_MEDIA_STUDIES,
    S.ICT,
    S.ACCOUNTING,
    S.BUSINESS_STATISTICS,
    S.POLITICAL_SCIENCE,
    S.LOGIC_SCIENTIFIC_METHOD,
    S.CIVIL_TECHNOLOGY,
    S.ELECTRICAL_TECHNOLOGY,
    S.AGRO_TECHNOLOGY,
    S.MECHANICAL_TECHNOLOGY,
    S.FOOD_TECHNOLOGY,
    S.BIO_RESOURCE_TECHNOLOGY,
)
ARTS_RELIGIONS = (S.BUDDHISM, S.HINDUISM, S.CHRISTIANITY, S.ISLAM)
ARTS_AESTHETIC = (S.ART,)
ARTS_NATIONAL_LANGUAGES = (S.SINHALA, S.TAMIL, S.ENGLISH)


@dataclass(frozen=True)
class ArtsLimits:
    """Bounds on the Arts enumeration.

    Not derived from any published admissions rule; kept configurable until
    the admissions owner confirms the intended basket combinations.
    """

    social_slice: int = 10
    pair_slice: int = 8
    triple_cap: int = 50

    @classmethod
    def from_config(cls, config) -> "ArtsLimits":
        return cls(
            social_slice=int(config.get("ARTS_SOCIAL_SLICE", cls.social_slice)),
            pair_slice=int(config.get("ARTS_PAIR_SLICE", cls.pair_slice)),
            triple_cap=int(config.get("ARTS_TRIPLE_CAP", cls.triple_cap)),
        )


@dataclass
class GenerationContext:
    """Resolved subject ids plus the knobs a generation run was started with."""

    subject_ids: dict[S, int | None]
    known_ids: frozenset[int]
    arts_limits: ArtsLimits = field(default_factory=ArtsLimits)

    def id_of(self, key: S) -> int | None:
        return self.subject_ids.get(key)

    def ids_of(self, keys: Iterable[S]) -> list[int | None]:
        return [self.subject_ids.get(k) for k in keys]


@dataclass(frozen=True)
class Combination:
    stream_id: int
    subject1: int
    subject2: int
    subject3: int

    @property
    def subjects(self) -> tuple[int, int, int]:
        return (self.subject1, self.subject2, self.subject3)

    def as_row(self) -> tuple[int, int, int, int]:
        return (self.subject1, self.subject2, self.subject3, self.stream_id)


@dataclass
class StreamGeneration:
    stream_id: int
    combinations: list[Combination] = field(default_factory=list)
    rejected: list[tuple[Triple, str]] = field(default_factory=list)


# ── Strategies ──────────────────────────────────────────────


def physical_science(ctx: GenerationContext) -> Iterator[Triple]:
    """Any three of Higher Maths, Combined Maths, Physics and Chemistry."""
    yield from combinations(ctx.ids_of(PHYSICAL_SCIENCE_POOL), 3)


def biological_science(ctx: GenerationContext) -> Iterator[Triple]:
    """Biology plus any two of Physics, Chemistry, Mathematics, Agricultural Science."""
    biology = ctx.id_of(BIOLOGY_REQUIRED)
    for a, b in combinations(ctx.ids_of(BIOLOGY_OPTIONS), 2):
        yield (biology, a, b)


def commerce(ctx: GenerationContext) -> Iterator[Triple]:
    """All three core subjects, then every core pair with each supporting subject."""
    core = ctx.ids_of(COMMERCE_CORE)
    yield tuple(core)
    supporting = ctx.ids_of(COMMERCE_SUPPORTING)
    for a, b in combinations(core, 2):
        for extra in supporting:
            yield (a, b, extra)


def _two_required_one_option(ctx: GenerationContext, required: tuple[S, S]) -> Iterator[Triple]:
    first, second = ctx.ids_of(required)
    for option in ctx.ids_of(TECHNOLOGY_OPTIONS):
        yield (first, second, option)


def engineering_technology(ctx: GenerationContext) -> Iterator[Triple]:
    """Engineering Technology + Science for Technology + one option."""
    return _two_required_one_option(ctx, ENGINEERING_TECHNOLOGY_REQUIRED)


def biosystems_technology(ctx: GenerationContext) -> Iterator[Triple]:
    """Bio Systems Technology + Science for Technology + one option."""
    return _two_required_one_option(ctx, BIOSYSTEMS_TECHNOLOGY_REQUIRED)


def arts(ctx: GenerationContext) -> Iterator[Triple]:
    """Three social sciences; two social sciences with a religion; three national languages."""
    limits = ctx.arts_limits
    social = ctx.ids_of(ARTS_SOCIAL_SCIENCES)

    triples = combinations(social[:limits.social_slice], 3)
    for n, triple in enumerate(triples):
        if n >= limits.triple_cap:
            break
        yield triple

    religions = ctx.ids_of(ARTS_RELIGIONS)
    for a, b in combinations(social[:limits.pair_slice], 2):
        for religion in religions:
            yield (a, b, religion)

    languages = ctx.ids_of(ARTS_NATIONAL_LANGUAGES)
    if len(languages) >= 3:
        yield tuple(languages[:3])


GENERATORS: dict[str, Callable[[GenerationContext], Iterator[Triple]]] = {
    stream_rules.PHYSICAL_SCIENCE: physical_science,
    stream_rules.BIOLOGICAL_SCIENCE: biological_science,
    stream_rules.COMMERCE: commerce,
    stream_rules.ENGINEERING_TECHNOLOGY: engineering_technology,
    stream_rules.BIOSYSTEMS_TECHNOLOGY: biosystems_technology,
    stream_rules.ARTS: arts,
}


# ── Post-processing ─────────────────────────────────────────


def normalize(stream_id: int, triple: Triple, known_ids: frozenset[int]) -> Combination:
    """Validate a raw triple and return it sorted ascending for ``stream_id``."""
    if len(triple) != 3:
        raise CombinationError(f"expected 3 subjects, got {len(triple)}")
    if any(s is None for s in triple):
        raise CombinationError("unresolved subject in combination")
    unknown = [s for s in triple if s not in known_ids]
    if unknown:
        raise CombinationError(f"subject id(s) {unknown} not in catalogue")
    if len(set(triple)) != 3:
        raise CombinationError("combination repeats a subject")
    a, b, c = sorted(triple)
    return Combination(stream_id=stream_id, subject1=a, subject2=b, subject3=c)


def finalize(stream_id: int, triples: Iterable[Triple], known_ids: frozenset[int]) -> StreamGeneration:
    result = StreamGeneration(stream_id=stream_id)
    seen: set[tuple[int, int, int]] = set()
    for triple in triples:
        try:
            combo = normalize(stream_id, triple, known_ids)
        except CombinationError as e:
            logger.warning(
                "Rejected combination %s for stream %s: %s", triple, stream_id, e,
                extra={"stream_id": stream_id},
            )
            result.rejected.append((tuple(triple), str(e)))
            continue
        if combo.subjects in seen:
            continue
        seen.add(combo.subjects)
        result.combinations.append(combo)
    return result


def generate_for_stream(
    stream_id: int, rule: stream_rules.StreamRule, ctx: GenerationContext
) -> StreamGeneration:
    """Run the generator matching ``rule.type`` for one stream."""
    generator = GENERATORS.get(rule.type)
    if generator is None:
        raise StreamRuleError(f"no combination generator for rule type {rule.type!r}")
    return finalize(stream_id, generator(ctx), ctx.known_ids)
