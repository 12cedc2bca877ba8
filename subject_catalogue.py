"""Subject catalogue — typed subject keys resolved against the subjects table.

Every subject the combination generators reference is named by a
``SubjectKey`` whose value is the official A/L subject code. Codes are
stable across databases; numeric ids are not, so ids are always looked up
from the live catalogue and a missing code is reported instead of being
embedded as a stale literal.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from enum import Enum

from errors import CatalogueError

logger = logging.getLogger(__name__)


class SubjectKey(str, Enum):
    # Sciences
    PHYSICS = "01"
    CHEMISTRY = "02"
    MATHEMATICS = "07"
    AGRICULTURAL_SCIENCE = "08"
    BIOLOGY = "09"
    COMBINED_MATHEMATICS = "10"
    HIGHER_MATHEMATICS = "11"

    # Technology subjects taken in the Arts stream
    CIVIL_TECHNOLOGY = "14"
    MECHANICAL_TECHNOLOGY = "15"
    ELECTRICAL_TECHNOLOGY = "16"
    FOOD_TECHNOLOGY = "17"
    AGRO_TECHNOLOGY = "18"
    BIO_RESOURCE_TECHNOLOGY = "19"
    ICT = "20"

    # Social sciences and commerce
    ECONOMICS = "21"
    GEOGRAPHY = "22"
    POLITICAL_SCIENCE = "23"
    LOGIC_SCIENTIFIC_METHOD = "24"
    HISTORY = "25A"
    HOME_ECONOMICS = "28"
    COMMUNICATION_MEDIA_STUDIES = "29"
    BUSINESS_STATISTICS = "31"
    BUSINESS_STUDIES = "32"
    ACCOUNTING = "33"

    # Religions
    BUDDHISM = "41"
    HINDUISM = "42"
    CHRISTIANITY = "43"
    ISLAM = "44"

    # Aesthetic
    ART = "51"

    # Technology stream
    ENGINEERING_TECHNOLOGY = "65"
    BIO_SYSTEMS_TECHNOLOGY = "66"
    SCIENCE_FOR_TECHNOLOGY = "67"

    # National languages
    SINHALA = "71"
    TAMIL = "72"
    ENGLISH = "73"


@dataclass(frozen=True)
class Subject:
    id: int
    code: str
    name: str
    level: str = "AL"


class SubjectCatalogue:
    """Read-only id/code/name lookup over the active subjects of one level."""

    def __init__(self, subjects: Iterable[Subject]) -> None:
        self._by_id: dict[int, Subject] = {}
        self._by_code: dict[str, Subject] = {}
        for s in subjects:
            self._by_id[s.id] = s
            self._by_code[s.code] = s

    @classmethod
    def load(cls, db, level: str = "AL") -> "SubjectCatalogue":
        rows = db.execute(
            "SELECT id, code, name, level FROM subjects "
            "WHERE level = ? AND is_active = 1 ORDER BY id",
            (level,),
        ).fetchall()
        catalogue = cls(
            Subject(id=r["id"], code=r["code"], name=r["name"], level=r["level"])
            for r in rows
        )
        logger.debug("Loaded %d %s subjects", len(catalogue), level)
        return catalogue

    def __len__(self) -> int:
        return len(self._by_id)

    def __contains__(self, subject_id: object) -> bool:
        return subject_id in self._by_id

    @property
    def ids(self) -> frozenset[int]:
        return frozenset(self._by_id)

    def get(self, subject_id: int) -> Subject | None:
        return self._by_id.get(subject_id)

    def by_code(self, code: str) -> Subject | None:
        return self._by_code.get(code)

    def name_of(self, subject_id: int) -> str:
        s = self._by_id.get(subject_id)
        return s.name if s else f"<unknown #{subject_id}>"

    def resolve(
        self, keys: Iterable[SubjectKey] = SubjectKey, strict: bool = True
    ) -> dict[SubjectKey, int | None]:
        """Map subject keys to catalogue ids.

        With ``strict`` any unresolved key raises CatalogueError naming every
        missing code. Otherwise unresolved keys map to None and are logged;
        combinations that use them are rejected later, one by one.
        """
        resolved: dict[SubjectKey, int | None] = {}
        missing: list[str] = []
        for key in keys:
            s = self._by_code.get(key.value)
            resolved[key] = s.id if s else None
            if s is None:
                missing.append(f"{key.name} ({key.value})")

        if missing:
            if strict:
                raise CatalogueError(missing)
            logger.error("Unresolved subject codes: %s", ", ".join(missing))
        return resolved
