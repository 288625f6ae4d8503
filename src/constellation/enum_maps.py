"""Bidirectional maps between presentation enum values and storage values.

Presentation values are kebab-case (``pre-feasibility``), storage values
are snake_case identifiers (``pre_feasibility``); grade letters with a
minus become ``A_minus``/``B_minus``. Unknown values pass through
unchanged in both directions so older stored documents still load.
"""

from __future__ import annotations

from enum import Enum

from constellation.models import (
    ArtefactStatus,
    Constraint,
    DealStage,
    GateStatus,
    GradeLetter,
    ReadinessState,
)


class EnumMap:
    """Presentation <-> storage lookup for one enumeration."""

    def __init__(self, to_storage: dict[str, str]) -> None:
        self._to_storage = dict(to_storage)
        self._from_storage = {v: k for k, v in to_storage.items()}

    def to_storage(self, value: str | Enum) -> str:
        key = value.value if isinstance(value, Enum) else value
        return self._to_storage.get(key, key)

    def from_storage(self, value: str) -> str:
        return self._from_storage.get(value, value)


def _kebab_map(enum_cls: type[Enum]) -> EnumMap:
    return EnumMap({m.value: m.value.replace("-", "_") for m in enum_cls})


STAGE = _kebab_map(DealStage)
READINESS = _kebab_map(ReadinessState)
CONSTRAINT = _kebab_map(Constraint)
GATE_STATUS = _kebab_map(GateStatus)
ARTEFACT_STATUS = _kebab_map(ArtefactStatus)
GRADE_LETTER = EnumMap({g.value: g.value.replace("-", "_minus") for g in GradeLetter})


def stage_to_storage(value: str | Enum) -> str:
    return STAGE.to_storage(value)


def stage_from_storage(value: str) -> str:
    return STAGE.from_storage(value)


def readiness_to_storage(value: str | Enum) -> str:
    return READINESS.to_storage(value)


def readiness_from_storage(value: str) -> str:
    return READINESS.from_storage(value)


def constraint_to_storage(value: str | Enum) -> str:
    return CONSTRAINT.to_storage(value)


def constraint_from_storage(value: str) -> str:
    return CONSTRAINT.from_storage(value)


def grade_letter_to_storage(value: str | Enum) -> str:
    return GRADE_LETTER.to_storage(value)


def grade_letter_from_storage(value: str) -> str:
    return GRADE_LETTER.from_storage(value)
