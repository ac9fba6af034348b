"""Domain models."""

from __future__ import annotations

from dataclasses import dataclass, fields
from typing import Any


class _Unset:
    """Marker for a patch field that was not supplied."""

    _instance: _Unset | None = None

    def __new__(cls) -> _Unset:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "UNSET"

    def __bool__(self) -> bool:
        return False


UNSET: Any = _Unset()


# ── Dictionary entities ──────────────────────────────────────────────────


@dataclass(frozen=True)
class Gender:
    """Gender dictionary row."""

    id: int
    name: str


@dataclass(frozen=True)
class Nationality:
    """Nationality dictionary row (country code such as ``"US"``)."""

    id: int
    name: str


@dataclass(frozen=True)
class DictionaryFilter:
    """Filter for dictionary listings.

    ``id``, ``page`` and ``limit`` values of zero or below mean "absent".
    """

    id: int | None = None
    name: str | None = None
    page: int | None = None
    limit: int | None = None


@dataclass(frozen=True)
class DictionaryPatch:
    """Partial update for a dictionary row."""

    name: str = UNSET

    def changes(self) -> dict[str, Any]:
        return _changes(self)


# ── Person ───────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class Person:
    """Person joined with its gender and nationality."""

    id: int
    name: str
    surname: str
    patronymic: str | None
    age: int
    gender: Gender | None = None
    nationality: Nationality | None = None


@dataclass(frozen=True)
class DeletedPerson:
    """Identifying fields of a removed person."""

    id: int
    name: str
    surname: str


@dataclass(frozen=True)
class PersonCreate:
    """Inbound payload of the enrichment flow."""

    name: str
    surname: str
    patronymic: str | None = None


@dataclass(frozen=True)
class NewPerson:
    """Fully resolved person ready to be inserted."""

    name: str
    surname: str
    patronymic: str | None
    age: int
    gender_id: int | None
    nationality_id: int | None


@dataclass(frozen=True)
class PersonReplace:
    """Full overwrite of every writable person column."""

    name: str
    surname: str
    age: int
    patronymic: str | None = None
    gender_id: int | None = None
    nationality_id: int | None = None


@dataclass(frozen=True)
class PersonPatch:
    """Partial person update.

    Fields left as ``UNSET`` are not touched. ``patronymic``, ``gender_id``
    and ``nationality_id`` may be set to ``None`` to clear them.
    """

    name: str = UNSET
    surname: str = UNSET
    patronymic: str | None = UNSET
    age: int = UNSET
    gender_id: int | None = UNSET
    nationality_id: int | None = UNSET

    def changes(self) -> dict[str, Any]:
        return _changes(self)


@dataclass(frozen=True)
class PersonFilter:
    """Filter for person listings."""

    id: int | None = None
    name: str | None = None
    surname: str | None = None
    age_from: int | None = None
    age_to: int | None = None
    gender_id: int | None = None
    nationality_id: int | None = None
    page: int | None = None
    limit: int | None = None


def _changes(patch: Any) -> dict[str, Any]:
    """Supplied fields of a patch dataclass, in declaration order."""
    return {
        f.name: getattr(patch, f.name)
        for f in fields(patch)
        if getattr(patch, f.name) is not UNSET
    }


__all__ = [
    "UNSET",
    "Gender",
    "Nationality",
    "DictionaryFilter",
    "DictionaryPatch",
    "Person",
    "DeletedPerson",
    "PersonCreate",
    "NewPerson",
    "PersonReplace",
    "PersonPatch",
    "PersonFilter",
]
