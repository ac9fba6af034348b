"""
API schemas - request bodies, response models and the RFC 7807 error body.

Request bodies convert into the domain dataclasses in
:mod:`name_enricher.core.models`; patch bodies keep track of which fields the
client actually sent so absent fields stay ``UNSET``.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field, model_validator

from name_enricher.core.models import (
    DeletedPerson,
    DictionaryPatch,
    Gender,
    Nationality,
    Person,
    PersonCreate,
    PersonPatch,
    PersonReplace,
)

# ── Errors ───────────────────────────────────────────────────────────────


class ErrorDetail(BaseModel):
    """Field-level error detail."""

    code: str = Field(description="Machine-readable error code")
    message: str = Field(description="Human-readable error description")
    field: str | None = Field(default=None, description="Field path if error is field-specific")


class ProblemDetail(BaseModel):
    """RFC 7807 problem details, used for every non-2xx response.

    Example:
        {
            "type": "about:blank",
            "title": "error during getting age",
            "status": 500,
            "detail": "agify: returned HTTP 500",
            "instance": "/persons",
            "stage": "age",
            "errors": []
        }
    """

    type: str = Field(default="about:blank")
    title: str = Field(description="Short human-readable error summary")
    status: int = Field(description="HTTP status code")
    detail: str = Field(default="", description="Explanation of the error")
    instance: str = Field(default="", description="Path of the failing request")
    stage: str | None = Field(default=None, description="Enrichment stage that failed")
    errors: list[ErrorDetail] = Field(default_factory=list)


# ── Dictionaries ─────────────────────────────────────────────────────────


class DictionaryEntrySchema(BaseModel):
    """A gender or nationality row."""

    id: int
    name: str

    @classmethod
    def from_entity(cls, entity: Gender | Nationality) -> DictionaryEntrySchema:
        return cls(id=entity.id, name=entity.name)


class DictionaryCreateBody(BaseModel):
    name: str = Field(min_length=1, description="Dictionary label, e.g. 'male' or 'US'")


class DictionaryPatchBody(BaseModel):
    name: str | None = Field(default=None, min_length=1)

    @model_validator(mode="after")
    def _reject_null_name(self) -> DictionaryPatchBody:
        if "name" in self.model_fields_set and self.name is None:
            raise ValueError("name cannot be null")
        return self

    def to_patch(self) -> DictionaryPatch:
        return DictionaryPatch(**self.model_dump(exclude_unset=True))


# ── Persons ──────────────────────────────────────────────────────────────


class PersonSchema(BaseModel):
    """Person with embedded dictionary entries."""

    id: int
    name: str
    surname: str
    patronymic: str | None = None
    age: int
    gender: DictionaryEntrySchema | None = None
    nationality: DictionaryEntrySchema | None = None

    @classmethod
    def from_person(cls, person: Person) -> PersonSchema:
        return cls(
            id=person.id,
            name=person.name,
            surname=person.surname,
            patronymic=person.patronymic,
            age=person.age,
            gender=DictionaryEntrySchema.from_entity(person.gender) if person.gender else None,
            nationality=(
                DictionaryEntrySchema.from_entity(person.nationality) if person.nationality else None
            ),
        )


class DeletedPersonSchema(BaseModel):
    id: int
    name: str
    surname: str

    @classmethod
    def from_deleted(cls, deleted: DeletedPerson) -> DeletedPersonSchema:
        return cls(id=deleted.id, name=deleted.name, surname=deleted.surname)


class PersonCreateBody(BaseModel):
    """Payload for the enrichment flow; age, gender and nationality are looked up."""

    name: str = Field(min_length=1, description="Given name used for every lookup")
    surname: str = Field(min_length=1)
    patronymic: str | None = None

    def to_request(self) -> PersonCreate:
        return PersonCreate(name=self.name, surname=self.surname, patronymic=self.patronymic)


class PersonReplaceBody(BaseModel):
    """Every writable column; omitted optional fields are stored as null."""

    name: str = Field(min_length=1)
    surname: str = Field(min_length=1)
    patronymic: str | None = None
    age: int = Field(ge=0)
    gender_id: int | None = Field(default=None, gt=0)
    nationality_id: int | None = Field(default=None, gt=0)

    def to_replace(self) -> PersonReplace:
        return PersonReplace(**self.model_dump())


_NOT_NULLABLE = ("name", "surname", "age")


class PersonPatchBody(BaseModel):
    """Any subset of the writable columns."""

    name: str | None = Field(default=None, min_length=1)
    surname: str | None = Field(default=None, min_length=1)
    patronymic: str | None = None
    age: int | None = Field(default=None, ge=0)
    gender_id: int | None = Field(default=None, gt=0)
    nationality_id: int | None = Field(default=None, gt=0)

    @model_validator(mode="after")
    def _reject_nulls(self) -> PersonPatchBody:
        for field_name in _NOT_NULLABLE:
            if field_name in self.model_fields_set and getattr(self, field_name) is None:
                raise ValueError(f"{field_name} cannot be null")
        return self

    def to_patch(self) -> PersonPatch:
        supplied: dict[str, Any] = self.model_dump(exclude_unset=True)
        return PersonPatch(**supplied)
