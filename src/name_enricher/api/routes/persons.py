"""
Persons router - enrichment-backed creation plus plain CRUD.

Endpoints:
    GET    /persons          List persons (filters: id, name, surname, age_from,
                             age_to, gender_id, nationality_id, page, limit)
    GET    /persons/{id}     Get one person
    POST   /persons          Create a person from name/surname, enriched with
                             age, gender and nationality
    PATCH  /persons/{id}     Update the supplied fields
    PUT    /persons/{id}     Overwrite every writable field
    DELETE /persons/{id}     Delete a person
"""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Path, Request

from name_enricher.api.cancellation import run_cancellable
from name_enricher.api.deps import Enricher, PersonQuery, Persons, Settings
from name_enricher.api.schemas import (
    DeletedPersonSchema,
    PersonCreateBody,
    PersonPatchBody,
    PersonReplaceBody,
    PersonSchema,
)

router = APIRouter(prefix="/persons")

PersonId = Annotated[int, Path(gt=0, description="Person id")]


@router.get("", response_model=list[PersonSchema])
def list_persons(filter: PersonQuery, persons: Persons):
    return [PersonSchema.from_person(p) for p in persons.list(filter)]


@router.get("/{person_id}", response_model=PersonSchema)
def get_person(person_id: PersonId, persons: Persons):
    return PersonSchema.from_person(persons.get(person_id))


@router.post("", response_model=PersonSchema, status_code=201)
async def create_person(
    body: PersonCreateBody,
    request: Request,
    enricher: Enricher,
    settings: Settings,
):
    """Look up age, gender and nationality for ``name`` and store the person.

    The lookups and the insert are abandoned (and rolled back) if the client
    disconnects or ``enrichment_timeout`` elapses.
    """
    person = await run_cancellable(
        enricher.create(body.to_request()),
        is_disconnected=request.is_disconnected,
        timeout=settings.enrichment_timeout,
        poll_interval=settings.disconnect_poll_interval,
    )
    return PersonSchema.from_person(person)


@router.patch("/{person_id}", response_model=PersonSchema)
def patch_person(person_id: PersonId, body: PersonPatchBody, persons: Persons):
    return PersonSchema.from_person(persons.patch(person_id, body.to_patch()))


@router.put("/{person_id}", response_model=PersonSchema)
def replace_person(person_id: PersonId, body: PersonReplaceBody, persons: Persons):
    return PersonSchema.from_person(persons.replace(person_id, body.to_replace()))


@router.delete("/{person_id}", response_model=DeletedPersonSchema)
def delete_person(person_id: PersonId, persons: Persons):
    return DeletedPersonSchema.from_deleted(persons.delete(person_id))
