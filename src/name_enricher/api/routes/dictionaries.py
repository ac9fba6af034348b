"""
Shared router for ``(id, name)`` dictionaries.

Endpoints (mounted under the dictionary prefix, e.g. ``/genders``):
    GET    /          List entries (filters: id, name, page, limit)
    GET    /{id}      Get one entry
    POST   /          Create an entry
    PATCH  /{id}      Rename an entry
    DELETE /{id}      Delete an entry (persons keep a null reference)
"""

from typing import Annotated, Any

from fastapi import APIRouter, Depends, Path

from name_enricher.api.deps import DictionaryQuery
from name_enricher.api.schemas import DictionaryCreateBody, DictionaryEntrySchema, DictionaryPatchBody
from name_enricher.repositories.dictionaries import DictionaryRepository


def create_dictionary_router(prefix: str, label: str, get_repository: Any) -> APIRouter:
    """Build the CRUD router for one dictionary table.

    Args:
        prefix: URL prefix, e.g. ``/genders``.
        label: Singular noun used in the OpenAPI summaries.
        get_repository: Dependency returning the table's repository.
    """
    router = APIRouter(prefix=prefix)
    Repository = Annotated[DictionaryRepository, Depends(get_repository)]
    EntryId = Annotated[int, Path(gt=0, description=f"{label} id")]

    @router.get("", response_model=list[DictionaryEntrySchema], summary=f"List {label} entries")
    def list_entries(filter: DictionaryQuery, repository: Repository):
        return [DictionaryEntrySchema.from_entity(e) for e in repository.list(filter)]

    @router.get("/{entry_id}", response_model=DictionaryEntrySchema, summary=f"Get a {label}")
    def get_entry(entry_id: EntryId, repository: Repository):
        return DictionaryEntrySchema.from_entity(repository.get(entry_id))

    @router.post(
        "",
        response_model=DictionaryEntrySchema,
        status_code=201,
        summary=f"Create a {label}",
    )
    def create_entry(body: DictionaryCreateBody, repository: Repository):
        return DictionaryEntrySchema.from_entity(repository.create(body.name))

    @router.patch("/{entry_id}", response_model=DictionaryEntrySchema, summary=f"Update a {label}")
    def update_entry(entry_id: EntryId, body: DictionaryPatchBody, repository: Repository):
        return DictionaryEntrySchema.from_entity(repository.update(entry_id, body.to_patch()))

    @router.delete("/{entry_id}", response_model=DictionaryEntrySchema, summary=f"Delete a {label}")
    def delete_entry(entry_id: EntryId, repository: Repository):
        return DictionaryEntrySchema.from_entity(repository.delete(entry_id))

    return router
