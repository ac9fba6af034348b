"""
FastAPI dependency injection - shared singletons and per-request factories.

Singletons (settings, :class:`Database`, :class:`NameEnrichmentClient`) are
created by the application lifespan and kept on ``app.state``; per-request
objects (session, repositories, enricher) are built from them.

Usage in routers::

    from name_enricher.api.deps import Persons

    @router.get("/persons/{person_id}")
    def get_person(person_id: int, persons: Persons):
        ...
"""

from __future__ import annotations

from collections.abc import Generator
from typing import Annotated

from fastapi import Depends, Query, Request

from name_enricher.core.database import Database, Session
from name_enricher.core.models import DictionaryFilter, PersonFilter
from name_enricher.core.settings import Settings as SettingsModel
from name_enricher.enrichment.client import NameEnrichmentClient
from name_enricher.enrichment.orchestrator import PersonEnricher
from name_enricher.repositories.dictionaries import GenderRepository, NationalityRepository
from name_enricher.repositories.persons import PersonRepository

# ── Application singletons ───────────────────────────────────────────────


def get_app_settings(request: Request) -> SettingsModel:
    return request.app.state.settings


def get_database(request: Request) -> Database:
    return request.app.state.database


def get_enrichment_client(request: Request) -> NameEnrichmentClient:
    return request.app.state.enrichment_client


# ── Database session (per-request) ───────────────────────────────────────


def get_session(
    database: Annotated[Database, Depends(get_database)],
) -> Generator[Session, None, None]:
    """Borrow one connection for the request lifespan."""
    with database.session() as session:
        yield session


# ── Repositories and services (per-request) ──────────────────────────────


def get_gender_repository(session: Annotated[Session, Depends(get_session)]) -> GenderRepository:
    return GenderRepository(session)


def get_nationality_repository(
    session: Annotated[Session, Depends(get_session)],
) -> NationalityRepository:
    return NationalityRepository(session)


def get_person_repository(session: Annotated[Session, Depends(get_session)]) -> PersonRepository:
    return PersonRepository(session)


def get_person_enricher(
    session: Annotated[Session, Depends(get_session)],
    client: Annotated[NameEnrichmentClient, Depends(get_enrichment_client)],
) -> PersonEnricher:
    return PersonEnricher(session, client)


# ── Filter parameters (per-request) ──────────────────────────────────────


def parse_positive_int(raw: str | None) -> int | None:
    """Base-10 integer or ``None``; malformed and non-positive values read as absent."""
    if raw is None:
        return None
    try:
        value = int(raw.strip(), 10)
    except ValueError:
        return None
    return value if value > 0 else None


def parse_text(raw: str | None) -> str | None:
    return raw if raw else None


def get_dictionary_filter(
    id: str | None = Query(None, description="Exact id"),
    name: str | None = Query(None, description="Case-insensitive substring of name"),
    page: str | None = Query(None, description="Page number (1-indexed)"),
    limit: str | None = Query(None, description="Items per page"),
) -> DictionaryFilter:
    return DictionaryFilter(
        id=parse_positive_int(id),
        name=parse_text(name),
        page=parse_positive_int(page),
        limit=parse_positive_int(limit),
    )


def get_person_filter(
    id: str | None = Query(None, description="Exact id"),
    name: str | None = Query(None, description="Case-insensitive substring of name"),
    surname: str | None = Query(None, description="Case-insensitive substring of surname"),
    age_from: str | None = Query(None, description="Minimum age, inclusive"),
    age_to: str | None = Query(None, description="Maximum age, inclusive"),
    gender_id: str | None = Query(None),
    nationality_id: str | None = Query(None),
    page: str | None = Query(None, description="Page number (1-indexed)"),
    limit: str | None = Query(None, description="Items per page"),
) -> PersonFilter:
    return PersonFilter(
        id=parse_positive_int(id),
        name=parse_text(name),
        surname=parse_text(surname),
        age_from=parse_positive_int(age_from),
        age_to=parse_positive_int(age_to),
        gender_id=parse_positive_int(gender_id),
        nationality_id=parse_positive_int(nationality_id),
        page=parse_positive_int(page),
        limit=parse_positive_int(limit),
    )


# ── Convenience type aliases ─────────────────────────────────────────────

Settings = Annotated[SettingsModel, Depends(get_app_settings)]
DB = Annotated[Database, Depends(get_database)]
Genders = Annotated[GenderRepository, Depends(get_gender_repository)]
Nationalities = Annotated[NationalityRepository, Depends(get_nationality_repository)]
Persons = Annotated[PersonRepository, Depends(get_person_repository)]
Enricher = Annotated[PersonEnricher, Depends(get_person_enricher)]
DictionaryQuery = Annotated[DictionaryFilter, Depends(get_dictionary_filter)]
PersonQuery = Annotated[PersonFilter, Depends(get_person_filter)]
