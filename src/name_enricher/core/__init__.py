"""Core module - settings, models, errors, database, query building."""

from name_enricher.core.database import Database, Session
from name_enricher.core.errors import (
    ClientInputError,
    ConstraintViolationError,
    EnricherError,
    EnrichmentError,
    ExternalServiceError,
    NationalityNotFoundError,
    NotFoundError,
    StoreError,
)
from name_enricher.core.models import (
    UNSET,
    DeletedPerson,
    DictionaryFilter,
    DictionaryPatch,
    Gender,
    Nationality,
    NewPerson,
    Person,
    PersonCreate,
    PersonFilter,
    PersonPatch,
    PersonReplace,
)
from name_enricher.core.settings import Settings, get_settings

__all__ = [
    "Database",
    "Session",
    "Settings",
    "get_settings",
    "UNSET",
    "Gender",
    "Nationality",
    "DictionaryFilter",
    "DictionaryPatch",
    "Person",
    "DeletedPerson",
    "PersonCreate",
    "NewPerson",
    "PersonFilter",
    "PersonPatch",
    "PersonReplace",
    "EnricherError",
    "ClientInputError",
    "NotFoundError",
    "NationalityNotFoundError",
    "ExternalServiceError",
    "StoreError",
    "ConstraintViolationError",
    "EnrichmentError",
]
