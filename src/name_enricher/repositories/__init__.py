"""Repositories - SQL access for dictionaries and persons."""

from name_enricher.repositories.dictionaries import (
    DictionaryRepository,
    GenderRepository,
    NationalityRepository,
)
from name_enricher.repositories.persons import PersonRepository

__all__ = [
    "DictionaryRepository",
    "GenderRepository",
    "NationalityRepository",
    "PersonRepository",
]
