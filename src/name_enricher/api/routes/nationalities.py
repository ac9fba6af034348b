"""Nationalities router - CRUD over the nationality (country code) dictionary."""

from name_enricher.api.deps import get_nationality_repository
from name_enricher.api.routes.dictionaries import create_dictionary_router

router = create_dictionary_router("/nationalities", "nationality", get_nationality_repository)
