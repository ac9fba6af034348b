"""Genders router - CRUD over the gender dictionary."""

from name_enricher.api.deps import get_gender_repository
from name_enricher.api.routes.dictionaries import create_dictionary_router

router = create_dictionary_router("/genders", "gender", get_gender_repository)
