"""API routers."""

from name_enricher.api.routes import genders, health, nationalities, persons

__all__ = ["genders", "health", "nationalities", "persons"]
