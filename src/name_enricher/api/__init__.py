"""HTTP API - FastAPI application, routers and error mapping."""

from name_enricher.api.main import create_app

__all__ = ["create_app"]
