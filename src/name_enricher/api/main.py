"""FastAPI application."""

from __future__ import annotations

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from name_enricher import __version__
from name_enricher.api.errors import register_exception_handlers
from name_enricher.api.middleware import RequestContextMiddleware
from name_enricher.api.routes import genders, health, nationalities, persons
from name_enricher.core.database import Database
from name_enricher.core.schema import apply_schema
from name_enricher.core.settings import Settings, get_settings
from name_enricher.enrichment.client import NameEnrichmentClient
from name_enricher.observability.logging import configure_logging, get_logger, shutdown_logging

logger = get_logger(__name__)


def create_app(
    settings: Settings | None = None,
    *,
    database: Database | None = None,
    enrichment_client: NameEnrichmentClient | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    ``database`` and ``enrichment_client`` default to instances built from
    ``settings``; tests pass their own (in-memory SQLite, mocked transport).
    Both are opened at startup and closed at shutdown.
    """
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        # Startup
        configure_logging(settings)
        db = database or Database.from_settings(settings)
        db.open()
        if settings.auto_migrate:
            with db.session() as session:
                apply_schema(session)
        client = enrichment_client or NameEnrichmentClient.from_settings(settings)

        app.state.settings = settings
        app.state.database = db
        app.state.enrichment_client = client
        logger.info("application_started", backend=db.backend, version=__version__)

        try:
            yield
        finally:
            # Shutdown
            await client.aclose()
            db.close()
            logger.info("application_stopped")
            shutdown_logging()

    app = FastAPI(
        title="Name Enricher",
        description="Person registry enriched with age, gender and nationality lookups",
        version=__version__,
        lifespan=lifespan,
    )

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Request context middleware (for correlation IDs)
    app.add_middleware(RequestContextMiddleware)

    register_exception_handlers(app)

    # Include routers
    app.include_router(health.router, tags=["Health"])
    app.include_router(genders.router, tags=["Genders"])
    app.include_router(nationalities.router, tags=["Nationalities"])
    app.include_router(persons.router, tags=["Persons"])

    return app
