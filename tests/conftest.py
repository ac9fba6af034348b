"""Pytest configuration and fixtures.

The store runs on in-memory SQLite through the same dialect layer used for
PostgreSQL, and the three lookup services are replaced by an
``httpx.MockTransport`` so no test touches the network.
"""

from __future__ import annotations

import asyncio
import os

import httpx
import pytest
from fastapi.testclient import TestClient

from name_enricher.api.main import create_app
from name_enricher.core.database import Database, Session
from name_enricher.core.schema import apply_schema
from name_enricher.core.settings import Settings
from name_enricher.enrichment.client import NameEnrichmentClient
from name_enricher.repositories import GenderRepository, NationalityRepository, PersonRepository

if "ENRICHER_LOG_LEVEL" not in os.environ:
    os.environ["ENRICHER_LOG_LEVEL"] = "WARNING"

AGIFY_HOST = "api.agify.io"
GENDERIZE_HOST = "api.genderize.io"
NATIONALIZE_HOST = "api.nationalize.io"


class FakeLookups:
    """Canned responses for agify, genderize and nationalize, keyed by host."""

    def __init__(self):
        self.responses: dict[str, tuple[int, object]] = {
            AGIFY_HOST: (200, {"count": 1200, "name": "John", "age": 35}),
            GENDERIZE_HOST: (200, {"count": 1200, "name": "John", "gender": "male", "probability": 0.99}),
            NATIONALIZE_HOST: (
                200,
                {
                    "count": 1200,
                    "name": "John",
                    "country": [
                        {"country_id": "US", "probability": 0.8},
                        {"country_id": "GB", "probability": 0.1},
                    ],
                },
            ),
        }
        self.delays: dict[str, float] = {}
        self.requests: list[httpx.Request] = []

    def respond(self, host: str, status: int, payload: object) -> None:
        self.responses[host] = (status, payload)

    def slow(self, host: str, seconds: float) -> None:
        self.delays[host] = seconds

    def hosts_called(self) -> list[str]:
        return [r.url.host for r in self.requests]

    async def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if request.url.host in self.delays:
            await asyncio.sleep(self.delays[request.url.host])
        status, payload = self.responses[request.url.host]
        return httpx.Response(status, json=payload)

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)


class RecordingSession(Session):
    """Session that keeps the text of every statement it executes."""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.statements: list[str] = []

    def execute(self, sql, params=()):
        self.statements.append(" ".join(sql.split()))
        return super().execute(sql, params)

    def writes(self) -> list[str]:
        return [s for s in self.statements if s.split(" ", 1)[0].upper() in ("INSERT", "UPDATE", "DELETE")]


@pytest.fixture
def settings():
    return Settings(
        database_url="sqlite:///:memory:",
        log_level="WARNING",
        log_format="console",
        auto_migrate=True,
        enrichment_timeout=5.0,
        disconnect_poll_interval=0.05,
    )


@pytest.fixture
def database():
    """Open in-memory database with the schema applied."""
    db = Database("sqlite:///:memory:").open()
    with db.session() as session:
        apply_schema(session)
    yield db
    db.close()


@pytest.fixture
def session(database):
    with database.session() as s:
        yield s


@pytest.fixture
def recording_session(database):
    with database.session() as s:
        yield RecordingSession(s._conn, s.dialect)


@pytest.fixture
def genders(session):
    return GenderRepository(session)


@pytest.fixture
def nationalities(session):
    return NationalityRepository(session)


@pytest.fixture
def persons(session):
    return PersonRepository(session)


@pytest.fixture
def lookups():
    return FakeLookups()


@pytest.fixture
def enrichment_client(lookups):
    return NameEnrichmentClient(transport=lookups.transport)


@pytest.fixture
def app(settings, lookups):
    return create_app(
        settings,
        database=Database("sqlite:///:memory:"),
        enrichment_client=NameEnrichmentClient(transport=lookups.transport),
    )


@pytest.fixture
def api(app):
    """TestClient with the lifespan running (database open, schema applied)."""
    with TestClient(app, raise_server_exceptions=False) as client:
        yield client
