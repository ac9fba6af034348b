"""Tests for the person creation pipeline."""

import asyncio
import time

import pytest

from conftest import AGIFY_HOST, GENDERIZE_HOST, NATIONALIZE_HOST
from name_enricher.core.database import Database
from name_enricher.core.errors import (
    ClientInputError,
    ConstraintViolationError,
    EnrichmentError,
    ErrorCategory,
    ExternalServiceError,
    NationalityNotFoundError,
)
from name_enricher.core.models import PersonCreate
from name_enricher.core.schema import apply_schema
from name_enricher.enrichment.orchestrator import PersonEnricher
from name_enricher.repositories import GenderRepository


def _count(session, table):
    return session.fetchone(f"SELECT COUNT(*) FROM {table}")[0]


@pytest.fixture
def enricher(session, enrichment_client):
    return PersonEnricher(session, enrichment_client)


@pytest.mark.asyncio
class TestCreate:
    async def test_enriches_and_stores(self, enricher, persons, lookups):
        person = await enricher.create(PersonCreate(name="John", surname="Doe"))

        assert person.age == 35
        assert person.gender.name == "male"
        assert person.nationality.name == "US"
        assert persons.get(person.id) == person
        assert lookups.hosts_called() == [AGIFY_HOST, GENDERIZE_HOST, NATIONALIZE_HOST]

    async def test_reuses_existing_dictionary_rows(self, enricher, genders, nationalities):
        male = genders.create("Male")
        us = nationalities.create("US")

        person = await enricher.create(PersonCreate(name="John", surname="Doe"))

        assert person.gender.id == male.id
        assert person.nationality.id == us.id
        assert len(genders.list()) == 1

    async def test_does_not_confuse_male_with_female(self, enricher, genders):
        female = genders.create("female")
        person = await enricher.create(PersonCreate(name="John", surname="Doe"))
        assert person.gender.id != female.id
        assert person.gender.name == "male"

    async def test_unknown_gender_leaves_reference_empty(self, enricher, session, lookups):
        lookups.respond(GENDERIZE_HOST, 200, {"name": "Kim", "gender": None, "probability": 0.0})
        person = await enricher.create(PersonCreate(name="Kim", surname="Lee"))
        assert person.gender is None
        assert _count(session, "genders") == 0

    async def test_blank_name_is_client_error(self, enricher, lookups):
        with pytest.raises(ClientInputError):
            await enricher.create(PersonCreate(name="  ", surname="Doe"))
        assert lookups.requests == []


@pytest.mark.asyncio
class TestFailures:
    async def test_age_failure_writes_nothing(self, enricher, session, lookups):
        lookups.respond(AGIFY_HOST, 500, {"error": "down"})

        with pytest.raises(EnrichmentError) as exc_info:
            await enricher.create(PersonCreate(name="John", surname="Doe"))

        err = exc_info.value
        assert err.stage == "age"
        assert err.tag == "error during getting age"
        assert isinstance(err.cause, ExternalServiceError)
        assert lookups.hosts_called() == [AGIFY_HOST]
        assert _count(session, "persons") == 0

    async def test_gender_failure_is_tagged(self, enricher, lookups):
        lookups.respond(GENDERIZE_HOST, 503, {})
        with pytest.raises(EnrichmentError) as exc_info:
            await enricher.create(PersonCreate(name="John", surname="Doe"))
        assert exc_info.value.tag == "error during getting gender"

    async def test_nationality_failure_writes_nothing(self, enricher, session, lookups):
        lookups.respond(NATIONALIZE_HOST, 200, {"name": "John", "country": []})

        with pytest.raises(EnrichmentError) as exc_info:
            await enricher.create(PersonCreate(name="John", surname="Doe"))

        err = exc_info.value
        assert err.stage == "nationality"
        assert err.category is ErrorCategory.INTERNAL
        assert isinstance(err.cause, NationalityNotFoundError)
        assert _count(session, "genders") == 0
        assert _count(session, "persons") == 0
        assert not session.in_transaction

    async def test_creation_failure_rolls_back_dictionaries(self, session, enrichment_client, lookups):
        class FailingPersons:
            def create(self, person):
                raise RuntimeError("insert failed")

        enricher = PersonEnricher(session, enrichment_client, persons=FailingPersons())

        with pytest.raises(EnrichmentError) as exc_info:
            await enricher.create(PersonCreate(name="John", surname="Doe"))

        assert exc_info.value.stage == "creation"
        assert exc_info.value.category is ErrorCategory.INTERNAL
        assert _count(session, "genders") == 0
        assert _count(session, "nationalities") == 0


class RacingGenders(GenderRepository):
    """Behaves as if another request inserted the label between lookup and insert."""

    def __init__(self, session):
        super().__init__(session)
        self.raced = False

    def find_by_name(self, name):
        if not self.raced:
            return None
        return super().find_by_name(name)

    def create(self, name):
        if not self.raced:
            self.raced = True
            raise ConstraintViolationError("duplicate key value violates unique constraint")
        return super().create(name)


@pytest.mark.asyncio
async def test_concurrent_label_insert_reuses_winner(session, enrichment_client, genders):
    male = genders.create("male")
    enricher = PersonEnricher(session, enrichment_client, genders=RacingGenders(session))

    person = await enricher.create(PersonCreate(name="John", surname="Doe"))

    assert person.gender.id == male.id
    assert [g.name for g in genders.list()] == ["male"]
    assert _count(session, "nationalities") == 1
    assert _count(session, "persons") == 1


@pytest.mark.asyncio
async def test_concurrent_creates_do_not_stall_each_other(tmp_path, enrichment_client, lookups):
    url = f"sqlite:///{tmp_path / 'enricher.db'}"
    first, second = Database(url).open(), Database(url).open()
    with first.session() as session:
        apply_schema(session)
    lookups.slow(NATIONALIZE_HOST, 0.2)

    started = time.monotonic()
    try:
        with first.session() as a, second.session() as b:
            john, jane = await asyncio.gather(
                PersonEnricher(a, enrichment_client).create(PersonCreate(name="John", surname="Doe")),
                PersonEnricher(b, enrichment_client).create(PersonCreate(name="John", surname="Roe")),
            )
            assert john.gender.id == jane.gender.id
            assert _count(a, "genders") == 1
            assert _count(a, "persons") == 2
    finally:
        first.close()
        second.close()
    assert time.monotonic() - started < 2.0
