"""Person creation pipeline.

Sequence for ``PersonEnricher.create``::

    age lookup -> gender lookup -> nationality lookup
               -> [worker thread, one transaction]
                  resolve/create gender -> resolve/create nationality
                  -> insert person
               -> joined Person

Nothing is written until every lookup has answered, so no transaction is open
while the event loop waits on the network. The writes run on a worker thread
because the drivers block. A request cancelled while the writes are running
marks them abandoned; the worker checks that flag before commit and rolls
back. Every failure is re-raised as :class:`EnrichmentError` naming the stage.
"""

from __future__ import annotations

import asyncio
import threading
from dataclasses import replace

from name_enricher.core.database import Session
from name_enricher.core.errors import ClientInputError, ConstraintViolationError, EnrichmentError
from name_enricher.core.models import NewPerson, Person, PersonCreate
from name_enricher.enrichment.client import NameEnrichmentClient
from name_enricher.observability.logging import get_logger
from name_enricher.repositories.dictionaries import (
    DictionaryRepository,
    GenderRepository,
    NationalityRepository,
)
from name_enricher.repositories.persons import PersonRepository

RESOLVE_STAGES = ("gender_resolve", "nationality_resolve")


class WriteAbandoned(Exception):
    """The request went away before the person was committed."""


class PersonEnricher:
    """Creates persons with age, gender and nationality filled in from their name."""

    def __init__(
        self,
        session: Session,
        client: NameEnrichmentClient,
        *,
        genders: GenderRepository | None = None,
        nationalities: NationalityRepository | None = None,
        persons: PersonRepository | None = None,
        logger=None,
    ):
        self._session = session
        self._client = client
        self._logger = logger or get_logger(__name__)
        self._genders = genders or GenderRepository(session, logger=self._logger)
        self._nationalities = nationalities or NationalityRepository(session, logger=self._logger)
        self._persons = persons or PersonRepository(session, logger=self._logger)

    async def create(self, request: PersonCreate) -> Person:
        """Run the full pipeline for ``request`` and return the stored person."""
        name = (request.name or "").strip()
        if not name:
            raise ClientInputError("name is required", context={"field": "name"})

        log = self._logger.bind(name=name, surname=request.surname)
        log.info("enrichment_started")

        age = await self._stage("age", self._client.fetch_age, name, log)
        gender_label = await self._stage("gender", self._client.fetch_gender_label, name, log)
        country = await self._stage("nationality", self._client.fetch_nationality_code, name, log)

        draft = NewPerson(
            name=name,
            surname=request.surname,
            patronymic=request.patronymic,
            age=age,
            gender_id=None,
            nationality_id=None,
        )
        abandoned = threading.Event()
        write = asyncio.ensure_future(
            asyncio.to_thread(self._persist, draft, gender_label, country, abandoned, log)
        )
        try:
            person = await asyncio.shield(write)
        except asyncio.CancelledError:
            # The session must stay borrowed until the worker lets go of it.
            abandoned.set()
            await asyncio.wait({write})
            if write.exception() is None:
                log.warning("enrichment_committed_before_cancel")
            else:
                log.info("enrichment_abandoned")
            raise

        log.info("enrichment_completed", id=person.id, age=age, gender=gender_label, nationality=country)
        return person

    async def _stage(self, stage: str, lookup, name: str, log):
        try:
            result = await lookup(name)
        except Exception as e:
            log.error("enrichment_stage_failed", stage=stage, error=str(e))
            raise EnrichmentError(stage, e) from e
        log.debug("enrichment_stage_completed", stage=stage, result=result)
        return result

    def _persist(
        self,
        draft: NewPerson,
        gender_label: str,
        country: str,
        abandoned: threading.Event,
        log,
    ) -> Person:
        """Resolve both dictionary rows and insert the person in one transaction.

        A unique violation while creating a dictionary row means a concurrent
        request inserted the same label first; the whole write is retried once
        so the second attempt reuses that row.
        """
        try:
            return self._write(draft, gender_label, country, abandoned, log)
        except EnrichmentError as e:
            if e.stage not in RESOLVE_STAGES or not isinstance(e.cause, ConstraintViolationError):
                raise
            log.info("dictionary_insert_raced", stage=e.stage)
        return self._write(draft, gender_label, country, abandoned, log)

    def _write(
        self,
        draft: NewPerson,
        gender_label: str,
        country: str,
        abandoned: threading.Event,
        log,
    ) -> Person:
        with self._session.transaction():
            gender_id = self._resolve("gender_resolve", self._genders, gender_label, log)
            nationality_id = self._resolve("nationality_resolve", self._nationalities, country, log)
            try:
                person = self._persons.create(
                    replace(draft, gender_id=gender_id, nationality_id=nationality_id)
                )
            except Exception as e:
                log.error("enrichment_stage_failed", stage="creation", error=str(e))
                raise EnrichmentError("creation", e) from e
            if abandoned.is_set():
                raise WriteAbandoned(draft.name)
        return person

    def _resolve(self, stage: str, repository: DictionaryRepository, label: str, log) -> int | None:
        """Id of the row named ``label``, creating it when absent.

        An empty label means the service had no answer; the person is stored
        without that reference.
        """
        if not label:
            log.info("dictionary_label_empty", stage=stage)
            return None
        try:
            existing = repository.find_by_name(label)
            if existing is not None:
                log.info("dictionary_entry_reused", stage=stage, label=label, id=existing.id)
                return existing.id
            created = repository.create(label)
        except Exception as e:
            log.error("enrichment_stage_failed", stage=stage, error=str(e))
            raise EnrichmentError(stage, e) from e
        log.info("dictionary_entry_created", stage=stage, label=label, id=created.id)
        return created.id
