"""Tests for run_cancellable and for cancelling a person creation part way through."""

import asyncio
import threading
import time

import pytest

from conftest import AGIFY_HOST, GENDERIZE_HOST, NATIONALIZE_HOST
from name_enricher.api.cancellation import ClientDisconnectedError, DeadlineExceededError, run_cancellable
from name_enricher.core.models import PersonCreate
from name_enricher.enrichment.orchestrator import PersonEnricher
from name_enricher.repositories import PersonRepository


class Work:
    """Coroutine that records whether it finished or was cancelled."""

    def __init__(self, delay: float, result: object = "done"):
        self.delay = delay
        self.result = result
        self.cancelled = False

    async def __call__(self):
        try:
            await asyncio.sleep(self.delay)
        except asyncio.CancelledError:
            self.cancelled = True
            raise
        return self.result


async def never_disconnected() -> bool:
    return False


async def always_disconnected() -> bool:
    return True


@pytest.mark.asyncio
class TestRunCancellable:
    async def test_returns_result(self):
        work = Work(0.01, result=42)
        result = await run_cancellable(work(), is_disconnected=never_disconnected, timeout=1.0, poll_interval=0.005)
        assert result == 42
        assert not work.cancelled

    async def test_propagates_work_errors(self):
        async def fail():
            raise ValueError("bad")

        with pytest.raises(ValueError):
            await run_cancellable(fail(), is_disconnected=never_disconnected, timeout=1.0)

    async def test_disconnect_cancels_work(self):
        work = Work(10)
        with pytest.raises(ClientDisconnectedError):
            await run_cancellable(work(), is_disconnected=always_disconnected, timeout=5.0, poll_interval=0.01)
        assert work.cancelled

    async def test_deadline_cancels_work(self):
        work = Work(10)
        with pytest.raises(DeadlineExceededError):
            await run_cancellable(work(), is_disconnected=never_disconnected, timeout=0.05, poll_interval=0.01)
        assert work.cancelled


def _count(session, table):
    return session.fetchone(f"SELECT COUNT(*) FROM {table}")[0]


class SlowPersons(PersonRepository):
    """Person store whose insert blocks long enough for the caller to leave."""

    def __init__(self, session):
        super().__init__(session)
        self.entered = threading.Event()

    def create(self, person):
        self.entered.set()
        time.sleep(0.2)
        return super().create(person)


@pytest.mark.asyncio
class TestCancelledEnrichment:
    async def test_disconnect_during_lookup_writes_nothing(self, session, enrichment_client, lookups):
        lookups.slow(NATIONALIZE_HOST, 10)
        enricher = PersonEnricher(session, enrichment_client)

        async def gone_while_nationalize_pending():
            return NATIONALIZE_HOST in lookups.hosts_called()

        with pytest.raises(ClientDisconnectedError):
            await run_cancellable(
                enricher.create(PersonCreate(name="John", surname="Doe")),
                is_disconnected=gone_while_nationalize_pending,
                timeout=5.0,
                poll_interval=0.01,
            )

        assert lookups.hosts_called() == [AGIFY_HOST, GENDERIZE_HOST, NATIONALIZE_HOST]
        assert _count(session, "genders") == 0
        assert _count(session, "persons") == 0
        assert not session.in_transaction

    async def test_disconnect_during_write_rolls_back(self, session, enrichment_client):
        slow_persons = SlowPersons(session)
        enricher = PersonEnricher(session, enrichment_client, persons=slow_persons)

        async def gone_once_insert_started():
            return slow_persons.entered.is_set()

        with pytest.raises(ClientDisconnectedError):
            await run_cancellable(
                enricher.create(PersonCreate(name="John", surname="Doe")),
                is_disconnected=gone_once_insert_started,
                timeout=5.0,
                poll_interval=0.01,
            )

        assert slow_persons.entered.is_set()
        assert _count(session, "genders") == 0
        assert _count(session, "nationalities") == 0
        assert _count(session, "persons") == 0
        assert not session.in_transaction
