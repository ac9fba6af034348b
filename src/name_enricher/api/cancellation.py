"""Run request-scoped work that stops when the caller goes away.

``run_cancellable`` drives a coroutine as its own task while polling the
request for a client disconnect. On disconnect or when the deadline passes the
task is cancelled, which aborts any in-flight HTTP lookup or abandons an
unfinished write so it rolls back instead of committing.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from typing import TypeVar

from name_enricher.core.errors import EnricherError
from name_enricher.observability.logging import get_logger

T = TypeVar("T")

logger = get_logger(__name__)


class ClientDisconnectedError(EnricherError):
    """The client closed the connection before the work finished."""


class DeadlineExceededError(EnricherError):
    """The work did not finish within its deadline."""


async def run_cancellable(
    work: Awaitable[T],
    *,
    is_disconnected: Callable[[], Awaitable[bool]],
    timeout: float,
    poll_interval: float = 0.25,
) -> T:
    """Await ``work``, cancelling it on disconnect or after ``timeout`` seconds.

    Raises:
        ClientDisconnectedError: ``is_disconnected()`` reported True first.
        DeadlineExceededError: ``timeout`` elapsed first.
    """
    task = asyncio.ensure_future(work)
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    try:
        while True:
            remaining = deadline - loop.time()
            if remaining <= 0:
                logger.warning("work_deadline_exceeded", timeout=timeout)
                raise DeadlineExceededError(f"request did not complete within {timeout}s")

            done, _ = await asyncio.wait({task}, timeout=min(poll_interval, remaining))
            if done:
                return task.result()

            if await is_disconnected():
                logger.info("client_disconnected")
                raise ClientDisconnectedError("client disconnected before the request completed")
    finally:
        if not task.done():
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                logger.info("work_cancelled")
            except Exception as e:
                logger.warning("work_failed_during_cancel", error=str(e))
