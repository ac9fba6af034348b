"""Structured logging with structlog.

``configure_logging()`` is called once at process start (API lifespan or CLI
entry point) and ``shutdown_logging()`` once at exit. Components receive a
bound logger at construction; ``get_logger()`` is the default they fall back
to when nothing is injected.

Every line carries ``service`` and ``version``. Records emitted through plain
stdlib logging (uvicorn, httpx) go through the same pre-chain so they render
in the same shape as structlog events.
"""

from __future__ import annotations

import logging
import sys
from functools import lru_cache
from typing import TYPE_CHECKING

import structlog

from name_enricher import __version__

if TYPE_CHECKING:
    from name_enricher.core.settings import Settings

# Per-request chatter that duplicates the middleware's request logs.
QUIET_LOGGERS = ("httpx", "httpcore", "uvicorn.access")


def service_stamp(service: str):
    """Processor adding ``service`` and ``version`` to every event."""

    def stamp(logger, method_name, event_dict):
        event_dict.setdefault("service", service)
        event_dict.setdefault("version", __version__)
        return event_dict

    return stamp


def configure_logging(settings: Settings | None = None) -> None:
    """Configure structlog and the stdlib root logger from ``settings``."""
    if settings is None:
        from name_enricher.core.settings import get_settings

        settings = get_settings()

    level = getattr(logging, settings.log_level.upper())
    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=level, force=True)
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))

    shared = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        service_stamp(settings.service_name),
    ]

    structlog.configure(
        processors=[
            *shared,
            structlog.processors.format_exc_info,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    if settings.log_format == "json":
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty())
    formatter = structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=shared,
        processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, renderer],
    )

    for handler in logging.root.handlers:
        handler.setFormatter(formatter)


def shutdown_logging() -> None:
    """Flush every root handler and drop request-scoped context."""
    clear_context()
    for handler in logging.root.handlers:
        handler.flush()


@lru_cache(maxsize=100)
def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)


def bind_context(**fields) -> None:
    """Attach ``fields`` to every event logged from the current context."""
    structlog.contextvars.bind_contextvars(**fields)


def clear_context() -> None:
    structlog.contextvars.clear_contextvars()
