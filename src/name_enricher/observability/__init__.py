"""Observability - structured logging."""

from name_enricher.observability.logging import (
    bind_context,
    clear_context,
    configure_logging,
    get_logger,
    shutdown_logging,
)

__all__ = [
    "bind_context",
    "clear_context",
    "configure_logging",
    "get_logger",
    "shutdown_logging",
]
