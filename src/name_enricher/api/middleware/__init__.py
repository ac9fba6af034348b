"""API middleware package."""

from name_enricher.api.middleware.request_context import (
    REQUEST_ID_HEADER,
    RequestContextMiddleware,
    get_request_id,
)

__all__ = [
    "REQUEST_ID_HEADER",
    "RequestContextMiddleware",
    "get_request_id",
]
