"""
Exception handlers - map :class:`EnricherError` categories to RFC 7807 responses.
"""

from __future__ import annotations

from typing import Any

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from name_enricher.api.schemas import ErrorDetail, ProblemDetail
from name_enricher.core.errors import EnricherError, EnrichmentError, ErrorCategory
from name_enricher.observability.logging import get_logger

logger = get_logger(__name__)

CATEGORY_TO_STATUS: dict[ErrorCategory, int] = {
    ErrorCategory.VALIDATION: 400,
    ErrorCategory.NOT_FOUND: 404,
    ErrorCategory.CONFLICT: 409,
    ErrorCategory.EXTERNAL: 500,
    ErrorCategory.DATABASE: 500,
    ErrorCategory.INTERNAL: 500,
}

_TITLES: dict[int, str] = {
    400: "Bad Request",
    404: "Not Found",
    409: "Conflict",
    500: "Internal Server Error",
}


def status_for_category(category: ErrorCategory) -> int:
    """Resolve an error category to an HTTP status, defaulting to 500."""
    return CATEGORY_TO_STATUS.get(category, 500)


def problem_response(
    *,
    status: int,
    title: str,
    detail: str = "",
    instance: str = "",
    stage: str | None = None,
    errors: list[dict[str, Any]] | None = None,
) -> JSONResponse:
    """Build a RFC 7807 JSON error response."""
    body = ProblemDetail(
        title=title,
        status=status,
        detail=detail,
        instance=instance,
        stage=stage,
        errors=[ErrorDetail(**e) for e in errors or []],
    )
    return JSONResponse(status_code=status, content=body.model_dump())


async def enricher_error_handler(request: Request, exc: EnricherError) -> JSONResponse:
    status = status_for_category(exc.category)
    if isinstance(exc, EnrichmentError):
        title, stage = exc.tag, exc.stage
    else:
        title, stage = _TITLES.get(status, "Error"), None

    log = logger.error if status >= 500 else logger.warning
    log("request_error", path=request.url.path, status=status, **exc.to_dict())

    return problem_response(
        status=status,
        title=title,
        detail=exc.message,
        instance=request.url.path,
        stage=stage,
    )


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Request validation failures are client errors (400), not 422."""
    errors = [
        {
            "code": str(err.get("type", "invalid")),
            "message": str(err.get("msg", "")),
            "field": ".".join(str(part) for part in err.get("loc", ())),
        }
        for err in exc.errors()
    ]
    logger.warning("request_validation_failed", path=request.url.path, errors=errors)
    return problem_response(
        status=400,
        title="Bad Request",
        detail="Invalid request",
        instance=request.url.path,
        errors=errors,
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all for unhandled exceptions - returns 500 with ProblemDetail."""
    logger.exception("unhandled_exception", path=request.url.path, error=str(exc))
    return problem_response(
        status=500,
        title="Internal Server Error",
        detail=str(exc),
        instance=request.url.path,
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(EnricherError, enricher_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
