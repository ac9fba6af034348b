"""
Structured error types for the name enricher.

Every failure the service can surface is an :class:`EnricherError`. Each
error carries a :class:`ErrorCategory` that the API layer maps to an HTTP
status, an optional chained cause, and free-form context for logging.

Architecture:
    ::

        EnricherError (INTERNAL)
        ├── ClientInputError            (VALIDATION)  -> 400
        ├── NotFoundError               (NOT_FOUND)   -> 404
        │   └── NationalityNotFoundError
        ├── ExternalServiceError        (EXTERNAL)    -> 500
        ├── StoreError                  (DATABASE)    -> 500
        │   └── ConstraintViolationError (CONFLICT)   -> 409
        └── EnrichmentError             (INTERNAL)    -> 500

Usage:
    from name_enricher.core.errors import ExternalServiceError

    try:
        response.raise_for_status()
    except httpx.HTTPStatusError as e:
        raise ExternalServiceError("agify", "returned 500", cause=e)
"""

from __future__ import annotations

from enum import Enum
from typing import Any


class ErrorCategory(str, Enum):
    """Error categories used for HTTP mapping and log routing."""

    VALIDATION = "VALIDATION"
    NOT_FOUND = "NOT_FOUND"
    CONFLICT = "CONFLICT"
    EXTERNAL = "EXTERNAL"
    DATABASE = "DATABASE"
    INTERNAL = "INTERNAL"


class EnricherError(Exception):
    """Base exception for all name enricher errors.

    Subclasses set ``default_category``; callers may override it per
    instance. ``cause`` is also stored as ``__cause__`` so tracebacks show
    the underlying driver or transport failure.
    """

    default_category: ErrorCategory = ErrorCategory.INTERNAL

    def __init__(
        self,
        message: str,
        *,
        category: ErrorCategory | None = None,
        context: dict[str, Any] | None = None,
        cause: BaseException | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.category = category or self.default_category
        self.context = dict(context or {})
        self.cause = cause
        if cause is not None:
            self.__cause__ = cause

    def with_context(self, **kwargs: Any) -> EnricherError:
        """Add context to this error (fluent API)."""
        self.context.update(kwargs)
        return self

    def to_dict(self) -> dict[str, Any]:
        """Serialize for structured logging."""
        result: dict[str, Any] = {
            "error_type": type(self).__name__,
            "message": self.message,
            "category": self.category.value,
        }
        if self.context:
            result["context"] = self.context
        if self.cause is not None:
            result["cause"] = f"{type(self.cause).__name__}: {self.cause}"
        return result

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.message!r}, category={self.category.value})"


class ClientInputError(EnricherError):
    """Malformed id, missing required field, or invalid payload."""

    default_category = ErrorCategory.VALIDATION


class NotFoundError(EnricherError):
    """A lookup by id matched zero rows."""

    default_category = ErrorCategory.NOT_FOUND

    def __init__(self, entity: str, entity_id: Any = None, message: str | None = None, **kwargs: Any):
        message = message or f"{entity} with id={entity_id} not found"
        super().__init__(message, **kwargs)
        self.entity = entity
        self.entity_id = entity_id


class NationalityNotFoundError(NotFoundError):
    """The nationality service returned no country candidates."""

    def __init__(self, name: str, **kwargs: Any):
        super().__init__(
            "nationality",
            message=f"country not found for name: {name}",
            context={"name": name},
            **kwargs,
        )


class ExternalServiceError(EnricherError):
    """Transport or decode failure talking to a name lookup service."""

    default_category = ErrorCategory.EXTERNAL

    def __init__(self, service: str, message: str, **kwargs: Any):
        super().__init__(f"{service}: {message}", **kwargs)
        self.service = service


class StoreError(EnricherError):
    """Query, execute or fetch failure against the relational store."""

    default_category = ErrorCategory.DATABASE


class ConstraintViolationError(StoreError):
    """Uniqueness or foreign key violation."""

    default_category = ErrorCategory.CONFLICT


class EnrichmentError(EnricherError):
    """A person creation stage failed.

    ``stage`` names the pipeline step and ``tag`` is the human-readable label
    returned to API clients (``"error during getting age"``). Every stage
    failure is INTERNAL whatever the cause; the cause still supplies the
    message, so an empty nationality answer reads "country not found".
    """

    STAGE_TAGS: dict[str, str] = {
        "age": "error during getting age",
        "gender": "error during getting gender",
        "gender_resolve": "error during creating gender",
        "nationality": "error during getting nationality",
        "nationality_resolve": "error during creating nationality",
        "creation": "error during creation",
    }

    def __init__(self, stage: str, cause: BaseException):
        super().__init__(str(cause), cause=cause, context={"stage": stage})
        self.stage = stage

    @property
    def tag(self) -> str:
        return self.STAGE_TAGS.get(self.stage, f"error during {self.stage}")


__all__ = [
    "ErrorCategory",
    "EnricherError",
    "ClientInputError",
    "NotFoundError",
    "NationalityNotFoundError",
    "ExternalServiceError",
    "StoreError",
    "ConstraintViolationError",
    "EnrichmentError",
]
