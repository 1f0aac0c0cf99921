"""
Centralized exceptions for the service layer and the HTTP adapter.

Service errors are plain Python exceptions raised by the CRUD service layer
and its collaborators. HTTP errors wrap them for FastAPI with automatic
logging.

Usage:
    from shared.utils.exceptions import InvalidArgumentError, ServiceRuntimeError

    raise InvalidArgumentError("Unable to retrieve entity: the identifier is missing.")
    raise NotFoundError("Book", 42)
"""

from typing import Any, Mapping, Sequence

from fastapi import HTTPException, status

from shared.config.logging import get_logger

logger = get_logger(__name__)


# =============================================================================
# Service Layer Errors
# =============================================================================


class ServiceError(Exception):
    """Base class for every error raised by the service layer."""


class InvalidArgumentError(ServiceError, ValueError):
    """
    Caller contract violation detected before any backend interaction.

    Never shielded: the message is directly descriptive.
    """


class ServiceRuntimeError(ServiceError, RuntimeError):
    """
    Any other service failure.

    Raised with a shielded message when it wraps a backend exception, or
    directly for configuration errors only discoverable at call time.
    """


class PaginatorError(ServiceRuntimeError):
    """Disabled paginator feature was used."""


class EntityNotFoundError(ServiceError, LookupError):
    """Persistence could not find the entity matching an identifier."""

    def __init__(self, entity: str, entity_id: Any):
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{entity} with id {entity_id!r} not found")


class ConfigurationError(InvalidArgumentError):
    """Invalid ORM bootstrap configuration."""


# =============================================================================
# HTTP Errors
# =============================================================================


class AppException(HTTPException):
    """
    Base exception with automatic logging.

    All HTTP exceptions should inherit from this class
    to ensure consistent logging and response format.
    """

    def __init__(
        self,
        status_code: int,
        detail: Any,
        log_level: str = "warning",
        headers: dict[str, str] | None = None,
        **log_context: Any,
    ):
        log_fn = getattr(logger, log_level, logger.warning)
        log_message = detail if isinstance(detail, str) else detail.get("message", "")
        log_fn(log_message, status_code=status_code, **log_context)

        super().__init__(status_code=status_code, detail=detail, headers=headers)


class BadRequestError(AppException):
    """Caller contract violation (400)."""

    def __init__(self, detail: str, **log_context: Any):
        super().__init__(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=detail,
            log_level="warning",
            **log_context,
        )


class NotFoundError(AppException):
    """
    Entity not found error (404).

    Usage:
        raise NotFoundError("Book", 123)
    """

    def __init__(self, entity: str, entity_id: Any = None, **log_context: Any):
        if entity_id is not None:
            detail = f"{entity} with id {entity_id} not found"
        else:
            detail = f"{entity} not found"

        super().__init__(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=detail,
            log_level="warning",
            entity=entity,
            entity_id=entity_id,
            **log_context,
        )


class UnprocessableEntityError(AppException):
    """
    Input validation failure (422).

    Carries the submitted values back with the per-field violations so the
    client can redisplay its form.
    """

    def __init__(
        self,
        errors: Mapping[str, Sequence[str]],
        data: Any = None,
        **log_context: Any,
    ):
        detail = {
            "message": "Input data is not valid",
            "errors": {field: list(messages) for field, messages in errors.items()},
            "data": data,
        }
        super().__init__(
            status_code=422,
            detail=detail,
            log_level="info",
            fields=sorted(errors),
            **log_context,
        )


class InternalError(AppException):
    """
    Internal server error (500).

    Usage:
        raise InternalError(str(shielded_error))
    """

    def __init__(self, detail: str = "Internal server error", **log_context: Any):
        super().__init__(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=detail,
            log_level="error",
            **log_context,
        )
