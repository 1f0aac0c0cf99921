"""
Utilities module: Exceptions.
"""

from shared.utils.exceptions import (
    ServiceError,
    InvalidArgumentError,
    ServiceRuntimeError,
    EntityNotFoundError,
    ConfigurationError,
    NotFoundError,
)

__all__ = [
    "ServiceError",
    "InvalidArgumentError",
    "ServiceRuntimeError",
    "EntityNotFoundError",
    "ConfigurationError",
    "NotFoundError",
]
