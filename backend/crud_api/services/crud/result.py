"""
Result envelope returned by every CRUD service operation.

Validation failures travel in-band as a Result with VALIDATION_ERROR status;
every other failure is raised. Callers therefore test `result.is_success`
for user input problems and catch exceptions for system problems.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import IntEnum
from types import MappingProxyType
from typing import Any, Mapping, Sequence

from shared.utils.exceptions import InvalidArgumentError


class ResultStatus(IntEnum):
    """Outcome of a service operation."""

    SUCCESS = 0
    VALIDATION_ERROR = 1


Violations = Mapping[str, Sequence[str]]


def _freeze_errors(errors: Violations | None) -> Mapping[str, tuple[str, ...]] | None:
    if errors is None:
        return None
    return MappingProxyType(
        {name: tuple(messages) for name, messages in errors.items()}
    )


@dataclass(frozen=True)
class Result:
    """
    Immutable outcome of a service operation.

    Attributes:
        status: SUCCESS or VALIDATION_ERROR.
        data: Entity, list of entities, paginator, id/label pairs, or the
            unfiltered input values when validation failed.
        errors: Field name to violation messages. Only non-empty when
            status is VALIDATION_ERROR.
    """

    status: ResultStatus
    data: Any = None
    errors: Mapping[str, tuple[str, ...]] | None = field(default=None)

    def __post_init__(self) -> None:
        status = ResultStatus(self.status)
        if self.errors and status is not ResultStatus.VALIDATION_ERROR:
            raise InvalidArgumentError(
                "Violations may only be attached to a validation error result."
            )
        object.__setattr__(self, "status", status)
        object.__setattr__(self, "errors", _freeze_errors(self.errors))

    @classmethod
    def success(cls, data: Any = None) -> Result:
        return cls(ResultStatus.SUCCESS, data)

    @classmethod
    def validation_error(cls, data: Any, errors: Violations) -> Result:
        return cls(ResultStatus.VALIDATION_ERROR, data, errors)

    @property
    def is_success(self) -> bool:
        return self.status is ResultStatus.SUCCESS

    @property
    def is_validation_error(self) -> bool:
        return self.status is ResultStatus.VALIDATION_ERROR
