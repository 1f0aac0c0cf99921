"""
Query expressions.

Expressions are kept opaque by the service and interpreted by persistence
backends. They are held in a dict whose integer keys store positional
operator expressions and whose string keys store field equality filters:

    {"author": "Herbert", 0: "sort(-year)", 1: "limit(10,20)"}

A plain list is accepted and numbered from zero.
"""

from __future__ import annotations

import re
from typing import Any, Mapping, Sequence

from shared.utils.exceptions import InvalidArgumentError

SELECT_PATTERN = re.compile(r"^select\((.*)\)$")
OPERATOR_PATTERN = re.compile(r"^(?P<name>[A-Za-z_]\w*)\((?P<args>.*)\)$")


def is_positional(key: Any) -> bool:
    return isinstance(key, int) and not isinstance(key, bool)


def normalize_expressions(
    expressions: Mapping[Any, Any] | Sequence[Any] | None,
) -> dict[Any, Any]:
    """Return a fresh dict of expressions; the caller's object is never mutated."""
    if expressions is None:
        return {}
    if isinstance(expressions, Mapping):
        return dict(expressions)
    if isinstance(expressions, (list, tuple)):
        return dict(enumerate(expressions))
    raise InvalidArgumentError(
        f"Expressions must be a mapping or a sequence, got {type(expressions).__name__}"
    )


def append_expression(expressions: dict[Any, Any], expression: Any) -> dict[Any, Any]:
    """Store `expression` under the next positional index."""
    indexes = [key for key in expressions if is_positional(key)]
    expressions[max(indexes) + 1 if indexes else 0] = expression
    return expressions


def find_select(expressions: Mapping[Any, Any]) -> Any | None:
    """Return the first positional `select(...)` projection, if any."""
    for key, value in expressions.items():
        if is_positional(key) and isinstance(value, str) and SELECT_PATTERN.match(value):
            return value
    return None


def select_expression(*fields: str) -> str:
    return f"select({','.join(fields)})"


def parse_operator(expression: str) -> tuple[str, list[str]]:
    """
    Split an operator expression into its name and arguments.

    >>> parse_operator("sort(+name,-year)")
    ('sort', ['+name', '-year'])
    """
    match = OPERATOR_PATTERN.match(expression.strip())
    if match is None:
        raise InvalidArgumentError(f"Invalid query expression: '{expression}'")
    args = [arg.strip() for arg in match.group("args").split(",")]
    return match.group("name"), [arg for arg in args if arg]


def sort_expression(*fields: str) -> str:
    return f"sort({','.join(fields)})"


def limit_expression(count: int, start: int = 0) -> str:
    return f"limit({count},{start})"
