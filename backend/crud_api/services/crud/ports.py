"""
Contracts the CRUD service depends on.

- Persistence: storage backend, every read keyed by entity type name
- SerializablePersistence: persistence able to hand out its entity registry
- InputFilterPort / FieldElementPort: per-call validation session
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Mapping, Protocol, Sequence, runtime_checkable

if TYPE_CHECKING:
    from .paginator import Paginator
    from .registry import EntityRegistry

# Query expressions: integer keys hold operator expressions such as
# "select(id,name)" or "sort(-name)", string keys hold equality filters.
Expressions = Mapping[Any, Any]


@runtime_checkable
class Persistence(Protocol):
    """Storage abstraction boundary."""

    def fetch_all(self, entity_name: str, expressions: Expressions) -> Sequence[Any]:
        ...

    def fetch_one(self, entity_name: str, expressions: Expressions) -> Any | None:
        ...

    def fetch_page(self, entity_name: str, expressions: Expressions) -> Paginator:
        ...

    def fetch_pairs(
        self,
        entity_name: str,
        id_field: str,
        label_field: str,
        expressions: Expressions,
    ) -> list[tuple[Any, Any]]:
        ...

    def retrieve(self, entity_name: str, entity_id: Any) -> Any:
        """Return the entity matching `entity_id`; raise when not found."""
        ...

    def create(self, entity: Any) -> None:
        ...

    def update(self, entity: Any) -> None:
        ...

    def delete(self, entity: Any) -> None:
        ...


@runtime_checkable
class SerializablePersistence(Persistence, Protocol):
    """Persistence exposing the registry needed to serialize its entities."""

    @property
    def registry(self) -> EntityRegistry:
        ...


class FieldElementPort(Protocol):
    """A named input field holding its validated value."""

    name: str

    def get_value(self) -> Any:
        ...

    def get_ignore(self) -> bool:
        ...


class InputFilterPort(Protocol):
    """
    Validation session built fresh for each create/update call.

    Lifecycle: constructed, validated once, consulted for values or
    messages, then discarded.
    """

    def is_valid(self, data: Mapping[str, Any]) -> bool:
        ...

    def is_array(self) -> bool:
        """True when the filter uses the unsupported grouped notation."""
        ...

    def get_elements(self) -> Mapping[str, FieldElementPort]:
        ...

    def get_sub_forms(self) -> Mapping[str, InputFilterPort]:
        ...

    def get_unfiltered_values(self) -> dict[str, Any]:
        ...

    def get_messages(self) -> dict[str, list[str]]:
        ...
