"""
Entity registry.

Resolves, once per entity class and at startup, how to instantiate an entity
and which mutator applies each input field, so the service never looks
methods up by name at call time.

Mutators are discovered in this order:
1. explicit ``set_<field>`` methods,
2. column attributes of SQLAlchemy mapped classes,
3. dataclass fields and properties defining a setter.

Usage:
    registry = EntityRegistry()
    registry.register(Book)               # registered as "Book"
    registry.register(Author, "author")

    book_type = registry.get("Book")
    book = book_type.instantiate()
    book_type.mutator("title")(book, "Dune")
"""

from __future__ import annotations

import dataclasses
import inspect as pyinspect
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Callable, Iterator, Mapping

from sqlalchemy import inspect as sa_inspect
from sqlalchemy.orm import Mapper

from shared.config.logging import get_logger
from shared.utils.exceptions import InvalidArgumentError

logger = get_logger(__name__)

Setter = Callable[[Any, Any], None]

SETTER_PREFIX = "set_"


def _method_setter(function: Callable[[Any, Any], Any]) -> Setter:
    def apply(entity: Any, value: Any) -> None:
        function(entity, value)

    return apply


def _attribute_setter(name: str) -> Setter:
    def apply(entity: Any, value: Any) -> None:
        setattr(entity, name, value)

    return apply


def _mapper(cls: type) -> Mapper | None:
    mapper = sa_inspect(cls, raiseerr=False)
    return mapper if isinstance(mapper, Mapper) else None


@dataclass(frozen=True)
class EntityType:
    """Capabilities of one entity class."""

    name: str
    cls: type
    factory: Callable[[], Any]
    mutators: Mapping[str, Setter]
    fields: tuple[str, ...]
    identifier: tuple[str, ...]

    def instantiate(self) -> Any:
        """Create a default entity."""
        return self.factory()

    def mutator(self, field: str) -> Setter | None:
        return self.mutators.get(field)

    @property
    def mapper(self) -> Mapper | None:
        return _mapper(self.cls)

    @classmethod
    def from_class(
        cls,
        entity_cls: type,
        name: str | None = None,
        *,
        factory: Callable[[], Any] | None = None,
    ) -> EntityType:
        if not isinstance(entity_cls, type):
            raise InvalidArgumentError(f"Entity must be a class, got {entity_cls!r}")

        mutators: dict[str, Setter] = {}
        fields: list[str] = []
        identifier: tuple[str, ...] = ()

        for attr_name, member in pyinspect.getmembers(entity_cls, callable):
            if attr_name.startswith(SETTER_PREFIX) and len(attr_name) > len(SETTER_PREFIX):
                mutators[attr_name[len(SETTER_PREFIX):]] = _method_setter(member)

        mapper = _mapper(entity_cls)
        if mapper is not None:
            for column_attr in mapper.column_attrs:
                fields.append(column_attr.key)
                mutators.setdefault(column_attr.key, _attribute_setter(column_attr.key))
            identifier = tuple(
                mapper.get_property_by_column(column).key for column in mapper.primary_key
            )
        elif dataclasses.is_dataclass(entity_cls):
            for dc_field in dataclasses.fields(entity_cls):
                fields.append(dc_field.name)
                mutators.setdefault(dc_field.name, _attribute_setter(dc_field.name))

        for attr_name, member in vars(entity_cls).items():
            if isinstance(member, property) and not attr_name.startswith("_"):
                if attr_name not in fields:
                    fields.append(attr_name)
                if member.fset is not None:
                    mutators.setdefault(attr_name, _attribute_setter(attr_name))

        if not identifier and "id" in fields:
            identifier = ("id",)

        return cls(
            name=name or entity_cls.__name__,
            cls=entity_cls,
            factory=factory or entity_cls,
            mutators=MappingProxyType(mutators),
            fields=tuple(fields),
            identifier=identifier,
        )


class EntityRegistry:
    """Registration table of the entity types managed by CRUD services."""

    def __init__(self) -> None:
        self._types: dict[str, EntityType] = {}
        self._by_class: dict[type, EntityType] = {}

    def register(
        self,
        entity_cls: type,
        name: str | None = None,
        *,
        factory: Callable[[], Any] | None = None,
    ) -> EntityType:
        """
        Register an entity class under `name` (defaults to the class name).

        Registering the same class under the same name again is a no-op.

        Raises:
            InvalidArgumentError: If the name is already taken by another class.
        """
        entity_type = EntityType.from_class(entity_cls, name, factory=factory)
        existing = self._types.get(entity_type.name)
        if existing is not None:
            if existing.cls is not entity_cls:
                raise InvalidArgumentError(
                    f"Entity name '{entity_type.name}' is already registered "
                    f"for {existing.cls.__qualname__}"
                )
            return existing

        self._types[entity_type.name] = entity_type
        self._by_class.setdefault(entity_cls, entity_type)
        logger.debug(
            "Entity registered",
            entity=entity_type.name,
            mutators=sorted(entity_type.mutators),
        )
        return entity_type

    def get(self, name: str) -> EntityType:
        try:
            return self._types[name]
        except KeyError:
            raise InvalidArgumentError(f"Unknown entity type '{name}'") from None

    def find(self, entity: Any) -> EntityType | None:
        """Find the registered type of an entity instance, if any."""
        for klass in type(entity).__mro__:
            entity_type = self._by_class.get(klass)
            if entity_type is not None:
                return entity_type
        return None

    def for_entity(self, entity: Any) -> EntityType:
        """Find the registered type of an entity instance."""
        entity_type = self.find(entity)
        if entity_type is not None:
            return entity_type
        raise InvalidArgumentError(
            f"Entity class {type(entity).__qualname__} is not registered"
        )

    def __contains__(self, name: object) -> bool:
        return name in self._types

    def __iter__(self) -> Iterator[EntityType]:
        return iter(self._types.values())

    def __len__(self) -> int:
        return len(self._types)
