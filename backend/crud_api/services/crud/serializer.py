"""
Entity serializer.

Converts entities, entity lists and paginators returned by CRUD services into
plain data for the presentation layer.

Usage:
    serializer = EntitySerializer(registry)
    serializer.serialize(book)        # {"id": 1, "title": "Dune", ...}

    # With an output schema registered for an entity type
    serializer = EntitySerializer(registry, output_schemas={"Book": BookOutput})
"""

from __future__ import annotations

from datetime import date, datetime
from typing import Any, Mapping

from pydantic import BaseModel

from .paginator import BasePaginator
from .registry import EntityRegistry


class EntitySerializer:
    """Serializes registered entities to dictionaries."""

    def __init__(
        self,
        registry: EntityRegistry,
        output_schemas: Mapping[str, type[BaseModel]] | None = None,
    ):
        self._registry = registry
        self._output_schemas = dict(output_schemas or {})

    def to_dict(self, entity: Any) -> dict[str, Any]:
        """
        Serialize a single entity.

        Uses the output schema registered for the entity type when there is
        one, otherwise every known field of the entity.
        """
        entity_type = self._registry.for_entity(entity)

        schema = self._output_schemas.get(entity_type.name)
        if schema is not None:
            return schema.model_validate(entity, from_attributes=True).model_dump(mode="json")

        data = {}
        for field_name in entity_type.fields:
            value = getattr(entity, field_name, None)
            if isinstance(value, (datetime, date)):
                value = value.isoformat()
            data[field_name] = value
        return data

    def serialize(self, data: Any) -> Any:
        """Serialize any service payload."""
        if data is None or isinstance(data, (str, int, float, bool)):
            return data
        if isinstance(data, BasePaginator):
            return {
                "items": [self.serialize(item) for item in data.get_current_items()],
                "pagination": data.to_dict(),
            }
        if isinstance(data, Mapping):
            return {key: self.serialize(value) for key, value in data.items()}
        if isinstance(data, tuple):
            return [self.serialize(value) for value in data]
        if isinstance(data, (list, set, frozenset)):
            return [self.serialize(item) for item in data]
        if isinstance(data, (datetime, date)):
            return data.isoformat()
        if self._registry.find(data) is None:
            # Scalars such as Decimal or UUID are left to the response encoder
            return data
        return self.to_dict(data)
