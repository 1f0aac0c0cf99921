"""
Entity populator: applies validated input fields to an entity.
"""

from __future__ import annotations

from typing import Any

from shared.utils.exceptions import ServiceRuntimeError

from .ports import InputFilterPort
from .registry import EntityType


class EntityPopulator:
    """
    Walks an input filter tree and applies each applicable field through the
    entity's mutator.

    The flat fields of a level are applied first, then each nested group,
    depth-first, against the same entity.
    """

    def populate(
        self,
        entity_type: EntityType,
        entity: Any,
        input_filter: InputFilterPort,
    ) -> None:
        """
        Populate `entity` from a validated input filter.

        Raises:
            ServiceRuntimeError: If the filter uses the grouped notation, or
                if a field has no mutator on the entity. Both are developer
                errors, not user input errors.
        """
        if input_filter.is_array():
            raise ServiceRuntimeError(
                f"Input filter '{type(input_filter).__name__}' shall not use the "
                "grouped notation (elements_belong_to) as this service does not "
                "implement the logic for this notation."
            )

        for name, element in input_filter.get_elements().items():
            if element.get_ignore():
                continue
            mutator = entity_type.mutator(name)
            if mutator is None:
                raise ServiceRuntimeError(
                    f"No setter method defined for field '{name}' "
                    f"of entity {entity_type.name}"
                )
            mutator(entity, element.get_value())

        for sub_form in input_filter.get_sub_forms().values():
            self.populate(entity_type, entity, sub_form)
