"""
Generic CRUD service layer.

One CrudService instance manages one entity type. It validates untyped input
through a fresh input filter, populates entities through the entity registry,
delegates storage to a persistence backend and returns a Result.

Failure channels:
- validation failures are returned in-band as a VALIDATION_ERROR Result;
- caller contract violations (missing identifier, non-mapping input,
  conflicting projection) raise InvalidArgumentError before the backend is touched;
- everything else raises ServiceRuntimeError with a shielded message.

Usage:
    registry = EntityRegistry()
    registry.register(Book)

    service = CrudService(
        "Book",
        BookFilter,
        SqlAlchemyPersistence(db, registry),
        registry=registry,
    )

    result = service.create({"title": "Dune"})
    if result.is_validation_error:
        return render_form(result.data, result.errors)
"""

from __future__ import annotations

from typing import Any, Callable, Mapping, Sequence

from pydantic import BaseModel

from shared.config.logging import get_logger, shield_logger
from shared.config.settings import settings
from shared.utils.exceptions import InvalidArgumentError, ServiceRuntimeError

from .expressions import append_expression, find_select, normalize_expressions, select_expression
from .populator import EntityPopulator
from .ports import InputFilterPort, Persistence, SerializablePersistence
from .registry import EntityRegistry, EntityType
from .result import Result
from .serializer import EntitySerializer
from .shield import ExceptionShield

logger = get_logger(__name__)

ExpressionsArg = Mapping[Any, Any] | Sequence[Any] | None


def default_shield() -> ExceptionShield:
    """Shield configured from settings: log-backed unless disabled."""
    # Log-backed by default; pass ExceptionShield() for the sink-less variant
    # that embeds diagnostics in messages.
    return ExceptionShield(shield_logger if settings.shield_log_details else None)


class CrudService:
    """
    Basic service layer implementing CRUD functions for persistent entities.

    Args:
        entity_name: Registered name of the managed entity type.
        input_filter_cls: Factory of the input filter used by create/update.
        persister: Persistence backend.
        registry: Entity registry; defaults to the persister's own registry
            when it exposes one.
        shield: Exception shield; defaults to `default_shield()`.
        populator: Entity populator.
        output_schema: Optional pydantic schema used by the serializer.
    """

    def __init__(
        self,
        entity_name: str,
        input_filter_cls: Callable[[], InputFilterPort],
        persister: Persistence,
        *,
        registry: EntityRegistry | None = None,
        shield: ExceptionShield | None = None,
        populator: EntityPopulator | None = None,
        output_schema: type[BaseModel] | None = None,
    ):
        if registry is None:
            if not isinstance(persister, SerializablePersistence):
                raise InvalidArgumentError(
                    f"An entity registry is required with a {type(persister).__name__} persister"
                )
            registry = persister.registry

        self._entity_name = entity_name
        self._input_filter_cls = input_filter_cls
        self._persister = persister
        self._entity_type: EntityType = registry.get(entity_name)
        self._shield = shield if shield is not None else default_shield()
        self._populator = populator or EntityPopulator()
        self._output_schema = output_schema
        self._serializer: EntitySerializer | None = None

    @property
    def entity_name(self) -> str:
        return self._entity_name

    @property
    def entity_type(self) -> EntityType:
        return self._entity_type

    @property
    def persister(self) -> Persistence:
        return self._persister

    @property
    def shield(self) -> ExceptionShield:
        return self._shield

    @property
    def serializer(self) -> EntitySerializer:
        """
        Entity serializer, built on first use.

        Raises:
            ServiceRuntimeError: If the persister cannot provide one.
        """
        if self._serializer is None:
            if not isinstance(self._persister, SerializablePersistence):
                raise ServiceRuntimeError(
                    f"Unable to get a serializer from a {type(self._persister).__name__} "
                    "persister as it does not implement the SerializablePersistence protocol"
                )
            output_schemas = {}
            if self._output_schema is not None:
                output_schemas[self._entity_name] = self._output_schema
            self._serializer = EntitySerializer(self._persister.registry, output_schemas)
        return self._serializer

    # =========================================================================
    # Read Operations
    # =========================================================================

    def fetch_all(self, expressions: ExpressionsArg = None) -> Result:
        """
        Fetch the entities matching `expressions`.

        Returns:
            Success Result holding the list of entities.

        Raises:
            ServiceRuntimeError: If an error occurs in the persistence layer.
        """
        expressions = normalize_expressions(expressions)
        try:
            entities = self._persister.fetch_all(self._entity_name, expressions)
        except Exception as e:
            raise self._shield.wrap(
                e, "Unable to fetch entities matching given criteria."
            ) from e

        return Result.success(entities)

    def fetch_one(self, expressions: ExpressionsArg = None) -> Result:
        """
        Fetch a single entity matching `expressions`.

        Returns:
            Success Result holding the entity, or None when nothing matches.

        Raises:
            ServiceRuntimeError: If an error occurs in the persistence layer.
        """
        expressions = normalize_expressions(expressions)
        try:
            entity = self._persister.fetch_one(self._entity_name, expressions)
        except Exception as e:
            raise self._shield.wrap(
                e, "Unable to fetch a single entity matching given criteria."
            ) from e

        return Result.success(entity)

    def fetch_page(self, expressions: ExpressionsArg = None) -> Result:
        """
        Fetch one page of the entities matching `expressions`.

        Returns:
            Success Result holding a Paginator.

        Raises:
            ServiceRuntimeError: If an error occurs in the persistence layer.
        """
        expressions = normalize_expressions(expressions)
        try:
            paginator = self._persister.fetch_page(self._entity_name, expressions)
        except Exception as e:
            raise self._shield.wrap(
                e, "Unable to fetch paginated entities matching criteria."
            ) from e

        return Result.success(paginator)

    def fetch_pairs(
        self,
        id_field: str = "id",
        label_field: str = "name",
        expressions: ExpressionsArg = None,
    ) -> Result:
        """
        Fetch id/label pairs of the entities matching `expressions`.

        Returns:
            Success Result holding a list of (id, label) tuples.

        Raises:
            InvalidArgumentError: If `expressions` already holds a positional
                select() projection.
            ServiceRuntimeError: If an error occurs in the persistence layer.
        """
        expressions = normalize_expressions(expressions)
        projection = find_select(expressions)
        if projection is not None:
            raise InvalidArgumentError(
                "The specified expressions already have a 'select' operator: "
                f"'{projection}'"
            )
        append_expression(expressions, select_expression(id_field, label_field))

        try:
            pairs = self._persister.fetch_pairs(
                self._entity_name, id_field, label_field, expressions
            )
        except Exception as e:
            raise self._shield.wrap(
                e, "Unable to fetch key/value pairs matching given criteria."
            ) from e

        return Result.success(pairs)

    def get_default(self) -> Result:
        """
        Return a new, default-constructed entity.

        Raises:
            ServiceRuntimeError: If entity instantiation fails.
        """
        try:
            entity = self._entity_type.instantiate()
        except Exception as e:
            raise self._shield.wrap(e, "Unable to get default value of the entity.") from e

        return Result.success(entity)

    def retrieve(self, entity_id: Any = None) -> Result:
        """
        Retrieve the entity matching `entity_id` (scalar, or tuple for
        composite keys).

        Raises:
            InvalidArgumentError: When the identifier is missing.
            ServiceRuntimeError: If an error occurs in the persistence layer.
        """
        self._require_id(entity_id, "retrieve")

        try:
            entity = self._persister.retrieve(self._entity_name, entity_id)
        except Exception as e:
            raise self._shield.wrap(
                e, f"Unable to retrieve entity matching id {entity_id}."
            ) from e

        return Result.success(entity)

    # =========================================================================
    # Write Operations
    # =========================================================================

    def create(self, data: Mapping[str, Any]) -> Result:
        """
        Validate `data` and create a new entity from it.

        Returns:
            Success Result holding the created entity, or a VALIDATION_ERROR
            Result holding the unfiltered input and the violations.

        Raises:
            InvalidArgumentError: When `data` is not a mapping.
            ServiceRuntimeError: If an error occurs other than a validation
                failure.
        """
        self._require_mapping(data, "create")

        try:
            input_filter = self._input_filter_cls()
            if input_filter.is_valid(data):
                entity = self._entity_type.instantiate()
                self._populator.populate(self._entity_type, entity, input_filter)
                self._persister.create(entity)
                result = Result.success(entity)
            else:
                result = self._validation_failure(input_filter)
        except Exception as e:
            raise self._shield.wrap(e, "Unable to create entity.") from e

        if result.is_success:
            logger.info(
                "Entity created",
                entity=self._entity_name,
                id=self._identity(result.data),
            )
        return result

    def update(self, entity_id: Any, data: Mapping[str, Any]) -> Result:
        """
        Validate `data` and apply it to the entity matching `entity_id`.

        Only the fields present in `data` are applied.

        Returns:
            Success Result holding the updated entity, or a VALIDATION_ERROR
            Result holding the unfiltered input and the violations.

        Raises:
            InvalidArgumentError: When the identifier is missing or `data`
                is not a mapping.
            ServiceRuntimeError: If an error occurs other than a validation
                failure.
        """
        self._require_id(entity_id, "update")
        self._require_mapping(data, "update")

        try:
            input_filter = self._input_filter_cls()
            if input_filter.is_valid(data):
                entity = self._persister.retrieve(self._entity_name, entity_id)
                self._populator.populate(self._entity_type, entity, input_filter)
                self._persister.update(entity)
                result = Result.success(entity)
            else:
                result = self._validation_failure(input_filter)
        except Exception as e:
            raise self._shield.wrap(
                e, f"Unable to update entity matching id {entity_id}."
            ) from e

        if result.is_success:
            logger.info("Entity updated", entity=self._entity_name, id=entity_id)
        return result

    def delete(self, entity_id: Any = None) -> Result:
        """
        Delete the entity matching `entity_id`.

        Returns:
            Success Result holding the deleted entity.

        Raises:
            InvalidArgumentError: When the identifier is missing.
            ServiceRuntimeError: If an error occurs in the persistence layer.
        """
        self._require_id(entity_id, "delete")

        try:
            entity = self._persister.retrieve(self._entity_name, entity_id)
            self._persister.delete(entity)
        except Exception as e:
            raise self._shield.wrap(
                e, f"Unable to delete entity matching id {entity_id}."
            ) from e

        logger.info("Entity deleted", entity=self._entity_name, id=entity_id)
        return Result.success(entity)

    # =========================================================================
    # Internal Helpers
    # =========================================================================

    @staticmethod
    def _require_id(entity_id: Any, operation: str) -> None:
        if entity_id is None:
            raise InvalidArgumentError(
                f"Unable to {operation} entity: the identifier is missing."
            )

    @staticmethod
    def _require_mapping(data: Any, operation: str) -> None:
        if not isinstance(data, Mapping):
            raise InvalidArgumentError(
                f"Unable to {operation} entity: input data must be a mapping, "
                f"got {type(data).__name__}."
            )

    def _validation_failure(self, input_filter: InputFilterPort) -> Result:
        messages = input_filter.get_messages()
        logger.debug(
            "Input validation failed",
            entity=self._entity_name,
            fields=sorted(messages),
        )
        return Result.validation_error(input_filter.get_unfiltered_values(), messages)

    def _identity(self, entity: Any) -> Any:
        values = tuple(getattr(entity, name, None) for name in self._entity_type.identifier)
        if not values:
            return None
        return values[0] if len(values) == 1 else values
