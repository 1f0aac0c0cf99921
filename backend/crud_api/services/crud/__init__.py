"""
CRUD Services - Generic operations for entity management.

Provides:
- CrudService: create/retrieve/update/delete/list/paginate for any entity type
- Result: uniform success/validation-error envelope
- Persistence / InputFilterPort: contracts the service depends on
- SqlAlchemyPersistence: persistence backend on a SQLAlchemy session
- InputFilter: pydantic-backed validation session
- EntityRegistry: entity capabilities resolved at startup
- ExceptionShield: sanitized, log-correlated error messages
- Paginator: backend-driven offset paginator
"""

from .result import Result, ResultStatus
from .ports import (
    Persistence,
    SerializablePersistence,
    InputFilterPort,
    FieldElementPort,
)
from .registry import EntityRegistry, EntityType
from .input_filter import InputFilter, FieldElement
from .populator import EntityPopulator
from .shield import ExceptionShield
from .paginator import BasePaginator, Paginator, ListAdapter
from .serializer import EntitySerializer
from .repository import SqlAlchemyPersistence, SelectItemsAdapter
from .service import CrudService, default_shield

__all__ = [
    # Result
    "Result",
    "ResultStatus",
    # Ports
    "Persistence",
    "SerializablePersistence",
    "InputFilterPort",
    "FieldElementPort",
    # Entities
    "EntityRegistry",
    "EntityType",
    "EntityPopulator",
    "EntitySerializer",
    # Input filters
    "InputFilter",
    "FieldElement",
    # Errors
    "ExceptionShield",
    "default_shield",
    # Pagination
    "BasePaginator",
    "Paginator",
    "ListAdapter",
    "SelectItemsAdapter",
    # Persistence
    "SqlAlchemyPersistence",
    # Service
    "CrudService",
]
