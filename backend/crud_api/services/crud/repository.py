"""
SQLAlchemy persistence backend.

Implements the persistence contract of the CRUD service on a SQLAlchemy
session. Entity names are resolved to mapped classes through the entity
registry, and query expressions are compiled into SELECT statements:

    {"author": "Herbert"}        WHERE author = 'Herbert'
    {"title": "Du*"}             WHERE title LIKE 'Du%'
    {"id": [1, 2]}               WHERE id IN (1, 2)
    {0: "sort(-year,+title)"}    ORDER BY year DESC, title ASC
    {0: "limit(10,20)"}          LIMIT 10 OFFSET 20
    {0: "select(id,title)"}      only these columns are loaded
    {0: Book.year > 1960}        SQLAlchemy clauses are applied as they are

Usage:
    persistence = SqlAlchemyPersistence(db, registry)
    books = persistence.fetch_all("Book", {"author": "Herbert", 0: "sort(-year)"})
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping, Sequence

from sqlalchemy import func, select
from sqlalchemy import inspect as sa_inspect
from sqlalchemy.orm import Session, load_only
from sqlalchemy.sql.expression import ColumnElement, Select

from shared.config.settings import settings
from shared.infrastructure.db import safe_commit
from shared.utils.exceptions import EntityNotFoundError, InvalidArgumentError

from .expressions import is_positional, parse_operator
from .paginator import Paginator
from .registry import EntityRegistry


@dataclass
class CompiledQuery:
    """Query expressions translated for one mapped class."""

    conditions: list[Any] = field(default_factory=list)
    order_by: list[Any] = field(default_factory=list)
    projection: list[Any] = field(default_factory=list)
    limit: int | None = None
    offset: int | None = None

    def statement(self, model: type, *, paginate: bool = True) -> Select:
        query = select(model)
        if self.conditions:
            query = query.where(*self.conditions)
        if self.projection:
            query = query.options(load_only(*self.projection))
        if self.order_by:
            query = query.order_by(*self.order_by)
        if paginate:
            if self.offset is not None:
                query = query.offset(self.offset)
            if self.limit is not None:
                query = query.limit(self.limit)
        return query


class SelectItemsAdapter:
    """Paginator items adapter running a SELECT with offset/limit."""

    def __init__(self, session: Session, query: Select):
        self._session = session
        self._query = query

    def get_items(self, offset: int, limit: int) -> Sequence[Any]:
        return self._session.scalars(self._query.offset(offset).limit(limit)).all()

    def count(self) -> int:
        subquery = self._query.order_by(None).subquery()
        return self._session.scalar(select(func.count()).select_from(subquery)) or 0


class SqlAlchemyPersistence:
    """
    Persistence backend working on a SQLAlchemy session.

    Every mutation is committed immediately through `safe_commit`.
    """

    def __init__(
        self,
        session: Session,
        registry: EntityRegistry,
        *,
        page_size: int | None = None,
    ):
        self._session = session
        self._registry = registry
        self._page_size = page_size or settings.default_page_size

    @property
    def session(self) -> Session:
        """The database session."""
        return self._session

    @property
    def registry(self) -> EntityRegistry:
        return self._registry

    # =========================================================================
    # Reads
    # =========================================================================

    def fetch_all(self, entity_name: str, expressions: Mapping[Any, Any]) -> Sequence[Any]:
        model = self._model(entity_name)
        query = self.compile(model, expressions).statement(model)
        return self._session.scalars(query).all()

    def fetch_one(self, entity_name: str, expressions: Mapping[Any, Any]) -> Any | None:
        """Return the matching entity, None if there is none.

        Raises MultipleResultsFound when several entities match.
        """
        model = self._model(entity_name)
        query = self.compile(model, expressions).statement(model)
        return self._session.execute(query).scalar_one_or_none()

    def fetch_page(self, entity_name: str, expressions: Mapping[Any, Any]) -> Paginator:
        model = self._model(entity_name)
        compiled = self.compile(model, expressions)
        adapter = SelectItemsAdapter(self._session, compiled.statement(model, paginate=False))
        return Paginator(
            adapter,
            item_count_per_page=compiled.limit or self._page_size,
            item_offset=compiled.offset or 0,
        )

    def fetch_pairs(
        self,
        entity_name: str,
        id_field: str,
        label_field: str,
        expressions: Mapping[Any, Any],
    ) -> list[tuple[Any, Any]]:
        model = self._model(entity_name)
        compiled = self.compile(model, expressions)
        query = select(self._column(model, id_field), self._column(model, label_field))
        if compiled.conditions:
            query = query.where(*compiled.conditions)
        if compiled.order_by:
            query = query.order_by(*compiled.order_by)
        if compiled.offset is not None:
            query = query.offset(compiled.offset)
        if compiled.limit is not None:
            query = query.limit(compiled.limit)
        return [(row[0], row[1]) for row in self._session.execute(query)]

    def retrieve(self, entity_name: str, entity_id: Any) -> Any:
        """
        Find entity by primary key (scalar, tuple or mapping for composite keys).

        Raises:
            EntityNotFoundError: If no entity matches.
        """
        model = self._model(entity_name)
        entity = self._session.get(model, entity_id)
        if entity is None:
            raise EntityNotFoundError(entity_name, entity_id)
        return entity

    # =========================================================================
    # Writes
    # =========================================================================

    def create(self, entity: Any) -> None:
        self._session.add(entity)
        safe_commit(self._session)
        self._session.refresh(entity)

    def update(self, entity: Any) -> None:
        self._session.add(entity)
        safe_commit(self._session)

    def delete(self, entity: Any) -> None:
        self._session.delete(entity)
        safe_commit(self._session)

    # =========================================================================
    # Query compilation
    # =========================================================================

    def compile(self, model: type, expressions: Mapping[Any, Any]) -> CompiledQuery:
        """Translate query expressions for `model`."""
        compiled = CompiledQuery()

        for key, value in expressions.items():
            if not is_positional(key):
                compiled.conditions.append(self._filter(model, key, value))
                continue

            if isinstance(value, ColumnElement):
                compiled.conditions.append(value)
                continue
            if not isinstance(value, str):
                raise InvalidArgumentError(f"Invalid query expression: {value!r}")

            name, args = parse_operator(value)
            if name == "select":
                compiled.projection = [self._column(model, arg) for arg in args]
            elif name == "sort":
                compiled.order_by.extend(self._sort(model, arg) for arg in args)
            elif name == "limit":
                compiled.limit, compiled.offset = self._limit(args, value)
            else:
                raise InvalidArgumentError(f"Unsupported query operator '{name}' in '{value}'")

        return compiled

    def _model(self, entity_name: str) -> type:
        entity_type = self._registry.get(entity_name)
        if entity_type.mapper is None:
            raise InvalidArgumentError(f"Entity type '{entity_name}' is not mapped")
        return entity_type.cls

    def _column(self, model: type, name: str) -> Any:
        if name not in sa_inspect(model).column_attrs:
            raise InvalidArgumentError(f"Unknown field '{name}' for entity {model.__name__}")
        return getattr(model, name)

    def _filter(self, model: type, name: Any, value: Any) -> Any:
        column = self._column(model, str(name))
        if value is None:
            return column.is_(None)
        if isinstance(value, (list, tuple, set, frozenset)):
            return column.in_(list(value))
        if isinstance(value, str) and "*" in value:
            return column.like(value.replace("*", "%"))
        return column == value

    def _sort(self, model: type, arg: str) -> Any:
        descending = arg.startswith("-")
        column = self._column(model, arg.lstrip("+-"))
        return column.desc() if descending else column.asc()

    @staticmethod
    def _limit(args: list[str], expression: str) -> tuple[int, int | None]:
        if not 1 <= len(args) <= 2:
            raise InvalidArgumentError(f"Invalid limit expression: '{expression}'")
        try:
            count = int(args[0])
            start = int(args[1]) if len(args) == 2 else None
        except ValueError as e:
            raise InvalidArgumentError(f"Invalid limit expression: '{expression}'") from e
        if count < 1 or (start is not None and start < 0):
            raise InvalidArgumentError(f"Invalid limit expression: '{expression}'")
        return count, start
