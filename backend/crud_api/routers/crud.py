"""
Generic CRUD endpoints.

build_crud_router() exposes one CrudService over HTTP:

    GET    /            paginated list (limit, offset, sort and field filters)
    GET    /pairs       id/label pairs
    GET    /default     default entity
    POST   /            create
    GET    /{id}        retrieve
    PUT    /{id}        update
    DELETE /{id}        delete

Service outcomes are translated into responses:
- VALIDATION_ERROR results become 422 with the submitted data and errors;
- unknown field names in filters, sort or pairs and InvalidArgumentError become 400;
- ServiceRuntimeError becomes 404 when caused by a missing entity, 500 otherwise.

Usage:
    def get_book_service(db: Session = Depends(get_db)) -> CrudService:
        return CrudService("Book", BookFilter, SqlAlchemyPersistence(db, registry))

    app = create_app(build_crud_router("/books", get_book_service))
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import Any, Callable, Iterable, Iterator

from fastapi import APIRouter, Body, Depends, Query, Request, status
from fastapi.encoders import jsonable_encoder

from crud_api.routers._common.pagination import Pagination, get_pagination
from crud_api.services.crud import CrudService, Result
from crud_api.services.crud.expressions import append_expression, sort_expression
from shared.utils.exceptions import (
    BadRequestError,
    EntityNotFoundError,
    InternalError,
    InvalidArgumentError,
    NotFoundError,
    ServiceRuntimeError,
    UnprocessableEntityError,
)

# Query parameters that are not field filters
RESERVED_PARAMS = frozenset({"limit", "offset", "sort"})


@contextmanager
def service_errors(entity_name: str, entity_id: Any = None) -> Iterator[None]:
    """Translate service exceptions into HTTP errors."""
    try:
        yield
    except InvalidArgumentError as e:
        raise BadRequestError(str(e), entity=entity_name) from e
    except ServiceRuntimeError as e:
        if isinstance(e.__cause__, EntityNotFoundError):
            raise NotFoundError(entity_name, entity_id) from e
        raise InternalError(str(e), entity=entity_name) from e


def check_fields(service: CrudService, names: Iterable[str]) -> None:
    """Reject field names the entity does not declare."""
    known = service.entity_type.fields
    unknown = sorted({name for name in names if name not in known})
    if unknown:
        raise BadRequestError(
            f"Unknown field(s) for entity {service.entity_name}: {', '.join(unknown)}",
            entity=service.entity_name,
        )


def render(service: CrudService, result: Result) -> Any:
    """Serialize a service result, raising 422 on validation errors."""
    if result.is_validation_error:
        raise UnprocessableEntityError(
            result.errors or {},
            jsonable_encoder(result.data),
            entity=service.entity_name,
        )
    return jsonable_encoder(service.serializer.serialize(result.data))


def build_crud_router(
    prefix: str,
    get_service: Callable[..., CrudService],
    *,
    tags: list[str] | None = None,
    id_parser: Callable[[str], Any] = int,
) -> APIRouter:
    """
    Build a router exposing the CrudService provided by `get_service`.

    Args:
        prefix: Route prefix, e.g. "/books".
        get_service: FastAPI dependency returning the service.
        tags: OpenAPI tags; defaults to the prefix name.
        id_parser: Converts the path identifier to the entity key type.
    """
    router = APIRouter(prefix=prefix, tags=tags or [prefix.strip("/") or "crud"])

    def parse_id(entity_id: str, entity_name: str) -> Any:
        try:
            return id_parser(entity_id)
        except (TypeError, ValueError) as e:
            raise BadRequestError(
                f"Invalid identifier '{entity_id}'", entity=entity_name
            ) from e

    @router.get("")
    def list_entities(
        request: Request,
        sort: str | None = Query(default=None, description="e.g. -year,+title"),
        pagination: Pagination = Depends(get_pagination),
        service: CrudService = Depends(get_service),
    ) -> dict[str, Any]:
        """List one page of entities, filtered by any other query parameter."""
        expressions: dict[Any, Any] = {
            key: value
            for key, value in request.query_params.items()
            if key not in RESERVED_PARAMS
        }
        sort_fields = [field.strip() for field in sort.split(",")] if sort else []
        check_fields(service, [*expressions, *(field.lstrip("+-") for field in sort_fields)])

        if sort_fields:
            append_expression(expressions, sort_expression(*sort_fields))
        append_expression(expressions, pagination.to_expression())

        with service_errors(service.entity_name):
            result = service.fetch_page(expressions)
            return render(service, result)

    @router.get("/pairs")
    def list_pairs(
        id_field: str = "id",
        label_field: str = "name",
        service: CrudService = Depends(get_service),
    ) -> list[dict[str, Any]]:
        """List id/label pairs, e.g. to fill a select input."""
        check_fields(service, (id_field, label_field))
        with service_errors(service.entity_name):
            result = service.fetch_pairs(id_field, label_field)
        return [
            {"id": jsonable_encoder(key), "label": jsonable_encoder(label)}
            for key, label in result.data
        ]

    @router.get("/default")
    def get_default(service: CrudService = Depends(get_service)) -> dict[str, Any]:
        """Get a new entity holding default values."""
        with service_errors(service.entity_name):
            return render(service, service.get_default())

    @router.post("", status_code=status.HTTP_201_CREATED)
    def create_entity(
        data: dict[str, Any] = Body(...),
        service: CrudService = Depends(get_service),
    ) -> dict[str, Any]:
        with service_errors(service.entity_name):
            result = service.create(data)
            return render(service, result)

    @router.get("/{entity_id}")
    def get_entity(
        entity_id: str,
        service: CrudService = Depends(get_service),
    ) -> dict[str, Any]:
        key = parse_id(entity_id, service.entity_name)
        with service_errors(service.entity_name, key):
            return render(service, service.retrieve(key))

    @router.put("/{entity_id}")
    def update_entity(
        entity_id: str,
        data: dict[str, Any] = Body(...),
        service: CrudService = Depends(get_service),
    ) -> dict[str, Any]:
        """Update the fields present in the body."""
        key = parse_id(entity_id, service.entity_name)
        with service_errors(service.entity_name, key):
            result = service.update(key, data)
            return render(service, result)

    @router.delete("/{entity_id}")
    def delete_entity(
        entity_id: str,
        service: CrudService = Depends(get_service),
    ) -> dict[str, Any]:
        """Delete an entity, returning its last state."""
        key = parse_id(entity_id, service.entity_name)
        with service_errors(service.entity_name, key):
            return render(service, service.delete(key))

    return router
