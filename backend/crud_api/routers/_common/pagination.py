"""
Standardized pagination parameters for CRUD routers.

Usage:
    from crud_api.routers._common.pagination import Pagination, get_pagination

    @router.get("/books")
    def list_books(pagination: Pagination = Depends(get_pagination)):
        result = service.fetch_page({0: pagination.to_expression()})
"""

from dataclasses import dataclass

from fastapi import Query

from crud_api.services.crud.expressions import limit_expression
from shared.config.settings import settings


@dataclass
class Pagination:
    """
    Pagination parameters with validation.

    Attributes:
        limit: Maximum items per page (1 to max_limit)
        offset: Number of items to skip
        max_limit: Maximum allowed limit
    """

    limit: int
    offset: int
    max_limit: int = settings.max_page_size

    def __post_init__(self):
        self.limit = min(max(1, self.limit), self.max_limit)
        self.offset = max(0, self.offset)

    @property
    def page(self) -> int:
        """Current page number (1-indexed)."""
        return (self.offset // self.limit) + 1

    def to_expression(self) -> str:
        """Positional query expression selecting this page."""
        return limit_expression(self.limit, self.offset)


def get_pagination(
    limit: int = Query(
        default=settings.default_page_size,
        ge=1,
        le=settings.max_page_size,
        description="Maximum number of items to return",
    ),
    offset: int = Query(
        default=0,
        ge=0,
        description="Number of items to skip",
    ),
) -> Pagination:
    """
    FastAPI dependency for pagination.

    Usage:
        @router.get("/items")
        def list_items(pagination: Pagination = Depends(get_pagination)):
            ...
    """
    return Pagination(limit=limit, offset=offset)
