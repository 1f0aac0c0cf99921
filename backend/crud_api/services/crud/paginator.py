"""
Backend-driven pagination.

BasePaginator is a generic page-number paginator over an items adapter, with
optional in-memory cache and item filter extension points. Paginator is the
variant handed out by persistence backends: it works with item offsets, asks
the backend for exactly one page and disables the cache and filter layers,
since the backend alone decides what a page contains.

Usage:
    paginator = Paginator(SelectItemsAdapter(session, query), item_count_per_page=20)
    paginator.set_item_offset(40)
    books = paginator.get_current_items()
"""

from __future__ import annotations

from typing import Any, Callable, Iterator, MutableMapping, Protocol, Sequence

from shared.config.settings import settings
from shared.utils.exceptions import InvalidArgumentError, PaginatorError


class ItemsAdapter(Protocol):
    """Supplies the items of a page and the total item count."""

    def get_items(self, offset: int, limit: int) -> Sequence[Any]:
        ...

    def count(self) -> int:
        ...


class ListAdapter:
    """Items adapter over an in-memory sequence."""

    def __init__(self, items: Sequence[Any]):
        self._items = list(items)

    def get_items(self, offset: int, limit: int) -> list[Any]:
        return self._items[offset:offset + limit]

    def count(self) -> int:
        return len(self._items)


class BasePaginator:
    """Generic page-number paginator."""

    def __init__(self, adapter: ItemsAdapter, item_count_per_page: int | None = None):
        self._adapter = adapter
        self._item_count_per_page = settings.default_page_size
        self._current_page_number = 1
        self._current_items: list[Any] | None = None
        self._item_count: int | None = None
        self._cache: MutableMapping[tuple[int, int], list[Any]] | None = None
        self._filter: Callable[[list[Any]], list[Any]] | None = None
        if item_count_per_page is not None:
            self.set_item_count_per_page(item_count_per_page)

    @property
    def adapter(self) -> ItemsAdapter:
        return self._adapter

    def get_item_count_per_page(self) -> int:
        return self._item_count_per_page

    def set_item_count_per_page(self, count: int) -> None:
        self._item_count_per_page = min(max(1, int(count)), settings.max_page_size)
        self._current_items = None

    def get_current_page_number(self) -> int:
        return self._current_page_number

    def set_current_page_number(self, page: int) -> None:
        if page < 1:
            raise InvalidArgumentError(f"Page number must be positive, got {page}")
        self._current_page_number = page
        self._current_items = None

    def get_total_item_count(self) -> int:
        if self._item_count is None:
            self._item_count = self._adapter.count()
        return self._item_count

    def get_page_count(self) -> int:
        total = self.get_total_item_count()
        return max(1, -(-total // self._item_count_per_page))

    def set_cache(self, cache: MutableMapping[tuple[int, int], list[Any]] | None) -> None:
        self._cache = cache

    def set_filter(self, item_filter: Callable[[list[Any]], list[Any]] | None) -> None:
        self._filter = item_filter
        self._current_items = None

    def get_current_items(self) -> list[Any]:
        if self._current_items is None:
            key = (self._current_page_number, self._item_count_per_page)
            if self._cache is not None and key in self._cache:
                self._current_items = self._cache[key]
                return self._current_items

            offset = (self._current_page_number - 1) * self._item_count_per_page
            items = list(self._adapter.get_items(offset, self._item_count_per_page))
            if self._filter is not None:
                items = list(self._filter(items))
            if self._cache is not None:
                self._cache[key] = items
            self._current_items = items

        return self._current_items

    def _current_offset(self) -> int:
        return (self._current_page_number - 1) * self._item_count_per_page

    def to_dict(self) -> dict[str, Any]:
        """Pagination metadata for responses."""
        total = self.get_total_item_count()
        offset = self._current_offset()
        limit = self._item_count_per_page
        return {
            "limit": limit,
            "offset": offset,
            "page": offset // limit + 1,
            "total": total,
            "pages": self.get_page_count(),
            "has_next": offset + limit < total,
            "has_prev": offset > 0,
        }

    def __iter__(self) -> Iterator[Any]:
        return iter(self.get_current_items())


class Paginator(BasePaginator):
    """
    Offset paginator whose pages are always fetched from the backend.

    The current items are fetched once per instance.
    """

    def __init__(
        self,
        adapter: ItemsAdapter,
        item_count_per_page: int | None = None,
        item_offset: int = 0,
    ):
        super().__init__(adapter, item_count_per_page)
        self._item_offset = 0
        self.set_item_offset(item_offset)

    def set_item_offset(self, offset: int) -> None:
        if offset < 0:
            raise InvalidArgumentError(f"Item offset must not be negative, got {offset}")
        self._item_offset = offset

    def get_item_offset(self) -> int:
        return self._item_offset

    def get_current_items(self) -> list[Any]:
        if self._current_items is None:
            self._current_items = list(
                self._adapter.get_items(self._item_offset, self.get_item_count_per_page())
            )
        return self._current_items

    def _current_offset(self) -> int:
        return self._item_offset

    def set_cache(self, cache: Any) -> None:
        raise PaginatorError("Usage of Cache is disabled for this Paginator")

    def set_filter(self, item_filter: Any = None) -> None:
        raise PaginatorError("Usage of Filter is disabled for this Paginator")
