"""
Tests for the paginators.
"""

from unittest.mock import MagicMock

import pytest

from crud_api.services.crud import BasePaginator, ListAdapter, Paginator
from shared.config.settings import settings
from shared.utils.exceptions import InvalidArgumentError, PaginatorError


class TestBasePaginator:
    def test_pages_over_items(self):
        paginator = BasePaginator(ListAdapter(range(25)), item_count_per_page=10)
        paginator.set_current_page_number(3)

        assert paginator.get_current_items() == [20, 21, 22, 23, 24]
        assert paginator.get_page_count() == 3
        assert paginator.to_dict() == {
            "limit": 10,
            "offset": 20,
            "page": 3,
            "total": 25,
            "pages": 3,
            "has_next": False,
            "has_prev": True,
        }

    def test_page_size_is_clamped(self):
        paginator = BasePaginator(ListAdapter([]), item_count_per_page=10_000)

        assert paginator.get_item_count_per_page() == settings.max_page_size
        assert paginator.get_page_count() == 1

    def test_invalid_page_number(self):
        with pytest.raises(InvalidArgumentError):
            BasePaginator(ListAdapter([])).set_current_page_number(0)

    def test_cache_and_filter(self):
        adapter = MagicMock(wraps=ListAdapter(range(10)))
        cache = {}
        paginator = BasePaginator(adapter, item_count_per_page=5)
        paginator.set_cache(cache)
        paginator.set_filter(lambda items: [item for item in items if item % 2 == 0])

        assert paginator.get_current_items() == [0, 2, 4]
        assert cache == {(1, 5): [0, 2, 4]}

        again = BasePaginator(adapter, item_count_per_page=5)
        again.set_cache(cache)
        assert again.get_current_items() == [0, 2, 4]
        adapter.get_items.assert_called_once_with(0, 5)


class TestPaginator:
    def test_fetches_page_at_offset_once(self):
        adapter = MagicMock(wraps=ListAdapter(range(30)))
        paginator = Paginator(adapter, item_count_per_page=5, item_offset=12)

        assert list(paginator) == [12, 13, 14, 15, 16]
        assert paginator.get_current_items() == [12, 13, 14, 15, 16]
        adapter.get_items.assert_called_once_with(12, 5)

    def test_metadata_uses_offset(self):
        paginator = Paginator(ListAdapter(range(30)), item_count_per_page=10, item_offset=10)

        data = paginator.to_dict()

        assert data["offset"] == 10
        assert data["page"] == 2
        assert data["total"] == 30
        assert data["has_next"] is True
        assert data["has_prev"] is True

    def test_defaults_to_configured_page_size(self):
        paginator = Paginator(ListAdapter([]))

        assert paginator.get_item_count_per_page() == settings.default_page_size
        assert paginator.get_item_offset() == 0

    def test_negative_offset(self):
        with pytest.raises(InvalidArgumentError):
            Paginator(ListAdapter([]), item_offset=-1)

    def test_cache_is_disabled(self):
        with pytest.raises(PaginatorError, match="Usage of Cache is disabled for this Paginator"):
            Paginator(ListAdapter([])).set_cache({})

    def test_filter_is_disabled(self):
        with pytest.raises(PaginatorError, match="Usage of Filter is disabled for this Paginator"):
            Paginator(ListAdapter([])).set_filter(lambda items: items)
