"""
Tests for pydantic-backed input filters and the entity populator.
"""

import pytest
from pydantic import BaseModel, model_validator

from crud_api.services.crud import EntityPopulator, EntityRegistry, FieldElement, InputFilter
from crud_api.services.crud.input_filter import FORM_ERRORS_KEY
from shared.utils.exceptions import InvalidArgumentError, ServiceRuntimeError
from tests.models import Book, BookFilter, GroupedBookFilter, Note, NoteFilter


class RangeInput(BaseModel):
    low: int
    high: int

    @model_validator(mode="after")
    def check_order(self):
        if self.low > self.high:
            raise ValueError("low must not exceed high")
        return self


class RangeFilter(InputFilter):
    schema = RangeInput


class TestInputFilter:
    """Tests for InputFilter validation sessions."""

    def test_filter_without_schema_is_rejected(self):
        class EmptyFilter(InputFilter):
            pass

        with pytest.raises(ServiceRuntimeError, match="does not declare a schema"):
            EmptyFilter()

    def test_valid_data(self):
        input_filter = BookFilter()

        assert input_filter.is_valid({"title": "Dune", "year": 1965})
        assert input_filter.get_messages() == {}
        assert input_filter.get_values() == {"title": "Dune", "year": 1965}

    def test_absent_fields_are_ignored(self):
        input_filter = BookFilter()
        input_filter.is_valid({"title": "Dune"})

        elements = input_filter.get_elements()
        assert elements["title"].get_ignore() is False
        assert elements["author"].get_ignore() is True

    def test_declared_ignored_field_is_validated_but_not_applied(self):
        input_filter = BookFilter()

        assert input_filter.is_valid({"title": "Dune", "isbn": "978-0441013593"})
        assert input_filter.get_elements()["isbn"].get_ignore() is True
        assert "isbn" not in input_filter.get_values()

    def test_messages_are_keyed_by_field(self):
        input_filter = BookFilter()

        assert not input_filter.is_valid({"title": "", "year": "not a year"})

        messages = input_filter.get_messages()
        assert set(messages) == {"title", "year"}
        assert all(isinstance(message, str) for message in messages["title"])

    def test_model_level_errors_use_form_key(self):
        input_filter = RangeFilter()

        assert not input_filter.is_valid({"low": 5, "high": 1})
        assert FORM_ERRORS_KEY in input_filter.get_messages()

    def test_unfiltered_values_hold_raw_input(self):
        input_filter = BookFilter()
        input_filter.is_valid({"title": "Dune", "year": "1965", "unknown": 1})

        assert input_filter.get_unfiltered_values() == {
            "title": "Dune",
            "author": None,
            "isbn": None,
            "year": "1965",
        }
        # Validated values are coerced
        assert input_filter.get_values()["year"] == 1965

    def test_values_require_successful_validation(self):
        input_filter = BookFilter()

        with pytest.raises(ServiceRuntimeError, match="holds no valid values"):
            input_filter.get_values()

        input_filter.is_valid({"title": ""})
        with pytest.raises(ServiceRuntimeError):
            input_filter.get_values()

    def test_non_mapping_input_is_rejected(self):
        with pytest.raises(InvalidArgumentError, match="must be a mapping"):
            BookFilter().is_valid(["title", "Dune"])

    def test_grouped_filter_reads_nested_input(self):
        input_filter = GroupedBookFilter()

        assert input_filter.is_array()
        assert input_filter.is_valid({"book": {"title": "Dune"}})
        assert input_filter.get_unfiltered_values() == {
            "book": {"title": "Dune", "author": None, "isbn": None},
        }

    def test_grouped_filter_rejects_scalar_group(self):
        with pytest.raises(InvalidArgumentError):
            GroupedBookFilter().is_valid({"book": "Dune"})


class TestFieldElement:
    """Tests for FieldElement."""

    def test_unbound_element_is_ignored(self):
        element = FieldElement("title")

        assert element.get_ignore() is True
        assert element.is_valid()
        assert element.get_value() is None

    def test_bound_element(self):
        element = FieldElement("title")
        element._bind(" Dune ", supplied=True)

        assert element.get_ignore() is False
        assert element.get_unfiltered_value() == " Dune "

    def test_ignore_flag_wins_over_supplied(self):
        element = FieldElement("isbn", ignore=True)
        element._bind("123", supplied=True)

        assert element.get_ignore() is True


class TestEntityPopulator:
    """Tests for EntityPopulator."""

    @pytest.fixture
    def registry(self):
        registry = EntityRegistry()
        registry.register(Book)
        registry.register(Note)
        return registry

    def test_applies_flat_and_nested_fields(self, registry):
        input_filter = BookFilter()
        input_filter.is_valid({"title": " Dune ", "author": "Frank Herbert", "year": 1965})
        book = Book(title="placeholder")

        EntityPopulator().populate(registry.get("Book"), book, input_filter)

        assert book.title == "Dune"
        assert book.author == "Frank Herbert"
        assert book.year == 1965

    def test_skips_ignored_fields(self, registry):
        input_filter = BookFilter()
        input_filter.is_valid({"title": "Dune", "isbn": "123"})
        book = Book(title="Old", isbn="keep")

        EntityPopulator().populate(registry.get("Book"), book, input_filter)

        assert book.isbn == "keep"
        assert book.year is None

    def test_missing_mutator_names_field(self, registry):
        input_filter = NoteFilter()
        input_filter.is_valid({"text": "hello", "color": "red"})

        with pytest.raises(ServiceRuntimeError) as exc_info:
            EntityPopulator().populate(registry.get("Note"), Note(), input_filter)

        assert str(exc_info.value) == "No setter method defined for field 'color' of entity Note"

    def test_unsupplied_field_without_mutator_is_skipped(self, registry):
        input_filter = NoteFilter()
        input_filter.is_valid({"text": "hello"})
        note = Note()

        EntityPopulator().populate(registry.get("Note"), note, input_filter)

        assert note.text == "hello"

    def test_grouped_filter_is_rejected(self, registry):
        input_filter = GroupedBookFilter()
        input_filter.is_valid({"book": {"title": "Dune"}})

        with pytest.raises(ServiceRuntimeError, match="GroupedBookFilter"):
            EntityPopulator().populate(registry.get("Book"), Book(), input_filter)
