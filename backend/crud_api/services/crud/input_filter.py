"""
Pydantic-backed input filters.

An input filter is a validation session built fresh for each create/update
call. Subclasses declare a pydantic schema for their flat fields and may
declare nested groups, each group being another input filter validated
against the same input:

    class BookInput(BaseModel):
        title: str = Field(min_length=1)
        isbn: str | None = None

    class PublicationInput(BaseModel):
        year: int = Field(ge=1450)

    class PublicationFilter(InputFilter):
        schema = PublicationInput

    class BookFilter(InputFilter):
        schema = BookInput
        sub_filters = {"publication": PublicationFilter}
        ignored = frozenset({"isbn"})

Fields that are absent from the input are reported as ignored so that an
update only touches the fields it was given.
"""

from __future__ import annotations

from typing import Any, ClassVar, Mapping

from pydantic import BaseModel, ValidationError

from shared.utils.exceptions import InvalidArgumentError, ServiceRuntimeError

# Key used for violations that are not attached to a single field
FORM_ERRORS_KEY = "__all__"


class FieldElement:
    """Named input field: raw value, validated value, ignore flag, messages."""

    def __init__(self, name: str, *, ignore: bool = False):
        self.name = name
        self._ignore = ignore
        self._supplied = False
        self._value: Any = None
        self._unfiltered: Any = None
        self._messages: list[str] = []

    def get_value(self) -> Any:
        return self._value

    def get_unfiltered_value(self) -> Any:
        return self._unfiltered

    def get_ignore(self) -> bool:
        return self._ignore or not self._supplied

    def get_messages(self) -> list[str]:
        return list(self._messages)

    def is_valid(self) -> bool:
        return not self._messages

    def _bind(self, unfiltered: Any, supplied: bool) -> None:
        self._unfiltered = unfiltered
        self._supplied = supplied
        self._value = None
        self._messages = []

    def __repr__(self) -> str:
        return f"<FieldElement({self.name}={self._value!r}, ignore={self.get_ignore()})>"


class InputFilter:
    """
    Base input filter.

    Class attributes:
        schema: Pydantic model validating the flat fields of this level.
        sub_filters: Nested groups, name -> input filter class.
        ignored: Field names validated but never applied to the entity.
        elements_belong_to: When set, the fields are read from
            ``data[elements_belong_to]`` (grouped/array notation).
    """

    schema: ClassVar[type[BaseModel] | None] = None
    sub_filters: ClassVar[Mapping[str, type[InputFilter]]] = {}
    ignored: ClassVar[frozenset[str]] = frozenset()
    elements_belong_to: ClassVar[str | None] = None

    def __init__(self) -> None:
        if self.schema is None:
            raise ServiceRuntimeError(
                f"Input filter '{type(self).__name__}' does not declare a schema."
            )
        self._elements = {
            name: FieldElement(name, ignore=name in self.ignored)
            for name in self.schema.model_fields
        }
        self._sub_forms = {name: filter_cls() for name, filter_cls in self.sub_filters.items()}
        self._form_messages: list[str] = []
        self._validated: bool | None = None

    # =========================================================================
    # Validation
    # =========================================================================

    def is_valid(self, data: Mapping[str, Any]) -> bool:
        """Validate `data`, binding raw and validated values to the elements."""
        if not isinstance(data, Mapping):
            raise InvalidArgumentError(
                f"Input data must be a mapping, got {type(data).__name__}"
            )
        values = self._scope(data)

        supplied = {name: values[name] for name in self._elements if name in values}
        for name, element in self._elements.items():
            element._bind(values.get(name), name in supplied)
        self._form_messages = []

        valid = True
        try:
            model = self.schema.model_validate(supplied)
        except ValidationError as e:
            valid = False
            self._collect_messages(e)
        else:
            for name, element in self._elements.items():
                element._value = getattr(model, name)

        # Every group is validated so that all messages are collected
        for sub_form in self._sub_forms.values():
            if not sub_form.is_valid(data):
                valid = False

        self._validated = valid
        return valid

    def is_array(self) -> bool:
        return self.elements_belong_to is not None

    def _scope(self, data: Mapping[str, Any]) -> Mapping[str, Any]:
        if self.elements_belong_to is None:
            return data
        scoped = data.get(self.elements_belong_to) or {}
        if not isinstance(scoped, Mapping):
            raise InvalidArgumentError(
                f"Input data '{self.elements_belong_to}' must be a mapping"
            )
        return scoped

    def _collect_messages(self, error: ValidationError) -> None:
        for detail in error.errors():
            loc = detail.get("loc") or ()
            message = detail.get("msg", "Invalid value")
            name = str(loc[0]) if loc else FORM_ERRORS_KEY
            element = self._elements.get(name)
            if element is None:
                self._form_messages.append(message)
            else:
                element._messages.append(message)

    # =========================================================================
    # Accessors
    # =========================================================================

    def get_elements(self) -> Mapping[str, FieldElement]:
        return self._elements

    def get_sub_forms(self) -> Mapping[str, InputFilter]:
        return self._sub_forms

    def get_values(self) -> dict[str, Any]:
        """Validated values of the applicable fields, nested groups included."""
        if not self._validated:
            raise ServiceRuntimeError(
                f"Input filter '{type(self).__name__}' holds no valid values: "
                "call is_valid() with valid data first."
            )
        values = {
            name: element.get_value()
            for name, element in self._elements.items()
            if not element.get_ignore()
        }
        for sub_form in self._sub_forms.values():
            values.update(sub_form.get_values())
        return values

    def get_unfiltered_values(self) -> dict[str, Any]:
        """Raw input of every known field, as submitted."""
        values = {name: element.get_unfiltered_value() for name, element in self._elements.items()}
        for sub_form in self._sub_forms.values():
            # Grouped sub forms come back nested under their group name
            values.update(sub_form.get_unfiltered_values())
        if self.is_array():
            return {self.elements_belong_to: values}
        return values

    def get_messages(self) -> dict[str, list[str]]:
        """Violation messages keyed by field name (empty when valid)."""
        messages = {
            name: element.get_messages()
            for name, element in self._elements.items()
            if not element.is_valid()
        }
        if self._form_messages:
            messages[FORM_ERRORS_KEY] = list(self._form_messages)
        for sub_form in self._sub_forms.values():
            for name, sub_messages in sub_form.get_messages().items():
                messages.setdefault(name, []).extend(sub_messages)
        return messages
