"""
Tests for the ambient infrastructure: correlation ids, structured logging,
settings and HTTP exceptions.
"""

import json
import logging

import pytest
from unittest.mock import MagicMock, patch
from fastapi import FastAPI
from fastapi.testclient import TestClient

from shared.config.logging import (
    DevelopmentFormatter,
    StructuredFormatter,
    StructuredLogger,
    get_logger,
)
from shared.config.settings import Settings
from shared.infrastructure.correlation import (
    CorrelationIdFilter,
    CorrelationIdMiddleware,
    get_request_id,
    request_id_var,
)
from shared.utils.exceptions import (
    BadRequestError,
    ConfigurationError,
    EntityNotFoundError,
    InvalidArgumentError,
    NotFoundError,
    PaginatorError,
    ServiceRuntimeError,
    UnprocessableEntityError,
)


# =============================================================================
# CorrelationIdMiddleware Tests
# =============================================================================

class TestCorrelationIdMiddleware:
    """Tests for correlation ID middleware."""

    @pytest.fixture
    def app_with_correlation(self):
        """Create a test app with correlation ID middleware."""
        app = FastAPI()
        app.add_middleware(CorrelationIdMiddleware)

        @app.get("/test")
        def test_endpoint():
            return {"request_id": get_request_id()}

        return app

    def test_generates_request_id_when_not_provided(self, app_with_correlation):
        client = TestClient(app_with_correlation)
        response = client.get("/test")

        request_id = response.headers.get("X-Request-ID")
        assert request_id is not None
        assert len(request_id) == 36  # UUID v4 length
        assert response.json()["request_id"] == request_id

    def test_uses_provided_request_id(self, app_with_correlation):
        client = TestClient(app_with_correlation)
        response = client.get("/test", headers={"X-Request-ID": "my-request-12345"})

        assert response.headers.get("X-Request-ID") == "my-request-12345"
        assert response.json()["request_id"] == "my-request-12345"


class TestCorrelationIdFilter:
    """Tests for correlation ID logging filter."""

    def test_adds_request_id_to_log_record(self):
        token = request_id_var.set("test-request-123")
        try:
            record = MagicMock()

            assert CorrelationIdFilter().filter(record) is True
            assert record.request_id == "test-request-123"
        finally:
            request_id_var.reset(token)

    def test_uses_dash_when_no_request_id(self):
        token = request_id_var.set("")
        try:
            record = MagicMock()

            CorrelationIdFilter().filter(record)

            assert record.request_id == "-"
        finally:
            request_id_var.reset(token)


# =============================================================================
# Logging Tests
# =============================================================================

class TestStructuredLogging:
    """Tests for the structured logger and its formatters."""

    def make_record(self, **extra_data):
        record = logging.LogRecord(
            "crud_api.shield", logging.ERROR, __file__, 10, "Entity created", (), None
        )
        record.extra_data = extra_data or None
        record.request_id = "req-1"
        return record

    def test_get_logger_returns_structured_logger(self):
        assert isinstance(get_logger("tests.structured"), StructuredLogger)

    def test_keyword_arguments_become_extra_data(self, caplog):
        logger = get_logger("tests.structured")

        with caplog.at_level(logging.INFO, logger="tests.structured"):
            logger.info("Entity created", entity="Book", id=1)

        assert caplog.records[-1].extra_data == {"entity": "Book", "id": 1}

    def test_disabled_level_is_skipped(self, caplog):
        logger = get_logger("tests.quiet")
        logger.setLevel(logging.WARNING)

        logger.debug("Entity registered", entity="Book")

        assert not [record for record in caplog.records if record.name == "tests.quiet"]

    def test_json_formatter(self):
        output = json.loads(StructuredFormatter().format(self.make_record(entity="Book")))

        assert output["level"] == "ERROR"
        assert output["logger"] == "crud_api.shield"
        assert output["message"] == "Entity created"
        assert output["request_id"] == "req-1"
        assert output["data"] == {"entity": "Book"}

    def test_development_formatter(self):
        output = DevelopmentFormatter().format(self.make_record(entity="Book", id=3))

        assert "crud_api.shield: Entity created" in output
        assert "(entity=Book | id=3)" in output


# =============================================================================
# Settings Tests
# =============================================================================

class TestSettings:
    def test_defaults_pass_in_development(self):
        assert Settings(environment="development").validate_production() == []

    def test_production_checks(self):
        settings = Settings(
            environment="production",
            debug=True,
            shield_log_details=False,
            database_url="sqlite:///./prod.db",
        )

        errors = settings.validate_production()

        assert len(errors) == 3

    def test_reads_environment(self, monkeypatch):
        monkeypatch.setenv("DEFAULT_PAGE_SIZE", "25")
        monkeypatch.setenv("ORM_MODEL_MODULES", '["app.models"]')

        settings = Settings()

        assert settings.default_page_size == 25
        assert settings.orm_model_modules == ["app.models"]


# =============================================================================
# Exceptions Tests
# =============================================================================

class TestExceptions:
    def test_service_error_hierarchy(self):
        assert issubclass(InvalidArgumentError, ValueError)
        assert issubclass(ServiceRuntimeError, RuntimeError)
        assert issubclass(PaginatorError, ServiceRuntimeError)
        assert issubclass(ConfigurationError, InvalidArgumentError)
        assert issubclass(EntityNotFoundError, LookupError)

    def test_entity_not_found(self):
        error = EntityNotFoundError("Book", 7)

        assert str(error) == "Book with id 7 not found"
        assert error.entity == "Book"
        assert error.entity_id == 7

    def test_http_errors_are_logged(self):
        with patch("shared.utils.exceptions.logger") as logger:
            error = NotFoundError("Book", 7)

        assert error.status_code == 404
        assert error.detail == "Book with id 7 not found"
        logger.warning.assert_called_once()

    def test_bad_request(self):
        assert BadRequestError("Unknown field").status_code == 400

    def test_unprocessable_entity_detail(self):
        error = UnprocessableEntityError({"title": ("Too short",)}, {"title": ""})

        assert error.status_code == 422
        assert error.detail == {
            "message": "Input data is not valid",
            "errors": {"title": ["Too short"]},
            "data": {"title": ""},
        }
