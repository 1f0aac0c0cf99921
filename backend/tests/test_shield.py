"""
Tests for exception shielding.
"""

import re
from unittest.mock import MagicMock

from crud_api.services.crud import ExceptionShield
from crud_api.services.crud.shield import LOGGED_NOTICE, MESSAGE_PREFIX
from shared.infrastructure.correlation import request_id_var
from shared.utils.exceptions import ServiceRuntimeError


def raise_and_catch(exception: Exception) -> Exception:
    try:
        raise exception
    except Exception as e:
        return e


class TestExceptionShield:
    def test_without_logger_embeds_diagnostics(self):
        error = raise_and_catch(ValueError("bad column"))

        message = ExceptionShield().shield(error)

        assert message.startswith(MESSAGE_PREFIX)
        assert "bad column" in message
        assert "Traceback" in message
        assert message.endswith(":\n")
        assert "errorId" not in message

    def test_with_logger_hides_diagnostics(self):
        logger = MagicMock()
        error = raise_and_catch(ValueError("bad column"))

        message = ExceptionShield(logger).shield(error)

        assert "bad column" not in message
        assert LOGGED_NOTICE in message
        error_id = re.search(r"\[errorId:shield-[0-9a-f]{32}\]", message).group(0)

        logger.error.assert_called_once()
        logged = logger.error.call_args
        assert logged.args[0].startswith(error_id)
        assert "bad column" in logged.args[0]
        assert logged.kwargs["error_id"] == error_id
        assert logged.kwargs["error_type"] == "ValueError"

    def test_each_error_gets_its_own_id(self):
        shield = ExceptionShield(MagicMock())

        first = shield.shield(ValueError("a"))
        second = shield.shield(ValueError("a"))

        assert first != second

    def test_logs_request_id(self):
        logger = MagicMock()
        token = request_id_var.set("req-123")
        try:
            ExceptionShield(logger).shield(RuntimeError("boom"))
        finally:
            request_id_var.reset(token)

        assert logger.error.call_args.kwargs["request_id"] == "req-123"

    def test_wrap_appends_suffix(self):
        error = ExceptionShield(MagicMock()).wrap(KeyError("x"), "Unable to create entity.")

        assert isinstance(error, ServiceRuntimeError)
        assert str(error).endswith(":\nUnable to create entity.")
