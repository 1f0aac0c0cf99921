"""
Exception shielding.

Turns an internal exception into a message that is safe to hand to callers.
When a logger is available, the full diagnostic (message and traceback) is
logged under a correlation id and only the id reaches the caller. Without a
logger nothing can be sanitized and the diagnostic is embedded in the message.
"""

from __future__ import annotations

import traceback
import uuid
from typing import Any

from shared.infrastructure.correlation import get_request_id
from shared.utils.exceptions import ServiceRuntimeError

MESSAGE_PREFIX = "An error has occurred while running service"
LOGGED_NOTICE = "(details may be found in the application log)"


def new_error_id() -> str:
    return f"shield-{uuid.uuid4().hex}"


class ExceptionShield:
    """
    Sanitizes exceptions raised below the service layer.

    Args:
        logger: Structured logger receiving the diagnostics. When None, the
            diagnostics are embedded in the returned messages.
    """

    def __init__(self, logger: Any | None = None):
        self._logger = logger

    @property
    def logger(self) -> Any | None:
        return self._logger

    def shield(self, exception: BaseException) -> str:
        """Return the sanitized representation of `exception`."""
        message = f"{exception}\n" + "".join(
            traceback.format_exception(type(exception), exception, exception.__traceback__)
        ).rstrip()

        error_id = ""
        if self._logger is not None:
            error_id = f"[errorId:{new_error_id()}]"
            request_id = get_request_id()
            self._logger.error(
                f"{error_id}\n{message}",
                error_id=error_id,
                error_type=type(exception).__name__,
                request_id=request_id or None,
            )
            message = LOGGED_NOTICE

        return f"{MESSAGE_PREFIX} {error_id}\n{message}:\n"

    def wrap(self, exception: BaseException, suffix: str) -> ServiceRuntimeError:
        """Build the error to raise in place of `exception`."""
        return ServiceRuntimeError(self.shield(exception) + suffix)
