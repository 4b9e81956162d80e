"""Error types raised by the synchronization library.

Library functions raise one of these on the first problem they hit; only
the CLI decides how they are reported and which exit code is used.
"""

from typing import Any


class WidgetSyncError(Exception):
    """Base class for all widget-sync errors."""

    def __init__(self, message: str, cause: BaseException | None = None):
        super().__init__(message)
        self.message = message
        self.cause = cause


class LocalPreconditionError(WidgetSyncError, ValueError):
    """A local file or value needed by the operation is missing or malformed."""


class InvariantViolation(WidgetSyncError):
    """Data that should be impossible after a successful step."""


class ValidationFailure(WidgetSyncError):
    """A document did not validate against its (possibly remote) schema.

    Attributes:
        path: Location of the failing value inside the document, or "root"
    """

    def __init__(self, message: str, path: str = "root", cause: BaseException | None = None):
        super().__init__(message, cause)
        self.path = path


class TransportFailure(WidgetSyncError):
    """A request to the widget service failed.

    ``kind`` is "no-response" when nothing came back from the server
    (connection refused, DNS, timeout...) and "status" when the server
    answered with an unexpected status code.
    """

    NO_RESPONSE = "no-response"
    STATUS = "status"

    def __init__(
        self,
        message: str,
        original_error: BaseException | None = None,
        response: Any = None,
        body: Any = None,
    ):
        super().__init__(message, original_error)
        self.original_error = original_error
        self.response = response
        self.body = body

    @property
    def kind(self) -> str:
        return self.STATUS if self.response is not None else self.NO_RESPONSE

    @property
    def status_code(self) -> int | None:
        if self.response is None:
            return None
        return self.response.status_code

    def describe(self) -> str:
        """Short classification used in progress output."""
        if self.kind == self.STATUS:
            return f"server answered {self.status_code}"
        return f"no response ({self.original_error})"
