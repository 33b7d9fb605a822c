"""
Flowport Exceptions.

Every failure surfaced by the export/import engine is a FlowportError carrying
the HTTP status and a stable error code, so the API layer can translate it
without inspecting the message.

Hierarchy:
- FlowportError
  - InvalidExportSelectionError (400)
  - UnauthorizedError (401)
  - InternalError (500)
"""

from typing import Optional


class FlowportError(Exception):
    """Base exception for Flowport errors."""

    def __init__(self, http_status: int, code: str, message: str):
        super().__init__(message)
        self.http_status = http_status
        self.code = code
        self.message = message

    def __str__(self) -> str:
        return f"{self.code}: {self.message}"


def operation_message(operation: str, detail: str) -> str:
    """Prefix a failure detail with the name of the failing operation."""
    return f"Error: exportImportService.{operation} - {detail}"


class InvalidExportSelectionError(FlowportError):
    """Export selection body is not a mapping of booleans."""

    def __init__(self, detail: str, operation: str = "convertExportInput"):
        super().__init__(
            http_status=400,
            code="INVALID_EXPORT_INPUT",
            message=operation_message(operation, detail),
        )


class UnauthorizedError(FlowportError):
    """Requester identity is missing a user id or organization id."""

    def __init__(self, message: str = "User or organization is not identified"):
        super().__init__(http_status=401, code="UNAUTHORIZED", message=message)


class InternalError(FlowportError):
    """
    Wrapped failure of an export or import operation.

    The original exception is kept as ``cause`` (and chained with ``from``
    by the raiser).
    """

    def __init__(self, operation: str, detail: str, cause: Optional[BaseException] = None):
        super().__init__(
            http_status=500,
            code="INTERNAL_ERROR",
            message=operation_message(operation, detail),
        )
        self.operation = operation
        self.cause = cause

    @classmethod
    def wrap(cls, operation: str, error: BaseException) -> "InternalError":
        return cls(operation, str(error) or type(error).__name__, cause=error)
