"""Exceptions shared between the domain and infrastructure layers."""


class StoreError(Exception):
    """Raised when the record store fails a read, write or delete.

    Wraps driver-level failures (network, permissions, constraint
    violations) so callers never depend on the database library.
    """

    def __init__(self, message: str, operation: str | None = None) -> None:
        self.message = message
        self.operation = operation
        super().__init__(message)


class RecordNotFoundError(StoreError):
    """Raised when a record or user id does not exist in the store."""

    def __init__(self, record_id: str, operation: str | None = None) -> None:
        self.record_id = record_id
        super().__init__(f"Record {record_id} not found", operation)


class ImportRejectedError(Exception):
    """Raised when an import is committed while its report still has errors."""

    def __init__(self, error_count: int) -> None:
        self.error_count = error_count
        super().__init__(f"Import blocked by {error_count} validation error(s)")
