"""Exceptions raised outside the normal rejection outcomes."""


class ListingValidationError(ValueError):
    """A listing field violates the stored-record constraints."""

    def __init__(self, field: str, message: str, value: object = None) -> None:
        super().__init__(message)
        self.field = field
        self.message = message
        self.value = value


class PersistenceTimeoutError(TimeoutError):
    """Persistence did not answer within the configured timeout."""

    def __init__(self, operation: str, timeout_seconds: float) -> None:
        super().__init__(
            f"Database operation timed out: {operation} ({timeout_seconds:g}s)"
        )
        self.operation = operation
        self.timeout_seconds = timeout_seconds
