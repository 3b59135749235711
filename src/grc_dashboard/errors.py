"""Exceptions raised by the GRC dashboard core."""


class GRCError(Exception):
    """Base class for dashboard errors."""


class InvalidFieldValue(GRCError, ValueError):
    """A field update carried a value outside the accepted domain."""

    def __init__(self, field: str, value, reason: str = ""):
        self.field = field
        self.value = value
        message = f"Invalid value for {field}: {value!r}"
        if reason:
            message += f" ({reason})"
        super().__init__(message)


class StorageWriteError(GRCError):
    """Persisting the collections to the key-value store failed."""
