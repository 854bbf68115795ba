from __future__ import annotations


class PersonStoreError(Exception):
    """Base for every failure a repository operation can report."""

    def __init__(self, operation: str, message: str) -> None:
        super().__init__(f"{operation}: {message}")
        self.operation = operation
        self.message = message


class ValidationError(PersonStoreError):
    """Required field missing or malformed input. Raised before the store is called."""


class NotFound(PersonStoreError):
    """The targeted id or filter matched nothing where a value was required."""


class InvalidArgument(PersonStoreError):
    """Malformed identifier."""


class StoreError(PersonStoreError):
    """Connectivity or backend failure."""
