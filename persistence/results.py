from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, TypeVar

from .errors import PersonStoreError

T = TypeVar("T")


@dataclass(frozen=True)
class OperationResult(Generic[T]):
    """
    Outcome of one repository call: either `value` or `error`, never both.

    `value` may legitimately be None (e.g. a lookup with no match).
    """

    operation: str
    value: T | None = None
    error: PersonStoreError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap(self) -> T | None:
        if self.error is not None:
            raise self.error
        return self.value

    @classmethod
    def success(cls, operation: str, value: T | None) -> "OperationResult[T]":
        return cls(operation=operation, value=value)

    @classmethod
    def failure(cls, error: PersonStoreError) -> "OperationResult[T]":
        return cls(operation=error.operation, error=error)
