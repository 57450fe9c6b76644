"""Explicit success/failure return values for operations that must not raise."""

from dataclasses import dataclass
from enum import Enum
from typing import Generic, Optional, TypeVar

from forumkit.core.exceptions import (
    ForumKitException,
    NotFoundError,
    StoreError,
    ValidationError,
)

T = TypeVar("T")


class FailureKind(str, Enum):
    NOT_FOUND = "not_found"
    VALIDATION = "validation"
    STORE = "store"


@dataclass(frozen=True)
class Result(Generic[T]):
    """Outcome of an operation.

    ``value`` is None exactly when the operation failed; callers must treat
    an absent value as a failure and read ``failure``/``message`` for the
    reason, never as "nothing changed".
    """

    value: Optional[T] = None
    failure: Optional[FailureKind] = None
    message: str = ""

    @property
    def ok(self) -> bool:
        return self.failure is None

    @classmethod
    def success(cls, value: T) -> "Result[T]":
        return cls(value=value)

    @classmethod
    def fail(cls, failure: FailureKind, message: str) -> "Result[T]":
        return cls(failure=failure, message=message)

    @classmethod
    def from_exception(cls, exc: ForumKitException) -> "Result[T]":
        """Map a forumkit exception onto its failure kind."""
        if isinstance(exc, NotFoundError):
            kind = FailureKind.NOT_FOUND
        elif isinstance(exc, ValidationError):
            kind = FailureKind.VALIDATION
        elif isinstance(exc, StoreError):
            kind = FailureKind.STORE
        else:
            raise TypeError(f"Unmapped exception type: {type(exc).__name__}")
        return cls.fail(kind, exc.message)
