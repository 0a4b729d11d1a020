"""Typed success/failure values returned by fallible service operations."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, TypeVar

from .exceptions import CvsmithError


__all__ = ["Outcome"]

T = TypeVar("T")


@dataclass(slots=True, frozen=True)
class Outcome(Generic[T]):
    """Result of an operation that may fail without raising.

    Callers branch on :attr:`ok` and read either :attr:`value` or
    :attr:`error`; exceptions stay reserved for programmer errors.
    """

    ok: bool
    value: T | None = None
    error: CvsmithError | None = None

    @classmethod
    def success(cls, value: T | None = None) -> Outcome[T]:
        return cls(ok=True, value=value)

    @classmethod
    def failure(cls, error: CvsmithError) -> Outcome[T]:
        return cls(ok=False, error=error)

    def unwrap(self) -> T:
        """Return the value or raise the carried error."""
        if not self.ok:
            assert self.error is not None
            raise self.error
        return self.value  # type: ignore[return-value]

    def __bool__(self) -> bool:
        return self.ok
