"""
Result type (``rotable_kernel.domain.result``).

Every public kernel operation returns a ``Result``: either a success value
or a typed ``RotableKernelError``.  Expected domain conditions (an illegal
transition, an incomplete checklist, a version conflict) never escape the
kernel as exceptions.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, TypeVar

from rotable_kernel.exceptions import RotableKernelError

T = TypeVar("T")


@dataclass(frozen=True)
class Result(Generic[T]):
    """Outcome of a kernel operation: a value or an error, never both."""

    value: T | None = None
    error: RotableKernelError | None = None

    @classmethod
    def ok(cls, value: T) -> Result[T]:
        """Create a successful result."""
        return cls(value=value)

    @classmethod
    def fail(cls, error: RotableKernelError) -> Result[T]:
        """Create a failed result carrying a typed error."""
        return cls(error=error)

    @property
    def is_ok(self) -> bool:
        return self.error is None

    @property
    def code(self) -> str | None:
        """Machine-readable error code, or None on success."""
        return self.error.code if self.error is not None else None

    def unwrap(self) -> T:
        """Return the value, re-raising the error of a failed result."""
        if self.error is not None:
            raise self.error
        return self.value  # type: ignore[return-value]
