"""Uniform operation result."""

from dataclasses import dataclass, field
from typing import Any, Generic, Optional, TypeVar

T = TypeVar("T")


@dataclass
class Result(Generic[T]):
    """Outcome of a component operation.

    Public operations never raise across a component boundary; they hand back
    a Result carrying either the payload or a human-readable error.
    """

    success: bool
    data: Optional[T] = None
    error: Optional[str] = None
    metadata: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def ok(cls, data: T, **metadata: Any) -> "Result[T]":
        return cls(success=True, data=data, metadata=metadata)

    @classmethod
    def fail(cls, error: str, **metadata: Any) -> "Result[T]":
        return cls(success=False, error=error, metadata=metadata)

    def unwrap(self) -> T:
        """Return the payload or raise ValueError with the error message."""
        if not self.success:
            raise ValueError(self.error or "operation failed")
        return self.data  # type: ignore[return-value]
