"""
Tagged execution results.

Strict executor operations return ExecutionResult: either ``ok`` with a value,
or a failure carrying an ExecutionError that says which step failed.
"""

from __future__ import annotations

from enum import Enum
from typing import Generic, TypeVar

T = TypeVar("T")


class ErrorKind(str, Enum):
    CONNECTIVITY = "connectivity"
    STATEMENT = "statement"
    CONVERSION = "conversion"
    PROCEDURE_NOT_FOUND = "procedure_not_found"
    NOT_SUPPORTED = "not_supported"


class ExecutionError(Exception):
    """A contained failure: what kind, which SQL, and the underlying exception."""

    def __init__(
        self,
        kind: ErrorKind,
        message: str,
        *,
        sql: str | None = None,
        cause: BaseException | None = None,
    ) -> None:
        super().__init__(message)
        self.kind = kind
        self.message = message
        self.sql = sql
        self.cause = cause
        if cause is not None:
            self.__cause__ = cause

    def __repr__(self) -> str:
        return f"ExecutionError(kind={self.kind.value!r}, message={self.message!r})"


class NotSupportedError(Exception):
    """Raised when the configured dialect lacks a feature (e.g. procedure return values)."""

    pass


class ExecutionResult(Generic[T]):
    """Success with a value, or failure with an ExecutionError. Build with success()/failure()."""

    __slots__ = ("_value", "_error", "rowcount")

    def __init__(
        self,
        value: T | None = None,
        error: ExecutionError | None = None,
        *,
        rowcount: int | None = None,
    ) -> None:
        self._value = value
        self._error = error
        self.rowcount = rowcount

    @classmethod
    def success(cls, value: T, *, rowcount: int | None = None) -> ExecutionResult[T]:
        return cls(value=value, rowcount=rowcount)

    @classmethod
    def failure(cls, error: ExecutionError) -> ExecutionResult[T]:
        return cls(error=error)

    @property
    def ok(self) -> bool:
        return self._error is None

    @property
    def value(self) -> T | None:
        return self._value

    @property
    def error(self) -> ExecutionError | None:
        return self._error

    def unwrap(self) -> T:
        """Return the value, or raise the contained ExecutionError."""
        if self._error is not None:
            raise self._error
        return self._value  # type: ignore[return-value]

    def unwrap_or(self, default: T) -> T:
        if self._error is not None:
            return default
        return self._value  # type: ignore[return-value]

    def __bool__(self) -> bool:
        return self.ok

    def __repr__(self) -> str:
        if self._error is not None:
            return f"ExecutionResult(error={self._error!r})"
        return f"ExecutionResult(value={self._value!r})"
