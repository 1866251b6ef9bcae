"""
Generic Result type for explicit error handling.

Store calls return a Result instead of raising so that every caller has to
decide whether a remote failure is fatal, defaulted, or ignored.
"""

from typing import Any, Generic, TypeVar

ValueT = TypeVar("ValueT")
ErrorT = TypeVar("ErrorT", bound=BaseException)

_MISSING: Any = object()


class Result(Generic[ValueT, ErrorT]):
    """
    Explicit error handling without exceptions for expected failures.

    ``None`` is a legal Ok value (an optional row that does not exist), so
    presence is tracked with a sentinel rather than ``is None`` checks.
    """

    def __init__(self, value: Any = _MISSING, error: ErrorT | None = None) -> None:
        if value is not _MISSING and error is not None:
            raise ValueError("Result cannot have both value and error")
        if value is _MISSING and error is None:
            raise ValueError("Result must have either value or error")
        self._value: ValueT | None = None if value is _MISSING else value
        self._error: ErrorT | None = error

    @classmethod
    def ok(cls, value: ValueT) -> "Result[ValueT, ErrorT]":
        return cls(value=value)

    @classmethod
    def err(cls, error: ErrorT) -> "Result[ValueT, ErrorT]":
        return cls(error=error)

    def is_ok(self) -> bool:
        return self._error is None

    def is_err(self) -> bool:
        return self._error is not None

    def unwrap(self) -> ValueT:
        if self._error is not None:
            raise self._error
        return self._value  # type: ignore

    def unwrap_or(self, default: ValueT) -> ValueT:
        return self._value if self._error is None else default  # type: ignore

    def unwrap_err(self) -> ErrorT:
        if self._error is None:
            raise ValueError("Called unwrap_err() on an Ok value")
        return self._error

    def __repr__(self) -> str:
        if self._error is not None:
            return f"Result.err({self._error!r})"
        return f"Result.ok({self._value!r})"
