"""
Result envelope for commit outcomes and other expected failures.

Operations that can fail in an expected way return ``Ok[T]`` or ``Err[T]``
instead of raising, so a bulk run can collect outcomes batch by batch and
report them at the end. One rejected batch must never abort the rest of
the reindex.

Examples:
    >>> from indexspine.core.result import Ok, Err
    >>> Ok(25).map(lambda n: n * 2).unwrap()
    50
    >>> Err(ValueError("boom")).unwrap_or(0)
    0

    Pattern matching::

        match committer.commit("pages", batch):
            case Ok(count):
                summary.committed(count)
            case Err(error):
                summary.error(error.message)

Tags:
    result-pattern, error-handling, batch-processing, indexspine

Doc-Types:
    - API Reference
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Generic, TypeVar

from indexspine.core.errors import IndexSpineError

T = TypeVar("T")
U = TypeVar("U")


@dataclass(frozen=True, slots=True)
class Ok(Generic[T]):
    """Successful result containing a value."""

    value: T

    def is_ok(self) -> bool:
        return True

    def is_err(self) -> bool:
        return False

    def unwrap(self) -> T:
        """Get the value."""
        return self.value

    def unwrap_or(self, default: T) -> T:
        """Get the value (default ignored)."""
        return self.value

    def map(self, f: Callable[[T], U]) -> Result[U]:
        """Transform the value."""
        return Ok(f(self.value))

    def flat_map(self, f: Callable[[T], Result[U]]) -> Result[U]:
        """Chain to another Result-returning function."""
        return f(self.value)

    def map_err(self, f: Callable[[Exception], Exception]) -> Result[T]:
        """No-op for Ok."""
        return self

    def inspect_err(self, f: Callable[[Exception], None]) -> Result[T]:
        """No-op for Ok."""
        return self

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {"ok": True, "value": self.value}

    def __repr__(self) -> str:
        return f"Ok({self.value!r})"


@dataclass(frozen=True, slots=True)
class Err(Generic[T]):
    """Failed result containing an error."""

    error: Exception

    def is_ok(self) -> bool:
        return False

    def is_err(self) -> bool:
        return True

    def unwrap(self) -> T:
        """Raise the error. Use only when you're sure it's Ok."""
        raise self.error

    def unwrap_or(self, default: T) -> T:
        """Get default since this is Err."""
        return default

    def map(self, f: Callable[[T], U]) -> Result[U]:
        """No-op for Err."""
        return Err(self.error)

    def flat_map(self, f: Callable[[T], Result[U]]) -> Result[U]:
        """No-op for Err."""
        return Err(self.error)

    def map_err(self, f: Callable[[Exception], Exception]) -> Result[T]:
        """Transform the error."""
        return Err(f(self.error))

    def inspect_err(self, f: Callable[[Exception], None]) -> Result[T]:
        """Call f with error for side effects, return self."""
        f(self.error)
        return self

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        if isinstance(self.error, IndexSpineError):
            return {"ok": False, "error": self.error.to_dict()}
        return {
            "ok": False,
            "error": {
                "error_type": type(self.error).__name__,
                "message": str(self.error),
            },
        }

    def __repr__(self) -> str:
        return f"Err({self.error!r})"


Result = Ok[T] | Err[T]


def try_result(f: Callable[[], T]) -> Result[T]:
    """
    Execute a function and wrap its outcome in a Result.

    Any exception raised by ``f`` becomes ``Err``; nothing propagates.

    Examples:
        >>> try_result(lambda: int("42"))
        Ok(42)
        >>> try_result(lambda: int("x")).is_err()
        True
    """
    try:
        return Ok(f())
    except Exception as e:
        return Err(e)


__all__ = [
    "Ok",
    "Err",
    "Result",
    "try_result",
]
