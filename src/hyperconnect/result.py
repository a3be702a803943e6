"""Either-style result values produced by the computation engine.

A middleware never raises to report a failure: it resolves to ``Err`` with
a value of the caller's choosing, or ``Ok`` with its result.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, Generic, TypeVar, Union

T = TypeVar("T")
E = TypeVar("E")
U = TypeVar("U")


class _ResultBase:
    __slots__ = ()

    def is_ok(self) -> bool:
        """Return ``True`` when the result is successful."""
        return isinstance(self, Ok)

    def is_err(self) -> bool:
        """Return ``True`` when the result represents a failure."""
        return isinstance(self, Err)


@dataclass(frozen=True, slots=True)
class Ok(_ResultBase, Generic[T]):
    """Success result."""

    value: T

    def map(self, f: Callable[[T], U]) -> Ok[U]:
        return Ok(f(self.value))

    def map_err(self, f: Callable[[Any], Any]) -> Ok[T]:
        return self

    def unwrap(self) -> T:
        return self.value


@dataclass(frozen=True, slots=True)
class Err(_ResultBase, Generic[E]):
    """Failure result. ``error`` is not required to be an exception."""

    error: E

    def map(self, f: Callable[[Any], Any]) -> Err[E]:
        return self

    def map_err(self, f: Callable[[E], U]) -> Err[U]:
        return Err(f(self.error))

    def unwrap(self) -> Any:
        if isinstance(self.error, BaseException):
            raise self.error
        raise ValueError(f"Called unwrap on Err: {self.error!r}")


Result = Union[Ok[T], Err[E]]
