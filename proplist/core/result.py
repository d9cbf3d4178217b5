"""Two-variant result type returned across every port and use case.

Expected failures (not found, conflict, validation, auth) travel as values so
callers branch on them explicitly; only bugs propagate as exceptions.

Typical usage::

    from proplist.core.result import Err, Ok, Result

    async def get(pid: str) -> Result[PropertyDTO]:
        row = ...
        if row is None:
            return Err(NotFoundError("property", pid))
        return Ok(row)

    result = await get("...")
    if isinstance(result, Err):
        ...
    dto = result.value
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Generic, TypeAlias, TypeVar

from proplist.core.exceptions import ApplicationError, DomainError

__all__ = ["Ok", "Err", "Result", "is_ok", "is_err", "unwrap"]

logger = logging.getLogger(__name__)

T = TypeVar("T")

#: Errors a ``Result`` may carry: the adapter taxonomy or a converted domain error.
ResultError: TypeAlias = ApplicationError | DomainError


@dataclass(frozen=True, slots=True)
class Ok(Generic[T]):
    """Successful outcome wrapping *value*."""

    value: T

    @property
    def ok(self) -> bool:
        return True


@dataclass(frozen=True, slots=True)
class Err:
    """Failed outcome wrapping *error*."""

    error: ResultError

    @property
    def ok(self) -> bool:
        return False


Result: TypeAlias = Ok[T] | Err


def is_ok(result: Ok[T] | Err) -> bool:
    return isinstance(result, Ok)


def is_err(result: Ok[T] | Err) -> bool:
    return isinstance(result, Err)


def unwrap(result: Ok[T] | Err) -> T:
    """Return the wrapped value or raise the wrapped error.

    Intended for tests and scripts; use cases branch on the variant instead.

    Raises:
        ApplicationError | DomainError: The error carried by an ``Err``.
    """
    if isinstance(result, Err):
        raise result.error
    return result.value
