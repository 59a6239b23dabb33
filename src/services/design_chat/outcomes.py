"""Explicit result type for steps of a design chat turn.

Collaborator failures inside a turn are returned, not raised, so callers can
tell a fatal condition from one that already degraded to a usable value:

* ``Ok(value)`` - the step succeeded.
* ``Recovered(value, reason)`` - something went wrong but ``value`` is a
  defined fallback the turn can carry on with.
* ``Fatal(reason)`` - the turn cannot continue; ``reason`` is user facing.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, TypeVar


T = TypeVar("T")


@dataclass(frozen=True, slots=True)
class Ok(Generic[T]):  # noqa: UP046
    value: T


@dataclass(frozen=True, slots=True)
class Recovered(Generic[T]):  # noqa: UP046
    value: T
    reason: str


@dataclass(frozen=True, slots=True)
class Fatal:
    reason: str
    error: BaseException | None = None


Outcome = Ok[T] | Recovered[T] | Fatal
