"""Small algebraic helpers for composing generated code and definitions."""

from __future__ import annotations

import operator
from dataclasses import dataclass
from functools import reduce
from typing import Callable, Generic, Hashable, Iterable, TypeVar

A = TypeVar("A")
B = TypeVar("B")
H = TypeVar("H", bound=Hashable)


@dataclass(frozen=True)
class Monoid(Generic[A]):
    """An identity element and an associative binary operation."""

    empty: Callable[[], A]
    append: Callable[[A, A], A]


def concat(monoid: Monoid[A], xs: Iterable[A]) -> A:
    """Combine all values with the monoid, starting from its identity."""
    return reduce(monoid.append, xs, monoid.empty())


def fold_map(xs: Iterable[A], monoid: Monoid[B], f: Callable[[A], B]) -> B:
    """Map each value with ``f`` and combine the results with the monoid."""
    return reduce(monoid.append, map(f, xs), monoid.empty())


def fold_map_indexed(
    xs: Iterable[A], monoid: Monoid[B], f: Callable[[int, A], B]
) -> B:
    """Like :func:`fold_map`, but ``f`` also receives the position."""
    return reduce(
        monoid.append, (f(i, x) for i, x in enumerate(xs)), monoid.empty()
    )


STRING_MONOID: Monoid[str] = Monoid(str, operator.add)


def slice_monoid() -> Monoid[list]:
    """A monoid that concatenates lists without mutating its arguments."""
    return Monoid(list, lambda a, b: [*a, *b])


def unique(xs: Iterable[H]) -> list[H]:
    """Drop repeated values, keeping the first occurrence of each."""
    return list(dict.fromkeys(xs))


def coalesce(*values: A) -> A | None:
    """Return the first truthy value, or the last value when none is truthy."""
    if not values:
        return None
    return next((v for v in values if v), values[-1])