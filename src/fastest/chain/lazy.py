"""Lazy chain arguments.

A chain argument is either a literal or a zero-argument producer that is
called when the step runs, so it can see what earlier steps produced.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import TypeVar

T = TypeVar("T")

Lazy = T | Callable[[], T]


def resolve(value: Lazy[T]) -> T:
    """Return the literal, or call the producer once and return its result."""
    if callable(value):
        return value()
    return value
