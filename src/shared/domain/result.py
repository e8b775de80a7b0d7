"""
Result type for best-effort lookups.

Display enrichment (pet names, veterinarian names...) must never fail the
primary operation; lookups return `Available(value)` or `Unavailable(reason)`
and list builders substitute a placeholder via `or_else`.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Generic, Optional, TypeVar, Union

from src.shared.logging import get_logger

T = TypeVar("T")
U = TypeVar("U")

logger = get_logger(__name__)


@dataclass(frozen=True)
class Available(Generic[T]):
    value: T

    def map(self, func: Callable[[T], U]) -> "Lookup[U]":
        try:
            return Available(func(self.value))
        except (AttributeError, KeyError, TypeError, ValueError) as e:
            return Unavailable(str(e))

    def or_else(self, default: Any) -> T:
        return self.value


@dataclass(frozen=True)
class Unavailable:
    reason: str

    def map(self, func: Callable[[Any], Any]) -> "Unavailable":
        return self

    def or_else(self, default: U) -> U:
        return default


Lookup = Union[Available[T], Unavailable]


async def attempt(what: str, call: Callable[[], Awaitable[Optional[T]]]) -> "Lookup[T]":
    """
    Run a remote lookup, folding every failure (and an absent result) into Unavailable.
    The failure is logged; nothing propagates.
    """
    try:
        value = await call()
    except Exception as e:
        logger.warning("enrichment.unavailable", lookup=what, error=str(e), error_type=e.__class__.__name__)
        return Unavailable(str(e))
    if value is None:
        return Unavailable(f"{what} not found")
    return Available(value)
