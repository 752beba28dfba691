"""
Result values returned by the external service clients.

The catalog, Rye and Gemini clients return either a Success or a Failure
instead of raising, so each caller decides at its own boundary whether an
error becomes a tool error, an HTTP 500 or another poll.

Example:
    >>> result = await client.get_checkout_intent("ci_123")
    >>> if isinstance(result, Failure):
    ...     logger.warning("Fetch failed", error=result.error.message)
    ... else:
    ...     intent = result.value
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class Success[T]:
    """A call that produced ``value``."""

    value: T


@dataclass(frozen=True, slots=True)
class Failure[E]:
    """A call that failed with ``error``."""

    error: E


type Result[T, E] = Success[T] | Failure[E]


def success[T](value: T) -> Success[T]:
    """Create a Success result."""
    return Success(value)


def failure[E](error: E) -> Failure[E]:
    """Create a Failure result."""
    return Failure(error)
