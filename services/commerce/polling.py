"""Bounded polling of checkout intents."""

from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass
from typing import TYPE_CHECKING

from core.logging import get_logger
from core.result import Failure
from services.commerce.errors import CheckoutPollTimeoutError

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from core.result import Result
    from services.commerce.errors import CommerceError
    from services.commerce.types import CheckoutIntent


logger = get_logger(__name__)


@dataclass(frozen=True, slots=True)
class RetryPolicy:
    """
    How often and how long to poll.

    Attributes:
        interval: Seconds to wait before each poll.
        max_attempts: Maximum number of polls, or None for no limit.
        max_duration: Maximum seconds spent polling, or None for no limit.
    """

    interval: float
    max_attempts: int | None = 120
    max_duration: float | None = None

    def __post_init__(self) -> None:
        """Validate the policy."""
        if self.interval < 0:
            msg = "interval cannot be negative"
            raise ValueError(msg)
        if self.max_attempts is not None and self.max_attempts < 1:
            msg = "max_attempts must be at least 1"
            raise ValueError(msg)

    def exhausted(self, attempts: int, elapsed: float) -> bool:
        """Return True once either bound is reached."""
        if self.max_attempts is not None and attempts >= self.max_attempts:
            return True
        return self.max_duration is not None and elapsed >= self.max_duration


async def _wait(interval: float, cancelled: asyncio.Event | None) -> None:
    if cancelled is None:
        await asyncio.sleep(interval)
        return
    try:
        await asyncio.wait_for(cancelled.wait(), timeout=interval)
    except TimeoutError:
        pass


async def poll_until(
    checkout_intent_id: str,
    fetch: Callable[[str], Awaitable[Result[CheckoutIntent, CommerceError]]],
    done: Callable[[CheckoutIntent], bool],
    policy: RetryPolicy,
    cancelled: asyncio.Event | None = None,
    clock: Callable[[], float] = time.monotonic,
) -> Result[CheckoutIntent, CommerceError] | None:
    """
    Poll an intent until ``done`` accepts it.

    Each poll waits ``policy.interval`` and then awaits the fetch, so polls
    never overlap. Retryable errors count as attempts and polling goes on;
    any other error is returned.

    Args:
        checkout_intent_id: Intent to poll.
        fetch: Reads the intent (usually ``RyeClient.get_checkout_intent``).
        done: Predicate on the fetched intent that ends polling.
        policy: Interval and bounds.
        cancelled: Event that stops polling as soon as it is set.
        clock: Monotonic clock, in seconds.

    Returns:
        The accepted intent or a non-retryable error; None if cancelled.

    Raises:
        CheckoutPollTimeoutError: If the policy is exhausted first.
    """
    started = clock()
    attempts = 0

    while True:
        await _wait(policy.interval, cancelled)
        if cancelled is not None and cancelled.is_set():
            return None

        result = await fetch(checkout_intent_id)
        attempts += 1
        if cancelled is not None and cancelled.is_set():
            return None

        if isinstance(result, Failure):
            if not result.error.is_retryable:
                return result
            logger.warning(
                "Checkout poll failed, retrying",
                checkout_intent_id=checkout_intent_id,
                attempt=attempts,
                error=result.error.message,
            )
        elif done(result.value):
            return result

        elapsed = clock() - started
        if policy.exhausted(attempts, elapsed):
            logger.error(
                "Checkout poll timed out",
                checkout_intent_id=checkout_intent_id,
                attempts=attempts,
                elapsed=round(elapsed, 1),
            )
            raise CheckoutPollTimeoutError(checkout_intent_id, attempts, elapsed)
