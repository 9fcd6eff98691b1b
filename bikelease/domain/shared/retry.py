"""Bounded retry with exponential backoff, built on tenacity.

The engine knows nothing about the operation it runs. Exhaustion re-raises the
exception from the final attempt unchanged; callers classify it.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import TypeVar

from pydantic import Field
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception_type,
    retry_if_not_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from bikelease.domain.shared.error import ConfigurationError
from bikelease.domain.shared.model.value import ValueObject

logger = logging.getLogger(__name__)

T = TypeVar("T")

Sleep = Callable[[float], Awaitable[None]]


class RetryPolicy(ValueObject, frozen=True):
    """Attempt budget and backoff curve for one stage. Delays are in seconds."""

    max_attempts: int = Field(default=3, ge=1)
    base_delay: float = Field(default=1.0, ge=0)
    max_delay: float = Field(default=10.0, ge=0)
    backoff_multiplier: float = Field(default=2.0, ge=1)

    def delay_for(self, attempt: int) -> float:
        """Delay to wait after the given (1-based) failed attempt."""
        return min(self.base_delay * self.backoff_multiplier ** (attempt - 1), self.max_delay)


DEFAULT_RETRY_POLICY = RetryPolicy()


@dataclass
class RetryBudget:
    """Total backoff time a single request may still spend sleeping."""

    remaining: float

    def allows(self, delay: float) -> bool:
        return delay <= self.remaining

    def charge(self, delay: float) -> None:
        self.remaining = max(0.0, self.remaining - delay)


async def retry(
    operation: Callable[[], Awaitable[T]],
    policy: RetryPolicy = DEFAULT_RETRY_POLICY,
    *,
    label: str = "operation",
    log: logging.Logger | None = None,
    sleep: Sleep = asyncio.sleep,
    budget: RetryBudget | None = None,
    give_up_on: tuple[type[BaseException], ...] = (ConfigurationError,),
) -> T:
    """Run `operation` until it succeeds or `policy.max_attempts` is reached.

    Args:
        operation: Zero-argument coroutine factory, called once per attempt.
        policy: Attempt budget and backoff curve.
        label: Name used in attempt diagnostics.
        log: Logger receiving attempt diagnostics.
        sleep: Awaitable sleep used between attempts.
        budget: Shared per-request backoff budget. When the next delay does not
            fit, the last failure is raised without waiting.
        give_up_on: Exception types raised immediately without further attempts.

    Returns:
        The result of the first successful attempt.

    Raises:
        The exception raised by the final attempt, unchanged.
    """
    log = log or logger

    def _budget_spent(state: RetryCallState) -> bool:
        if budget is None:
            return False
        return not budget.allows(policy.delay_for(state.attempt_number))

    def _before_sleep(state: RetryCallState) -> None:
        delay = state.next_action.sleep if state.next_action else 0.0
        if budget is not None:
            budget.charge(delay)
        exc = state.outcome.exception() if state.outcome else None
        log.warning(
            "%s attempt %d/%d failed (%s), retrying in %.2fs",
            label,
            state.attempt_number,
            policy.max_attempts,
            type(exc).__name__,
            delay,
        )

    retrying = AsyncRetrying(
        stop=stop_after_attempt(policy.max_attempts) | _budget_spent,
        wait=wait_exponential(
            multiplier=policy.base_delay,
            exp_base=policy.backoff_multiplier,
            min=0,
            max=policy.max_delay,
        ),
        retry=retry_if_exception_type(Exception) & retry_if_not_exception_type(give_up_on),
        before_sleep=_before_sleep,
        sleep=sleep,
        reraise=True,
    )

    attempts = 0

    async def _attempt() -> T:
        nonlocal attempts
        attempts += 1
        return await operation()

    try:
        return await retrying(_attempt)
    except Exception as e:
        log.error(
            "%s failed after %d attempt(s): %s",
            label,
            attempts,
            type(e).__name__,
        )
        raise
