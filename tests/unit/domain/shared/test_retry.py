"""Unit tests for the retry engine."""

import asyncio
from unittest.mock import AsyncMock, call

import pydantic
import pytest

from bikelease.domain.shared.error import ConfigurationError, StorageError
from bikelease.domain.shared.retry import RetryBudget, RetryPolicy, retry

FAST = RetryPolicy(max_attempts=3, base_delay=1.0, max_delay=10.0, backoff_multiplier=2)


class TestRetryPolicy:
    def test_defaults(self):
        policy = RetryPolicy()
        assert policy.max_attempts == 3
        assert policy.base_delay == 1.0
        assert policy.max_delay == 10.0
        assert policy.backoff_multiplier == 2

    def test_delay_grows_exponentially(self):
        assert [FAST.delay_for(n) for n in (1, 2, 3, 4)] == [1.0, 2.0, 4.0, 8.0]

    def test_delay_is_capped(self):
        assert FAST.delay_for(10) == 10.0

    def test_rejects_zero_attempts(self):
        with pytest.raises(pydantic.ValidationError):
            RetryPolicy(max_attempts=0)


class TestRetry:
    async def test_first_attempt_success_does_not_sleep(self):
        operation = AsyncMock(return_value="ok")
        sleep = AsyncMock()

        result = await retry(operation, FAST, sleep=sleep)

        assert result == "ok"
        operation.assert_awaited_once()
        sleep.assert_not_awaited()

    async def test_succeeds_after_transient_failures(self):
        operation = AsyncMock(side_effect=[StorageError("a"), StorageError("b"), "stored"])
        sleep = AsyncMock()

        result = await retry(operation, FAST, sleep=sleep)

        assert result == "stored"
        assert operation.await_count == 3
        assert sleep.await_args_list == [call(1.0), call(2.0)]

    async def test_exhaustion_reraises_last_failure_unchanged(self):
        errors = [StorageError("first"), StorageError("second"), StorageError("third")]
        operation = AsyncMock(side_effect=errors)

        with pytest.raises(StorageError) as exc_info:
            await retry(operation, FAST, sleep=AsyncMock())

        assert exc_info.value is errors[-1]
        assert operation.await_count == FAST.max_attempts

    async def test_any_exception_type_is_retried(self):
        operation = AsyncMock(side_effect=RuntimeError("boom"))

        with pytest.raises(RuntimeError):
            await retry(operation, RetryPolicy(max_attempts=4), sleep=AsyncMock())

        assert operation.await_count == 4

    async def test_single_attempt_policy_never_sleeps(self):
        operation = AsyncMock(side_effect=StorageError("down"))
        sleep = AsyncMock()

        with pytest.raises(StorageError):
            await retry(operation, RetryPolicy(max_attempts=1), sleep=sleep)

        operation.assert_awaited_once()
        sleep.assert_not_awaited()

    async def test_delays_respect_max_delay(self):
        policy = RetryPolicy(max_attempts=4, base_delay=1.0, max_delay=5.0, backoff_multiplier=10)
        operation = AsyncMock(side_effect=StorageError("down"))
        sleep = AsyncMock()

        with pytest.raises(StorageError):
            await retry(operation, policy, sleep=sleep)

        assert sleep.await_args_list == [call(1.0), call(5.0), call(5.0)]

    async def test_configuration_errors_are_not_retried(self):
        operation = AsyncMock(side_effect=ConfigurationError("no url"))
        sleep = AsyncMock()

        with pytest.raises(ConfigurationError):
            await retry(operation, FAST, sleep=sleep)

        operation.assert_awaited_once()
        sleep.assert_not_awaited()

    async def test_cancellation_is_not_retried(self):
        operation = AsyncMock(side_effect=asyncio.CancelledError())
        sleep = AsyncMock()

        with pytest.raises(asyncio.CancelledError):
            await retry(operation, FAST, sleep=sleep)

        operation.assert_awaited_once()
        sleep.assert_not_awaited()

    async def test_custom_give_up_types(self):
        operation = AsyncMock(side_effect=KeyError("k"))

        with pytest.raises(KeyError):
            await retry(operation, FAST, sleep=AsyncMock(), give_up_on=(KeyError,))

        operation.assert_awaited_once()


class TestRetryBudget:
    async def test_stops_when_next_delay_exceeds_budget(self):
        budget = RetryBudget(remaining=1.5)
        operation = AsyncMock(side_effect=StorageError("down"))
        sleep = AsyncMock()

        with pytest.raises(StorageError):
            await retry(operation, FAST, sleep=sleep, budget=budget)

        # 1s fits, the following 2s does not
        assert operation.await_count == 2
        assert sleep.await_args_list == [call(1.0)]
        assert budget.remaining == pytest.approx(0.5)

    async def test_budget_is_shared_across_calls(self):
        budget = RetryBudget(remaining=3.0)
        first = AsyncMock(side_effect=[StorageError("a"), StorageError("b"), "ok"])
        second = AsyncMock(side_effect=StorageError("down"))

        await retry(first, FAST, sleep=AsyncMock(), budget=budget)
        assert budget.remaining == pytest.approx(0.0)

        with pytest.raises(StorageError):
            await retry(second, FAST, sleep=AsyncMock(), budget=budget)
        second.assert_awaited_once()

    def test_allows_and_charge(self):
        budget = RetryBudget(remaining=2.0)
        assert budget.allows(2.0)
        budget.charge(1.5)
        assert not budget.allows(1.0)
        budget.charge(5.0)
        assert budget.remaining == 0.0
